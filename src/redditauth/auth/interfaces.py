"""Abstract interfaces for the authentication layer.

This module defines the contract that every authentication strategy
implements.  It is free of Reddit-specific details: a strategy only knows
how to decorate an outbound :class:`RequestEnvelope`.
"""

from abc import ABC, abstractmethod

from redditauth.core.models import RequestEnvelope


class AuthStrategy(ABC):
    """Abstract base class for request authentication strategies.

    Implementations mutate the request in place (headers, URL) and never
    touch the network.  Strategies that need a network round-trip first
    (such as logging in) are orchestrated by the authenticator, which then
    hands the resulting credential to a plain strategy.

    Example usage::

        strategy = CookieAuth("reddit_session=abc")
        strategy.apply(request)
    """

    @abstractmethod
    def apply(self, request: RequestEnvelope) -> None:
        """Add authentication material to *request*.

        Args:
            request: The outbound request.  Mutated in place; headers the
                strategy does not own are left untouched.
        """
