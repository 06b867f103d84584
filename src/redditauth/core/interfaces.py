"""Abstract interfaces for pipeline stages."""

from abc import ABC, abstractmethod

import requests

from redditauth.core.models import RequestEnvelope


class Handler(ABC):
    """A stage of the outbound HTTP pipeline.

    Every stage, from the authenticator down to the transport, exposes the
    same single operation.  Stages are composed by explicit chaining: each
    :class:`Middleware` holds a reference to the next handler.
    """

    @abstractmethod
    def intercept(self, request: RequestEnvelope) -> requests.Response:
        """Process *request* and return the response.

        Args:
            request: The request envelope.  Stages may mutate it in place.

        Returns:
            The :class:`requests.Response` produced by the end of the chain.

        Raises:
            TransportError: If the request could not be delivered.
            HTTPStatusError: If a stage translates a non-success status.
        """


class Middleware(Handler):
    """A handler that delegates to the next stage of the pipeline."""

    def __init__(self, next_handler: Handler):
        """Initialise the stage.

        Args:
            next_handler: The stage that receives the request after this one.
        """
        self.next_handler = next_handler

    def intercept(self, request: RequestEnvelope) -> requests.Response:
        """Pass *request* through unchanged."""
        return self.next_handler.intercept(request)
