"""Generic pipeline stages and the pipeline builder."""

from collections.abc import Callable

import requests

from redditauth.core.exceptions import ClientError, ServerError
from redditauth.core.interfaces import Handler, Middleware
from redditauth.core.models import RequestEnvelope


class RaiseErrorMiddleware(Middleware):
    """Translates non-success responses into :class:`HTTPStatusError`."""

    def intercept(self, request: RequestEnvelope) -> requests.Response:
        """Forward *request* and check the response status.

        Raises:
            ClientError: For 4xx responses.
            ServerError: For 5xx responses.
        """
        response = self.next_handler.intercept(request)
        status = response.status_code
        if 400 <= status < 500:
            raise ClientError(
                f"{request.method} {request.url} returned {status}", response
            )
        if status >= 500:
            raise ServerError(
                f"{request.method} {request.url} returned {status}", response
            )
        return response


def build_pipeline(
    transport: Handler,
    *stages: Callable[[Handler], Handler],
) -> Handler:
    """Chain *stages* in front of *transport*.

    Args:
        transport: The terminal handler.
        *stages: Factories taking the next handler and returning a new
            stage, listed outermost first.  Classes such as
            :class:`RaiseErrorMiddleware` qualify, as do
            :func:`functools.partial` objects binding extra arguments.

    Returns:
        The outermost handler.

    Example::

        pipeline = build_pipeline(
            Transport(),
            partial(Authenticator, config=config),
            RaiseErrorMiddleware,
        )
    """
    handler = transport
    for stage in reversed(stages):
        handler = stage(handler)
    return handler
