"""Domain exceptions for the redditauth library."""


class RedditAuthError(Exception):
    """Base class for all redditauth library exceptions."""


class ConfigurationError(RedditAuthError, ValueError):
    """Raised when no usable credential combination is configured.

    Raised synchronously while building an authenticator; it is never
    deferred to the first request and never retried.
    """


class LoginFailedError(RedditAuthError):
    """Raised when the login round-trip does not yield a session.

    Covers exhausted retries, non-success statuses, errors reported in the
    login response body, and responses that carry no session cookie.  The
    intercepted request is aborted; it is never sent without a session.
    """


class TransportError(RedditAuthError):
    """Raised when the HTTP transport fails before a response is received."""


class HTTPStatusError(RedditAuthError):
    """Raised when the remote API answers with a non-success status.

    Attributes:
        response: The :class:`requests.Response` that triggered the error.
        status_code: Shortcut for ``response.status_code``.
    """

    def __init__(self, message: str, response):
        super().__init__(message)
        self.response = response
        self.status_code = response.status_code


class ClientError(HTTPStatusError):
    """Raised for 4xx responses."""


class ServerError(HTTPStatusError):
    """Raised for 5xx responses."""
