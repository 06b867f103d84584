"""Terminal pipeline stage backed by :mod:`requests`.

The transport owns the :class:`requests.Session` and therefore the retry
policy: retries live in the urllib3 adapter mounted on the session, so
every stage above the transport sees at most one response per request.
"""

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from redditauth.core.exceptions import TransportError
from redditauth.core.interfaces import Handler
from redditauth.core.models import RequestEnvelope

logger = logging.getLogger(__name__)

# Statuses treated as transient by the retry policy.
RETRIABLE_STATUSES = (429, 500, 502, 503, 504)

_DEFAULT_TIMEOUT = 30


class FixedIntervalRetry(Retry):
    """urllib3 retry policy that sleeps ``backoff_factor`` seconds flat.

    urllib3 grows the delay exponentially by default; the login round-trip
    waits the same interval before every attempt instead.  A
    ``Retry-After`` header on 429/503 responses still takes precedence.
    """

    def get_backoff_time(self) -> float:
        if not self.history:
            return 0
        return self.backoff_factor


def retry_policy(attempts: int, interval: float) -> Retry:
    """Return a retry policy for *attempts* retries spaced *interval* apart.

    Connection errors, read timeouts and :data:`RETRIABLE_STATUSES` are
    retried for every method, POST included.  Once retries are exhausted
    the last response is returned as-is so that
    :class:`~redditauth.pipeline.middleware.RaiseErrorMiddleware` can
    translate it.
    """
    return FixedIntervalRetry(
        total=attempts,
        backoff_factor=interval,
        status_forcelist=RETRIABLE_STATUSES,
        allowed_methods=None,
        raise_on_status=False,
    )


def create_session(
    retry: Retry | None = None,
    headers: dict[str, str] | None = None,
) -> requests.Session:
    """Build a :class:`requests.Session` with *retry* mounted for HTTP(S).

    Args:
        retry: The urllib3 retry policy.  ``None`` disables retries.
        headers: Default headers for every request sent through the session.

    Returns:
        A configured session.
    """
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or Retry(total=0, raise_on_status=False))
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    if headers:
        session.headers.update(headers)
    return session


class Transport(Handler):
    """Sends the request envelope over a :class:`requests.Session`.

    Form bodies (``request.data``) are URL-encoded by ``requests``.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ):
        """Initialise the transport.

        Args:
            session: The session to send requests with.  A session without
                retries is created when omitted.
            timeout: Per-request timeout in seconds.
        """
        self.session = session or create_session()
        self.timeout = timeout

    def intercept(self, request: RequestEnvelope) -> requests.Response:
        """Send *request* and return the raw response.

        Raises:
            TransportError: If ``requests`` fails before a response arrives
                (connection refused, timeout, retries exhausted on
                connection errors, ...).
        """
        logger.debug("%s %s", request.method, request.url)
        try:
            return self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                params=request.params,
                data=request.data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(
                f"{request.method} {request.url} failed: {e}"
            ) from e

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()
