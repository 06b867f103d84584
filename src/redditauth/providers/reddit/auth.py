"""Reddit authentication strategies and the authenticating pipeline stage.

Three mutually exclusive strategies are supported, chosen per request in
this order:

* :class:`BearerTokenAuth`: an OAuth ``access_token`` was configured.
  Requests are redirected to ``oauth.reddit.com`` with an
  ``Authorization: bearer`` header.

* :class:`CookieAuth`: a session cookie is known, either configured up
  front or obtained from an earlier login.  The cookie is appended to any
  ``Cookie`` header already present.

* Login, then cookie: only ``user`` and ``password`` are known.  The
  :class:`Authenticator` posts them to ``/api/login`` once, keeps the
  returned cookie and modhash, and continues with :class:`CookieAuth`.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import requests

from redditauth.auth.interfaces import AuthStrategy
from redditauth.core.exceptions import (
    HTTPStatusError,
    LoginFailedError,
    TransportError,
)
from redditauth.core.interfaces import Handler, Middleware
from redditauth.core.models import AuthConfig, RequestEnvelope, SessionState
from redditauth.pipeline.middleware import RaiseErrorMiddleware
from redditauth.pipeline.transport import Transport, create_session, retry_policy
from redditauth.providers.reddit.modhash import MODHASH_CONTEXT_KEY, extract_modhash

logger = logging.getLogger(__name__)

AUTH_DOMAIN = "https://ssl.reddit.com"
AUTH_PATH = "/api/login"
AUTH_URL = f"{AUTH_DOMAIN}{AUTH_PATH}"

OAUTH_HOST = "oauth.reddit.com"
OAUTH_PORT = 443

LOGIN_RETRY_ATTEMPTS = 5
LOGIN_RETRY_INTERVAL = 2


class BearerTokenAuth(AuthStrategy):
    """Sends requests to the OAuth host with a bearer token."""

    def __init__(self, access_token: str):
        self._access_token = access_token

    def apply(self, request: RequestEnvelope) -> None:
        """Rewrite the target to ``https://oauth.reddit.com:443`` and add
        the ``Authorization`` header.

        Scheme, host and port are replaced unconditionally; path and query
        are kept.
        """
        parts = urlsplit(request.url)
        request.url = urlunsplit((
            "https",
            f"{OAUTH_HOST}:{OAUTH_PORT}",
            parts.path,
            parts.query,
            parts.fragment,
        ))
        request.headers["Authorization"] = f"bearer {self._access_token}"


class CookieAuth(AuthStrategy):
    """Replays a session cookie verbatim."""

    def __init__(self, cookie: str):
        self._cookie = cookie

    def apply(self, request: RequestEnvelope) -> None:
        """Merge the cookie into the request's ``Cookie`` header.

        An upstream value ``V`` becomes ``"V; <cookie>"``; without one the
        header is set to the cookie alone.
        """
        upstream = request.headers.get("Cookie")
        request.headers["Cookie"] = (
            f"{upstream}; {self._cookie}" if upstream else self._cookie
        )


def login_transport() -> Transport:
    """Return the short-lived transport used for a single login round-trip."""
    return Transport(
        create_session(
            retry=retry_policy(LOGIN_RETRY_ATTEMPTS, LOGIN_RETRY_INTERVAL)
        )
    )


def _login_errors(response: requests.Response) -> list:
    """Return the ``json.errors`` list of a login response (may be empty)."""
    try:
        body = response.json()
    except ValueError:
        return []
    if not isinstance(body, dict) or not isinstance(body.get("json"), dict):
        return []
    return body["json"].get("errors") or []


class Authenticator(Middleware):
    """Pipeline stage that authenticates every request it intercepts.

    The configuration is validated once at construction; no network
    activity happens until the first request that needs a login.

    Logins are single-flight per instance: concurrent first requests wait
    on a lock and reuse the session obtained by whichever request logged
    in first.

    Attributes:
        config: The resolved :class:`AuthConfig`.
        state: The :class:`SessionState` owned by this instance.
    """

    def __init__(
        self,
        next_handler: Handler,
        config: AuthConfig | Mapping[str, Any],
        login_transport_factory: Callable[[], Transport] = login_transport,
    ):
        """Initialise the stage.

        Args:
            next_handler: The stage that receives the authenticated request.
            config: An :class:`AuthConfig`, or a mapping with the keys
                ``user``, ``password``, ``remember``, ``access_token`` and
                ``cookie``.
            login_transport_factory: Builds the transport for the login
                sub-request.  Called once per login.

        Raises:
            ConfigurationError: If neither ``user`` and ``password``, a
                ``cookie``, nor an ``access_token`` is configured.
        """
        super().__init__(next_handler)
        if not isinstance(config, AuthConfig):
            config = AuthConfig.from_mapping(config)
        config.validate()
        self.config = config
        self.state = SessionState(cookie=config.cookie)
        self._login_transport_factory = login_transport_factory
        self._login_lock = threading.Lock()

    def intercept(self, request: RequestEnvelope) -> requests.Response:
        """Authenticate *request* and forward it to the next stage.

        Raises:
            LoginFailedError: If a login was required and did not succeed.
                The request is not forwarded.
        """
        if self.config.access_token:
            logger.debug("Authenticating %s with bearer token", request.url)
            strategy: AuthStrategy = BearerTokenAuth(self.config.access_token)
        else:
            cookie = self.state.cookie
            if cookie is None:
                cookie = self._authenticate(request)
            strategy = CookieAuth(cookie)

        strategy.apply(request)
        return self.next_handler.intercept(request)

    def _authenticate(self, request: RequestEnvelope) -> str:
        """Log in (at most once at a time) and return the session cookie.

        Stores the modhash under ``request.context["modhash"]``.
        """
        with self._login_lock:
            if self.state.cookie is None:
                cookie, modhash = self._login(request.headers)
                self.state.modhash = modhash
                self.state.cookie = cookie
            else:
                logger.debug("Reusing session from a concurrent login")
            request.context[MODHASH_CONTEXT_KEY] = self.state.modhash
            return self.state.cookie

    def _login(self, headers: dict[str, str]) -> tuple[str, str | None]:
        """Post the credentials to :data:`AUTH_URL`.

        Args:
            headers: Headers of the intercepted request; copied onto the
                login request so upstream values (e.g. ``User-Agent``)
                propagate.

        Returns:
            A ``(cookie, modhash)`` tuple.  The cookie is the raw
            ``Set-Cookie`` value.

        Raises:
            LoginFailedError: On transport failure, a non-success status,
                errors reported by Reddit, or a missing session cookie.
        """
        login_request = RequestEnvelope(
            method="POST",
            url=AUTH_URL,
            headers=dict(headers),
            data={
                "user": self.config.user,
                "passwd": self.config.password,
                "rem": "true" if self.config.remember else "false",
                "api_type": "json",
            },
        )
        logger.debug("Logging in as %s", self.config.user)

        transport = self._login_transport_factory()
        try:
            response = RaiseErrorMiddleware(transport).intercept(login_request)
        except (HTTPStatusError, TransportError) as e:
            logger.warning("Login for %s failed: %s", self.config.user, e)
            raise LoginFailedError(f"Login failed: {e}") from e
        finally:
            transport.close()

        errors = _login_errors(response)
        if errors:
            logger.warning(
                "Login for %s rejected: %s", self.config.user, errors
            )
            raise LoginFailedError(f"Login rejected by Reddit: {errors}")

        cookie = response.headers.get("Set-Cookie")
        if not cookie:
            raise LoginFailedError("Login response carried no session cookie.")

        logger.debug("Logged in as %s", self.config.user)
        return cookie, extract_modhash(response)
