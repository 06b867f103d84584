"""Reddit API client built on the authenticating pipeline."""

from collections.abc import Mapping
from typing import Any

import requests

from redditauth.core.models import AuthConfig, RequestEnvelope
from redditauth.pipeline.middleware import RaiseErrorMiddleware, build_pipeline
from redditauth.pipeline.transport import Transport
from redditauth.providers.reddit.auth import Authenticator
from redditauth.providers.reddit.modhash import ModhashMiddleware


class RedditClient:
    """Thin client for the Reddit API.

    Requests travel through::

        Authenticator -> ModhashMiddleware -> RaiseErrorMiddleware -> Transport

    The client itself has no knowledge of which authentication strategy is
    active; when a bearer token is configured the authenticator redirects
    every request to ``oauth.reddit.com`` regardless of :attr:`BASE_URL`.
    """

    BASE_URL = "https://www.reddit.com"

    def __init__(
        self,
        user_agent: str,
        config: AuthConfig | Mapping[str, Any],
        transport: Transport | None = None,
    ):
        """Initialise the client.

        Args:
            user_agent: The User-Agent header value for all HTTP requests.
                Reddit throttles generic user agents aggressively.
            config: Credentials; see :class:`Authenticator`.
            transport: The terminal stage.  A plain :class:`Transport` is
                used when omitted.

        Raises:
            ConfigurationError: If *config* holds no usable credentials.
        """
        self.user_agent = user_agent
        self.transport = transport or Transport()
        downstream = build_pipeline(
            self.transport, ModhashMiddleware, RaiseErrorMiddleware
        )
        self.authenticator = Authenticator(downstream, config)

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Send a request to *path* through the pipeline.

        Args:
            method: HTTP method.
            path: API path such as ``"/api/me.json"``.
            params: Query string parameters.
            data: Form body; URL-encoded by the transport.

        Returns:
            The successful :class:`requests.Response`.

        Raises:
            LoginFailedError: If logging in was required and failed.
            HTTPStatusError: If Reddit answered with a non-success status.
            TransportError: If the request could not be delivered.
        """
        envelope = RequestEnvelope(
            method=method.upper(),
            url=f"{self.BASE_URL}{path}",
            headers={"User-Agent": self.user_agent},
            params=params,
            data=data,
        )
        return self.authenticator.intercept(envelope)

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET *path* and return the decoded JSON body."""
        return self.request("GET", path, params=params).json()

    def post_json(self, path: str, data: dict[str, Any] | None = None) -> Any:
        """POST *data* to *path* with ``api_type=json`` and return the body."""
        form = {"api_type": "json", **(data or {})}
        return self.request("POST", path, data=form).json()

    def me(self) -> dict:
        """Return the identity of the authenticated account.

        Returns:
            The decoded body of ``/api/me.json`` (cookie sessions) or
            ``/api/v1/me`` (bearer tokens).
        """
        path = (
            "/api/v1/me"
            if self.authenticator.config.access_token
            else "/api/me.json"
        )
        return self.get_json(path)

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self.transport.close()
