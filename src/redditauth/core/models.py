"""Data model dataclasses shared across the pipeline and providers."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from redditauth.core.exceptions import ConfigurationError

_TRUTHY = {"1", "true", "yes", "on"}


# ----------------------
# Configuration
# ----------------------


@dataclass(frozen=True)
class AuthConfig:
    """Static authentication settings, resolved once per authenticator."""

    user: str | None = None
    password: str | None = None

    remember: bool | None = None
    """Value sent as ``rem`` on login; asks Reddit for a long-lived cookie."""

    access_token: str | None = None
    """Pre-obtained OAuth bearer token.  Takes priority over everything else."""

    cookie: str | None = None
    """Pre-obtained session cookie, replayed verbatim."""

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "AuthConfig":
        """Build a config from the ``user``/``password``/``remember``/
        ``access_token``/``cookie`` keys of *options*.

        Unknown keys are ignored.  Empty strings count as absent.
        """
        remember = options.get("remember")
        if isinstance(remember, str):
            remember = remember.strip().lower() in _TRUTHY
        return cls(
            user=options.get("user") or None,
            password=options.get("password") or None,
            remember=remember,
            access_token=options.get("access_token") or None,
            cookie=options.get("cookie") or None,
        )

    def has_credentials(self) -> bool:
        """Return ``True`` when at least one strategy is usable."""
        return bool(
            (self.user and self.password) or self.cookie or self.access_token
        )

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` unless credentials are usable."""
        if not self.has_credentials():
            raise ConfigurationError("missing credentials")


# ----------------------
# Session
# ----------------------


@dataclass
class SessionState:
    """Session material owned by a single authenticator."""

    cookie: str | None = None
    modhash: str | None = None
    """Modhash returned by the most recent successful login."""


# ----------------------
# Request
# ----------------------


@dataclass
class RequestEnvelope:
    """A mutable outbound request travelling through the pipeline.

    Stages add or merge entries; none of them removes headers it does not
    own.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] | None = None
    data: dict[str, Any] | None = None

    context: dict[str, Any] = field(default_factory=dict)
    """Per-request metadata shared between stages (e.g. ``"modhash"``)."""
