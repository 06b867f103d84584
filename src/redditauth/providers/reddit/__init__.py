"""Reddit provider package."""

from redditauth.providers.reddit.auth import (
    Authenticator,
    BearerTokenAuth,
    CookieAuth,
)
from redditauth.providers.reddit.client import RedditClient
from redditauth.providers.reddit.modhash import ModhashMiddleware, extract_modhash

__all__ = [
    "Authenticator",
    "BearerTokenAuth",
    "CookieAuth",
    "ModhashMiddleware",
    "RedditClient",
    "extract_modhash",
]
