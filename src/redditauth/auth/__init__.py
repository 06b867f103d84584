"""Authentication layer: strategy interface and credential storage."""

from redditauth.auth.interfaces import AuthStrategy

__all__ = ["AuthStrategy"]
