"""Configured Reddit credentials: storage and resolution.

The credentials file holds what the user configured (``user``/``password``,
a pre-obtained ``cookie``, or an OAuth ``access_token``).  Sessions
obtained by logging in are never written here; they live only in memory.

The file is stored at ``~/.config/redditauth/credentials.json`` with
permissions restricted to the owner (0o600).
"""

import json
import os
from pathlib import Path
from typing import Any

from redditauth.core.models import AuthConfig

_CONFIG_DIR = Path.home() / ".config" / "redditauth"
_CREDENTIALS_FILE = _CONFIG_DIR / "credentials.json"

CONFIG_KEYS = ("user", "password", "remember", "access_token", "cookie")

# Environment variable consulted for each configuration key.
ENV_VARS = {
    "user": "REDDIT_USER",
    "password": "REDDIT_PASSWORD",
    "remember": "REDDIT_REMEMBER",
    "access_token": "REDDIT_ACCESS_TOKEN",
    "cookie": "REDDIT_COOKIE",
}


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


def save(**values: Any) -> None:
    """Persist credentials to the config file.

    Only the keys in :data:`CONFIG_KEYS` with non-empty values are written.
    Creates the config directory if it does not already exist and restricts
    file permissions to the owner only.

    Args:
        **values: Any of ``user``, ``password``, ``remember``,
            ``access_token`` and ``cookie``.
    """
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CREDENTIALS_FILE.write_text(
        json.dumps(
            {k: v for k, v in values.items() if k in CONFIG_KEYS and v},
            indent=2,
        ),
        encoding="utf-8",
    )
    _CREDENTIALS_FILE.chmod(0o600)


def load() -> dict[str, Any]:
    """Load credentials from the config file.

    Returns:
        The stored mapping, or an empty dictionary if no credentials file
        exists or it cannot be parsed.
    """
    if not _CREDENTIALS_FILE.exists():
        return {}
    try:
        return json.loads(_CREDENTIALS_FILE.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}


def clear() -> bool:
    """Remove the credentials file.

    Returns:
        ``True`` if the file was deleted, ``False`` if it did not exist.
    """
    if _CREDENTIALS_FILE.exists():
        _CREDENTIALS_FILE.unlink()
        return True
    return False


def credentials_path() -> Path:
    """Return the path to the credentials file."""
    return _CREDENTIALS_FILE


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _from_env() -> dict[str, str]:
    return {
        key: os.environ[var] for key, var in ENV_VARS.items()
        if os.environ.get(var)
    }


def resolve_config(overrides: dict[str, Any] | None = None) -> AuthConfig:
    """Resolve an :class:`AuthConfig` from all available sources.

    Resolution order per key (first match wins):

    1. *overrides* (e.g. CLI options or constructor arguments).
    2. ``REDDIT_*`` environment variables (see :data:`ENV_VARS`).
    3. The stored credentials file.

    The result is not validated; an empty config is returned when nothing
    is configured, and the authenticator rejects it.

    Args:
        overrides: Explicit values.  ``None`` entries are ignored.

    Returns:
        The merged configuration.
    """
    merged: dict[str, Any] = dict(load())
    merged.update(_from_env())
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return AuthConfig.from_mapping(merged)


def credential_source(overrides: dict[str, Any] | None = None) -> str:
    """Return a human-readable description of where credentials came from.

    Useful for the ``auth status`` CLI command.

    Returns:
        ``"explicit options"``, ``"environment variables"``, the path to
        the credentials file, ``"mixed sources"`` when only the per-key
        merge of several sources yields usable credentials, or ``"none"``.
    """
    if AuthConfig.from_mapping(overrides or {}).has_credentials():
        return "explicit options"
    if AuthConfig.from_mapping(_from_env()).has_credentials():
        return "environment variables"
    if AuthConfig.from_mapping(load()).has_credentials():
        return str(credentials_path())
    if resolve_config(overrides).has_credentials():
        return "mixed sources"
    return "none"
