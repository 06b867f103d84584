"""CLI entry point for the redditauth tool.

This module is the composition root of the application.  It is the only
place that resolves credentials from the environment and builds a
concrete :class:`RedditClient`.
"""

import json
import logging
import sys
from enum import Enum

# Ensure UTF-8 output on Windows where stdout may default to cp1252.
# reconfigure() is a no-op when encoding is already utf-8.
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import typer
from rich.console import Console
from rich.logging import RichHandler

from redditauth.auth import credentials as creds_store
from redditauth.core.exceptions import (
    ConfigurationError,
    HTTPStatusError,
    LoginFailedError,
    TransportError,
)
from redditauth.core.models import AuthConfig
from redditauth.providers.reddit.client import RedditClient

app = typer.Typer()
auth_app = typer.Typer(help="Manage Reddit credentials.")

app.add_typer(auth_app, name="auth")

console = Console(legacy_windows=False)
err_console = Console(stderr=True, legacy_windows=False)

_USER_AGENT = "python:redditauth:0.1.0 (by /u/redditauth)"


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class SetupMethod(str, Enum):
    """Ways of supplying credentials to ``auth setup``."""

    login = "login"
    cookie = "cookie"
    token = "token"


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log HTTP and login activity."
    ),
):
    """Authenticated access to the Reddit API."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_client() -> RedditClient:
    """Build a :class:`RedditClient` from the resolved credentials.

    Exits with status 1 when no credentials are configured.
    """
    try:
        return RedditClient(
            user_agent=_USER_AGENT, config=creds_store.resolve_config()
        )
    except ConfigurationError:
        err_console.print("[yellow]No credentials configured.[/yellow]")
        err_console.print("Run [bold]redditauth auth setup[/bold] first.")
        raise typer.Exit(1)


def _parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a dictionary."""
    params: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(
                f"Expected key=value, got {pair!r}", param_hint="--param"
            )
        params[key] = value
    return params


def _account_name(identity: dict) -> str | None:
    """Return the username from a ``/api/me.json`` or ``/api/v1/me`` body."""
    if isinstance(identity.get("data"), dict):
        return identity["data"].get("name")
    return identity.get("name")


# ---------------------------------------------------------------------------
# auth commands
# ---------------------------------------------------------------------------


@auth_app.command()
def setup(
    method: SetupMethod = typer.Option(
        SetupMethod.login,
        "--method",
        "-m",
        help="login: user and password; cookie: a session cookie; "
        "token: an OAuth access token.",
    ),
):
    """Configure and save Reddit credentials locally."""
    console.print("\n[bold]Reddit credentials setup[/bold]\n")

    values: dict[str, object] = {}
    if method == SetupMethod.login:
        values["user"] = typer.prompt("Reddit username")
        values["password"] = typer.prompt("Password", hide_input=True)
        values["remember"] = typer.confirm(
            "Ask Reddit for a long-lived session?", default=True
        )
    elif method == SetupMethod.cookie:
        values["cookie"] = typer.prompt(
            "Paste the session cookie (e.g. reddit_session=...)",
            hide_input=True,
        )
    else:
        values["access_token"] = typer.prompt(
            "Paste the OAuth access token", hide_input=True
        )

    console.print("\n[dim]Validating credentials...[/dim]")
    try:
        client = RedditClient(
            user_agent=_USER_AGENT, config=AuthConfig.from_mapping(values)
        )
    except ConfigurationError as e:
        console.print(f"[red]Failed to validate credentials:[/red] {e}")
        raise typer.Exit(1)
    try:
        name = _account_name(client.me())
    except (LoginFailedError, HTTPStatusError, TransportError) as e:
        console.print(f"[red]Failed to validate credentials:[/red] {e}")
        raise typer.Exit(1)
    except ValueError:
        console.print(
            "[red]Failed to validate credentials:[/red] "
            "Reddit did not answer with JSON."
        )
        raise typer.Exit(1)
    finally:
        client.close()

    creds_store.save(**values)
    if name:
        console.print(f"[green]✓ Authenticated as[/green] {name}")
    console.print(
        f"[green]✓ Credentials saved to:[/green] {creds_store.credentials_path()}"
    )


@auth_app.command()
def status():
    """Show where credentials come from and check that they work."""
    if not creds_store.resolve_config().has_credentials():
        console.print("[yellow]No credentials configured.[/yellow]")
        console.print("Run [bold]redditauth auth setup[/bold].")
        raise typer.Exit(1)

    console.print(
        f"[green]✓ Credentials[/green]  {creds_store.credential_source()}"
    )
    client = _get_client()
    config = client.authenticator.config
    if config.access_token:
        strategy = "OAuth bearer token"
    elif config.cookie:
        strategy = "session cookie"
    else:
        strategy = f"login as {config.user}"
    console.print(f"  Strategy : {strategy}")

    console.print("[dim]Validating with Reddit...[/dim]")
    try:
        name = _account_name(client.me())
    except (LoginFailedError, HTTPStatusError, TransportError) as e:
        console.print(f"[red]✗ Credentials rejected:[/red] {e}")
        console.print("Run [bold]redditauth auth setup[/bold] to renew.")
        raise typer.Exit(1)
    except ValueError:
        console.print("[red]✗ Reddit did not answer with JSON.[/red]")
        raise typer.Exit(1)
    finally:
        client.close()
    console.print(f"[green]✓ Active credentials are valid[/green] ({name})")


@auth_app.command()
def clear():
    """Remove locally saved credentials."""
    if creds_store.clear():
        console.print("[green]✓ Credentials removed.[/green]")
    else:
        console.print("[yellow]No saved credentials found.[/yellow]")


# ---------------------------------------------------------------------------
# API commands
# ---------------------------------------------------------------------------


@app.command()
def get(
    path: str = typer.Argument(..., help="API path, e.g. /api/me.json"),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Query parameter as key=value (repeatable)."
    ),
):
    """GET an API path with the configured credentials and print the JSON."""
    params = _parse_params(param)
    client = _get_client()
    try:
        data = client.get_json(path, params=params or None)
    except LoginFailedError as e:
        err_console.print(f"[red]Login failed:[/red] {e}")
        raise typer.Exit(1)
    except HTTPStatusError as e:
        err_console.print(f"[red]HTTP {e.status_code}:[/red] {e}")
        raise typer.Exit(1)
    except TransportError as e:
        err_console.print(f"[red]Request failed:[/red] {e}")
        raise typer.Exit(1)
    except ValueError:
        err_console.print(f"[red]Response from {path} is not JSON.[/red]")
        raise typer.Exit(1)
    finally:
        client.close()
    print(json.dumps(data, indent=2))
