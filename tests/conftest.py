"""Shared fixtures: canned ``requests.Response`` objects and fake stages."""

import json

import pytest
from requests import Response
from requests.structures import CaseInsensitiveDict

from redditauth.core.interfaces import Handler


def make_response(status=200, body=None, headers=None):
    """Return a real :class:`requests.Response` with the given content."""
    response = Response()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = json.dumps(body).encode() if body is not None else b""
    response.encoding = "utf-8"
    return response


class RecordingHandler(Handler):
    """Terminal stage that records requests and replays canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses) or [make_response()]
        self.requests = []
        self.closed = False

    def intercept(self, request):
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def close(self):
        self.closed = True


@pytest.fixture()
def downstream():
    return RecordingHandler()


@pytest.fixture()
def login_ok():
    return RecordingHandler(
        make_response(
            body={
                "json": {
                    "errors": [],
                    "data": {"modhash": "abc123", "cookie": "xyz"},
                }
            },
            headers={"Set-Cookie": "session=xyz"},
        )
    )


@pytest.fixture()
def isolated_store(tmp_path, monkeypatch):
    """Point the credential store at a temporary directory and clear
    REDDIT_* environment variables."""
    from redditauth.auth import credentials as creds_store

    config_dir = tmp_path / "redditauth"
    monkeypatch.setattr(creds_store, "_CONFIG_DIR", config_dir)
    monkeypatch.setattr(
        creds_store, "_CREDENTIALS_FILE", config_dir / "credentials.json"
    )
    for var in creds_store.ENV_VARS.values():
        monkeypatch.delenv(var, raising=False)
    return config_dir
