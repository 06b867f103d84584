"""Unit tests for the transport, error translation and pipeline builder."""

from functools import partial
from unittest.mock import MagicMock

import pytest
import requests
from urllib3.util.retry import RequestHistory

from conftest import RecordingHandler, make_response
from redditauth.core.exceptions import (
    ClientError,
    ServerError,
    TransportError,
)
from redditauth.core.interfaces import Middleware
from redditauth.core.models import RequestEnvelope
from redditauth.pipeline.middleware import RaiseErrorMiddleware, build_pipeline
from redditauth.pipeline.transport import (
    RETRIABLE_STATUSES,
    FixedIntervalRetry,
    Transport,
    create_session,
    retry_policy,
)
from redditauth.providers.reddit.auth import (
    LOGIN_RETRY_ATTEMPTS,
    LOGIN_RETRY_INTERVAL,
    Authenticator,
    login_transport,
)


def _request(method="GET"):
    return RequestEnvelope(
        method=method,
        url="https://www.reddit.com/api/me.json",
        headers={"User-Agent": "ua/1.0"},
        params={"raw_json": "1"},
        data={"a": "b"} if method == "POST" else None,
    )


# ---------------------------------------------------------------------------
# Retry policy
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    def test_login_policy_bounds(self):
        retry = retry_policy(LOGIN_RETRY_ATTEMPTS, LOGIN_RETRY_INTERVAL)
        assert isinstance(retry, FixedIntervalRetry)
        assert retry.total == 5
        assert retry.backoff_factor == 2
        assert retry.raise_on_status is False

    def test_post_is_retried_on_transient_statuses(self):
        retry = retry_policy(5, 2)
        for status in RETRIABLE_STATUSES:
            assert retry.is_retry("POST", status)
        assert not retry.is_retry("POST", 404)

    def test_interval_is_constant(self):
        retry = retry_policy(5, 2)
        assert retry.get_backoff_time() == 0
        history = tuple(
            RequestHistory("POST", "/api/login", None, 500, None)
            for _ in range(4)
        )
        later = retry.new(history=history)
        assert isinstance(later, FixedIntervalRetry)
        assert later.get_backoff_time() == 2

    def test_login_transport_mounts_policy(self):
        transport = login_transport()
        adapter = transport.session.get_adapter("https://ssl.reddit.com")
        assert adapter.max_retries.total == LOGIN_RETRY_ATTEMPTS
        assert isinstance(adapter.max_retries, FixedIntervalRetry)
        transport.close()


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TestTransport:
    def test_sends_envelope_fields(self):
        session = MagicMock()
        session.request.return_value = make_response()
        transport = Transport(session=session, timeout=5)

        response = transport.intercept(_request("POST"))

        assert response is session.request.return_value
        session.request.assert_called_once_with(
            "POST",
            "https://www.reddit.com/api/me.json",
            headers={"User-Agent": "ua/1.0"},
            params={"raw_json": "1"},
            data={"a": "b"},
            timeout=5,
        )

    def test_wraps_requests_exceptions(self):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        transport = Transport(session=session)
        with pytest.raises(TransportError) as exc_info:
            transport.intercept(_request())
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_create_session_sets_default_headers(self):
        session = create_session(headers={"User-Agent": "ua/1.0"})
        assert session.headers["User-Agent"] == "ua/1.0"
        assert session.get_adapter("http://x").max_retries.total == 0
        session.close()


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


class TestRaiseErrorMiddleware:
    def test_success_passes_through(self):
        handler = RecordingHandler(make_response(status=204))
        response = RaiseErrorMiddleware(handler).intercept(_request())
        assert response.status_code == 204

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 429])
    def test_client_errors(self, status):
        handler = RecordingHandler(make_response(status=status))
        with pytest.raises(ClientError) as exc_info:
            RaiseErrorMiddleware(handler).intercept(_request())
        assert exc_info.value.status_code == status
        assert exc_info.value.response.status_code == status

    @pytest.mark.parametrize("status", [500, 502, 503])
    def test_server_errors(self, status):
        handler = RecordingHandler(make_response(status=status))
        with pytest.raises(ServerError):
            RaiseErrorMiddleware(handler).intercept(_request())


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class _Tagging(Middleware):
    def __init__(self, next_handler, tag):
        super().__init__(next_handler)
        self.tag = tag

    def intercept(self, request):
        request.context.setdefault("order", []).append(self.tag)
        return self.next_handler.intercept(request)


def test_build_pipeline_orders_stages_outermost_first():
    transport = RecordingHandler()
    pipeline = build_pipeline(
        transport,
        partial(_Tagging, tag="first"),
        partial(_Tagging, tag="second"),
    )
    request = _request()
    pipeline.intercept(request)
    assert request.context["order"] == ["first", "second"]
    assert transport.requests == [request]


def test_build_pipeline_without_stages_returns_transport():
    transport = RecordingHandler()
    assert build_pipeline(transport) is transport


def test_authenticator_composes_with_builder():
    transport = RecordingHandler()
    pipeline = build_pipeline(
        transport,
        partial(Authenticator, config={"cookie": "c=1"}),
        RaiseErrorMiddleware,
    )
    pipeline.intercept(_request())
    assert transport.requests[0].headers["Cookie"] == "c=1"
