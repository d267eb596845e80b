from __future__ import annotations

import http.client
from urllib.error import URLError

import pytest

from services.managed_binary import (
    DownloadFailedError,
    HttpTransport,
    RequestFailedError,
    TooManyRedirectsError,
)
from tests.unit.managed_binary_test_utils import FakeOpener, FakeResponse


API_URL = "https://api.github.com/repos/pdxxxx/codex-mcp-rust/releases/latest"


def _transport(opener: FakeOpener, **kwargs) -> HttpTransport:
    sleeps: list[float] = []
    kwargs.setdefault("sleep", sleeps.append)
    return HttpTransport(opener=opener, **kwargs)


def test_sends_user_agent_and_token_on_every_request() -> None:
    opener = FakeOpener({API_URL: [FakeResponse(200, "{}")]})
    transport = _transport(opener, user_agent="agent/1.0", token="ghp_secret")

    response = transport.open(API_URL, accept="application/vnd.github+json")

    assert response.status == 200
    request = opener.requests[0]
    assert request.get_header("User-agent") == "agent/1.0"
    assert request.get_header("Authorization") == "Bearer ghp_secret"
    assert request.get_header("Accept") == "application/vnd.github+json"


def test_omits_authorization_without_token() -> None:
    opener = FakeOpener({API_URL: [FakeResponse(200, "{}")]})

    _transport(opener).open(API_URL)

    assert opener.requests[0].get_header("Authorization") is None


def test_uses_configured_timeout() -> None:
    opener = FakeOpener({API_URL: [FakeResponse(200, "{}")]})

    _transport(opener, timeout=12.5).open(API_URL)

    assert opener.timeouts == [12.5]


def test_follows_relative_redirects() -> None:
    opener = FakeOpener(
        {
            API_URL: [FakeResponse(302, headers={"Location": "/moved"})],
            "https://api.github.com/moved": [FakeResponse(200, "ok")],
        }
    )

    response = _transport(opener).open(API_URL)

    assert response.read() == b"ok"
    assert opener.urls() == [API_URL, "https://api.github.com/moved"]


def test_token_is_not_forwarded_to_another_host() -> None:
    cdn_url = "https://objects.example.com/asset"
    opener = FakeOpener(
        {
            API_URL: [FakeResponse(302, headers={"Location": cdn_url})],
            cdn_url: [FakeResponse(200, b"binary")],
        }
    )

    _transport(opener, token="ghp_secret").open(API_URL)

    first, second = opener.requests
    assert first.get_header("Authorization") == "Bearer ghp_secret"
    assert second.get_header("Authorization") is None


def test_redirect_loop_is_bounded() -> None:
    opener = FakeOpener({API_URL: [FakeResponse(301, headers={"Location": API_URL})]})

    with pytest.raises(TooManyRedirectsError) as excinfo:
        _transport(opener, max_redirects=3).open(API_URL)

    assert excinfo.value.limit == 3
    assert excinfo.value.url == API_URL
    assert isinstance(excinfo.value, RequestFailedError)
    assert len(opener.requests) == 4


def test_redirect_without_location_is_returned() -> None:
    opener = FakeOpener({API_URL: [FakeResponse(304)]})

    response = _transport(opener).open(API_URL)

    assert response.status == 304


def test_error_statuses_are_returned_without_retry() -> None:
    opener = FakeOpener({API_URL: [FakeResponse(500, "boom")]})

    response = _transport(opener, retries=3).open(API_URL)

    assert response.status == 500
    assert len(opener.requests) == 1


def test_connection_failures_are_retried_with_backoff() -> None:
    opener = FakeOpener(
        {
            API_URL: [
                URLError("connection refused"),
                TimeoutError("timed out"),
                FakeResponse(200, "{}"),
            ]
        }
    )
    sleeps: list[float] = []
    transport = HttpTransport(opener=opener, retries=2, retry_backoff=0.5, sleep=sleeps.append)

    response = transport.open(API_URL)

    assert response.status == 200
    assert sleeps == [0.5, 1.0]


def test_exhausted_retries_raise_requested_error_type() -> None:
    opener = FakeOpener({API_URL: [URLError("no route to host")]})
    transport = _transport(opener, retries=1)

    with pytest.raises(DownloadFailedError) as excinfo:
        transport.open(API_URL, error_type=DownloadFailedError)

    assert excinfo.value.status is None
    assert "no route to host" in str(excinfo.value)
    assert len(opener.requests) == 2


def test_malformed_status_line_is_retried_as_connection_failure() -> None:
    opener = FakeOpener({API_URL: [http.client.BadStatusLine(""), FakeResponse(200, "{}")]})
    transport = _transport(opener, retries=1)

    response = transport.open(API_URL)

    assert response.status == 200
    assert len(opener.requests) == 2
