"""HTTP access to the release host with bounded redirects and retries."""

from __future__ import annotations

import http.client
import logging
import time
from typing import Any, Callable, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin, urlsplit
from urllib.request import HTTPRedirectHandler, OpenerDirector, Request, build_opener

from services.managed_binary.constants import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    USER_AGENT,
)
from services.managed_binary.models import RequestFailedError, TooManyRedirectsError, TransportError


_LOGGER = logging.getLogger(__name__)

__all__ = ["HttpTransport", "build_default_opener", "read_body_text", "response_status"]


class Opener(Protocol):
    def open(self, request: Request, timeout: float = ...) -> Any:
        """Perform ``request`` and return a file-like response."""


class _NoRedirectHandler(HTTPRedirectHandler):
    """Surface 3xx responses to the caller instead of following them."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        return None


def build_default_opener() -> OpenerDirector:
    return build_opener(_NoRedirectHandler())


def response_status(response: Any) -> int:
    status = getattr(response, "status", None)
    if status is None:
        status = response.getcode()
    return int(status)


def read_body_text(response: Any) -> str:
    """Read and close ``response``, returning its body as text."""

    try:
        return response.read().decode("utf-8", errors="replace")
    except (OSError, http.client.HTTPException):
        _LOGGER.debug("Unable to read response body", exc_info=True)
        return ""
    finally:
        response.close()


class HttpTransport:
    """Issue GET requests against the release host.

    Redirects are followed by :meth:`open` itself rather than by ``urllib`` so
    the number of hops stays bounded.  Connection failures are retried with
    exponential backoff; HTTP error statuses are returned to the caller
    unchanged.
    """

    def __init__(
        self,
        *,
        user_agent: str = USER_AGENT,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        retries: int = DEFAULT_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        opener: Opener | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._user_agent = user_agent
        self._token = token or None
        self._timeout = timeout
        self._retries = max(0, retries)
        self._retry_backoff = max(0.0, retry_backoff)
        self._max_redirects = max(0, max_redirects)
        self._opener = opener or build_default_opener()
        self._sleep = sleep

    @property
    def max_redirects(self) -> int:
        return self._max_redirects

    def open(
        self,
        url: str,
        *,
        accept: str | None = None,
        error_type: type[TransportError] = RequestFailedError,
    ) -> Any:
        """Return the first non-redirect response reached from ``url``.

        The caller owns the returned response and must close it.
        """

        origin_host = urlsplit(url).netloc
        current = url
        hops = 0
        while True:
            send_token = urlsplit(current).netloc == origin_host
            response = self._open_once(current, accept, error_type, send_token=send_token)
            status = response_status(response)
            location = response.headers.get("Location") if 300 <= status < 400 else None
            if not location:
                return response

            response.close()
            if hops >= self._max_redirects:
                raise TooManyRedirectsError(url, self._max_redirects)
            hops += 1
            current = urljoin(current, location)
            _LOGGER.debug("Following redirect %d/%d to %s", hops, self._max_redirects, current)

    def _headers(self, accept: str | None, send_token: bool) -> dict[str, str]:
        headers = {"User-Agent": self._user_agent}
        if accept:
            headers["Accept"] = accept
        if self._token and send_token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _open_once(
        self,
        url: str,
        accept: str | None,
        error_type: type[TransportError],
        *,
        send_token: bool,
    ) -> Any:
        request = Request(url, headers=self._headers(accept, send_token), method="GET")
        attempt = 0
        while True:
            try:
                return self._opener.open(request, timeout=self._timeout)
            except HTTPError as exc:
                return exc
            except (URLError, TimeoutError, ConnectionError, http.client.HTTPException) as exc:
                reason = getattr(exc, "reason", exc)
                if attempt >= self._retries:
                    raise error_type(None, str(reason)) from exc
                delay = self._retry_backoff * (2**attempt)
                attempt += 1
                _LOGGER.warning(
                    "Request to %s failed (%s); retrying in %.1fs (attempt %d/%d)",
                    url,
                    reason,
                    delay,
                    attempt,
                    self._retries,
                )
                self._sleep(delay)
