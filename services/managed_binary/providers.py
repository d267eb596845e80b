"""Release metadata lookups against the GitHub Releases API."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Protocol

from services.managed_binary.constants import API_BASE_URL, GITHUB_ACCEPT
from services.managed_binary.models import (
    AssetDescriptor,
    AssetNotFoundError,
    ReleaseDescriptor,
    RequestFailedError,
    ResponseMalformedError,
)
from services.managed_binary.transport import HttpTransport, read_body_text, response_status


_LOGGER = logging.getLogger(__name__)

__all__ = ["GitHubReleaseClient", "ReleaseClient", "resolve_asset"]


class ReleaseClient(Protocol):
    """Protocol describing release metadata providers."""

    def fetch_latest_release(self, repository: str) -> ReleaseDescriptor:
        """Return the latest published release of ``repository``."""


class GitHubReleaseClient:
    """Fetch release metadata from the GitHub Releases API."""

    def __init__(self, transport: HttpTransport, api_base_url: str = API_BASE_URL) -> None:
        self._transport = transport
        self._api_base_url = api_base_url.rstrip("/")

    def latest_release_url(self, repository: str) -> str:
        return f"{self._api_base_url}/repos/{repository.strip('/')}/releases/latest"

    def fetch_latest_release(self, repository: str) -> ReleaseDescriptor:
        url = self.latest_release_url(repository)
        _LOGGER.info("Fetching latest release metadata from %s", url)
        response = self._transport.open(url, accept=GITHUB_ACCEPT, error_type=RequestFailedError)
        status = response_status(response)
        body = read_body_text(response)
        if not 200 <= status < 300:
            raise RequestFailedError(status, body)

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ResponseMalformedError(str(exc)) from exc
        release = _build_release(payload)
        _LOGGER.info(
            "Latest release of %s is %s with %d assets",
            repository,
            release.tag,
            len(release.assets),
        )
        return release


def resolve_asset(release: ReleaseDescriptor, expected_name: str) -> AssetDescriptor:
    """Return the asset of ``release`` named exactly ``expected_name``."""

    for asset in release.assets:
        if asset.name == expected_name:
            return asset
    raise AssetNotFoundError(expected_name, release.tag)


def _build_release(payload: Any) -> ReleaseDescriptor:
    if not isinstance(payload, dict):
        raise ResponseMalformedError("expected a JSON object")
    tag = payload.get("tag_name")
    if not isinstance(tag, str) or not tag.strip():
        raise ResponseMalformedError("missing tag_name")
    raw_assets = payload.get("assets")
    assets = tuple(_iter_assets(raw_assets if isinstance(raw_assets, list) else []))
    return ReleaseDescriptor(tag=tag.strip(), assets=assets)


def _iter_assets(entries: Iterable[Any]) -> Iterable[AssetDescriptor]:
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        url = entry.get("browser_download_url")
        if not isinstance(name, str) or not isinstance(url, str) or not url.strip():
            _LOGGER.debug("Skipping release asset without name or download URL: %r", entry)
            continue
        yield AssetDescriptor(name=name, download_url=url.strip())
