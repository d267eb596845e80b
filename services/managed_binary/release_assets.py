"""Download release assets to the local filesystem."""

from __future__ import annotations

import http.client
import logging
import os
from pathlib import Path

from services.managed_binary.constants import DOWNLOAD_CHUNK_SIZE
from services.managed_binary.models import DownloadFailedError
from services.managed_binary.transport import HttpTransport, read_body_text, response_status


_LOGGER = logging.getLogger(__name__)

__all__ = ["download_asset"]

_PRIVATE_FILE_MODE = 0o600


def download_asset(transport: HttpTransport, location: str, destination: Path) -> Path:
    """Stream the asset at ``location`` into the new file ``destination``.

    The file is created owner read/write only before any byte is written and
    must not exist beforehand.  A partially written file is removed when the
    transfer fails.
    """

    _LOGGER.info("Downloading %s", location)
    response = transport.open(location, error_type=DownloadFailedError)
    status = response_status(response)
    if not 200 <= status < 300:
        raise DownloadFailedError(status, read_body_text(response))

    written = 0
    try:
        fd = os.open(destination, os.O_WRONLY | os.O_CREAT | os.O_EXCL | _binary_flag(), _PRIVATE_FILE_MODE)
        try:
            with os.fdopen(fd, "wb") as handle:
                for chunk in iter(lambda: response.read(DOWNLOAD_CHUNK_SIZE), b""):
                    handle.write(chunk)
                    written += len(chunk)
        except BaseException:
            _discard(destination)
            raise
    except http.client.HTTPException as exc:
        raise DownloadFailedError(None, f"transfer of {location} was cut short: {exc}") from exc
    except OSError as exc:
        raise DownloadFailedError(None, f"failed to write {destination}: {exc}") from exc
    finally:
        response.close()

    _LOGGER.debug("Downloaded %d bytes to %s", written, destination)
    return destination


def _binary_flag() -> int:
    return getattr(os, "O_BINARY", 0)


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError:
        _LOGGER.debug("Unable to remove partial download at %s", path, exc_info=True)
