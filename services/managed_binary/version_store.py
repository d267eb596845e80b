"""Persist the installed version next to the managed binary.

The managed binary speaks a stdin-driven protocol and blocks when started, so
it is never executed to ask for its version.  A small marker file written by
the installer is the only source of the installed version.  Every operation is
best-effort and reports failures as :class:`~shared.result.Result` values.
"""

from __future__ import annotations

import logging
from pathlib import Path

from services.managed_binary.constants import UNKNOWN_VERSION, VERSION_FILE_NAME
from services.managed_binary.versioning import normalize_version
from shared.result import Result


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "marker_path",
    "read_installed_version",
    "read_marker",
    "remove_marker",
    "write_marker",
]


def marker_path(install_dir: Path) -> Path:
    return Path(install_dir) / VERSION_FILE_NAME


def read_marker(install_dir: Path) -> Result[str, Exception]:
    path = marker_path(install_dir)
    return Result.capture(
        lambda: normalize_version(path.read_text(encoding="utf-8")),
        OSError,
        UnicodeDecodeError,
    )


def read_installed_version(install_dir: Path) -> str:
    """Return the recorded version, or ``"unknown"`` when none is recorded."""

    result = read_marker(install_dir)
    if result.is_err():
        _LOGGER.debug("No readable version marker in %s: %s", install_dir, result.error)
    return result.unwrap_or("") or UNKNOWN_VERSION


def write_marker(install_dir: Path, version: str) -> Result[Path, OSError]:
    path = marker_path(install_dir)

    def _write() -> Path:
        path.write_text(normalize_version(version), encoding="utf-8")
        return path

    result: Result[Path, OSError] = Result.capture(_write, OSError)
    if result.is_err():
        _LOGGER.warning("Unable to record installed version in %s: %s", path, result.error)
    return result


def remove_marker(install_dir: Path) -> Result[None, OSError]:
    path = marker_path(install_dir)
    result: Result[None, OSError] = Result.capture(lambda: path.unlink(missing_ok=True), OSError)
    if result.is_err():
        _LOGGER.debug("Unable to remove version marker %s: %s", path, result.error)
    return result
