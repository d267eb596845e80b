"""Locate an already installed copy of the managed binary."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

from services.managed_binary.constants import BINARY_NAME

if TYPE_CHECKING:
    from app.config import InstallerConfig


_LOGGER = logging.getLogger(__name__)

__all__ = ["candidate_directories", "candidate_paths", "find_installed"]

_POSIX_SYSTEM_DIRECTORIES: tuple[Path, ...] = (Path("/usr/local/bin"), Path("/usr/bin"))


def candidate_directories(config: InstallerConfig) -> list[Path]:
    """Return the directories searched for the binary, highest priority first.

    Conventional install locations come before ``PATH`` entries so a stale copy
    elsewhere on ``PATH`` never shadows the managed installation.
    """

    ordered: list[Path] = []
    seen: set[str] = set()
    for directory in _iter_directories(config):
        key = str(directory)
        if key in seen:
            continue
        seen.add(key)
        ordered.append(directory)
    return ordered


def candidate_paths(config: InstallerConfig) -> list[Path]:
    filename = config.binary_filename
    return [directory / filename for directory in candidate_directories(config)]


def find_installed(config: InstallerConfig) -> Path | None:
    """Return the first existing binary among :func:`candidate_paths`."""

    for candidate in candidate_paths(config):
        try:
            if candidate.is_file():
                _LOGGER.info("Found installed binary at %s", candidate)
                return candidate
        except OSError:
            _LOGGER.debug("Unable to inspect %s", candidate, exc_info=True)
    _LOGGER.info("No installed %s found", config.binary_filename)
    return None


def _iter_directories(config: InstallerConfig) -> Iterator[Path]:
    if config.install_dir_override is not None:
        yield config.install_dir_override

    if config.is_windows:
        local = config.windows_local_app_data
        program_files = config.program_files or Path("C:\\Program Files")
        yield local / "Programs" / BINARY_NAME
        yield local / "Programs"
        yield program_files / BINARY_NAME
        yield config.home / "bin"
    else:
        yield config.home / ".local" / "bin"
        yield from _POSIX_SYSTEM_DIRECTORIES
        yield config.home / "bin"

    for entry in config.path_entries:
        yield Path(entry).expanduser()
