"""Atomic replacement of the managed binary with backup and rollback.

The installer moves through these states::

    absent -> downloading -> staged -> swapping -> installed
                                          |
                                          +-> rolling_back -> installed
                                          +-> corrupted

The asset is downloaded into a private staging directory outside the install
directory, so an interrupted download never touches the live binary.  An
existing binary is copied (not moved) to ``<target>.bak`` before the staged
file is copied over it; the backup is deleted only once the new binary is in
place and executable.  When the swap fails the backup is copied back, and when
that fails too the caller gets :class:`InstallCorruptedError`.  Any other
filesystem failure surfaces as :class:`InstallFailedError` once the previous
state is back in place.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable

from services.managed_binary.constants import BACKUP_SUFFIX, STAGING_PREFIX
from services.managed_binary.models import (
    AssetDescriptor,
    InstallCorruptedError,
    InstallFailedError,
    InstallOutcome,
    InstallState,
    ManagedBinaryError,
)


_LOGGER = logging.getLogger(__name__)

__all__ = ["BinaryInstaller", "Downloader", "backup_path_for"]

Downloader = Callable[[str, Path], Path]
CopyFile = Callable[[Path, Path], object]

_EXECUTABLE_MODE = 0o755


def backup_path_for(target: Path) -> Path:
    return target.with_name(f"{target.name}{BACKUP_SUFFIX}")


class BinaryInstaller:
    """Download an asset and swap it into place."""

    def __init__(
        self,
        download: Downloader,
        *,
        binary_filename: str,
        set_executable: bool = True,
        staging_root: Path | None = None,
        copy_file: CopyFile = shutil.copyfile,
    ) -> None:
        self._download = download
        self._binary_filename = binary_filename
        self._set_executable = set_executable
        self._staging_root = staging_root
        self._copy_file = copy_file
        self._state = InstallState.ABSENT

    @property
    def state(self) -> InstallState:
        return self._state

    def target_path(self, install_dir: Path) -> Path:
        return Path(install_dir) / self._binary_filename

    def install(self, install_dir: Path, asset: AssetDescriptor) -> InstallOutcome:
        """Install ``asset`` into ``install_dir`` and return the final path."""

        install_dir = Path(install_dir)
        target = self.target_path(install_dir)
        backup = backup_path_for(target)
        self._transition(InstallState.ABSENT)

        try:
            install_dir.mkdir(parents=True, exist_ok=True)
            staging_dir = Path(
                tempfile.mkdtemp(
                    prefix=STAGING_PREFIX,
                    dir=str(self._staging_root) if self._staging_root else None,
                )
            )
        except OSError as exc:
            raise InstallFailedError(target, exc) from exc

        try:
            self._transition(InstallState.DOWNLOADING)
            staged = self._download(asset.download_url, staging_dir / asset.name)
            self._transition(InstallState.STAGED)

            replaced_existing = target.exists()
            if replaced_existing:
                self._back_up(target, backup)

            self._swap(staged, target, backup, had_previous=replaced_existing)
            self._commit(backup)
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)

        self._transition(InstallState.INSTALLED)
        _LOGGER.info("Installed %s to %s", asset.name, target)
        return InstallOutcome(path=target, replaced_existing=replaced_existing)

    def _swap(self, staged: Path, target: Path, backup: Path, *, had_previous: bool) -> None:
        self._transition(InstallState.SWAPPING)
        try:
            _LOGGER.info("Installing to %s", target)
            self._copy_file(staged, target)
            if self._set_executable:
                _make_executable(target)
            staged.unlink()
        except Exception as exc:
            _LOGGER.error("Failed to install %s: %s", target, exc)
            self._roll_back(target, backup, had_previous=had_previous, original=exc)
            if isinstance(exc, ManagedBinaryError):
                raise
            raise InstallFailedError(target, exc) from exc

    def _roll_back(
        self, target: Path, backup: Path, *, had_previous: bool, original: BaseException
    ) -> None:
        self._transition(InstallState.ROLLING_BACK)
        try:
            if had_previous:
                _LOGGER.warning("Restoring previous binary from %s", backup)
                self._copy_file(backup, target)
            else:
                target.unlink(missing_ok=True)
        except Exception as restore_error:
            self._transition(InstallState.CORRUPTED)
            _LOGGER.critical(
                "Rollback of %s failed; backup kept at %s: %s", target, backup, restore_error
            )
            raise InstallCorruptedError(target, original, restore_error) from restore_error

        self._transition(InstallState.INSTALLED if had_previous else InstallState.ABSENT)
        _discard(backup)

    def _back_up(self, target: Path, backup: Path) -> None:
        _LOGGER.info("Backing up %s to %s", target, backup)
        try:
            shutil.copy2(target, backup)
        except OSError as exc:
            _discard(backup)
            raise InstallFailedError(target, exc) from exc

    def _commit(self, backup: Path) -> None:
        try:
            backup.unlink(missing_ok=True)
        except OSError as exc:
            _LOGGER.warning(
                "New binary is installed but backup %s could not be removed: %s", backup, exc
            )

    def _transition(self, state: InstallState) -> None:
        if state is not self._state:
            _LOGGER.debug("Installer state %s -> %s", self._state.value, state.value)
        self._state = state


def _make_executable(path: Path) -> None:
    os.chmod(path, _EXECUTABLE_MODE)


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        _LOGGER.debug("Unable to remove %s", path, exc_info=True)
