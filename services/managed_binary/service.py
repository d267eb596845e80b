"""Install, update, check, uninstall and configure flows."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol

from services.managed_binary.configurator import ExternalToolConfigurator
from services.managed_binary.discovery import find_installed
from services.managed_binary.installers import BinaryInstaller
from services.managed_binary.models import (
    CheckReport,
    CheckStatus,
    ConfigureReport,
    FlowResult,
    InstallOutcome,
    PlatformTarget,
    ReleaseDescriptor,
    RemovalFailedError,
)
from services.managed_binary.platforms import resolve_platform
from services.managed_binary.providers import ReleaseClient, resolve_asset
from services.managed_binary.version_store import (
    read_installed_version,
    remove_marker,
    write_marker,
)
from services.managed_binary.versioning import Ordering, compare_versions, is_update_available

if TYPE_CHECKING:
    from app.config import InstallerConfig


_LOGGER = logging.getLogger(__name__)

__all__ = ["ManagedBinaryService", "Prompter"]


class Prompter(Protocol):
    """Protocol describing how flows ask the operator for input."""

    def ask_text(self, prompt: str, default: str) -> str:
        """Return the operator's answer, or ``default`` when left blank."""

    def confirm(self, prompt: str, *, default: bool) -> bool:
        """Return whether the operator agreed."""


class ManagedBinaryService:
    """Coordinate platform resolution, release lookup and installation.

    Exactly one flow runs at a time.  Fatal problems propagate as
    :class:`~services.managed_binary.models.ManagedBinaryError`; a declined
    confirmation returns a result with ``completed=False``.
    """

    def __init__(
        self,
        config: InstallerConfig,
        release_client: ReleaseClient,
        installer: BinaryInstaller,
        configurator: ExternalToolConfigurator,
        prompter: Prompter,
        *,
        echo: Callable[[str], None] = print,
    ) -> None:
        self._config = config
        self._release_client = release_client
        self._installer = installer
        self._configurator = configurator
        self._prompter = prompter
        self._echo = echo

    @property
    def config(self) -> InstallerConfig:
        return self._config

    def resolve_target(self) -> PlatformTarget:
        return resolve_platform(self._config.system, self._config.machine)

    def install(
        self, install_dir: Path | None = None, *, offer_configure: bool = False
    ) -> FlowResult:
        target = self.resolve_target()
        self._echo(f"==> Target asset: {target.asset_name}")
        release = self._fetch_release()
        self._echo(f"==> Latest version: {release.version}")

        if install_dir is None:
            default_dir = str(self._config.install_dir)
            install_dir = Path(self._prompter.ask_text("Install directory", default_dir) or default_dir)
        install_dir = Path(install_dir).expanduser()

        binary_path = install_dir / self._config.binary_filename
        if binary_path.exists():
            current = read_installed_version(install_dir)
            self._echo(f"==> Existing installation found: {binary_path} (version {current})")
            if not self._prompter.confirm(f"Overwrite {binary_path}?", default=True):
                return self._cancelled(binary_path)

        outcome = self._install_release(install_dir, release, target)
        self._echo(f"==> Installed: {outcome.path} (v{release.version})")
        self._echo_path_hint(install_dir)

        if offer_configure and self._prompter.confirm(
            f"Register {self._config.binary_filename} with {self._config.configurator.command}?",
            default=True,
        ):
            self.configure_external_tool(outcome.path)

        return FlowResult(completed=True, path=outcome.path, version=release.version, message="installed")

    def update(
        self, install_dir: Path | None = None, *, offer_install: bool = True
    ) -> FlowResult:
        target = self.resolve_target()
        installed = self._locate(install_dir)
        if installed is None:
            self._echo(f"==> No installed {self._config.binary_filename} found")
            if offer_install and self._prompter.confirm("Install it now?", default=True):
                return self.install(install_dir)
            return FlowResult(completed=False, message="not-installed")

        current = read_installed_version(installed.parent)
        release = self._fetch_release()
        latest = release.version
        self._echo(f"==> Installed at: {installed}")
        self._echo(f"==> Current version: {current}")
        self._echo(f"==> Latest version: {latest}")

        if compare_versions(current, latest) is Ordering.EQUAL:
            self._echo("==> Already up to date")
            return FlowResult(completed=True, path=installed, version=latest, message="up-to-date")

        if not self._prompter.confirm(f"Update to v{latest}?", default=True):
            return self._cancelled(installed)

        outcome = self._install_release(installed.parent, release, target)
        self._echo(f"==> Updated: {outcome.path} (v{latest})")
        return FlowResult(completed=True, path=outcome.path, version=latest, message="updated")

    def check_update(self) -> CheckReport:
        installed = find_installed(self._config)
        current = read_installed_version(installed.parent) if installed is not None else None
        release = self._fetch_release()
        latest = release.version

        self._echo(f"==> Current version: {current if current is not None else 'not installed'}")
        self._echo(f"==> Latest version: {latest}")

        if installed is None:
            status = CheckStatus.NOT_INSTALLED
            self._echo("==> Not installed; run the installer to install it")
        elif is_update_available(current, latest):
            status = CheckStatus.UPDATE_AVAILABLE
            self._echo("==> An update is available; run with --update to install it")
        else:
            status = CheckStatus.UP_TO_DATE
            self._echo("==> Already up to date")

        _LOGGER.info("Update check: %s (current=%s, latest=%s)", status.value, current, latest)
        return CheckReport(
            status=status, latest_version=latest, current_version=current, binary_path=installed
        )

    def uninstall(self) -> FlowResult:
        installed = find_installed(self._config)
        if installed is None:
            self._echo(f"==> No installed {self._config.binary_filename} found")
            return FlowResult(completed=False, message="not-installed")

        if not self._prompter.confirm(f"Uninstall and delete {installed}?", default=False):
            return self._cancelled(installed)

        try:
            installed.unlink()
        except OSError as exc:
            raise RemovalFailedError(installed, exc) from exc
        # The marker is meaningless without the binary; leftovers are harmless.
        remove_marker(installed.parent)
        _LOGGER.info("Removed %s", installed)
        self._echo("==> Uninstalled")
        return FlowResult(completed=True, path=installed, message="uninstalled")

    def configure_external_tool(self, binary_path: Path | None = None) -> ConfigureReport | None:
        binary_path = binary_path or find_installed(self._config)
        if binary_path is None:
            self._echo(f"==> No installed {self._config.binary_filename} found")
            return None

        binary_path = Path(os.path.abspath(binary_path))
        self._echo(f"==> Running: {self._configurator.manual_command(binary_path)}")
        report = self._configurator.configure(binary_path)
        if report.success:
            self._echo(f"==> Registered with {self._config.configurator.command}")
        elif report.reason == "not-found":
            self._echo(f"==> {self._config.configurator.command} not found; run manually:")
            self._echo(f"    {report.manual_command}")
        else:
            self._echo(f"==> Registration failed (exit code: {report.exit_code}); run manually:")
            self._echo(f"    {report.manual_command}")
        return report

    def _fetch_release(self) -> ReleaseDescriptor:
        return self._release_client.fetch_latest_release(self._config.release.repository)

    def _install_release(
        self, install_dir: Path, release: ReleaseDescriptor, target: PlatformTarget
    ) -> InstallOutcome:
        asset = resolve_asset(release, target.asset_name)
        self._echo(f"==> Downloading {asset.name}...")
        outcome = self._installer.install(install_dir, asset)
        # Losing the marker only degrades later update checks; the result is ignored.
        write_marker(install_dir, release.tag)
        return outcome

    def _locate(self, install_dir: Path | None) -> Path | None:
        if install_dir is not None:
            candidate = Path(install_dir).expanduser() / self._config.binary_filename
            if candidate.is_file():
                return candidate
        return find_installed(self._config)

    def _cancelled(self, path: Path | None) -> FlowResult:
        self._echo("==> Cancelled")
        return FlowResult(completed=False, path=path, message="cancelled")

    def _echo_path_hint(self, install_dir: Path) -> None:
        resolved = os.path.normcase(os.path.abspath(install_dir))
        on_path = any(
            os.path.normcase(os.path.abspath(os.path.expanduser(entry))) == resolved
            for entry in self._config.path_entries
        )
        if on_path:
            return
        self._echo("")
        self._echo(f"Note: {install_dir} is not on PATH.")
        if self._config.is_windows:
            self._echo("    Add the install directory to PATH to run it from a terminal.")
        else:
            self._echo(f'    Add this to your shell profile: export PATH="$PATH:{install_dir}"')
