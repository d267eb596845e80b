"""Helpers for constructing the managed binary service."""

from __future__ import annotations

import logging
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from services.managed_binary.configurator import ExternalToolConfigurator
from services.managed_binary.installers import BinaryInstaller
from services.managed_binary.providers import GitHubReleaseClient
from services.managed_binary.release_assets import download_asset
from services.managed_binary.service import ManagedBinaryService, Prompter
from services.managed_binary.transport import HttpTransport, Opener

if TYPE_CHECKING:
    from app.config import InstallerConfig


_LOGGER = logging.getLogger(__name__)

__all__ = ["build_http_transport", "build_managed_binary_service"]


def build_http_transport(config: InstallerConfig, opener: Opener | None = None) -> HttpTransport:
    network = config.network
    return HttpTransport(
        user_agent=config.release.user_agent,
        token=config.github_token,
        timeout=network.timeout_seconds,
        retries=network.retries,
        retry_backoff=network.retry_backoff_seconds,
        max_redirects=network.max_redirects,
        opener=opener,
    )


def build_managed_binary_service(
    config: InstallerConfig,
    prompter: Prompter,
    *,
    echo: Callable[[str], None] = print,
    opener: Opener | None = None,
    staging_root: Path | None = None,
) -> ManagedBinaryService:
    """Construct a :class:`ManagedBinaryService` for ``config``."""

    transport = build_http_transport(config, opener)
    release_client = GitHubReleaseClient(transport, api_base_url=config.release.api_base_url)
    installer = BinaryInstaller(
        partial(download_asset, transport),
        binary_filename=config.binary_filename,
        set_executable=not config.is_windows,
        staging_root=staging_root,
    )
    configurator = ExternalToolConfigurator(
        config.configurator.command,
        subcommand=config.configurator.subcommand,
        tool_id=config.configurator.tool_id,
    )
    _LOGGER.debug(
        "Built managed binary service for %s on %s/%s",
        config.release.repository,
        config.system,
        config.machine,
    )
    return ManagedBinaryService(
        config,
        release_client,
        installer,
        configurator,
        prompter,
        echo=echo,
    )
