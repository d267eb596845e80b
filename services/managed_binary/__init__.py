"""Public API for the managed binary package."""

from __future__ import annotations

from services.managed_binary.builder import build_http_transport, build_managed_binary_service
from services.managed_binary.configurator import ExternalToolConfigurator
from services.managed_binary.constants import (
    API_BASE_URL,
    BINARY_NAME,
    GITHUB_REPO,
    USER_AGENT,
    VERSION_FILE_NAME,
)
from services.managed_binary.installers import BinaryInstaller
from services.managed_binary.models import (
    AssetDescriptor,
    AssetNotFoundError,
    CheckReport,
    CheckStatus,
    ConfigureReport,
    DownloadFailedError,
    FlowResult,
    InstallCorruptedError,
    InstallFailedError,
    InstallOutcome,
    InstallState,
    ManagedBinaryError,
    PlatformTarget,
    ReleaseDescriptor,
    RemovalFailedError,
    RequestFailedError,
    ResponseMalformedError,
    TooManyRedirectsError,
    UnsupportedPlatformError,
)
from services.managed_binary.platforms import resolve_platform
from services.managed_binary.providers import GitHubReleaseClient, ReleaseClient, resolve_asset
from services.managed_binary.service import ManagedBinaryService, Prompter
from services.managed_binary.transport import HttpTransport
from services.managed_binary.versioning import Ordering, compare_versions, is_update_available

__all__ = [
    "API_BASE_URL",
    "BINARY_NAME",
    "GITHUB_REPO",
    "USER_AGENT",
    "VERSION_FILE_NAME",
    "AssetDescriptor",
    "AssetNotFoundError",
    "BinaryInstaller",
    "CheckReport",
    "CheckStatus",
    "ConfigureReport",
    "DownloadFailedError",
    "ExternalToolConfigurator",
    "FlowResult",
    "GitHubReleaseClient",
    "HttpTransport",
    "InstallCorruptedError",
    "InstallFailedError",
    "InstallOutcome",
    "InstallState",
    "ManagedBinaryError",
    "ManagedBinaryService",
    "Ordering",
    "PlatformTarget",
    "Prompter",
    "ReleaseClient",
    "ReleaseDescriptor",
    "RemovalFailedError",
    "RequestFailedError",
    "ResponseMalformedError",
    "TooManyRedirectsError",
    "UnsupportedPlatformError",
    "build_http_transport",
    "build_managed_binary_service",
    "compare_versions",
    "is_update_available",
    "resolve_asset",
    "resolve_platform",
]
