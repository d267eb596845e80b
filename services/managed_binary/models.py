"""Data models and errors used by the managed binary services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Tuple

from services.managed_binary.versioning import normalize_version


@dataclass(frozen=True)
class AssetDescriptor:
    """A downloadable file attached to a release."""

    name: str
    download_url: str


@dataclass(frozen=True)
class ReleaseDescriptor:
    """Metadata describing the latest published release."""

    tag: str
    assets: Tuple[AssetDescriptor, ...] = ()

    @property
    def version(self) -> str:
        return normalize_version(self.tag)


@dataclass(frozen=True)
class PlatformTarget:
    """The release asset and local file name for the running platform."""

    os_name: str
    arch: str
    asset_name: str
    binary_filename: str
    emulated: bool = False


class InstallState(str, Enum):
    ABSENT = "absent"
    DOWNLOADING = "downloading"
    STAGED = "staged"
    SWAPPING = "swapping"
    ROLLING_BACK = "rolling_back"
    INSTALLED = "installed"
    CORRUPTED = "corrupted"


@dataclass(frozen=True)
class InstallOutcome:
    """Result of a completed installer run."""

    path: Path
    replaced_existing: bool
    state: InstallState = InstallState.INSTALLED


class CheckStatus(str, Enum):
    NOT_INSTALLED = "not-installed"
    UP_TO_DATE = "up-to-date"
    UPDATE_AVAILABLE = "update-available"


@dataclass(frozen=True)
class CheckReport:
    status: CheckStatus
    latest_version: str
    current_version: str | None = None
    binary_path: Path | None = None


@dataclass(frozen=True)
class FlowResult:
    """Outcome of an orchestrator flow that may mutate the installation."""

    completed: bool
    path: Path | None = None
    version: str | None = None
    message: str | None = None


@dataclass(frozen=True)
class ConfigureReport:
    success: bool
    arguments: Tuple[str, ...]
    manual_command: str
    reason: str | None = None
    exit_code: int | None = None


class ManagedBinaryError(RuntimeError):
    """Base class for fatal errors raised while managing the binary."""


class UnsupportedPlatformError(ManagedBinaryError):
    def __init__(self, system: str, machine: str, detail: str | None = None) -> None:
        self.system = system
        self.machine = machine
        message = detail or f"Unsupported platform/architecture: {system}/{machine}"
        super().__init__(message)


class TransportError(ManagedBinaryError):
    """An HTTP exchange with the release host failed."""

    action = "Request"

    def __init__(self, status: int | None, body: str, *, message: str | None = None) -> None:
        self.status = status
        self.body = body
        label = status if status is not None else "no response"
        super().__init__(message or f"{self.action} failed ({label}): {body}")


class RequestFailedError(TransportError):
    action = "Request"


class DownloadFailedError(TransportError):
    action = "Download"


class TooManyRedirectsError(RequestFailedError):
    def __init__(self, url: str, limit: int) -> None:
        self.url = url
        self.limit = limit
        super().__init__(
            None,
            "",
            message=f"Request failed: more than {limit} redirects while fetching {url}",
        )


class ResponseMalformedError(ManagedBinaryError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to parse release metadata: {detail}")


class AssetNotFoundError(ManagedBinaryError):
    def __init__(self, asset_name: str, release_tag: str) -> None:
        self.asset_name = asset_name
        self.release_tag = release_tag
        super().__init__(f"Asset {asset_name} not found in release {release_tag}")


class InstallCorruptedError(ManagedBinaryError):
    """Restoring the previous binary failed; the target is in an unknown state."""

    def __init__(
        self, target: Path, original: BaseException, restore_error: BaseException
    ) -> None:
        self.target = target
        self.original = original
        self.restore_error = restore_error
        super().__init__(
            f"Installing {target} failed ({original}) and restoring the previous "
            f"binary also failed ({restore_error}); the installed binary is in an "
            "unknown state"
        )


class InstallFailedError(ManagedBinaryError):
    """Writing the new binary failed; the previous state was kept or restored."""

    def __init__(self, target: Path, reason: BaseException) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"Failed to install {target}: {reason}")


class RemovalFailedError(ManagedBinaryError):
    def __init__(self, path: Path, reason: BaseException) -> None:
        self.path = path
        super().__init__(f"Failed to remove {path}: {reason}")
