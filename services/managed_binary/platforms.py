"""Map the running operating system and CPU to a release asset."""

from __future__ import annotations

import logging

from services.managed_binary.constants import BINARY_NAME
from services.managed_binary.models import PlatformTarget, UnsupportedPlatformError


_LOGGER = logging.getLogger(__name__)

__all__ = ["binary_filename", "is_windows", "resolve_platform"]

_OS_ALIASES = {
    "linux": "linux",
    "darwin": "macos",
    "macos": "macos",
    "windows": "windows",
    "win32": "windows",
}

_ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}

_WINDOWS_32_BIT = {"x86", "i386", "i486", "i586", "i686", "ia32"}

_SUPPORTED = {
    ("linux", "amd64"),
    ("linux", "arm64"),
    ("macos", "amd64"),
    ("macos", "arm64"),
    ("windows", "amd64"),
}


def is_windows(system: str) -> bool:
    return _OS_ALIASES.get(system.strip().lower()) == "windows"


def binary_filename(system: str) -> str:
    """Return the on-disk file name of the managed binary for ``system``."""

    return f"{BINARY_NAME}.exe" if is_windows(system) else BINARY_NAME


def resolve_platform(system: str, machine: str) -> PlatformTarget:
    """Return the release asset for ``system``/``machine``.

    Raises :class:`UnsupportedPlatformError` for combinations without a
    published asset.  Nothing here touches the network or the filesystem.
    """

    os_name = _OS_ALIASES.get(system.strip().lower())
    raw_arch = machine.strip().lower()
    arch = _ARCH_ALIASES.get(raw_arch)
    emulated = False

    if os_name == "windows":
        if raw_arch in _WINDOWS_32_BIT:
            raise UnsupportedPlatformError(
                system, machine, "Only 64-bit Windows is supported"
            )
        if arch == "arm64":
            _LOGGER.warning(
                "Windows ARM64 detected; installing the windows-amd64 build (requires x64 emulation)"
            )
            arch = "amd64"
            emulated = True

    if os_name is None or arch is None or (os_name, arch) not in _SUPPORTED:
        raise UnsupportedPlatformError(system, machine)

    suffix = ".exe" if os_name == "windows" else ""
    asset_name = f"{BINARY_NAME}-{os_name}-{arch}{suffix}"
    _LOGGER.debug("Resolved platform %s/%s to asset %s", system, machine, asset_name)
    return PlatformTarget(
        os_name=os_name,
        arch=arch,
        asset_name=asset_name,
        binary_filename=binary_filename(system),
        emulated=emulated,
    )
