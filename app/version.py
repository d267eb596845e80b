from __future__ import annotations

"""Installer version helpers."""

from functools import lru_cache
import os
import subprocess
from importlib import resources
from pathlib import Path

_FALLBACK_VERSION = "0.0.0-dev"
_VERSION_ENV = "CODEX_MCP_INSTALLER_VERSION"
_SOURCE_ROOT = Path(__file__).resolve().parent.parent


def _read_version_file() -> str | None:
    try:
        text = resources.files(__package__).joinpath("VERSION").read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        return None
    version = text.strip()
    return version or None


def _version_from_env() -> str | None:
    env_version = os.environ.get(_VERSION_ENV)
    if not env_version:
        return None
    return _normalize(env_version) or None


def _version_from_git() -> str | None:
    try:
        output = subprocess.check_output(
            ["git", "describe", "--tags", "--dirty"],
            cwd=_SOURCE_ROOT,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return _normalize(output.strip()) or None


def _normalize(raw_version: str) -> str:
    version = raw_version.strip()
    if version.startswith("v"):
        version = version[1:]
    return version


@lru_cache(maxsize=1)
def get_installer_version() -> str:
    """Return the version of the installer itself.

    The order of precedence is:
    1. The ``CODEX_MCP_INSTALLER_VERSION`` environment variable.
    2. Embedded ``VERSION`` file packaged with the installer.
    3. ``git describe`` output when running from a source checkout.
    4. A fallback development version string.
    """

    for resolver in (_version_from_env, _read_version_file, _version_from_git):
        version = resolver()
        if version:
            return version
    return _FALLBACK_VERSION


__all__ = ["get_installer_version"]
