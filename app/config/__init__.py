"""Installer configuration loaded from JSON resources and the environment."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import dataclass
from importlib import resources
from math import isfinite
from pathlib import Path
from typing import Any, Mapping, Tuple

from services.managed_binary.constants import (
    API_BASE_URL,
    BINARY_NAME,
    CONFIG_PATH_ENV,
    CONFIGURATOR_COMMAND,
    CONFIGURATOR_SUBCOMMAND,
    CONFIGURATOR_TOOL_ID,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    GITHUB_REPO,
    HTTP_RETRIES_ENV,
    HTTP_TIMEOUT_ENV,
    INSTALL_DIR_ENV,
    TOKEN_ENV,
    USER_AGENT,
)
from services.managed_binary.platforms import binary_filename, is_windows
from shared.logging_config import LogVerbosity

_CONFIG_RESOURCE = "installer.json"
_LOG_VERBOSITY_ENV = "CODEX_MCP_LOG_VERBOSITY"
_INSTALLER_CONFIG_CACHE: InstallerConfig | None = None


@dataclass(frozen=True)
class ReleaseSettings:
    """Where releases are looked up and how the installer identifies itself."""

    repository: str
    api_base_url: str
    user_agent: str


@dataclass(frozen=True)
class NetworkSettings:
    """Timeout, retry and redirect bounds for every HTTP exchange."""

    timeout_seconds: float
    retries: int
    retry_backoff_seconds: float
    max_redirects: int


@dataclass(frozen=True)
class ConfiguratorSettings:
    """External CLI used to register the installed binary."""

    command: str
    subcommand: Tuple[str, ...]
    tool_id: str


@dataclass(frozen=True)
class InstallerConfig:
    """Everything the installer reads from its environment, captured once."""

    release: ReleaseSettings
    network: NetworkSettings
    configurator: ConfiguratorSettings
    system: str
    machine: str
    home: Path
    path_value: str = ""
    github_token: str | None = None
    install_dir_override: Path | None = None
    local_app_data: Path | None = None
    program_files: Path | None = None
    log_verbosity: LogVerbosity = LogVerbosity.INFO

    @property
    def is_windows(self) -> bool:
        return is_windows(self.system)

    @property
    def binary_filename(self) -> str:
        return binary_filename(self.system)

    @property
    def path_separator(self) -> str:
        return ";" if self.is_windows else ":"

    @property
    def path_entries(self) -> tuple[str, ...]:
        entries = (entry.strip() for entry in self.path_value.split(self.path_separator))
        return tuple(entry for entry in entries if entry)

    @property
    def windows_local_app_data(self) -> Path:
        return self.local_app_data or self.home / "AppData" / "Local"

    @property
    def default_install_dir(self) -> Path:
        if self.is_windows:
            return self.windows_local_app_data / "Programs" / BINARY_NAME
        return self.home / ".local" / "bin"

    @property
    def install_dir(self) -> Path:
        return self.install_dir_override or self.default_install_dir


def get_installer_config() -> InstallerConfig:
    """Return the cached configuration for the running process."""

    global _INSTALLER_CONFIG_CACHE
    if _INSTALLER_CONFIG_CACHE is None:
        _INSTALLER_CONFIG_CACHE = load_installer_config()
    return _INSTALLER_CONFIG_CACHE


def reset_installer_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _INSTALLER_CONFIG_CACHE
    _INSTALLER_CONFIG_CACHE = None


def load_installer_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    system: str | None = None,
    machine: str | None = None,
    home: Path | None = None,
) -> InstallerConfig:
    """Build an :class:`InstallerConfig` from JSON settings and ``environ``.

    ``path`` (or the file named by ``CODEX_MCP_INSTALLER_CONFIG``) replaces the
    bundled defaults.  ``system``, ``machine`` and ``home`` default to the
    values reported by the running interpreter.
    """

    env = os.environ if environ is None else environ
    if path is None and env.get(CONFIG_PATH_ENV):
        path = env[CONFIG_PATH_ENV]
    data = _read_config_data(path)

    release = _parse_release_section(_section(data, "release"))
    network = _parse_network_section(_section(data, "network"), env)
    configurator = _parse_configurator_section(_section(data, "configurator"))
    log_verbosity = _parse_logging_section(_section(data, "logging"), env)

    return InstallerConfig(
        release=release,
        network=network,
        configurator=configurator,
        system=system or platform.system(),
        machine=machine or platform.machine(),
        home=home or Path.home(),
        path_value=env.get("PATH", ""),
        github_token=_clean_text(env.get(TOKEN_ENV)),
        install_dir_override=_env_path(env, INSTALL_DIR_ENV),
        local_app_data=_env_path(env, "LOCALAPPDATA"),
        program_files=_env_path(env, "ProgramFiles"),
        log_verbosity=log_verbosity,
    )


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any] | None:
    section = data.get(name)
    return section if isinstance(section, Mapping) else None


def _parse_release_section(section: Mapping[str, Any] | None) -> ReleaseSettings:
    section = section or {}
    return ReleaseSettings(
        repository=_clean_text(section.get("repository")) or GITHUB_REPO,
        api_base_url=_clean_text(section.get("api_base_url")) or API_BASE_URL,
        user_agent=_clean_text(section.get("user_agent")) or USER_AGENT,
    )


def _parse_network_section(
    section: Mapping[str, Any] | None, env: Mapping[str, str]
) -> NetworkSettings:
    section = section or {}
    timeout = _coerce_positive_float(section.get("timeout_seconds"), default=DEFAULT_TIMEOUT_SECONDS)
    retries = _coerce_non_negative_int(section.get("retries"), default=DEFAULT_RETRIES)
    timeout = _coerce_positive_float(env.get(HTTP_TIMEOUT_ENV), default=timeout)
    retries = _coerce_non_negative_int(env.get(HTTP_RETRIES_ENV), default=retries)
    return NetworkSettings(
        timeout_seconds=timeout,
        retries=retries,
        retry_backoff_seconds=_coerce_non_negative_float(
            section.get("retry_backoff_seconds"), default=DEFAULT_RETRY_BACKOFF_SECONDS
        ),
        max_redirects=_coerce_non_negative_int(
            section.get("max_redirects"), default=DEFAULT_MAX_REDIRECTS
        ),
    )


def _parse_configurator_section(section: Mapping[str, Any] | None) -> ConfiguratorSettings:
    section = section or {}
    raw_subcommand = section.get("subcommand")
    if isinstance(raw_subcommand, list) and all(isinstance(item, str) for item in raw_subcommand):
        subcommand = tuple(item for item in raw_subcommand if item.strip())
    else:
        subcommand = CONFIGURATOR_SUBCOMMAND
    return ConfiguratorSettings(
        command=_clean_text(section.get("command")) or CONFIGURATOR_COMMAND,
        subcommand=subcommand,
        tool_id=_clean_text(section.get("tool_id")) or CONFIGURATOR_TOOL_ID,
    )


def _parse_logging_section(
    section: Mapping[str, Any] | None, env: Mapping[str, str]
) -> LogVerbosity:
    section = section or {}
    verbosity = _coerce_verbosity(section.get("verbosity"), default=LogVerbosity.INFO)
    return _coerce_verbosity(env.get(_LOG_VERBOSITY_ENV), default=verbosity)


def _coerce_verbosity(value: Any, *, default: LogVerbosity) -> LogVerbosity:
    if not isinstance(value, str):
        return default
    try:
        return LogVerbosity(value.strip().lower())
    except ValueError:
        return default


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _env_path(env: Mapping[str, str], name: str) -> Path | None:
    value = _clean_text(env.get(name))
    if value is None:
        return None
    return Path(value).expanduser()


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str):
        try:
            candidate = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not isfinite(candidate):
        return None
    return candidate


def _coerce_positive_float(value: Any, *, default: float) -> float:
    candidate = _coerce_float(value)
    if candidate is None or candidate <= 0:
        return default
    return candidate


def _coerce_non_negative_float(value: Any, *, default: float) -> float:
    candidate = _coerce_float(value)
    if candidate is None or candidate < 0:
        return default
    return candidate


def _coerce_non_negative_int(value: Any, *, default: int) -> int:
    candidate = _coerce_float(value)
    if candidate is None or candidate < 0:
        return default
    return int(candidate)


__all__ = [
    "ConfiguratorSettings",
    "InstallerConfig",
    "NetworkSettings",
    "ReleaseSettings",
    "get_installer_config",
    "load_installer_config",
    "reset_installer_config_cache",
]
