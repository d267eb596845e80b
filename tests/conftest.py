from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_path()


_ISOLATED_ENV = (
    "GITHUB_TOKEN",
    "CODEX_MCP_INSTALL_DIR",
    "CODEX_MCP_INSTALLER_CONFIG",
    "CODEX_MCP_HTTP_TIMEOUT",
    "CODEX_MCP_HTTP_RETRIES",
    "CODEX_MCP_INSTALLER_VERSION",
    "CODEX_MCP_LOG_VERBOSITY",
)


@pytest.fixture(autouse=True)
def _installer_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep tests away from the real token, system binaries and log file."""

    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)

    system_root = tmp_path_factory.mktemp("system")
    monkeypatch.setattr(
        "services.managed_binary.discovery._POSIX_SYSTEM_DIRECTORIES",
        (system_root / "usr" / "local" / "bin", system_root / "usr" / "bin"),
    )

    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("CODEX_MCP_LOG_DIR", str(log_dir))
    monkeypatch.delenv("CODEX_MCP_LOG_FILE", raising=False)

    from app.config import reset_installer_config_cache

    reset_installer_config_cache()
    yield
    reset_installer_config_cache()
