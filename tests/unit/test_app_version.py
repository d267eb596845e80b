from __future__ import annotations

from importlib import resources
from pathlib import Path

import pytest

from app import version as version_module
from app.version import get_installer_version


@pytest.fixture(autouse=True)
def _reset_cache():
    get_installer_version.cache_clear()  # type: ignore[attr-defined]
    yield
    get_installer_version.cache_clear()  # type: ignore[attr-defined]


def test_get_installer_version_prefers_environment(monkeypatch) -> None:
    monkeypatch.setenv("CODEX_MCP_INSTALLER_VERSION", "v1.2.3")

    assert get_installer_version() == "1.2.3"


def test_get_installer_version_falls_back_to_version_file(monkeypatch) -> None:
    monkeypatch.delenv("CODEX_MCP_INSTALLER_VERSION", raising=False)

    version_file = resources.files("app").joinpath("VERSION")
    expected = version_file.read_text(encoding="utf-8").strip()
    assert expected
    assert get_installer_version() == expected


def test_get_installer_version_uses_fallback_when_nothing_resolves(monkeypatch) -> None:
    monkeypatch.delenv("CODEX_MCP_INSTALLER_VERSION", raising=False)
    monkeypatch.setattr(version_module, "_read_version_file", lambda: None)
    monkeypatch.setattr(version_module, "_version_from_git", lambda: None)

    assert get_installer_version() == "0.0.0-dev"


def test_git_describe_runs_in_installer_checkout(monkeypatch, tmp_path) -> None:
    calls: list[dict] = []

    def fake_check_output(command, **kwargs):
        calls.append(kwargs)
        return "v2.0.0-3-gabc123\n"

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(version_module.subprocess, "check_output", fake_check_output)

    assert version_module._version_from_git() == "2.0.0-3-gabc123"
    assert calls[0]["cwd"] == Path(version_module.__file__).resolve().parent.parent
