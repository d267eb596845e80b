from __future__ import annotations

import io
from pathlib import Path

import pytest

from app import cli
from app.prompts import AutoConfirmPrompter, ConsolePrompter
from services.managed_binary import InstallCorruptedError, RequestFailedError
from shared import logging_config
from tests.unit.managed_binary_test_utils import build_service, install_existing, make_release


@pytest.fixture(autouse=True)
def reset_logging():
    logging_config._reset_for_tests()
    try:
        yield
    finally:
        logging_config._reset_for_tests()


class _RecordingService:
    def __init__(self, error: BaseException | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, tuple, dict]] = []

    def _record(self, name: str, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if self.error is not None:
            raise self.error

    def install(self, *args, **kwargs):
        return self._record("install", *args, **kwargs)

    def update(self, *args, **kwargs):
        return self._record("update", *args, **kwargs)

    def uninstall(self):
        return self._record("uninstall")

    def configure_external_tool(self):
        return self._record("configure_external_tool")


def _factory(service, prompters: list | None = None):
    def _build(config, prompter):
        if prompters is not None:
            prompters.append(prompter)
        return service

    return _build


def test_parse_args_defaults_to_install() -> None:
    args = cli.parse_args([])

    assert args.mode == "install"
    assert args.dir is None
    assert args.yes is False


@pytest.mark.parametrize(
    ("argv", "mode"),
    [(["-u"], "update"), (["--check"], "check"), (["--uninstall"], "uninstall"), (["--configure"], "configure")],
)
def test_parse_args_selects_mode(argv: list[str], mode: str) -> None:
    assert cli.parse_args(argv).mode == mode


def test_modes_are_mutually_exclusive(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.parse_args(["--update", "--uninstall"])

    assert excinfo.value.code == 2


def test_install_passes_directory_and_configure_offer() -> None:
    service = _RecordingService()
    prompters: list = []

    exit_code = cli.main(["-d", "/opt/tools"], service_factory=_factory(service, prompters))

    assert exit_code == 0
    assert service.calls == [("install", (Path("/opt/tools"),), {"offer_configure": True})]
    assert isinstance(prompters[0], ConsolePrompter)


def test_yes_flag_skips_prompts_and_follow_up_offers() -> None:
    service = _RecordingService()
    prompters: list = []

    cli.main(["--update", "--yes"], service_factory=_factory(service, prompters))

    assert service.calls == [("update", (None,), {"offer_install": False})]
    assert isinstance(prompters[0], AutoConfirmPrompter)


def test_fatal_error_exits_with_status_one() -> None:
    service = _RecordingService(RequestFailedError(500, "boom"))
    stderr = io.StringIO()

    exit_code = cli.main(["--uninstall"], service_factory=_factory(service), stderr=stderr)

    assert exit_code == 1
    assert stderr.getvalue().startswith("error: Request failed (500): boom")


def test_corrupted_install_is_reported_as_fatal(tmp_path: Path) -> None:
    error = InstallCorruptedError(tmp_path / "codex-mcp", OSError("disk full"), OSError("read-only"))
    stderr = io.StringIO()

    exit_code = cli.main(["-u"], service_factory=_factory(_RecordingService(error)), stderr=stderr)

    assert exit_code == 1
    assert stderr.getvalue().startswith("fatal: ")
    assert "unknown state" in stderr.getvalue()


def test_filesystem_failure_exits_with_status_one(tmp_path: Path) -> None:
    harness = build_service(tmp_path, release=make_release("v1.2.3", "codex-mcp-linux-amd64"))
    blocker = tmp_path / "not-a-dir"
    blocker.write_bytes(b"")
    stderr = io.StringIO()

    exit_code = cli.main(
        ["-y", "-d", str(blocker / "bin")], service_factory=_factory(harness.service), stderr=stderr
    )

    assert exit_code == 1
    assert stderr.getvalue().startswith("error: Failed to install ")
    assert harness.downloader.calls == []


def test_configured_log_verbosity_applies_to_log_file(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CODEX_MCP_LOG_VERBOSITY", "error")

    exit_code = cli.main(["--configure"], service_factory=_factory(_RecordingService()))

    assert exit_code == 0
    assert logging_config.get_file_log_verbosity() is logging_config.LogVerbosity.ERROR


def test_keyboard_interrupt_exits_with_130() -> None:
    service = _RecordingService(KeyboardInterrupt())

    exit_code = cli.main([], service_factory=_factory(service), stderr=io.StringIO())

    assert exit_code == 130


def test_check_mode_runs_against_real_service(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    harness = build_service(tmp_path, release=make_release("v1.2.3", "codex-mcp-linux-amd64"))
    install_existing(harness.config.home / ".local" / "bin", version="1.2.3")

    exit_code = cli.main(["-c"], service_factory=_factory(harness.service))

    assert exit_code == 0
    assert "==> Already up to date" in harness.lines


def test_version_flag_prints_installer_version(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    from app.version import get_installer_version

    monkeypatch.setenv("CODEX_MCP_INSTALLER_VERSION", "v9.8.7")
    get_installer_version.cache_clear()
    try:
        with pytest.raises(SystemExit) as excinfo:
            cli.parse_args(["--version"])
    finally:
        get_installer_version.cache_clear()

    assert excinfo.value.code == 0
    assert "codex-mcp-installer 9.8.7" in capsys.readouterr().out
