from __future__ import annotations

from pathlib import Path

from services.managed_binary import build_http_transport, build_managed_binary_service
from tests.unit.managed_binary_test_utils import (
    DOWNLOAD_BASE,
    FakeOpener,
    FakeResponse,
    RecordingPrompter,
    make_config,
    release_payload,
)


API_URL = "https://api.github.com/repos/pdxxxx/codex-mcp-rust/releases/latest"


def test_transport_uses_network_settings(tmp_path: Path) -> None:
    config = make_config(
        tmp_path,
        environ={"GITHUB_TOKEN": "ghp_token", "CODEX_MCP_HTTP_TIMEOUT": "9"},
    )
    opener = FakeOpener({API_URL: [FakeResponse(200, "{}")]})

    transport = build_http_transport(config, opener)
    transport.open(API_URL)

    assert transport.max_redirects == 5
    assert opener.timeouts == [9.0]
    assert opener.requests[0].get_header("Authorization") == "Bearer ghp_token"
    assert opener.requests[0].get_header("User-agent") == "codex-mcp-rust-python-installer"


def test_built_service_installs_from_release_host(tmp_path: Path) -> None:
    asset_url = f"{DOWNLOAD_BASE}/v1.2.3/codex-mcp-linux-amd64"
    cdn_url = "https://objects.githubusercontent.com/release-asset"
    opener = FakeOpener(
        {
            API_URL: [FakeResponse(200, release_payload("v1.2.3", ["codex-mcp-linux-amd64"]))],
            asset_url: [FakeResponse(302, headers={"Location": cdn_url})],
            cdn_url: [FakeResponse(200, b"\x7fELF binary")],
        }
    )
    config = make_config(tmp_path)
    staging = tmp_path / "staging"
    staging.mkdir()
    lines: list[str] = []
    service = build_managed_binary_service(
        config, RecordingPrompter(), echo=lines.append, opener=opener, staging_root=staging
    )
    install_dir = tmp_path / "bin"

    result = service.install(install_dir)

    assert result.completed is True
    assert (install_dir / "codex-mcp").read_bytes() == b"\x7fELF binary"
    assert (install_dir / ".codex-mcp.version").read_text(encoding="utf-8") == "1.2.3"
    assert opener.urls() == [API_URL, asset_url, cdn_url]
    assert "==> Downloading codex-mcp-linux-amd64..." in lines
