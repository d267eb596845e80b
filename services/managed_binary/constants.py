"""Constants shared across the managed binary modules."""

from __future__ import annotations

GITHUB_REPO = "pdxxxx/codex-mcp-rust"
API_BASE_URL = "https://api.github.com"
USER_AGENT = "codex-mcp-rust-python-installer"
GITHUB_ACCEPT = "application/vnd.github+json"

BINARY_NAME = "codex-mcp"
VERSION_FILE_NAME = ".codex-mcp.version"
BACKUP_SUFFIX = ".bak"
STAGING_PREFIX = "codex-mcp-"
UNKNOWN_VERSION = "unknown"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRIES = 2
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_MAX_REDIRECTS = 5
DOWNLOAD_CHUNK_SIZE = 64 * 1024

CONFIGURATOR_COMMAND = "claude"
CONFIGURATOR_SUBCOMMAND = ("mcp",)
CONFIGURATOR_TOOL_ID = "codex"

TOKEN_ENV = "GITHUB_TOKEN"
INSTALL_DIR_ENV = "CODEX_MCP_INSTALL_DIR"
CONFIG_PATH_ENV = "CODEX_MCP_INSTALLER_CONFIG"
HTTP_TIMEOUT_ENV = "CODEX_MCP_HTTP_TIMEOUT"
HTTP_RETRIES_ENV = "CODEX_MCP_HTTP_RETRIES"
