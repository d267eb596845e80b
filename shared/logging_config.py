"""Central logging configuration for the installer.

This module configures Python's logging framework so that every flow records
its diagnostics in a deterministic location that can be shared when an install
or update goes wrong.  Repeated calls never register duplicate handlers (as
happens in tests, or when the CLI entry point is invoked more than once in a
process).

Two environment variables allow customising where the log file is written:

``CODEX_MCP_LOG_FILE``
    Absolute path to the log file that should be created.

``CODEX_MCP_LOG_DIR``
    Directory where the default log file name will be created.  Ignored when
    ``CODEX_MCP_LOG_FILE`` is present.

Every record passes through a formatter that replaces the user's home
directory, user names and GitHub access tokens with placeholders.

The file handler level follows :class:`LogVerbosity`, which the CLI takes from
the ``logging.verbosity`` setting or ``CODEX_MCP_LOG_VERBOSITY``.
"""

from __future__ import annotations

import logging
import os
import re
from enum import Enum
from pathlib import Path
import sys
from typing import Iterable

_LOG_FILE_ENV = "CODEX_MCP_LOG_FILE"
_LOG_DIR_ENV = "CODEX_MCP_LOG_DIR"
_DEFAULT_DIRNAME = ".codex_mcp_installer"
_DEFAULT_LOGNAME = "installer.log"
_CONFIGURED = False
_LOG_PATH: Path | None = None
_HANDLER_TAG = "_codex_mcp_logging_handler"
_FILE_HANDLER: logging.FileHandler | None = None
_STREAM_HANDLER: logging.StreamHandler | None = None

USER_PLACEHOLDER = "<user>"
USER_HOME_PLACEHOLDER = "<user_home>"
TOKEN_PLACEHOLDER = "<token>"


class LogVerbosity(str, Enum):
    """Verbosity levels supported by the installer log file."""

    DISABLED = "disabled"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    VERBOSE = "verbose"


_VERBOSITY_LEVELS: dict[LogVerbosity, int] = {
    LogVerbosity.DISABLED: logging.CRITICAL + 1,
    LogVerbosity.ERROR: logging.ERROR,
    LogVerbosity.WARNING: logging.WARNING,
    LogVerbosity.INFO: logging.INFO,
    LogVerbosity.VERBOSE: logging.DEBUG,
}

_DEFAULT_VERBOSITY = LogVerbosity.INFO
_CURRENT_VERBOSITY = _DEFAULT_VERBOSITY

_TOKEN_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(Bearer\s+)\S+", re.IGNORECASE), rf"\g<1>{TOKEN_PLACEHOLDER}"),
    (re.compile(r"\bgh[pousr]_[A-Za-z0-9]+"), TOKEN_PLACEHOLDER),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]+"), TOKEN_PLACEHOLDER),
)


def _collect_username_candidates() -> set[str]:
    candidates: set[str] = set()
    home_name = Path.home().name
    if home_name:
        candidates.add(home_name)
    for env_var in ("USERNAME", "USER", "LOGNAME"):
        value = os.environ.get(env_var)
        if value:
            candidates.add(value)
    return {candidate.strip() for candidate in candidates if candidate and candidate.strip()}


def _collect_path_candidates() -> set[str]:
    candidates: set[str] = set()
    home_str = str(Path.home())
    if home_str:
        candidates.add(home_str)
    for env_var in ("HOME", "USERPROFILE"):
        value = os.environ.get(env_var)
        if value:
            candidates.add(os.path.expanduser(value))

    normalised = {
        os.path.normpath(candidate)
        for candidate in candidates
        if candidate and candidate not in {os.sep, ""}
    }
    return {candidate for candidate in normalised if candidate not in {os.sep, "."}}


def _compile_username_pattern(username: str) -> re.Pattern[str]:
    escaped = re.escape(username)
    if any(character.isalnum() for character in username):
        return re.compile(rf"(?<!\w){escaped}(?!\w)", re.IGNORECASE)
    return re.compile(escaped, re.IGNORECASE)


def _compile_path_pattern(path: str) -> re.Pattern[str]:
    flags = re.IGNORECASE if os.name == "nt" else 0
    return re.compile(re.escape(path), flags)


def _build_redaction_patterns() -> list[tuple[re.Pattern[str], str]]:
    patterns: list[tuple[re.Pattern[str], str]] = list(_TOKEN_PATTERNS)
    seen: set[str] = set()

    # Longest paths first so a nested home is replaced before its parent.
    for path in sorted(_collect_path_candidates(), key=len, reverse=True):
        variants = {path, path.replace("\\", "/"), path.replace("/", "\\")}
        for variant in sorted(variants):
            key = variant.lower() if os.name == "nt" else variant
            if key in seen:
                continue
            patterns.append((_compile_path_pattern(variant), USER_HOME_PLACEHOLDER))
            seen.add(key)

    usernames = sorted(_collect_username_candidates(), key=len, reverse=True)
    for username in usernames:
        patterns.append((_compile_username_pattern(username), USER_PLACEHOLDER))

    return patterns


_REDACTION_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(_build_redaction_patterns())


def sanitize_text(message: str) -> str:
    """Return ``message`` with home paths, user names and tokens replaced."""

    if not message:
        return message
    redacted = message
    for pattern, replacement in _REDACTION_PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


class _RedactingFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        return sanitize_text(formatted)


def ensure_installer_logging(*, verbose: bool = False) -> Path:
    """Configure the root logger for the installer.

    The first invocation sets up a file handler (at the current file
    verbosity) and a console handler on stderr, only when stderr is
    interactive.  The console handler shows warnings, or everything when
    ``verbose`` is set.  Subsequent calls only adjust the console level and
    return the already configured log file path.

    Returns
    -------
    Path
        Location of the log file that records installer diagnostics.
    """

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _STREAM_HANDLER

    stream_level = logging.DEBUG if verbose else logging.WARNING

    if _CONFIGURED and _LOG_PATH is not None:
        if _STREAM_HANDLER is not None:
            _STREAM_HANDLER.setLevel(stream_level)
        return _LOG_PATH

    log_path = _resolve_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    formatter = _RedactingFormatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(_VERBOSITY_LEVELS[_CURRENT_VERBOSITY])
    file_handler.setFormatter(formatter)
    setattr(file_handler, _HANDLER_TAG, True)
    root.addHandler(file_handler)
    _FILE_HANDLER = file_handler

    if _should_log_to_stderr(root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(stream_level)
        stream_handler.setFormatter(_RedactingFormatter("%(levelname)s: %(message)s"))
        setattr(stream_handler, _HANDLER_TAG, True)
        root.addHandler(stream_handler)
        _STREAM_HANDLER = stream_handler

    _CONFIGURED = True
    _LOG_PATH = log_path

    logging.getLogger(__name__).info(
        "Writing installer logs to %s (verbosity=%s)",
        log_path,
        _CURRENT_VERBOSITY.value,
    )
    return log_path


def set_file_log_verbosity(verbosity: LogVerbosity | str) -> None:
    """Adjust the minimum severity recorded in the installer log file."""

    global _CURRENT_VERBOSITY

    if isinstance(verbosity, str):
        try:
            verbosity = LogVerbosity(verbosity.lower())
        except ValueError as exc:
            raise ValueError(f"Unsupported log verbosity: {verbosity}") from exc

    ensure_installer_logging()
    handler = _FILE_HANDLER
    if handler is None:  # pragma: no cover
        return

    _CURRENT_VERBOSITY = verbosity
    handler.setLevel(_VERBOSITY_LEVELS[verbosity])
    logging.getLogger(__name__).info("File log verbosity set to %s", verbosity.value)


def get_file_log_verbosity() -> LogVerbosity:
    """Return the current verbosity level for the installer log file."""

    return _CURRENT_VERBOSITY


def _resolve_log_path() -> Path:
    env_file = os.environ.get(_LOG_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser()

    env_dir = os.environ.get(_LOG_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser() / _DEFAULT_LOGNAME

    home = Path.home()
    return home / _DEFAULT_DIRNAME / "logs" / _DEFAULT_LOGNAME


def _should_log_to_stderr(handlers: Iterable[logging.Handler]) -> bool:
    if not hasattr(sys, "stderr"):
        return False
    stderr = sys.stderr
    is_tty = getattr(stderr, "isatty", None)
    if callable(is_tty):
        try:
            if not is_tty():
                return False
        except (OSError, ValueError):
            return False
    else:
        return False

    for handler in handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is stderr:
            return False
    return True


def _reset_for_tests() -> None:
    """Remove handlers installed by :func:`ensure_installer_logging`."""

    global _CONFIGURED, _LOG_PATH, _FILE_HANDLER, _STREAM_HANDLER, _CURRENT_VERBOSITY

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            try:
                handler.close()
            except Exception:  # pragma: no cover - close should rarely fail
                pass

    _CONFIGURED = False
    _LOG_PATH = None
    _FILE_HANDLER = None
    _STREAM_HANDLER = None
    _CURRENT_VERBOSITY = _DEFAULT_VERBOSITY


__all__ = [
    "LogVerbosity",
    "TOKEN_PLACEHOLDER",
    "USER_HOME_PLACEHOLDER",
    "USER_PLACEHOLDER",
    "ensure_installer_logging",
    "get_file_log_verbosity",
    "sanitize_text",
    "set_file_log_verbosity",
]
