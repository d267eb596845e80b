"""Register the installed binary with an external CLI.

The external command is always run with an argument list and never through a
shell, so the binary path is passed verbatim no matter what characters it
contains.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Any, Callable, Sequence

from services.managed_binary.constants import (
    CONFIGURATOR_COMMAND,
    CONFIGURATOR_SUBCOMMAND,
    CONFIGURATOR_TOOL_ID,
)
from services.managed_binary.models import ConfigureReport


_LOGGER = logging.getLogger(__name__)

__all__ = ["ExternalToolConfigurator"]

Runner = Callable[..., Any]


class ExternalToolConfigurator:
    """Invoke ``<command> mcp add <tool> ... -- <binary>``."""

    def __init__(
        self,
        command: str = CONFIGURATOR_COMMAND,
        *,
        subcommand: Sequence[str] = CONFIGURATOR_SUBCOMMAND,
        tool_id: str = CONFIGURATOR_TOOL_ID,
        which: Callable[[str], str | None] = shutil.which,
        runner: Runner = subprocess.run,
    ) -> None:
        self._command = command
        self._subcommand = tuple(subcommand)
        self._tool_id = tool_id
        self._which = which
        self._runner = runner

    def build_arguments(self, binary_path: Path) -> tuple[str, ...]:
        return (
            *self._subcommand,
            "add",
            self._tool_id,
            "-s",
            "user",
            "--transport",
            "stdio",
            "--",
            str(binary_path),
        )

    def manual_command(self, binary_path: Path) -> str:
        return shlex.join([self._command, *self.build_arguments(binary_path)])

    def configure(self, binary_path: Path) -> ConfigureReport:
        arguments = self.build_arguments(binary_path)
        manual = self.manual_command(binary_path)
        executable = self._which(self._command) or self._command
        _LOGGER.info("Running %s", manual)

        try:
            completed = self._runner([executable, *arguments], check=False)
        except OSError as exc:
            _LOGGER.warning("Unable to run %s: %s", self._command, exc)
            return ConfigureReport(
                success=False, arguments=arguments, manual_command=manual, reason="not-found"
            )

        exit_code = int(getattr(completed, "returncode", 1))
        if exit_code != 0:
            _LOGGER.warning("%s exited with code %d", self._command, exit_code)
            return ConfigureReport(
                success=False,
                arguments=arguments,
                manual_command=manual,
                reason="exit-code",
                exit_code=exit_code,
            )
        return ConfigureReport(success=True, arguments=arguments, manual_command=manual, exit_code=0)
