"""Console prompters used by the command line flows."""

from __future__ import annotations

import logging
from typing import Callable, TextIO
import sys


logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]

_YES = {"y", "yes"}
_NO = {"n", "no"}


class ConsolePrompter:
    """Ask questions on the terminal.

    End of input (for example a closed stdin) is treated as accepting the
    default answer.
    """

    def __init__(self, input_func: InputFunc = input, stream: TextIO | None = None) -> None:
        self._input = input_func
        self._stream = stream

    def ask_text(self, prompt: str, default: str) -> str:
        answer = self._read(f"{prompt} [{default}]: ")
        if answer is None:
            return default
        return answer.strip() or default

    def confirm(self, prompt: str, *, default: bool) -> bool:
        hint = "[Y/n]" if default else "[y/N]"
        while True:
            answer = self._read(f"{prompt} {hint} ")
            if answer is None:
                return default
            normalized = answer.strip().lower()
            if not normalized:
                return default
            if normalized in _YES:
                return True
            if normalized in _NO:
                return False
            self._write("Please answer 'y' or 'n'.")

    def _read(self, prompt: str) -> str | None:
        try:
            return self._input(prompt)
        except EOFError:
            logger.debug("No interactive input available for prompt %r", prompt)
            self._write("")
            return None

    def _write(self, text: str) -> None:
        stream = self._stream or sys.stdout
        print(text, file=stream)


class AutoConfirmPrompter:
    """Accept every default without asking, used with ``--yes``.

    Confirmations are always accepted, including those that default to "no".
    """

    def ask_text(self, prompt: str, default: str) -> str:
        logger.debug("Using default %r for %r", default, prompt)
        return default

    def confirm(self, prompt: str, *, default: bool) -> bool:
        logger.debug("Auto-confirming %r", prompt)
        return True


__all__ = ["AutoConfirmPrompter", "ConsolePrompter"]
