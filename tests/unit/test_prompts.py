from __future__ import annotations

import io

from app.prompts import AutoConfirmPrompter, ConsolePrompter


def _scripted(*answers):
    queue = list(answers)
    asked: list[str] = []

    def _input(prompt: str) -> str:
        asked.append(prompt)
        answer = queue.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    return _input, asked


def test_ask_text_returns_default_for_blank_answer() -> None:
    input_func, asked = _scripted("   ")
    prompter = ConsolePrompter(input_func, stream=io.StringIO())

    assert prompter.ask_text("Install directory", "/home/me/.local/bin") == "/home/me/.local/bin"
    assert asked == ["Install directory [/home/me/.local/bin]: "]


def test_ask_text_strips_answer() -> None:
    input_func, _ = _scripted("  ~/tools  ")

    assert ConsolePrompter(input_func).ask_text("Install directory", "x") == "~/tools"


def test_confirm_shows_default_hint() -> None:
    input_func, asked = _scripted("", "")
    prompter = ConsolePrompter(input_func)

    assert prompter.confirm("Update?", default=True) is True
    assert prompter.confirm("Uninstall?", default=False) is False
    assert asked == ["Update? [Y/n] ", "Uninstall? [y/N] "]


def test_confirm_repeats_until_answer_is_understood() -> None:
    stream = io.StringIO()
    input_func, asked = _scripted("maybe", "YES")
    prompter = ConsolePrompter(input_func, stream=stream)

    assert prompter.confirm("Overwrite?", default=False) is True
    assert len(asked) == 2
    assert "Please answer 'y' or 'n'." in stream.getvalue()


def test_end_of_input_accepts_default() -> None:
    input_func, _ = _scripted(EOFError(), EOFError())
    prompter = ConsolePrompter(input_func, stream=io.StringIO())

    assert prompter.confirm("Uninstall?", default=False) is False
    assert prompter.ask_text("Install directory", "/opt") == "/opt"


def test_auto_confirm_accepts_everything() -> None:
    prompter = AutoConfirmPrompter()

    assert prompter.confirm("Uninstall?", default=False) is True
    assert prompter.ask_text("Install directory", "/opt") == "/opt"
