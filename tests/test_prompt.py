"""Tests for prompt.py — single-answer console prompts."""

import io

from shell_toolkit.prompt import ERROR, InputPrompt

YES_NO = {"y": "yes", "n": "no"}


def _prompt(text):
    return InputPrompt(enable_color=False, stream=io.StringIO(text))


def test_short_answer():
    assert _prompt("y\n").input("Continue?", YES_NO) == "y"


def test_long_answer_returns_short_form():
    assert _prompt("no\n").input("Continue?", YES_NO) == "n"


def test_loops_until_valid(capsys):
    assert _prompt("maybe\nyes\n").input("Continue?", YES_NO) == "y"
    out = capsys.readouterr().out
    assert out.count("- Continue?") == 2
    assert "(y/yes, n/no)" in out


def test_end_of_input_returns_none():
    assert _prompt("").input("Continue?", YES_NO) is None
    assert _prompt("maybe\n").input("Continue?", YES_NO) is None


def test_no_allowed_responses_returns_answer():
    assert _prompt("anything goes\n").input("Name?") == "anything goes"


def test_error_style(capsys):
    _prompt("y\n").input("Overwrite?", YES_NO, style=ERROR)
    assert "* Overwrite?" in capsys.readouterr().out


def test_reads_stdin_by_default(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("yes\n"))
    assert InputPrompt(enable_color=False).input("Go?", YES_NO) == "y"
