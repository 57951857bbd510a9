"""Tests for log.py — timestamped output + GA formatting."""

import re


def test_info(capsys):
    from shell_toolkit.log import info

    info("test message")
    out = capsys.readouterr().out
    assert re.match(r"\[\d{2}:\d{2}:\d{2}\] test message\n", out)


def test_header_and_footer(capsys):
    from shell_toolkit.log import footer, header

    header("build")
    footer("done")
    out = capsys.readouterr().out
    assert "── build " in out
    assert "── done " in out


def test_command_quotes_arguments(capsys):
    from shell_toolkit.log import command

    command(["echo", "two words"], cwd="/tmp")
    out = capsys.readouterr().out
    assert "$ echo 'two words'  (in /tmp)" in out


def test_step_success_failure(capsys):
    from shell_toolkit.log import failure, step, success

    step("cloning...")
    success("cloned")
    failure("push rejected")
    out = capsys.readouterr().out
    assert "  cloning..." in out
    assert "✓ cloned" in out
    assert "✗ push rejected" in out


def test_error_goes_to_stderr(capsys, monkeypatch):
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    from shell_toolkit.log import error

    error("something broke")
    captured = capsys.readouterr()
    assert "ERROR: something broke" in captured.err
    assert captured.out == ""


def test_github_actions_annotations(capsys, monkeypatch):
    monkeypatch.setenv("GITHUB_ACTIONS", "true")
    from shell_toolkit.log import error, footer, header

    header("build")
    footer("build")
    error("bad")
    out = capsys.readouterr().out
    assert "::group::build" in out
    assert "::endgroup::" in out
    assert "::error::bad" in out


def test_no_annotations_outside_github_actions(capsys, monkeypatch):
    monkeypatch.delenv("GITHUB_ACTIONS", raising=False)
    from shell_toolkit.log import failure

    failure("oops")
    assert "::error::" not in capsys.readouterr().out
