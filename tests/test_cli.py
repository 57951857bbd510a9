"""Tests for cli.py — Click CLI commands."""

import shlex
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from shell_toolkit.cli import main


@pytest.fixture(autouse=True)
def _no_config(monkeypatch, tmp_path):
    monkeypatch.delenv("SHELL_TOOLKIT_CONFIG", raising=False)
    monkeypatch.delenv("SHELL_TOOLKIT_IO_MODE", raising=False)
    monkeypatch.chdir(tmp_path)


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "shell-toolkit" in result.output
    assert "0.1.0" in result.output


def test_run_exit_code_propagated():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "sh", "-c", "exit 3"])
    assert result.exit_code == 3


def test_run_pipe_mode_prints_output():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "--io-mode", "pipe", "echo", "hello"])
    assert result.exit_code == 0
    assert "hello" in result.output


def test_run_env_and_clean_env():
    runner = CliRunner()
    result = runner.invoke(
        main, ["run", "--io-mode", "pipe", "--clean-env", "--env", "ONLY=1", "sh", "-c", "echo ${ONLY}${HOME:-}"]
    )
    assert result.exit_code == 0
    assert result.output.strip() == "1"


def test_run_bad_env_pair():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "--env", "NOEQUALS", "true"])
    assert result.exit_code == 2


def test_run_command_not_found():
    runner = CliRunner()
    result = runner.invoke(main, ["run", "definitely-not-a-command-xyz"])
    assert result.exit_code == 127


def test_run_dry_run_does_not_spawn():
    runner = CliRunner()
    with patch("shell_toolkit.cli.SpawnCmd") as mock_cmd:
        result = runner.invoke(main, ["--dry-run", "run", "make", "clean"])
    assert result.exit_code == 0
    mock_cmd.assert_not_called()
    assert "Executing command: make clean" in result.output


@patch("shell_toolkit.cli.ShellCmd")
def test_sh(mock_shell):
    mock_shell.return_value.run_and_wait.return_value = 0
    runner = CliRunner()
    result = runner.invoke(main, ["sh", "echo", "it's"])
    assert result.exit_code == 0
    mock_shell.return_value.run_and_wait.assert_called_once_with("echo", "it's")


def test_sh_dry_run_prints_quoted_command(tmp_path):
    (tmp_path / ".shell-toolkit.yml").write_text("shell: /bin/sh\n")
    runner = CliRunner()
    with patch("shell_toolkit.cli.ShellCmd.run_and_wait") as mock_run:
        result = runner.invoke(main, ["--dry-run", "sh", "echo", "it's"])
    assert result.exit_code == 0
    mock_run.assert_not_called()
    assert shlex.join(["/bin/sh", "-c", "'echo' 'it'\"'\"'s'"]) in result.output


def test_capture_with_stdin():
    runner = CliRunner()
    result = runner.invoke(main, ["capture", "--stdin", "abc", "cat"])
    assert result.exit_code == 0
    assert result.output == "abc"


def test_which():
    runner = CliRunner()
    result = runner.invoke(main, ["which", "sh"])
    assert result.exit_code == 0
    assert result.output.strip().endswith("/sh")


def test_which_not_found():
    runner = CliRunner()
    result = runner.invoke(main, ["which", "definitely-not-a-command-xyz"])
    assert result.exit_code == 127


def test_git_dry_run(mock_process):
    runner = CliRunner()
    result = runner.invoke(main, ["--dry-run", "git", "push", "--force"])
    assert result.exit_code == 0
    assert mock_process.calls == []
    assert "Executing command: git push --force" in result.output


def test_git_runs(mock_process):
    runner = CliRunner()
    result = runner.invoke(main, ["git", "status", "--short"])
    assert result.exit_code == 0
    assert mock_process.calls == [("run_streaming", ["git", "status", "--short"], None, None)]


def test_git_failure_exit_code(mock_process):
    mock_process.streaming_codes.append(128)
    runner = CliRunner()
    result = runner.invoke(main, ["git", "fetch"])
    assert result.exit_code == 128


def test_git_no_args():
    runner = CliRunner()
    result = runner.invoke(main, ["git"])
    assert result.exit_code == 1


def test_bad_config(tmp_path):
    (tmp_path / ".shell-toolkit.yml").write_text("io_mode: sideways\n")
    runner = CliRunner()
    result = runner.invoke(main, ["which", "sh"])
    assert result.exit_code == 1
