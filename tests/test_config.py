"""Tests for config.py — file lookup, parsing, and overrides."""

import pytest

from shell_toolkit.config import ConfigError, load_config, parse_config
from shell_toolkit.spawn import EnvironmentMode, IOMode


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("SHELL_TOOLKIT_CONFIG", raising=False)
    monkeypatch.delenv("SHELL_TOOLKIT_IO_MODE", raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_file():
    cfg = load_config()
    assert cfg.source is None
    assert cfg.io_mode is IOMode.PASSTHRU
    assert cfg.environment_mode is EnvironmentMode.PASSTHRU
    assert cfg.style is True


def test_cwd_file(tmp_path):
    (tmp_path / ".shell-toolkit.yml").write_text(
        "shell: /bin/bash\n"
        "io_mode: pty\n"
        "working_directory: /srv\n"
        "style: false\n"
        "environment:\n"
        "  mode: append\n"
        "  variables:\n"
        "    LANG: C\n"
        "    RETRIES: 3\n"
    )
    cfg = load_config()
    assert cfg.source == ".shell-toolkit.yml"
    assert cfg.shell == "/bin/bash"
    assert cfg.io_mode is IOMode.PTY
    assert cfg.style is False
    assert cfg.environment_variables == {"LANG": "C", "RETRIES": "3"}

    context = cfg.to_context()
    assert context.working_directory == "/srv"
    assert context.io_mode is IOMode.PTY
    assert context.environment.resolve({"A": "1"}) == {"A": "1", "LANG": "C", "RETRIES": "3"}


def test_env_var_path_beats_cwd_file(tmp_path, monkeypatch):
    (tmp_path / ".shell-toolkit.yml").write_text("io_mode: pipe\n")
    other = tmp_path / "other.yml"
    other.write_text("io_mode: pty\n")
    monkeypatch.setenv("SHELL_TOOLKIT_CONFIG", str(other))
    assert load_config().io_mode is IOMode.PTY


def test_explicit_path_beats_env_var(tmp_path, monkeypatch):
    explicit = tmp_path / "explicit.yml"
    explicit.write_text("io_mode: pipe\n")
    monkeypatch.setenv("SHELL_TOOLKIT_CONFIG", str(tmp_path / "missing.yml"))
    assert load_config(str(explicit)).io_mode is IOMode.PIPE


def test_io_mode_env_override(tmp_path, monkeypatch):
    (tmp_path / ".shell-toolkit.yml").write_text("io_mode: pipe\n")
    monkeypatch.setenv("SHELL_TOOLKIT_IO_MODE", "PTY")
    assert load_config().io_mode is IOMode.PTY


def test_missing_explicit_file():
    with pytest.raises(ConfigError, match="not found"):
        load_config("nope.yml")


def test_invalid_yaml(tmp_path):
    bad = tmp_path / "bad.yml"
    bad.write_text("io_mode: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(str(bad))


def test_invalid_io_mode():
    with pytest.raises(ConfigError, match="io_mode"):
        parse_config({"io_mode": "telepathy"})


def test_invalid_environment_shape():
    with pytest.raises(ConfigError):
        parse_config({"environment": ["not", "a", "mapping"]})
    with pytest.raises(ConfigError):
        parse_config({"environment": {"variables": "nope"}})


def test_top_level_must_be_mapping():
    with pytest.raises(ConfigError):
        parse_config(["a", "b"])


def test_empty_file_gives_defaults(tmp_path):
    (tmp_path / ".shell-toolkit.yml").write_text("")
    cfg = load_config()
    assert cfg.io_mode is IOMode.PASSTHRU
