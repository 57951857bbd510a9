"""Toolkit configuration from .shell-toolkit.yml and the environment."""

import os
from dataclasses import dataclass, field

import yaml

from shell_toolkit.spawn import Environment, EnvironmentMode, IOMode, SpawnContext

CONFIG_FILE = ".shell-toolkit.yml"
CONFIG_ENV = "SHELL_TOOLKIT_CONFIG"
IO_MODE_ENV = "SHELL_TOOLKIT_IO_MODE"


class ConfigError(RuntimeError):
    pass


@dataclass
class ToolkitConfig:
    shell: str | None = None
    io_mode: IOMode = IOMode.PASSTHRU
    working_directory: str | None = None
    environment_mode: EnvironmentMode = EnvironmentMode.PASSTHRU
    environment_variables: dict[str, str] = field(default_factory=dict)
    style: bool = True
    source: str | None = None

    @property
    def environment(self) -> Environment:
        return Environment(self.environment_mode, dict(self.environment_variables))

    def to_context(self) -> SpawnContext:
        return SpawnContext(
            environment=self.environment,
            working_directory=self.working_directory,
            io_mode=self.io_mode,
        )


def _find_config(path: str | None) -> str | None:
    """Explicit path, then $SHELL_TOOLKIT_CONFIG, then ./.shell-toolkit.yml."""
    if path:
        return path
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return env_path
    if os.path.exists(CONFIG_FILE):
        return CONFIG_FILE
    return None


def _enum_value(enum_cls, value, key: str):
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        choices = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"{key}: invalid value {value!r} (expected one of: {choices})") from None


def parse_config(data: dict | None, source: str | None = None) -> ToolkitConfig:
    """Build a ToolkitConfig from an already-loaded mapping."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{source or 'config'}: expected a mapping at the top level")

    cfg = ToolkitConfig(source=source)
    if data.get("shell") is not None:
        cfg.shell = str(data["shell"])
    if data.get("io_mode") is not None:
        cfg.io_mode = _enum_value(IOMode, data["io_mode"], "io_mode")
    if data.get("working_directory") is not None:
        cfg.working_directory = os.path.expanduser(str(data["working_directory"]))
    if "style" in data:
        cfg.style = bool(data["style"])

    env = data.get("environment") or {}
    if not isinstance(env, dict):
        raise ConfigError("environment: expected a mapping with 'mode' and 'variables'")
    if env.get("mode") is not None:
        cfg.environment_mode = _enum_value(EnvironmentMode, env["mode"], "environment.mode")
    variables = env.get("variables") or {}
    if not isinstance(variables, dict):
        raise ConfigError("environment.variables: expected a mapping")
    cfg.environment_variables = {str(k): str(v) for k, v in variables.items()}
    return cfg


def load_config(path: str | None = None) -> ToolkitConfig:
    """Load configuration; defaults when no file is found.

    $SHELL_TOOLKIT_IO_MODE overrides the file's io_mode.
    """
    source = _find_config(path)
    data = None
    if source is not None:
        try:
            with open(source) as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigError(f"config file not found: {source}") from None
        except yaml.YAMLError as e:
            raise ConfigError(f"{source}: {e}") from e

    cfg = parse_config(data, source)
    io_mode = os.environ.get(IO_MODE_ENV)
    if io_mode:
        cfg.io_mode = _enum_value(IOMode, io_mode, IO_MODE_ENV)
    return cfg
