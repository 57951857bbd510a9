"""Click entry point — all commands."""

import sys
from dataclasses import dataclass

import click

from shell_toolkit import __version__, log, spawn
from shell_toolkit.actions import (
    CommandFailed,
    CompositeAction,
    PrintAction,
    RealAction,
    SystemAction,
    SystemActionFailure,
)
from shell_toolkit.command import ShellCmd, SpawnCmd, shell_args
from shell_toolkit.config import ConfigError, ToolkitConfig, load_config
from shell_toolkit.errors import CommandNotFound, SpawnError
from shell_toolkit.git import GitCommand
from shell_toolkit.handlers import ChunkReader
from shell_toolkit.spawn import Environment, IOMode

PASSTHROUGH_ARGS = {"ignore_unknown_options": True, "allow_interspersed_args": False}


@dataclass
class Options:
    config: ToolkitConfig
    dry_run: bool = False
    verbose: bool = False

    def action(self) -> SystemAction:
        printer = PrintAction(enable_style=self.config.style)
        if self.dry_run:
            return CompositeAction([printer])
        if self.verbose:
            return CompositeAction([printer, RealAction()])
        return CompositeAction([RealAction()])


def _exit_code(code: int) -> int:
    """Map a signal death (-N) to the shell convention 128+N."""
    return 128 - code if code < 0 else code


def _fail(e: Exception) -> None:
    log.error(str(e))
    sys.exit(127 if isinstance(e, CommandNotFound) else 1)


def _parse_env(pairs: tuple[str, ...]) -> dict[str, str]:
    env = {}
    for item in pairs:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--env")
        env[key] = value
    return env


def _echo_chunks(err: bool) -> ChunkReader:
    stream = click.get_binary_stream("stderr" if err else "stdout")

    def write(chunk):
        if chunk.data:
            stream.write(chunk.data)
            stream.flush()

    return ChunkReader(write)


@click.group()
@click.version_option(version=__version__, prog_name="shell-toolkit")
@click.option("--config", "config_path", default=None, help="Path to a .shell-toolkit.yml file")
@click.option("--dry-run", is_flag=True, help="Print actions without executing them")
@click.option("--verbose", "-v", is_flag=True, help="Print actions as they are executed")
@click.pass_context
def main(ctx, config_path, dry_run, verbose):
    """Spawn commands, shell out, and drive git from the command line."""
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        _fail(e)
    ctx.obj = Options(config=cfg, dry_run=dry_run, verbose=verbose)


@main.command(context_settings=PASSTHROUGH_ARGS)
@click.option(
    "--io-mode",
    type=click.Choice([m.value for m in IOMode]),
    default=None,
    help="How the child's streams are connected (default: from config)",
)
@click.option("--cwd", default=None, help="Working directory for the command")
@click.option("--env", "env_pairs", multiple=True, help="Extra KEY=VALUE environment variable")
@click.option("--clean-env", is_flag=True, help="Start from an empty environment")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_obj
def run(opts, io_mode, cwd, env_pairs, clean_env, command):
    """Run COMMAND and exit with its exit code."""
    extra = _parse_env(env_pairs)
    context = opts.config.to_context()
    if io_mode:
        context = context.with_io_mode(IOMode(io_mode))
    if cwd:
        context = context.with_working_directory(cwd)
    if clean_env:
        context = context.with_environment(Environment.exact(extra))
    elif extra:
        context = context.with_environment(Environment.append(extra))

    if opts.dry_run or opts.verbose:
        PrintAction(enable_style=opts.config.style).run_and_print(list(command), context.working_directory)
    if opts.dry_run:
        return

    routes = {}
    if context.io_mode is not IOMode.PASSTHRU:
        routes = {"stdout": _echo_chunks(err=False), "stderr": _echo_chunks(err=True)}
    try:
        code = SpawnCmd(command[0], context=context).run_and_wait(command[1:], **routes)
    except SpawnError as e:
        _fail(e)
    sys.exit(_exit_code(code))


@main.command(context_settings=PASSTHROUGH_ARGS)
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_obj
def sh(opts, command):
    """Run COMMAND through the configured shell, each word single-quoted."""
    shell = ShellCmd(shell=opts.config.shell, context=opts.config.to_context())
    if opts.dry_run or opts.verbose:
        log.command([shell.shell, *shell_args(command)])
    if opts.dry_run:
        return
    try:
        code = shell.run_and_wait(*command)
    except SpawnError as e:
        _fail(e)
    sys.exit(_exit_code(code))


@main.command(context_settings=PASSTHROUGH_ARGS)
@click.option("--stdin", "stdin_text", default=None, help="Text sent as the command's input")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_obj
def capture(opts, stdin_text, command):
    """Run COMMAND with output captured, then print stdout and stderr."""
    cmd = SpawnCmd(command[0], context=opts.config.to_context())
    try:
        result = cmd.run_capture(command[1:], stdin=stdin_text)
    except SpawnError as e:
        _fail(e)
    if result.stdout:
        click.echo(result.stdout, nl=False)
    if result.stderr:
        click.echo(result.stderr, nl=False, err=True)
    sys.exit(_exit_code(result.returncode))


@main.command()
@click.argument("name")
def which(name):
    """Print the path NAME resolves to."""
    try:
        click.echo(spawn.find_executable(name))
    except SpawnError as e:
        _fail(e)


@main.command(context_settings=PASSTHROUGH_ARGS)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def git(opts, args):
    """Run git ARGS, honouring --dry-run and --verbose."""
    if not args:
        click.echo("Error: No git arguments specified", err=True)
        sys.exit(1)
    try:
        GitCommand(action=opts.action(), cwd=opts.config.working_directory).run(*args)
    except CommandFailed as e:
        log.failure(str(e))
        sys.exit(_exit_code(e.returncode))
    except (SystemActionFailure, SpawnError) as e:
        _fail(e)


if __name__ == "__main__":
    main()
