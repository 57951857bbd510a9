"""String-capture convenience over the spawn core — the single mock seam for collaborators."""

from collections.abc import Sequence
from dataclasses import dataclass

from shell_toolkit import spawn
from shell_toolkit.handlers import CaptureOutput, StringInput
from shell_toolkit.spawn import DEFAULT_CONTEXT, Environment, IOMode, Redirect, SpawnContext


@dataclass
class Result:
    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def appending(self, stdout: str, stderr: str, returncode: int | None = None) -> "Result":
        """Concatenate output; ``returncode`` replaces the current one when given."""
        return Result(
            returncode=self.returncode if returncode is None else returncode,
            stdout=self.stdout + stdout,
            stderr=self.stderr + stderr,
        )


def capture(
    command: str,
    args: Sequence[str] = (),
    *,
    context: SpawnContext = DEFAULT_CONTEXT,
    environment: Environment | None = None,
    stdin: str | None = None,
) -> Result:
    """Run a command with stdout/stderr collected in memory.

    ``stdin`` is sent as the child's entire input when given. A pass-through
    context is switched to pipes, since nothing could be captured otherwise.
    """
    io_mode = context.io_mode if context.io_mode is not IOMode.PASSTHRU else IOMode.PIPE
    out = CaptureOutput()
    err = CaptureOutput()
    returncode = spawn.run_and_wait(
        command,
        args,
        context=context,
        environment=environment,
        io_mode=io_mode,
        stdin=StringInput(stdin) if stdin is not None else Redirect.DISCARD,
        stdout=out,
        stderr=err,
    )
    return Result(returncode=returncode, stdout=out.text, stderr=err.text)


def run(
    args: list[str],
    env: dict[str, str] | None = None,
    cwd: str | None = None,
    stdin: str | None = None,
) -> Result:
    """Run a command and capture output. ``env`` is added to the inherited environment."""
    environment = Environment.append(env) if env is not None else None
    return capture(args[0], args[1:], context=_context(cwd), environment=environment, stdin=stdin)


def run_streaming(
    args: list[str], env: dict[str, str] | None = None, cwd: str | None = None
) -> int:
    """Run a command with passthrough stdin/stdout/stderr. Returns exit code."""
    environment = Environment.append(env) if env is not None else None
    return spawn.run_and_wait(
        args[0], args[1:], context=_context(cwd), environment=environment, io_mode=IOMode.PASSTHRU
    )


def _context(cwd: str | None) -> SpawnContext:
    if cwd is None:
        return DEFAULT_CONTEXT
    return DEFAULT_CONTEXT.with_working_directory(cwd)
