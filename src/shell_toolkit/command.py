"""Command-level wrappers: a bound command, and commands run through a shell."""

import asyncio
import os
from collections.abc import Sequence

from shell_toolkit import process, spawn
from shell_toolkit.process import Result
from shell_toolkit.spawn import Environment, ProcessHandle, Route, SpawnContext

FALLBACK_SHELLS = ("/bin/zsh", "/bin/bash", "/bin/ash")
LAST_RESORT_SHELL = "/bin/sh"


def default_shell() -> str:
    """Resolve the shell to use.

    Order: SHELL env → first existing fallback shell → /bin/sh.
    """
    env_shell = os.environ.get("SHELL")
    if env_shell:
        return env_shell
    for shell in FALLBACK_SHELLS:
        if os.path.exists(shell):
            return shell
    return LAST_RESORT_SHELL


def single_quote(arg: str) -> str:
    return "'" + arg.replace("'", "'\"'\"'") + "'"


def shell_args(command: Sequence[str]) -> list[str]:
    """Arguments that make a shell run ``command`` as one quoted command line."""
    return ["-c", " ".join(single_quote(arg) for arg in command)]


class SpawnCmd:
    """A command bound to an environment and spawn context."""

    def __init__(
        self,
        command: str,
        environment: Environment | None = None,
        context: SpawnContext | None = None,
    ):
        self.command = command
        self.environment = environment
        self.context = context or spawn.DEFAULT_CONTEXT

    def __repr__(self) -> str:
        return f"SpawnCmd({self.command!r})"

    def run(
        self,
        args: Sequence[str] = (),
        *,
        environment: Environment | None = None,
        stdin: Route = None,
        stdout: Route = None,
        stderr: Route = None,
    ) -> ProcessHandle:
        return spawn.run(
            self.command,
            args,
            context=self.context,
            environment=environment or self.environment,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
        )

    def run_and_wait(self, args: Sequence[str] = (), **kwargs) -> int:
        return self.run(args, **kwargs).wait()

    async def run_and_wait_async(self, args: Sequence[str] = (), **kwargs) -> int:
        return await self.run(args, **kwargs).exit_status_async()

    def run_capture(
        self,
        args: Sequence[str] = (),
        *,
        environment: Environment | None = None,
        stdin: str | None = None,
    ) -> Result:
        return process.capture(
            self.command,
            args,
            context=self.context,
            environment=environment or self.environment,
            stdin=stdin,
        )

    async def run_capture_async(
        self,
        args: Sequence[str] = (),
        *,
        environment: Environment | None = None,
        stdin: str | None = None,
    ) -> Result:
        return await asyncio.to_thread(
            self.run_capture, args, environment=environment, stdin=stdin
        )


class ShellCmd:
    """Run an argv through ``$SHELL -c`` with every word single-quoted.

    An empty command succeeds without spawning anything.
    """

    def __init__(
        self,
        shell: str | None = None,
        environment: Environment | None = None,
        context: SpawnContext | None = None,
    ):
        self.shell = shell or default_shell()
        self.spawn_cmd = SpawnCmd(self.shell, environment=environment, context=context)

    @property
    def environment(self) -> Environment | None:
        return self.spawn_cmd.environment

    @environment.setter
    def environment(self, value: Environment | None) -> None:
        self.spawn_cmd.environment = value

    @property
    def context(self) -> SpawnContext:
        return self.spawn_cmd.context

    @context.setter
    def context(self, value: SpawnContext) -> None:
        self.spawn_cmd.context = value

    def run_and_wait(
        self,
        *command: str,
        environment: Environment | None = None,
        stdin: Route = None,
        stdout: Route = None,
        stderr: Route = None,
    ) -> int:
        if not command:
            return 0
        return self.spawn_cmd.run_and_wait(
            shell_args(command),
            environment=environment,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
        )

    async def run_and_wait_async(
        self,
        *command: str,
        environment: Environment | None = None,
        stdin: Route = None,
        stdout: Route = None,
        stderr: Route = None,
    ) -> int:
        if not command:
            return 0
        return await self.spawn_cmd.run_and_wait_async(
            shell_args(command),
            environment=environment,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
        )

    def run_capture(
        self, *command: str, environment: Environment | None = None, stdin: str | None = None
    ) -> Result:
        if not command:
            return Result(returncode=0, stdout="", stderr="")
        return self.spawn_cmd.run_capture(shell_args(command), environment=environment, stdin=stdin)

    async def run_capture_async(
        self, *command: str, environment: Environment | None = None, stdin: str | None = None
    ) -> Result:
        if not command:
            return Result(returncode=0, stdout="", stderr="")
        return await self.spawn_cmd.run_capture_async(
            shell_args(command), environment=environment, stdin=stdin
        )
