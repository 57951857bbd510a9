"""System actions — perform, print, or fan out the same intent.

Command-line tools get verbose and dry-run modes by choosing the action::

    if dry_run:
        action = CompositeAction([PrintAction()])
    elif verbose:
        action = CompositeAction([PrintAction(), RealAction()])
    else:
        action = CompositeAction([RealAction()])
"""

import enum
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

import click

from shell_toolkit import dirs, process
from shell_toolkit.errors import SpawnError
from shell_toolkit.process import Result


class Heading(enum.Enum):
    SECTION = "section"
    PHASE = "phase"


class RemoveOptions(enum.Flag):
    IGNORE_IF_NOT_EXIST = enum.auto()
    REMOVE_FILE = enum.auto()
    REMOVE_DIRECTORY = enum.auto()
    ALL = IGNORE_IF_NOT_EXIST | REMOVE_FILE | REMOVE_DIRECTORY


class SystemActionFailure(RuntimeError):
    """Base for failures raised by system actions."""


class NothingToRemove(SystemActionFailure):
    def __init__(self):
        super().__init__("Remove requested, but no item type specified.")


class AttemptToRemoveDirectory(SystemActionFailure):
    def __init__(self, path):
        self.path = os.fspath(path)
        super().__init__(
            f'Attempted to remove a directory at "{self.path}" when only file removal was specified'
        )


class AttemptToRemoveFile(SystemActionFailure):
    def __init__(self, path):
        self.path = os.fspath(path)
        super().__init__(
            f'Attempted to remove a file at "{self.path}" when only directory removal was specified'
        )


class PathDoesNotExist(SystemActionFailure):
    def __init__(self, path):
        self.path = os.fspath(path)
        super().__init__(f'The path "{self.path}" does not exist.')


class DirectoryExists(SystemActionFailure):
    def __init__(self, path):
        self.path = os.fspath(path)
        super().__init__(f"Directory '{self.path}' already exists.")


class CommandFailed(SystemActionFailure):
    def __init__(self, command: Sequence[str], returncode: int):
        self.command = list(command)
        self.returncode = returncode
        super().__init__(f"{' '.join(self.command)} exited with code {returncode}")


class SystemAction(ABC):
    @abstractmethod
    def heading(self, kind: Heading, text: str) -> None: ...

    @abstractmethod
    def create_directory(self, path) -> None: ...

    @abstractmethod
    def create_file(self, path, content: str) -> None:
        """Create ``path`` containing ``content``, overwriting any existing file."""

    @abstractmethod
    def remove_item(self, path, options: RemoveOptions = RemoveOptions.ALL) -> None: ...

    @abstractmethod
    def run_and_print(self, command: Sequence[str], cwd: str | None = None) -> None:
        """Run with the terminal attached. Raises CommandFailed on a non-zero exit."""

    @abstractmethod
    def run(
        self, command: Sequence[str], cwd: str | None = None, stdin: str | None = None
    ) -> Result:
        """Run and return captured stdout/stderr. Never raises for the command itself."""

    @abstractmethod
    def execute_block(self, description: str | None, block: Callable[[], None]) -> None: ...

    def section(self, text: str) -> None:
        self.heading(Heading.SECTION, text)

    def phase(self, text: str) -> None:
        self.heading(Heading.PHASE, text)

    def create_file_from(self, path, builder: Callable[[], str]) -> None:
        self.create_file(path, builder())


class RealAction(SystemAction):
    """Actually perform each action."""

    def heading(self, kind, text):
        pass

    def create_directory(self, path):
        os.makedirs(path, exist_ok=True)

    def create_file(self, path, content):
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)

    def remove_item(self, path, options=RemoveOptions.ALL):
        path = os.fspath(path)
        if not dirs.file_exists(path):
            if RemoveOptions.IGNORE_IF_NOT_EXIST in options:
                return
            raise PathDoesNotExist(path)

        both = RemoveOptions.REMOVE_FILE | RemoveOptions.REMOVE_DIRECTORY
        if both in options:
            dirs.remove_item(path)
        elif RemoveOptions.REMOVE_FILE in options:
            if dirs.is_directory(path):
                raise AttemptToRemoveDirectory(path)
            os.remove(path)
        elif RemoveOptions.REMOVE_DIRECTORY in options:
            if not dirs.is_directory(path):
                raise AttemptToRemoveFile(path)
            shutil.rmtree(path)

    def run_and_print(self, command, cwd=None):
        code = process.run_streaming(list(command), cwd=cwd)
        if code != 0:
            raise CommandFailed(command, code)

    def run(self, command, cwd=None, stdin=None):
        try:
            return process.run(list(command), cwd=cwd, stdin=stdin)
        except SpawnError as e:
            return Result(returncode=-1, stdout="", stderr=str(e))

    def execute_block(self, description, block):
        block()


class PrintAction(SystemAction):
    """Only print what would be done. Useful for verbose and dry-run modes."""

    def __init__(self, enable_style: bool = True):
        self.enable_style = enable_style
        self.section_style = {"fg": "yellow", "bold": True}
        self.phase_style = {"fg": "cyan", "bold": True}
        self.create_directory_style = {"bold": True}
        self.create_file_style = {"bold": True}
        self.remove_item_style = {"bold": True}
        self.run_style = {"bold": True}
        self.content_style = {"fg": "yellow"}

    def _output(self, text: str, style: dict) -> None:
        if self.enable_style:
            text = click.style(text, **style)
        click.echo(text, color=self.enable_style)

    def heading(self, kind, text):
        if kind is Heading.SECTION:
            self._output(f" == Section: {text}", self.section_style)
        else:
            self._output(f" -- Phase: {text}", self.phase_style)

    def create_directory(self, path):
        self._output(f" > Creating directory at path: {os.fspath(path)}", self.create_directory_style)

    def create_file(self, path, content):
        self._output(f" > Creating file at path: {os.fspath(path)}", self.create_file_style)
        indented = "\n".join("    " + line for line in content.splitlines())
        if indented:
            self._output(indented, self.content_style)

    def remove_item(self, path, options=RemoveOptions.ALL):
        both = RemoveOptions.REMOVE_FILE | RemoveOptions.REMOVE_DIRECTORY
        if both in options:
            what = "files/directories"
        elif RemoveOptions.REMOVE_FILE in options:
            what = "file"
        elif RemoveOptions.REMOVE_DIRECTORY in options:
            what = "directory"
        else:
            raise NothingToRemove()
        self._output(f" > Remove {what} at path: {os.fspath(path)}", self.remove_item_style)

    def _print_command(self, command, cwd, stdin=None):
        self._output(f" > Executing command: {' '.join(command)}", self.run_style)
        if stdin is not None:
            self._output(f"   stdin: {stdin}", self.run_style)
        if cwd is not None:
            self._output(f"   Working Directory: {cwd}", self.run_style)

    def run_and_print(self, command, cwd=None):
        self._print_command(command, cwd)

    def run(self, command, cwd=None, stdin=None):
        self._print_command(command, cwd, stdin)
        return Result(returncode=0, stdout="", stderr="")

    def execute_block(self, description, block):
        if description:
            self._output(f" > {description}", self.run_style)


class CompositeAction(SystemAction):
    """Perform each action in order."""

    def __init__(self, actions: Sequence[SystemAction] = ()):
        self.actions = list(actions)

    def heading(self, kind, text):
        for action in self.actions:
            action.heading(kind, text)

    def create_directory(self, path):
        for action in self.actions:
            action.create_directory(path)

    def create_file(self, path, content):
        for action in self.actions:
            action.create_file(path, content)

    def remove_item(self, path, options=RemoveOptions.ALL):
        for action in self.actions:
            action.remove_item(path, options)

    def run_and_print(self, command, cwd=None):
        for action in self.actions:
            action.run_and_print(command, cwd)

    def run(self, command, cwd=None, stdin=None):
        """Concatenate every action's output; the last failing exit code wins."""
        output = Result(returncode=0, stdout="", stderr="")
        for action in self.actions:
            result = action.run(command, cwd, stdin)
            output = output.appending(
                result.stdout,
                result.stderr,
                returncode=None if result.succeeded else result.returncode,
            )
        return output

    def execute_block(self, description, block):
        for action in self.actions:
            action.execute_block(description, block)
