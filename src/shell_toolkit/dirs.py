"""Directory and file utilities."""

import os
import shutil
import sys
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager

from shell_toolkit.errors import SpawnError
from shell_toolkit.spawn import find_executable


def file_exists(path) -> bool:
    """True if ``path`` exists. A dangling symlink does not."""
    return os.path.exists(path)


def is_file(path) -> bool:
    """Exists and is not a directory."""
    return os.path.exists(path) and not os.path.isdir(path)


def is_regular_file(path) -> bool:
    return os.path.isfile(path)


def is_directory(path) -> bool:
    return os.path.isdir(path)


def remove_item(path) -> None:
    """Remove a file, symlink or whole directory tree."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.remove(path)


def executable_path(executable: str) -> str | None:
    """Resolve an executable through PATH; None if it cannot be found.

    Names containing a path separator are returned unchanged.
    """
    if os.sep in executable:
        return executable
    try:
        return find_executable(executable)
    except SpawnError:
        return None


def is_executable_in_path(executable: str) -> bool:
    return executable_path(executable) is not None


def create_temporary_directory() -> str:
    prog = os.path.basename(sys.argv[0]) or "shell-toolkit"
    return tempfile.mkdtemp(prefix=f"{prog}.")


@contextmanager
def in_temporary_directory(change_working_directory: bool = True) -> Iterator[tuple[str, str]]:
    """Yield ``(original_dir, temp_dir)``; the temporary directory is removed afterwards.

    With ``change_working_directory`` the process cwd is switched to the
    temporary directory for the duration and restored on exit. The cwd is
    process-wide, so other threads see the change.
    """
    temp_dir = create_temporary_directory()
    original = os.getcwd()
    try:
        if change_working_directory:
            os.chdir(temp_dir)
        yield original, temp_dir
    finally:
        if change_working_directory:
            os.chdir(original)
        shutil.rmtree(temp_dir, ignore_errors=True)


def rename_items_containing(search: str, replace: str, path) -> None:
    """Recursively rename entries under ``path`` whose names contain ``search``.

    ``path`` itself is not renamed.
    """
    for name in os.listdir(path):
        entry = os.path.join(path, name)
        if os.path.isdir(entry) and not os.path.islink(entry):
            rename_items_containing(search, replace, entry)
        new_name = name.replace(search, replace)
        if new_name != name:
            os.rename(entry, os.path.join(path, new_name))


def duplicate_files(source, destination) -> None:
    """Copy the contents of ``source`` into the existing ``destination``, skipping .git."""
    shutil.copytree(
        source,
        destination,
        ignore=shutil.ignore_patterns(".git"),
        symlinks=True,
        dirs_exist_ok=True,
    )


def replace_in_file(search: str, replace: str, path) -> None:
    with open(path, encoding="utf-8") as f:
        text = f.read()
    with open(path, "w", encoding="utf-8") as f:
        f.write(text.replace(search, replace))
