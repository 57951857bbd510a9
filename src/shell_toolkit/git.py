"""git command builder. Every command goes through a SystemAction."""

from collections.abc import Iterator
from contextlib import contextmanager

from shell_toolkit import dirs, log
from shell_toolkit.actions import CommandFailed, DirectoryExists, RealAction, SystemAction

GIT = "git"


def _flags(**options: bool) -> list[str]:
    """``dry_run=True`` → ``["--dry-run"]``, in keyword order."""
    return [f"--{name.replace('_', '-')}" for name, enabled in options.items() if enabled]


class GitCommand:
    def __init__(self, action: SystemAction | None = None, cwd: str | None = None):
        self.action = action or RealAction()
        self.cwd = cwd

    def run(self, *args: str, cwd: str | None = None) -> None:
        """Run ``git ARGS`` with the terminal attached."""
        self.action.run_and_print([GIT, *args], cwd=cwd or self.cwd)

    def initialize_repo(
        self,
        owner: str,
        repo_name: str,
        commit_message: str | None = None,
        ssh_user: str = "git",
        ssh_host: str = "github.com",
        cwd: str | None = None,
    ) -> None:
        """Init, commit everything, and push ``main`` to a new GitHub-style remote."""
        self.run("init", cwd=cwd)
        self.run("add", ".", cwd=cwd)
        self.run("commit", "-m", commit_message or "Initial Import", cwd=cwd)
        self.run("branch", "--move", "main", cwd=cwd)
        self.run("remote", "add", "origin", f"{ssh_user}@{ssh_host}:{owner}/{repo_name}.git", cwd=cwd)
        self.run("push", "-u", "origin", "main", cwd=cwd)

    def add(self, *paths: str, cwd: str | None = None) -> None:
        self.run("add", *paths, cwd=cwd)

    def clone(self, repo: str, outdir: str, shallow: bool = False) -> None:
        """Clone ``repo`` into ``outdir``, which git creates.

        Raises DirectoryExists if ``outdir`` is already there.
        """
        if dirs.file_exists(outdir):
            raise DirectoryExists(outdir)
        depth = ["--depth", "1"] if shallow else []
        self.action.run_and_print([GIT, "clone", *depth, repo, str(outdir)])

    def commit(
        self,
        message: str,
        *,
        quiet: bool = False,
        verbose: bool = False,
        author: str | None = None,
        date: str | None = None,
        dry_run: bool = False,
        all_changed: bool = False,
        cwd: str | None = None,
    ) -> None:
        args = ["commit", *_flags(verbose=verbose, quiet=quiet)]
        if author:
            args += ["--author", author]
        if date:
            args += ["--date", date]
        if all_changed:
            args.append("--all")
        if dry_run:
            args.append("--dry-run")
        self.run(*args, "--message", message, cwd=cwd)

    def push(
        self,
        *,
        verbose: bool = False,
        quiet: bool = False,
        progress: bool = False,
        dry_run: bool = False,
        force: bool = False,
        cwd: str | None = None,
    ) -> None:
        flags = _flags(verbose=verbose, quiet=quiet, progress=progress, dry_run=dry_run, force=force)
        self.run("push", *flags, cwd=cwd)

    def pull(
        self,
        *,
        verbose: bool = False,
        quiet: bool = False,
        progress: bool = False,
        rebase: bool = False,
        dry_run: bool = False,
        force: bool = False,
        cwd: str | None = None,
    ) -> None:
        flags = _flags(
            verbose=verbose, quiet=quiet, progress=progress, rebase=rebase, dry_run=dry_run, force=force
        )
        self.run("pull", *flags, cwd=cwd)

    def stash(self, action: str = "push", *, quiet: bool = False, cwd: str | None = None) -> None:
        if action not in ("list", "pop", "push"):
            raise ValueError(f"unknown stash action: {action}")
        self.run("stash", action, *_flags(quiet=quiet), cwd=cwd)

    @contextmanager
    def stashed(self, *, quiet: bool = False, cwd: str | None = None) -> Iterator[None]:
        """Stash local changes for the duration of the block.

        The stash is popped afterwards only if the push actually stashed
        something. A block that raises leaves the stash in place.
        """
        # Never --quiet: the output tells whether anything was stashed.
        command = [GIT, "stash", "push"]
        result = self.action.run(command, cwd=cwd or self.cwd)
        if not result.succeeded:
            if not quiet:
                log.failure(result.stdout.strip() or result.stderr.strip() or "git stash push failed")
            raise CommandFailed(command, result.returncode)

        yield

        if "no local changes" not in result.stdout.lower():
            self.stash("pop", quiet=quiet, cwd=cwd)
