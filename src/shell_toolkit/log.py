"""Timestamped console output + GitHub Actions annotations."""

import os
import shlex
import sys
from collections.abc import Sequence
from datetime import datetime

RULE_WIDTH = 45


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def _rule(title: str) -> str:
    return f"── {title} " + "─" * max(0, RULE_WIDTH - len(title))


def _annotate(kind: str, msg: str) -> None:
    if _is_github_actions():
        print(f"::{kind}::{msg}", flush=True)


def info(msg: str) -> None:
    print(f"[{_timestamp()}] {msg}", flush=True)


def header(title: str) -> None:
    _annotate("group", title)
    info(_rule(title))


def footer(title: str) -> None:
    info(_rule(title))
    if _is_github_actions():
        print("::endgroup::", flush=True)


def command(argv: Sequence[str], cwd: str | None = None) -> None:
    """Echo a command line before it runs."""
    line = shlex.join(argv)
    info(f"$ {line}" if cwd is None else f"$ {line}  (in {cwd})")


def step(msg: str) -> None:
    info(f"  {msg}")


def success(msg: str) -> None:
    info(f"  ✓ {msg}")


def failure(msg: str) -> None:
    _annotate("error", msg)
    info(f"  ✗ {msg}")


def error(msg: str) -> None:
    _annotate("error", msg)
    print(f"[{_timestamp()}] ERROR: {msg}", file=sys.stderr, flush=True)
