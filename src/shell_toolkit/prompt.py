"""Single-answer console prompts (yes/no and the like)."""

import sys
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TextIO

import click


@dataclass(frozen=True)
class PromptStyle:
    leading_text: str
    leading_color: str
    message_color: str
    allowed_color: str


NORMAL = PromptStyle(leading_text="-", leading_color="white", message_color="white", allowed_color="bright_white")
ERROR = PromptStyle(leading_text="*", leading_color="bright_red", message_color="white", allowed_color="bright_white")


class InputPrompt:
    def __init__(self, enable_color: bool = True, style: PromptStyle = NORMAL, stream: TextIO | None = None):
        self.enable_color = enable_color
        self.style = style
        self.stream = stream

    def _paint(self, text: str, color: str) -> str:
        return click.style(text, fg=color) if self.enable_color else text

    def input(
        self,
        prompt: str,
        allowed_responses: Mapping[str, str] | None = None,
        style: PromptStyle | None = None,
    ) -> str | None:
        """Ask until the answer is one of ``allowed_responses``.

        ``allowed_responses`` maps short to long forms, e.g. ``{"y": "yes"}``;
        either form is accepted and the short one returned. Without allowed
        responses the first answer is returned as typed. None at end of input.
        """
        style = style or self.style
        allowed = dict(allowed_responses or {})
        short_for = {long: short for short, long in allowed.items()}
        choices = "(" + ", ".join(f"{short}/{long}" for short, long in allowed.items()) + ")"

        leading = self._paint(style.leading_text, style.leading_color)
        message = self._paint(prompt, style.message_color)
        choices = self._paint(choices, style.allowed_color)

        stream = self.stream or sys.stdin
        while True:
            click.echo(f"{leading} {message}", color=self.enable_color)
            click.echo(f"{choices} " if allowed else "> ", nl=False, color=self.enable_color)
            line = stream.readline()
            if not line:
                return None
            response = line.rstrip("\n")
            if not allowed:
                return response
            if response in allowed:
                return response
            if response in short_for:
                return short_for[response]
