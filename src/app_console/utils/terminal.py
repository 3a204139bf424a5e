# ABOUTME: Interactive prompts and user-facing output for the aio-app CLI
# ABOUTME: Wraps click prompts (on stderr) behind one object the flows can share

"""Prompts and terminal output.

Prompts and progress messages go to stderr, leaving stdout for the command
result (the success line), so ``aio-app use ... > out.txt`` still shows the
questions.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TypeVar

import click

from app_console.errors import PromptDisabledError

T = TypeVar("T")


class Terminal:
    """Prompt primitives (select, select_many, text, confirm) and output helpers."""

    def __init__(self, interactive: bool = True) -> None:
        self.interactive = interactive

    # -------------------------------------------------------------------------
    # OUTPUT
    # -------------------------------------------------------------------------

    def log(self, message: str) -> None:
        click.echo(message)

    def info(self, message: str) -> None:
        click.echo(message, err=True)

    def warn(self, message: str) -> None:
        click.secho(message, fg="yellow", err=True)

    def success(self, message: str) -> None:
        click.secho(message, fg="green", bold=True)

    # -------------------------------------------------------------------------
    # PROMPTS
    # -------------------------------------------------------------------------

    def _ensure_interactive(self, message: str) -> None:
        if not self.interactive:
            raise PromptDisabledError(
                f"Input required but prompts are disabled by '--no-input': {message.strip()}"
            )

    def select(self, message: str, choices: Sequence[tuple[str, T]]) -> T:
        """Single choice from a numbered list. choices are (label, value) pairs."""
        self._ensure_interactive(message)
        click.echo(message, err=True)
        for index, (label, _) in enumerate(choices, start=1):
            click.echo(f"  {index}) {label}", err=True)
        picked = click.prompt("Choose", type=click.IntRange(1, len(choices)), err=True)
        return choices[picked - 1][1]

    def select_many(self, message: str, choices: Sequence[tuple[str, T]]) -> list[T]:
        """
        Any number of choices from a numbered list.

        The answer is a comma separated list of numbers; an empty answer
        selects nothing.
        """
        self._ensure_interactive(message)
        click.echo(message, err=True)
        for index, (label, _) in enumerate(choices, start=1):
            click.echo(f"  {index}) {label}", err=True)

        while True:
            answer = click.prompt(
                "Numbers, comma separated (empty for none)",
                default="",
                show_default=False,
                err=True,
            )
            try:
                picked = self._parse_indices(answer, len(choices))
            except ValueError as e:
                click.echo(f"Error: {e}", err=True)
                continue
            return [choices[i - 1][1] for i in picked]

    @staticmethod
    def _parse_indices(answer: str, count: int) -> list[int]:
        picked: list[int] = []
        for part in answer.replace(" ", "").split(","):
            if not part:
                continue
            if not part.isdigit() or not 1 <= int(part) <= count:
                raise ValueError(f"'{part}' is not a number between 1 and {count}")
            if int(part) not in picked:
                picked.append(int(part))
        return picked

    def text(
        self,
        message: str,
        default: str | None = None,
        validate: Callable[[str], str | None] | None = None,
    ) -> str:
        """
        Free text answer.

        Args:
            message: Prompt text
            default: Value used on an empty answer
            validate: Returns an error message for bad input, None when fine
        """
        self._ensure_interactive(message)
        while True:
            answer = click.prompt(message, default=default, show_default=default is not None, err=True)
            error = validate(answer) if validate else None
            if error is None:
                return answer
            click.echo(f"Error: {error}", err=True)

    def confirm(self, message: str, default: bool = False) -> bool:
        self._ensure_interactive(message)
        return click.confirm(message, default=default, err=True)
