#!/usr/bin/env python3
"""
Terminal Prompt Surface

Prompts used by the listing wizard's step handlers. Every prompt can
answer with a PromptSignal instead of a value: BACK when the user asks to
return to the previous step, CANCEL when they quit or interrupt the prompt
(Ctrl-C / EOF). Step handlers translate these into flow outcomes.
"""

from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any, Protocol

import click

from ..core.errors import ValidationError

BACK_KEYS = ("b", "back")
CANCEL_KEYS = ("q", "quit", "cancel")


class PromptSignal(Enum):
    """Navigation answers a prompt can give instead of a value."""

    BACK = "back"
    CANCEL = "cancel"


class Prompter(Protocol):
    """Prompt surface consumed by step handlers."""

    def echo(self, message: str = "") -> None: ...

    def select(
        self, message: str, choices: Sequence[tuple[str, str]], allow_back: bool = True
    ) -> str | PromptSignal: ...

    def ask(
        self, message: str, validate: Callable[[str], Any] | None = None, allow_back: bool = True
    ) -> str | PromptSignal: ...

    def confirm(self, message: str) -> bool | PromptSignal: ...


class ClickPrompter:
    """Prompter backed by click's terminal prompts."""

    def echo(self, message: str = "") -> None:
        click.echo(message)

    def _navigation_hint(self, allow_back: bool) -> str:
        return "'b' to go back, 'q' to cancel" if allow_back else "'q' to cancel"

    def select(
        self, message: str, choices: Sequence[tuple[str, str]], allow_back: bool = True
    ) -> str | PromptSignal:
        """
        Show a numbered menu and return the key of the chosen entry.

        Args:
            message: Heading shown above the menu
            choices: (key, label) pairs
            allow_back: Whether 'b' is accepted
        """
        click.echo(f"\n{message}")
        for index, (_, label) in enumerate(choices, start=1):
            click.echo(f"  {index}. {label}")
        hint = self._navigation_hint(allow_back)

        while True:
            try:
                raw = click.prompt(f"Select 1-{len(choices)} ({hint})", type=str).strip().lower()
            except (click.Abort, EOFError):
                return PromptSignal.CANCEL

            if raw in CANCEL_KEYS:
                return PromptSignal.CANCEL
            if allow_back and raw in BACK_KEYS:
                return PromptSignal.BACK
            if raw.isdigit() and 1 <= int(raw) <= len(choices):
                return choices[int(raw) - 1][0]
            click.echo(f"  Invalid selection: {raw}")

    def ask(
        self, message: str, validate: Callable[[str], Any] | None = None, allow_back: bool = True
    ) -> str | PromptSignal:
        """
        Ask for free-form input, re-prompting until validate accepts it.

        Empty input means BACK when allow_back is set.
        """
        hint = self._navigation_hint(allow_back)
        while True:
            try:
                raw = click.prompt(f"{message} ({hint})", default="", show_default=False, type=str).strip()
            except (click.Abort, EOFError):
                return PromptSignal.CANCEL

            if raw.lower() in CANCEL_KEYS:
                return PromptSignal.CANCEL
            if allow_back and (not raw or raw.lower() in BACK_KEYS):
                return PromptSignal.BACK
            if validate is None:
                return raw
            try:
                validate(raw)
            except ValidationError as e:
                click.echo(f"  {e}")
                continue
            return raw

    def confirm(self, message: str) -> bool | PromptSignal:
        try:
            return click.confirm(message, default=False)
        except (click.Abort, EOFError):
            return PromptSignal.CANCEL
