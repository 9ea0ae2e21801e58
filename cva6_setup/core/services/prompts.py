"""
Input providers — where answers to the setup questions come from.

The pipeline asks questions by key ("repo_path", "use_all_threads",
...) and never reads stdin itself.  The terminal provider prompts the
user; the scripted provider answers from a mapping (an answers file,
or a test fixture).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import click

from cva6_setup.core.errors import InvalidInputError

logger = logging.getLogger(__name__)

_YES = {"y", "yes"}
_NO = {"n", "no"}


class InputProvider(ABC):
    """Source of answers to setup questions."""

    @abstractmethod
    def ask(self, key: str, message: str, default: str | None = None) -> str:
        """Return the raw answer for ``key``.

        Args:
            key: Stable question identifier.
            message: Human-readable question.
            default: Answer used when the user gives none.
        """

    def ask_yes_no(self, key: str, message: str) -> bool:
        """Ask a y/n question.  Anything but y/yes/n/no is fatal."""
        return parse_yes_no(self.ask(key, f"{message} (y/n)"), key)


def parse_yes_no(raw: str, key: str = "answer") -> bool:
    answer = raw.strip().lower()
    if answer in _YES:
        return True
    if answer in _NO:
        return False
    raise InvalidInputError(f"Not a valid answer for {key}: {raw!r} (expected y or n)")


class TerminalInputProvider(InputProvider):
    """Interactive prompts on the controlling terminal.

    Each question is read exactly once.  Without a default an empty line
    comes back as ``""`` for the caller to reject, rather than click
    asking again.
    """

    def ask(self, key: str, message: str, default: str | None = None) -> str:
        try:
            if default is None:
                value = click.prompt(message, default="", show_default=False)
            else:
                value = click.prompt(message, default=default, show_default=True)
        except click.Abort as e:
            raise InvalidInputError(f"No answer given for {key}") from e
        return str(value)


class ScriptedInputProvider(InputProvider):
    """Answers from a mapping; a missing answer is fatal unless defaulted."""

    def __init__(self, answers: dict[str, str]):
        self._answers = dict(answers)
        self._asked: list[str] = []

    @property
    def asked(self) -> list[str]:
        """Keys asked so far, in order."""
        return list(self._asked)

    def ask(self, key: str, message: str, default: str | None = None) -> str:
        self._asked.append(key)
        if key in self._answers:
            value = self._answers[key]
            logger.debug("Scripted answer %s = %r", key, value)
            return value
        if default is not None:
            logger.debug("Scripted default %s = %r", key, default)
            return default
        raise InvalidInputError(f"No scripted answer for {key} ({message})")
