"""
Adapter base — the protocol contract between the pipeline and tools.

The pipeline only talks to external tools (package manager, git, the
toolchain scripts, python) through adapters, and only through the
registry.  That keeps every side effect swappable for a mock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel

from cva6_setup.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action."""

    action: Action

    @property
    def params(self) -> dict[str, Any]:
        return self.action.params

    @property
    def cwd(self) -> str | None:
        """Working directory for the action, if one was given."""
        return self.action.params.get("cwd")

    @property
    def env_overrides(self) -> dict[str, str]:
        return dict(self.action.params.get("env") or {})

    @property
    def stream(self) -> bool:
        return bool(self.action.params.get("stream", False))


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'git', 'packages')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is on PATH.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
