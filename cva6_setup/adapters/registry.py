"""
Adapter registry — routes every Action to the adapter that runs it.

Stages hold a registry, never an adapter.  In mock mode every Action
goes to one stand-in (a ``MockAdapter`` in tests, a canned success for
``install --mock``), so the whole pipeline runs without a package
manager, git, or a toolchain.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from cva6_setup.adapters.base import Adapter, ExecutionContext
from cva6_setup.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Name → adapter table plus the dispatch loop.

    ``execute_action`` never raises: unknown adapters, rejected params
    and adapter crashes all come back as failed Receipts.
    """

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Route every action to ``mock_adapter`` (or a canned success)."""
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Whether each adapter's tool is on this host."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except OSError:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": type(adapter).__name__,
            }
        return status

    def _canned(self, action: Action) -> Receipt:
        return Receipt.success(
            adapter=action.adapter,
            action_id=action.id,
            output=f"[mock] {action.name or action.id}",
            metadata={"mock": True, "return_code": 0},
        )

    def _resolve(self, action: Action) -> Adapter | None:
        if self._mock_mode:
            return self._mock_adapter
        return self._adapters.get(action.adapter)

    def execute_action(self, action: Action) -> Receipt:
        """Validate and run one action; the answer is always a Receipt."""
        if self._mock_mode and self._mock_adapter is None:
            logger.debug("[mock] %s (%s)", action.id, action.stage)
            return self._canned(action)

        adapter = self._resolve(action)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        context = ExecutionContext(action=action)
        is_valid, problem = adapter.validate(context)
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {problem}",
            )

        start = time.monotonic()
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("%s adapter crashed on %s: %s", action.adapter, action.id, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )
        receipt.duration_ms = int((time.monotonic() - start) * 1000)

        logger.debug(
            "[%s] %s → %s (%dms)",
            action.stage or "-", action.id, receipt.status, receipt.duration_ms,
        )
        return receipt


def default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with every real adapter the pipeline uses."""
    from cva6_setup.adapters.languages.python import PythonAdapter
    from cva6_setup.adapters.shell.command import ShellCommandAdapter
    from cva6_setup.adapters.system.packages import PackageManagerAdapter
    from cva6_setup.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(ShellCommandAdapter())
    registry.register(GitAdapter())
    registry.register(PackageManagerAdapter())
    registry.register(PythonAdapter())
    return registry
