"""
Idempotent patch application.

``patch_state`` is the predicate: two dry runs of ``git apply`` decide
whether the patch still applies, is already in the tree, or conflicts.
Only APPLICABLE leads to a mutation; APPLIED is a silent skip; CONFLICT
is a hard failure rather than being mistaken for "already applied".
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path

from cva6_setup.adapters.registry import AdapterRegistry
from cva6_setup.core.errors import InvalidPathError, PatchConflictError, raise_for_receipt
from cva6_setup.core.models.action import Action

logger = logging.getLogger(__name__)

CHECK_ACTION = "patch:check"
REVERSE_CHECK_ACTION = "patch:check-applied"
APPLY_ACTION = "patch:apply"


class PatchState(enum.Enum):
    APPLICABLE = "applicable"
    APPLIED = "applied"
    CONFLICT = "conflict"


def _git_action(action_id: str, operation: str, source_dir: Path, patch: Path) -> Action:
    return Action(
        id=action_id,
        name=f"git {operation} {patch.name}",
        adapter="git",
        stage="patch",
        params={"operation": operation, "cwd": str(source_dir), "patch": str(patch)},
    )


def patch_state(registry: AdapterRegistry, source_dir: Path, patch: Path) -> PatchState:
    """Classify the patch against the source tree without modifying it."""
    forward = registry.execute_action(
        _git_action(CHECK_ACTION, "apply_check", source_dir, patch),
    )
    if forward.ok:
        return PatchState.APPLICABLE

    reverse = registry.execute_action(
        _git_action(REVERSE_CHECK_ACTION, "apply_reverse_check", source_dir, patch),
    )
    if reverse.ok:
        return PatchState.APPLIED

    logger.debug("Patch %s conflicts: %s", patch.name, forward.error)
    return PatchState.CONFLICT


def apply_patch(registry: AdapterRegistry, source_dir: Path, patch: Path) -> bool:
    """Apply ``patch`` to ``source_dir`` unless it is already applied.

    Returns:
        True if the tree was modified, False if the patch was already in.

    Raises:
        InvalidPathError: patch file or source tree missing.
        PatchConflictError: patch neither applies nor is applied.
        SubprocessFailureError: the apply itself failed.
    """
    if not patch.is_file():
        raise InvalidPathError(f"Patch file not found: {patch}")
    if not source_dir.is_dir():
        raise InvalidPathError(f"Source tree not found: {source_dir}")

    state = patch_state(registry, source_dir, patch)
    if state is PatchState.APPLIED:
        logger.info("Patch %s already applied, skipping", patch.name)
        return False
    if state is PatchState.CONFLICT:
        raise PatchConflictError(
            f"{patch.name} does not apply to {source_dir} and is not already applied",
        )

    receipt = registry.execute_action(_git_action(APPLY_ACTION, "apply", source_dir, patch))
    raise_for_receipt(receipt, f"Applying {patch.name}")
    logger.info("Applied %s", patch.name)
    return True
