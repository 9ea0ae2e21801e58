"""
Git adapter — submodule sync and patch application.

Uses the git CLI.  ``git apply`` is the patch tool: the same binary
answers "would this apply?", "is this already applied?" and "apply it".
"""

from __future__ import annotations

import logging
import shutil

from cva6_setup.adapters.base import Adapter, ExecutionContext
from cva6_setup.adapters.shell.command import receipt_from_result
from cva6_setup.adapters.shell.runner import run_command
from cva6_setup.core.models.action import Receipt

logger = logging.getLogger(__name__)

_PATCH_OPS = {"apply_check", "apply_reverse_check", "apply"}
_VALID_OPS = {"submodule_sync"} | _PATCH_OPS


class GitAdapter(Adapter):
    """Git operations.

    Action params:
        operation (str): One of 'submodule_sync', 'apply_check',
                         'apply_reverse_check', 'apply'.
        cwd (str): Repository (or source tree) to operate in.
        patch (str): Patch file (for the apply operations).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"
        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"
        if not context.cwd:
            return False, "Missing required param: 'cwd'"
        if operation in _PATCH_OPS and not context.params.get("patch"):
            return False, f"Missing required param: 'patch' for {operation}"
        return True, ""

    def build_command(self, context: ExecutionContext) -> list[str]:
        operation = context.params["operation"]
        if operation == "submodule_sync":
            return ["git", "submodule", "update", "--init", "--recursive"]

        patch = str(context.params["patch"])
        if operation == "apply_check":
            return ["git", "apply", "--check", patch]
        if operation == "apply_reverse_check":
            return ["git", "apply", "--reverse", "--check", patch]
        return ["git", "apply", patch]

    def execute(self, context: ExecutionContext) -> Receipt:
        command = self.build_command(context)
        result = run_command(
            command,
            cwd=context.cwd,
            env_overrides=context.env_overrides,
            stream=context.stream,
        )
        return receipt_from_result(self.name, context.action.id, command, result)
