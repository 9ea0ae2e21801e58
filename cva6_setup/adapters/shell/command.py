"""
Shell command adapter — run an arbitrary argv and capture the outcome.

Used for the opaque toolchain scripts (fetch, build), the smoke-test
script, the docs build and the compiler version probe.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from cva6_setup.adapters.base import Adapter, ExecutionContext
from cva6_setup.adapters.shell.runner import run_command
from cva6_setup.core.models.action import Receipt

logger = logging.getLogger(__name__)


def receipt_from_result(adapter: str, action_id: str, command: list[str], result: dict) -> Receipt:
    """Turn a ``run_command`` result dict into a Receipt."""
    metadata = {
        "command": command,
        "return_code": result.get("return_code"),
        "stderr": result.get("stderr", ""),
    }
    if result["ok"]:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=result.get("stdout", ""),
            duration_ms=result.get("elapsed_ms", 0),
            metadata=metadata,
        )
    metadata["stdout"] = result.get("stdout", "")
    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=result.get("error", "Command failed"),
        duration_ms=result.get("elapsed_ms", 0),
        metadata=metadata,
    )


class ShellCommandAdapter(Adapter):
    """Execute commands and capture output.

    Action params:
        command (list[str]): argv to execute.
        cwd (str): Working directory (must exist).
        env (dict): Extra environment variables.
        stream (bool): Inherit the terminal instead of capturing.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("bash") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.params.get("command")
        if not command or not isinstance(command, list):
            return False, "Missing required param: 'command' (argv list)"

        cwd = context.cwd
        if cwd and not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command = [str(part) for part in context.params["command"]]
        result = run_command(
            command,
            cwd=context.cwd,
            env_overrides=context.env_overrides,
            stream=context.stream,
        )
        return receipt_from_result(self.name, context.action.id, command, result)
