"""
Python adapter — interpreter probe, virtual environments, pip.

The venv is created with the stdlib ``venv`` module of the host
interpreter; dependencies are installed with the venv's own pip so
nothing leaks into the system site-packages.
"""

from __future__ import annotations

import logging
import re
import shutil
import sys
from pathlib import Path

from cva6_setup.adapters.base import Adapter, ExecutionContext
from cva6_setup.adapters.shell.command import receipt_from_result
from cva6_setup.adapters.shell.runner import run_command
from cva6_setup.core.models.action import Receipt

logger = logging.getLogger(__name__)

_VALID_OPS = {"version", "venv", "pip_install"}


def venv_python(venv: Path) -> Path:
    """The interpreter inside a virtual environment."""
    if sys.platform == "win32":
        return venv / "Scripts" / "python.exe"
    return venv / "bin" / "python"


class PythonAdapter(Adapter):
    """Python toolchain adapter.

    Action params:
        operation (str): One of 'version', 'venv', 'pip_install'.
        venv (str): Virtual environment directory ('venv', 'pip_install').
        requirements (str): Requirements file ('pip_install').
    """

    @property
    def name(self) -> str:
        return "python"

    def is_available(self) -> bool:
        return shutil.which("python3") is not None or shutil.which("python") is not None

    def _python_cmd(self) -> str:
        """Resolve the host interpreter command."""
        if shutil.which("python3"):
            return "python3"
        return "python"

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation not in _VALID_OPS:
            return False, f"Unknown operation '{operation}'. Valid: {', '.join(sorted(_VALID_OPS))}"
        if operation in {"venv", "pip_install"} and not context.params.get("venv"):
            return False, f"Missing required param: 'venv' for {operation}"
        if operation == "pip_install" and not context.params.get("requirements"):
            return False, "Missing required param: 'requirements' for pip_install"
        return True, ""

    def build_command(self, context: ExecutionContext) -> list[str]:
        operation = context.params["operation"]
        if operation == "version":
            return [self._python_cmd(), "--version"]
        venv = Path(context.params["venv"])
        if operation == "venv":
            return [self._python_cmd(), "-m", "venv", str(venv)]
        return [
            str(venv_python(venv)), "-m", "pip", "install",
            "-r", str(context.params["requirements"]),
        ]

    def execute(self, context: ExecutionContext) -> Receipt:
        command = self.build_command(context)
        result = run_command(
            command,
            cwd=context.cwd,
            env_overrides=context.env_overrides,
            stream=context.stream,
        )
        receipt = receipt_from_result(self.name, context.action.id, command, result)

        if context.params["operation"] == "version" and receipt.ok:
            # "Python 3.12.8" → "3.12.8"
            text = receipt.output + receipt.metadata.get("stderr", "")
            match = re.search(r"(\d+\.\d+\.\d+)", text)
            receipt.metadata["version"] = match.group(1) if match else None
        return receipt
