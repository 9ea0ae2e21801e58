"""
Package manager adapter — query and install OS packages.

Querying is read-only and runs unprivileged.  Installing is prefixed
with ``sudo`` unless we already run as root; sudo reads the password
from the terminal itself, so nothing is piped.
"""

from __future__ import annotations

import logging
import os
import shutil

from cva6_setup.adapters.base import Adapter, ExecutionContext
from cva6_setup.adapters.shell.command import receipt_from_result
from cva6_setup.adapters.shell.runner import run_command
from cva6_setup.core.models.action import Receipt

logger = logging.getLogger(__name__)

# pm → (query argv prefix, install argv prefix)
_COMMANDS: dict[str, tuple[list[str], list[str]]] = {
    "apt": (["dpkg-query", "-W", "-f=${Status}"], ["apt-get", "install", "-y"]),
    "dnf": (["rpm", "-q"], ["dnf", "install", "-y"]),
    "yum": (["rpm", "-q"], ["yum", "install", "-y"]),
    "pacman": (["pacman", "-Q"], ["pacman", "-S", "--noconfirm", "--needed"]),
}

# dpkg-query exits 0 for removed-but-configured packages too
APT_INSTALLED_STATUS = "install ok installed"


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


class PackageManagerAdapter(Adapter):
    """OS package manager operations.

    Action params:
        operation (str): 'query' or 'install'.
        manager (str): One of apt, dnf, yum, pacman.
        packages (list[str]): Package names ('query' takes exactly one).
    """

    @property
    def name(self) -> str:
        return "packages"

    def is_available(self) -> bool:
        return any(shutil.which(install[0]) for _, install in _COMMANDS.values())

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation not in {"query", "install"}:
            return False, f"Unknown operation '{operation}'. Valid: install, query"

        manager = context.params.get("manager", "")
        if manager not in _COMMANDS:
            return False, f"Unsupported package manager '{manager}'. Valid: {', '.join(sorted(_COMMANDS))}"

        packages = context.params.get("packages") or []
        if not packages:
            return False, "Missing required param: 'packages'"
        if operation == "query" and len(packages) != 1:
            return False, "'query' takes exactly one package"

        return True, ""

    def build_command(self, context: ExecutionContext) -> list[str]:
        query, install = _COMMANDS[context.params["manager"]]
        packages = list(context.params["packages"])
        if context.params["operation"] == "query":
            return query + packages
        cmd = install + packages
        if not _is_root():
            cmd = ["sudo"] + cmd
        return cmd

    def execute(self, context: ExecutionContext) -> Receipt:
        command = self.build_command(context)
        result = run_command(
            command,
            env_overrides=context.env_overrides,
            stream=context.stream,
        )
        receipt = receipt_from_result(self.name, context.action.id, command, result)

        # Normalise dpkg's status string into an explicit flag
        if context.params["operation"] == "query" and receipt.ok:
            if context.params["manager"] == "apt":
                receipt.metadata["installed"] = APT_INSTALLED_STATUS in receipt.output
            else:
                receipt.metadata["installed"] = True
        return receipt
