"""
Subprocess runner — the SINGLE PLACE where ``subprocess.run`` is called.

Every adapter funnels its external commands through ``run_command``.
There is no timeout: the caller waits for the exit code.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

# Keep receipts readable; build logs can be megabytes.
_TAIL = 4000


def _tail(text: str | None) -> str:
    if not text:
        return ""
    return text[-_TAIL:].strip()


def run_command(
    cmd: list[str],
    *,
    cwd: str | None = None,
    env_overrides: dict[str, str] | None = None,
    stream: bool = False,
) -> dict[str, Any]:
    """Run a command to completion.

    Args:
        cmd: argv list.
        cwd: Working directory.
        env_overrides: Variables layered on a copy of ``os.environ``.
            The parent environment itself is never modified.
        stream: Inherit stdout/stderr instead of capturing them, for
            long steps whose progress the user wants to watch.

    Returns:
        ``{"ok": True, "stdout": ..., "stderr": ..., "return_code": 0,
        "elapsed_ms": N}`` on success; ``ok`` False with ``error`` on a
        non-zero exit or when the command could not be started.
    """
    env = os.environ.copy()
    if env_overrides:
        env.update({k: str(v) for k, v in env_overrides.items()})

    logger.debug("Executing: %s (cwd=%s)", shlex.join(cmd), cwd or ".")
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=env,
            capture_output=not stream,
            text=True,
        )
    except FileNotFoundError as e:
        return {
            "ok": False,
            "return_code": 127,
            "error": f"Command not found: {e.filename or cmd[0]}",
            "stdout": "",
            "stderr": "",
        }
    except OSError as e:
        return {
            "ok": False,
            "return_code": None,
            "error": f"Cannot start {cmd[0]}: {e}",
            "stdout": "",
            "stderr": "",
        }

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = _tail(result.stdout)
    stderr = _tail(result.stderr)

    if result.returncode == 0:
        return {
            "ok": True,
            "return_code": 0,
            "stdout": stdout,
            "stderr": stderr,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "return_code": result.returncode,
        "error": stderr or f"Command exited with code {result.returncode}",
        "stdout": stdout,
        "stderr": stderr,
        "elapsed_ms": elapsed_ms,
    }
