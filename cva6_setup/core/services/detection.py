"""
Environment discovery — host compiler version and processing units.

Read-only probes.  A missing or unparsable compiler is not fatal: the
configured fallback version is used for the default config name.
"""

from __future__ import annotations

import logging
import os
import re

from cva6_setup.adapters.registry import AdapterRegistry
from cva6_setup.core.models.action import Action
from cva6_setup.core.models.config import HostInfo
from cva6_setup.core.models.settings import SetupSettings

logger = logging.getLogger(__name__)

GCC_VERSION_ACTION = "detect:gcc-version"

# "13.3.0", "9", "12.2"
_VERSION_RE = re.compile(r"^\s*(\d+(?:\.\d+){0,2})\s*$")


def detect_gcc_version(registry: AdapterRegistry) -> str | None:
    """Ask the host gcc for its full version.

    ``-dumpfullversion`` prints "13.3.0" on gcc >= 7; older releases
    ignore it and answer ``-dumpversion`` instead.
    """
    receipt = registry.execute_action(Action(
        id=GCC_VERSION_ACTION,
        name="gcc version",
        adapter="shell",
        stage="discover",
        params={"command": ["gcc", "-dumpfullversion", "-dumpversion"]},
    ))
    if not receipt.ok:
        logger.debug("gcc probe failed: %s", receipt.error)
        return None

    first_line = receipt.output.splitlines()[0] if receipt.output else ""
    match = _VERSION_RE.match(first_line)
    if not match:
        logger.debug("Unparsable gcc version output: %r", receipt.output)
        return None
    return match.group(1)


def detect_processing_units() -> int:
    """Processing units this process may run on (at least 1)."""
    if hasattr(os, "sched_getaffinity"):
        try:
            return max(1, len(os.sched_getaffinity(0)))
        except OSError:
            pass
    return max(1, os.cpu_count() or 1)


def default_config_name(gcc_version: str, suffix: str = "BareMetal") -> str:
    """gcc-13.3.0-BareMetal"""
    return f"gcc-{gcc_version}-{suffix}"


def discover_host(registry: AdapterRegistry, settings: SetupSettings) -> HostInfo:
    """Probe the host once, at the start of a run."""
    version = detect_gcc_version(registry)
    detected = version is not None
    if not detected:
        logger.warning(
            "Could not detect host gcc version, falling back to %s",
            settings.fallback_gcc_version,
        )
        version = settings.fallback_gcc_version

    host = HostInfo(
        gcc_version=version,
        gcc_detected=detected,
        processing_units=detect_processing_units(),
    )
    logger.info(
        "Host: gcc %s%s, %d processing units",
        host.gcc_version,
        "" if detected else " (fallback)",
        host.processing_units,
    )
    return host
