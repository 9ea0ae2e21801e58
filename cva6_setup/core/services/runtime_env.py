"""
Python runtime environment — create-if-absent venv plus requirements.

The manifest is checked before anything is created: without a known
dependency list the workflow cannot continue.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cva6_setup.adapters.languages.python import venv_python
from cva6_setup.adapters.registry import AdapterRegistry
from cva6_setup.core.errors import MissingManifestError, raise_for_receipt
from cva6_setup.core.models.action import Action

logger = logging.getLogger(__name__)

VENV_ACTION = "runtime:venv"
DEPS_ACTION = "runtime:deps"


def venv_exists(venv: Path) -> bool:
    """A venv counts as present once its interpreter exists."""
    return venv_python(venv).exists()


def require_manifest(manifest: Path) -> Path:
    if not manifest.is_file():
        raise MissingManifestError(f"Dependency manifest not found: {manifest}")
    return manifest


def ensure_venv(registry: AdapterRegistry, venv: Path, *, stage: str = "runtime") -> bool:
    """Create the venv if absent.  Returns True when one was created."""
    if venv_exists(venv):
        logger.info("Virtual environment already present at %s", venv)
        return False

    receipt = registry.execute_action(Action(
        id=VENV_ACTION,
        name=f"create venv {venv}",
        adapter="python",
        stage=stage,
        params={"operation": "venv", "venv": str(venv)},
    ))
    raise_for_receipt(receipt, f"Creating virtual environment {venv}")
    logger.info("Created virtual environment %s", venv)
    return True


def install_requirements(
    registry: AdapterRegistry,
    venv: Path,
    manifest: Path,
    *,
    action_id: str = DEPS_ACTION,
    stage: str = "runtime",
) -> None:
    """pip install -r manifest into the venv."""
    require_manifest(manifest)
    receipt = registry.execute_action(Action(
        id=action_id,
        name=f"pip install -r {manifest.name}",
        adapter="python",
        stage=stage,
        params={
            "operation": "pip_install",
            "venv": str(venv),
            "requirements": str(manifest),
            "cwd": str(manifest.parent),
            "stream": True,
        },
    ))
    raise_for_receipt(receipt, f"Installing {manifest}")


def setup_runtime(registry: AdapterRegistry, venv: Path, manifest: Path) -> bool:
    """Manifest check, then create-if-absent venv, then install deps.

    Returns:
        True if the venv was created by this call.
    """
    require_manifest(manifest)
    created = ensure_venv(registry, venv)
    install_requirements(registry, venv, manifest)
    return created
