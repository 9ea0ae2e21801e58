"""
System dependency reconciliation.

``check_system_deps`` is the read-only predicate: it queries the
package database once per package and splits the declared set into
installed/missing.  ``install_missing`` invokes the package manager on
the delta only, and not at all when the delta is empty.
"""

from __future__ import annotations

import logging

from cva6_setup.adapters.registry import AdapterRegistry
from cva6_setup.core.errors import raise_for_receipt
from cva6_setup.core.models.action import Action
from cva6_setup.core.models.config import PackageSet

logger = logging.getLogger(__name__)

INSTALL_ACTION = "packages:install"


def query_action_id(pkg: str) -> str:
    return f"packages:query:{pkg}"


def _is_pkg_installed(registry: AdapterRegistry, pkg: str, pkg_manager: str) -> bool:
    """Check if a single system package is installed.

    A failed query (non-zero exit, checker missing) counts as "not
    installed"; the install step will then surface any real problem.
    """
    receipt = registry.execute_action(Action(
        id=query_action_id(pkg),
        name=f"query {pkg}",
        adapter="packages",
        stage="packages",
        params={"operation": "query", "manager": pkg_manager, "packages": [pkg]},
    ))
    if not receipt.ok:
        return False
    return bool(receipt.metadata.get("installed", False))


def check_system_deps(
    registry: AdapterRegistry,
    packages: list[str],
    pkg_manager: str = "apt",
) -> PackageSet:
    """Check which declared packages are already installed.

    Duplicates in ``packages`` are queried once.
    """
    required = list(dict.fromkeys(packages))
    installed = [p for p in required if _is_pkg_installed(registry, p, pkg_manager)]
    result = PackageSet(required=required, installed=installed)
    logger.info(
        "Packages: %d required, %d installed, %d missing",
        len(required), len(installed), len(result.missing),
    )
    return result


def install_missing(
    registry: AdapterRegistry,
    package_set: PackageSet,
    pkg_manager: str = "apt",
) -> list[str]:
    """Install the missing delta in a single package-manager call.

    Returns:
        The packages that were installed (empty when nothing was missing).

    Raises:
        SubprocessFailureError: if the package manager fails.  There is
            no per-package bookkeeping: the whole call is one unit.
    """
    missing = package_set.missing
    if not missing:
        logger.info("All %d packages already installed", len(package_set.required))
        return []

    receipt = registry.execute_action(Action(
        id=INSTALL_ACTION,
        name=f"install {len(missing)} packages",
        adapter="packages",
        stage="packages",
        params={
            "operation": "install",
            "manager": pkg_manager,
            "packages": missing,
            "stream": True,
        },
    ))
    raise_for_receipt(receipt, "Package installation")
    return missing
