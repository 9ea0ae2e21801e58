"""
Domain models — Pydantic types for the provisioning workflow.

All models are re-exported here for convenient access:

    from cva6_setup.core.models import Action, Receipt, InstallConfig, SetupSettings
"""

from cva6_setup.core.models.action import Action, Receipt
from cva6_setup.core.models.config import (
    BuildConfig,
    HostInfo,
    InstallConfig,
    InstallPaths,
    PackageSet,
    ProvisioningState,
)
from cva6_setup.core.models.settings import SetupSettings

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # config.py
    "BuildConfig",
    "HostInfo",
    "InstallConfig",
    "InstallPaths",
    "PackageSet",
    "ProvisioningState",
    # settings.py
    "SetupSettings",
]
