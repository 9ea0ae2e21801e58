"""Adapters — tool bindings for the external collaborators.

Public re-exports for convenient access.
"""

from cva6_setup.adapters.base import Adapter, ExecutionContext
from cva6_setup.adapters.mock import MockAdapter
from cva6_setup.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
