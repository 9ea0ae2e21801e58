"""Language adapters — python."""

from cva6_setup.adapters.languages.python import PythonAdapter

__all__ = ["PythonAdapter"]
