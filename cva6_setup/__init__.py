"""CVA6 setup — idempotent provisioning of the CVA6 RISC-V toolchain."""

__version__ = "0.1.0"
