"""
Error taxonomy — every provisioning failure is fatal.

Each error can carry the name of the stage it was raised in.  The
stage runner fills it in when the raising code did not, so the CLI
can always print which stage failed.
"""

from __future__ import annotations


class ProvisioningError(Exception):
    """Base class for all fatal provisioning failures."""

    def __init__(self, message: str, *, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class InvalidInputError(ProvisioningError):
    """A user response was malformed or unsupported."""


class InvalidPathError(ProvisioningError):
    """A required directory or file is missing."""


class MissingManifestError(ProvisioningError):
    """An expected dependency manifest could not be located."""


class SubprocessFailureError(ProvisioningError):
    """A delegated external command returned non-zero."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        return_code: int | None = None,
        detail: str = "",
        stage: str | None = None,
    ):
        super().__init__(message, stage=stage)
        self.command = command or []
        self.return_code = return_code
        self.detail = detail


class PatchConflictError(SubprocessFailureError):
    """The patch neither applies cleanly nor is already applied."""


def raise_for_receipt(receipt, what: str) -> None:
    """Raise SubprocessFailureError if ``receipt`` is not ok.

    Args:
        receipt: Receipt from a mutating action.
        what: Description of the step, used as the message prefix.
    """
    if receipt.ok:
        return
    raise SubprocessFailureError(
        f"{what} failed: {receipt.error}",
        command=receipt.command,
        return_code=receipt.return_code,
        detail=receipt.error or "",
    )
