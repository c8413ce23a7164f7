"""
Error taxonomy for the capture studio.

ValidationError      - a local precondition failed; nothing was mutated and
                       no remote call was issued.
RemoteError          - a backend call failed (network or non-success status).
InitializationError  - a capture/display surface was unavailable at startup.
"""

from typing import Optional


class CaptureStudioError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(CaptureStudioError):
    """Raised when an operation is attempted without its preconditions."""


class RemoteError(CaptureStudioError):
    """Raised when a backend call does not complete successfully."""

    def __init__(self, message: str, status: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.detail = detail

    def __str__(self):
        base = super().__str__()
        if self.detail:
            return f"{base}: {self.detail}"
        return base


class InitializationError(CaptureStudioError):
    """Raised when the capture subsystem cannot be brought up."""
