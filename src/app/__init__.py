"""Application layer: the studio controller and the operator console."""
from .studio import CaptureStudio

__all__ = ["CaptureStudio"]
