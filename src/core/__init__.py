"""Shared domain types, errors and the event bus."""
from .errors import CaptureStudioError, ValidationError, RemoteError, InitializationError
from .events import EventBus, Events
from .types import Capture, DetectionResult, HandRecord, Model, Prediction, SamplesInfo

__all__ = [
    "CaptureStudioError",
    "ValidationError",
    "RemoteError",
    "InitializationError",
    "EventBus",
    "Events",
    "Capture",
    "DetectionResult",
    "HandRecord",
    "Model",
    "Prediction",
    "SamplesInfo",
]
