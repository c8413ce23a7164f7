"""Hand detection, ordered result stream and capture gating."""
from .hand_detector import HandDetector, HandDetectorConfig, DETECTION_PRESETS, apply_preset
from .adapter import LandmarkDetectorAdapter
from .gate import DetectionGate, DetectionState, DisplaySurface, OverlayConfig

__all__ = [
    "HandDetector",
    "HandDetectorConfig",
    "DETECTION_PRESETS",
    "apply_preset",
    "LandmarkDetectorAdapter",
    "DetectionGate",
    "DetectionState",
    "DisplaySurface",
    "OverlayConfig",
]
