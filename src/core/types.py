"""
Shared domain types for the capture studio.

Centralizes the data containers passed between the detector, the
recording pipeline and the backend client so that no module has to
import another just for its types.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np


# =============================================================================
# Detection
# =============================================================================

@dataclass(frozen=True)
class HandRecord:
    """One detected hand: ordered landmark points plus handedness."""
    landmarks: Tuple[Tuple[float, float, float], ...]  # normalized (x, y, z)
    handedness: str  # "Left" or "Right"
    confidence: float

    def pixel(self, index: int, width: int, height: int) -> Tuple[int, int]:
        """Landmark ``index`` in pixel coordinates."""
        x, y, _ = self.landmarks[index]
        return (int(x * width), int(y * height))


@dataclass
class DetectionResult:
    """Detector output for exactly one source frame.

    Carries the frame it was computed on so the overlay is always drawn
    onto the matching image.
    """
    image: np.ndarray
    hands: List[HandRecord] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)
    frame_number: int = 0

    @property
    def hand_count(self) -> int:
        return len(self.hands)


# =============================================================================
# Captures
# =============================================================================

@dataclass(frozen=True)
class Capture:
    """One labeled, encoded snapshot destined for the backend."""
    image: bytes
    label: str
    category: str
    hands_detected: int
    captured_at: float = field(default_factory=time.time)

    @property
    def filename(self) -> str:
        return f"frame_{int(self.captured_at * 1000)}.jpg"

    def __repr__(self):
        return (f"Capture(label={self.label!r}, category={self.category!r}, "
                f"hands={self.hands_detected}, bytes={len(self.image)})")


# =============================================================================
# Backend views
# =============================================================================

@dataclass
class SamplesInfo:
    """Aggregate sample counts as reported by the backend."""
    total_samples: int = 0
    samples_per_class: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict) -> "SamplesInfo":
        per_class = d.get("samples_per_class") or {}
        return cls(
            total_samples=int(d.get("total_samples", 0)),
            samples_per_class={str(k): int(v) for k, v in per_class.items()},
        )


@dataclass
class Model:
    """Read-only view of a trained model on the backend."""
    name: str
    accuracy: float = 0.0
    sample_count: int = 0
    classes: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict, default_name: str = "") -> "Model":
        return cls(
            name=str(d.get("name", default_name)),
            accuracy=float(d.get("accuracy", 0.0)),
            sample_count=int(d.get("n_samples", 0)),
            classes=[str(c) for c in d.get("classes", [])],
        )


@dataclass
class Prediction:
    """Classifier output for a single image."""
    label: str
    confidence: float
    alternatives: List[Tuple[str, float]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> "Prediction":
        alternatives = [(str(label), float(prob)) for label, prob in d.get("all_predictions") or []]
        alternatives.sort(key=lambda item: -item[1])
        return cls(
            label=str(d.get("prediction", "")),
            confidence=float(d.get("confidence", 0.0)),
            alternatives=alternatives,
        )

    def __repr__(self):
        return f"Prediction({self.label}, conf={self.confidence:.2f})"
