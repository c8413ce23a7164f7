"""
Hand Detection Module - MediaPipe Tasks API
============================================

Wraps the MediaPipe HandLandmarker. Each call to ``detect`` turns one
camera frame into one DetectionResult.
"""

import logging
import urllib.request
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from capture.camera import Frame
from core.types import DetectionResult, HandRecord

logger = logging.getLogger(__name__)

# Model download URL
HAND_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
DEFAULT_MODEL_PATH = Path(__file__).parent.parent.parent / "models" / "hand_landmarker.task"

# Hand skeleton, pairs of landmark indices
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),          # Thumb
    (0, 5), (5, 6), (6, 7), (7, 8),          # Index
    (5, 9), (9, 10), (10, 11), (11, 12),     # Middle
    (9, 13), (13, 14), (14, 15), (15, 16),   # Ring
    (13, 17), (17, 18), (18, 19), (19, 20),  # Pinky
    (0, 17),                                 # Palm base
]


@dataclass
class HandDetectorConfig:
    """Configuration for hand detector."""
    model_path: str = ""
    max_num_hands: int = 2
    min_detection_confidence: float = 0.7
    min_tracking_confidence: float = 0.7
    min_presence_confidence: float = 0.5

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path", "") or "",
            max_num_hands=d.get("max_num_hands", 2),
            min_detection_confidence=d.get("min_detection_confidence", 0.7),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.7),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
        )


# Operator-selectable detection presets
DETECTION_PRESETS: Dict[str, dict] = {
    "standard": {"max_num_hands": 2, "min_detection_confidence": 0.5, "min_tracking_confidence": 0.5},
    "precise": {"max_num_hands": 1, "min_detection_confidence": 0.7, "min_tracking_confidence": 0.7},
}


def apply_preset(config: HandDetectorConfig, preset: str) -> HandDetectorConfig:
    """Return a copy of ``config`` with the named preset applied."""
    if preset not in DETECTION_PRESETS:
        raise KeyError(f"Unknown detection preset: {preset}")
    return replace(config, **DETECTION_PRESETS[preset])


def download_model(url: str, save_path: Path) -> bool:
    """Download the hand landmarker model if not present."""
    if save_path.exists():
        return True

    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading hand landmarker model to %s...", save_path)
        urllib.request.urlretrieve(url, save_path)
        logger.info("Model download complete")
        return True
    except OSError as e:
        logger.error("Failed to download model: %s", e)
        return False


class HandDetector:
    """
    MediaPipe HandLandmarker in VIDEO running mode.

    Example:
        >>> detector = HandDetector(HandDetectorConfig())
        >>> detector.start()
        >>> result = detector.detect(frame)
        >>> detector.stop()
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._last_timestamp_ms = -1

    def start(self) -> bool:
        """Initialize the hand landmarker."""
        model_path = self.config.model_path or str(DEFAULT_MODEL_PATH)
        if not Path(model_path).exists():
            if not download_model(HAND_LANDMARKER_MODEL_URL, Path(model_path)):
                logger.error("Could not download hand landmarker model")
                return False

        options = vision.HandLandmarkerOptions(
            base_options=python.BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_hands=self.config.max_num_hands,
            min_hand_detection_confidence=self.config.min_detection_confidence,
            min_hand_presence_confidence=self.config.min_presence_confidence,
            min_tracking_confidence=self.config.min_tracking_confidence,
        )
        try:
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            logger.error("Failed to initialize HandLandmarker: %s", e)
            return False

        logger.info("HandLandmarker initialized (max_hands=%d, detect_conf=%.2f, track_conf=%.2f)",
                    self.config.max_num_hands, self.config.min_detection_confidence,
                    self.config.min_tracking_confidence)
        return True

    def stop(self) -> None:
        """Release resources."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
            logger.info("HandLandmarker stopped")

    def reconfigure(self, config: HandDetectorConfig) -> bool:
        """Rebuild the landmarker with new options."""
        self.stop()
        self.config = config
        return self.start()

    @property
    def is_running(self) -> bool:
        return self._landmarker is not None

    def detect(self, frame: Frame) -> DetectionResult:
        """
        Detect hands in one frame.

        Args:
            frame: BGR camera frame

        Returns:
            DetectionResult holding the frame image and zero or more hands
        """
        if self._landmarker is None:
            logger.warning("HandLandmarker not initialized. Call start() first.")
            return DetectionResult(image=frame.image, timestamp=frame.timestamp,
                                   frame_number=frame.frame_number)

        # VIDEO mode needs strictly increasing timestamps
        timestamp_ms = max(frame.timestamp_ms, self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(frame.rgb))
        result = self._landmarker.detect_for_video(mp_image, timestamp_ms)

        hands = []
        for i, hand_landmarks in enumerate(result.hand_landmarks):
            handedness, confidence = "Right", 0.0
            if result.handedness and len(result.handedness) > i:
                category = result.handedness[i][0]
                handedness, confidence = category.category_name, category.score

            hands.append(HandRecord(
                landmarks=tuple((lm.x, lm.y, lm.z) for lm in hand_landmarks),
                handedness=handedness,
                confidence=confidence,
            ))

        return DetectionResult(image=frame.image, hands=hands, timestamp=frame.timestamp,
                               frame_number=frame.frame_number)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
