"""
Detection gate and overlay.

Consumes DetectionResults one at a time, keeps the current
DetectionState, draws the annotated frame onto the display surface, and
exposes the "hand present" signal that gates capture.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import cv2
import numpy as np

from core.errors import InitializationError
from core.events import EventBus, Events
from core.types import DetectionResult
from detection.hand_detector import HAND_CONNECTIONS

logger = logging.getLogger(__name__)

WAITING_STATUS = "Waiting for detection..."
NO_HANDS_STATUS = "No hands detected"
PLACEHOLDER_TEXT = "Move your hands in front of the camera"


@dataclass
class DetectionState:
    """Snapshot of the latest detection; overwritten on every result."""
    hands_detected: int = 0
    status: str = WAITING_STATUS


@dataclass
class OverlayConfig:
    """Overlay colours (BGR) and sizes."""
    connection_color: Tuple[int, int, int] = (235, 99, 37)
    landmark_color: Tuple[int, int, int] = (38, 38, 220)
    text_color: Tuple[int, int, int] = (55, 41, 31)
    recording_color: Tuple[int, int, int] = (38, 38, 220)
    placeholder_color: Tuple[int, int, int] = (128, 114, 107)
    connection_thickness: int = 3
    landmark_radius: int = 4
    font_scale: float = 0.6

    @classmethod
    def from_dict(cls, config: dict) -> "OverlayConfig":
        colors = config.get("colors", {})
        return cls(
            connection_color=tuple(colors.get("connections", [235, 99, 37])),
            landmark_color=tuple(colors.get("landmarks", [38, 38, 220])),
            text_color=tuple(colors.get("text", [55, 41, 31])),
            recording_color=tuple(colors.get("recording", [38, 38, 220])),
            placeholder_color=tuple(colors.get("placeholder", [128, 114, 107])),
            connection_thickness=config.get("connection_thickness", 3),
            landmark_radius=config.get("landmark_radius", 4),
            font_scale=config.get("font_scale", 0.6),
        )


class DisplaySurface:
    """Holds the most recently rendered (annotated) frame."""

    def __init__(self):
        self.frame: Optional[np.ndarray] = None
        self.frames_rendered = 0

    def present(self, frame: np.ndarray):
        self.frame = frame
        self.frames_rendered += 1


def status_text(hands_detected: int) -> str:
    if hands_detected <= 0:
        return NO_HANDS_STATUS
    return f"{hands_detected} hand{'s' if hands_detected != 1 else ''} detected"


class DetectionGate:
    """
    Turns detection results into state, overlay and a gating signal.

    Args:
        surface: where annotated frames are presented; required
        recording_status: callable returning (is_active, captures_count),
            read fresh on every result
    """

    def __init__(self, surface: Optional[DisplaySurface],
                 recording_status: Optional[Callable[[], Tuple[bool, int]]] = None,
                 config: Optional[OverlayConfig] = None,
                 event_bus: Optional[EventBus] = None):
        if surface is None:
            logger.error("Display surface unavailable; capture disabled")
            raise InitializationError("Display surface unavailable")
        self._surface = surface
        self._recording_status = recording_status or (lambda: (False, 0))
        self.config = config or OverlayConfig()
        self._bus = event_bus or EventBus()
        self._font = cv2.FONT_HERSHEY_SIMPLEX

        self.state = DetectionState()
        self._current_frame: Optional[np.ndarray] = None
        self._results_handled = 0

    def on_detection_result(self, result: DetectionResult):
        """Handle exactly one result: update state and render in place."""
        previous = self.state.hands_detected
        hands = result.hand_count
        self.state = DetectionState(hands_detected=hands, status=status_text(hands))
        self._current_frame = result.image
        self._results_handled += 1

        canvas = result.image.copy()
        if hands > 0:
            self._draw_hands(canvas, result)
        else:
            self._draw_placeholder(canvas)
        self._surface.present(canvas)

        if (previous > 0) != (hands > 0):
            self._bus.emit(Events.HANDS_CHANGED, hands_detected=hands)

    def reset(self):
        """Forget the last result; the gate closes until the next one arrives."""
        previous = self.state.hands_detected
        self.state = DetectionState()
        self._current_frame = None
        if previous > 0:
            self._bus.emit(Events.HANDS_CHANGED, hands_detected=0)

    def is_gate_open(self) -> bool:
        return self.state.hands_detected > 0

    @property
    def hands_detected(self) -> int:
        return self.state.hands_detected

    @property
    def current_frame(self) -> Optional[np.ndarray]:
        """Raw (unannotated) image of the latest processed frame."""
        return self._current_frame

    @property
    def results_handled(self) -> int:
        return self._results_handled

    def _draw_hands(self, image: np.ndarray, result: DetectionResult):
        cfg = self.config
        h, w = image.shape[:2]

        for hand in result.hands:
            for start_idx, end_idx in HAND_CONNECTIONS:
                if max(start_idx, end_idx) >= len(hand.landmarks):
                    continue
                cv2.line(image, hand.pixel(start_idx, w, h), hand.pixel(end_idx, w, h),
                         cfg.connection_color, cfg.connection_thickness, cv2.LINE_AA)
            for i in range(len(hand.landmarks)):
                cv2.circle(image, hand.pixel(i, w, h), cfg.landmark_radius, cfg.landmark_color, -1)

        is_recording, captures = self._recording_status()
        y = 30
        if is_recording:
            text = f"REC: {captures} captures"
            (tw, _), _ = cv2.getTextSize(text, self._font, cfg.font_scale * 1.2, 2)
            cv2.putText(image, text, ((w - tw) // 2, 40), self._font,
                        cfg.font_scale * 1.2, cfg.recording_color, 2, cv2.LINE_AA)
            y = 70

        cv2.putText(image, f"Hands detected: {result.hand_count}", (15, y), self._font,
                    cfg.font_scale, cfg.text_color, 2, cv2.LINE_AA)
        for index, hand in enumerate(result.hands):
            cv2.putText(image, f"{hand.handedness} ({hand.confidence * 100:.1f}%)",
                        (15, y + 25 * (index + 1)), self._font,
                        cfg.font_scale, cfg.text_color, 2, cv2.LINE_AA)

    def _draw_placeholder(self, image: np.ndarray):
        h, w = image.shape[:2]
        (tw, th), _ = cv2.getTextSize(PLACEHOLDER_TEXT, self._font, self.config.font_scale, 2)
        cv2.putText(image, PLACEHOLDER_TEXT, ((w - tw) // 2, (h + th) // 2), self._font,
                    self.config.font_scale, self.config.placeholder_color, 2, cv2.LINE_AA)
