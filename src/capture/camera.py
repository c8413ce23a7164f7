"""
Camera Capture Module
======================

Video source for the capture studio. Frames are read synchronously;
callers on the event loop run ``read()`` in an executor.
"""

import cv2
import time
import logging
from dataclasses import dataclass
from typing import Optional, Tuple
from collections import deque
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 800
    height: int = 600
    fps: int = 30
    flip_horizontal: bool = True
    warmup_frames: int = 5

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        return cls(
            device_id=config.get("device_id", 0),
            width=config.get("width", 800),
            height=config.get("height", 600),
            fps=config.get("fps", 30),
            flip_horizontal=config.get("flip_horizontal", True),
            warmup_frames=config.get("warmup_frames", 5),
        )


@dataclass
class Frame:
    """Container for captured frame with metadata."""
    image: np.ndarray
    timestamp: float
    frame_number: int

    @property
    def rgb(self) -> np.ndarray:
        """Convert BGR to RGB."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp * 1000)


class Camera:
    """
    Continuous frame source backed by ``cv2.VideoCapture``.

    Example:
        >>> camera = Camera(CameraConfig())
        >>> if camera.start():
        ...     frame = camera.read()
        >>> camera.stop()
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self._cap: Optional[cv2.VideoCapture] = None
        self._frame_number = 0
        self._running = False
        self._capture_times = deque(maxlen=30)

    def start(self) -> bool:
        """
        Open the camera device.

        Returns:
            True if the device is open and producing frames
        """
        logger.info("Starting camera (device=%d, %dx%d@%dfps)",
                    self.config.device_id, self.config.width, self.config.height, self.config.fps)

        self._cap = cv2.VideoCapture(self.config.device_id)
        if not self._cap.isOpened():
            logger.error("Failed to open camera device %d", self.config.device_id)
            self._cap = None
            return False

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
        self._cap.set(cv2.CAP_PROP_FPS, self.config.fps)

        ret, _ = self._cap.read()
        if not ret:
            logger.error("Camera %d opened but returned no frame", self.config.device_id)
            self._cap.release()
            self._cap = None
            return False

        actual_width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        logger.info("Camera initialized: %dx%d", actual_width, actual_height)

        # Let auto-exposure settle
        for _ in range(self.config.warmup_frames):
            self._cap.read()

        self._running = True
        self._frame_number = 0
        return True

    def stop(self) -> None:
        """Release the camera device."""
        self._running = False
        if self._cap:
            self._cap.release()
            self._cap = None
            logger.info("Camera stopped")

    def read(self) -> Optional[Frame]:
        """
        Capture the next frame.

        Returns:
            Frame or None if the camera is stopped or the read failed
        """
        if not self._running or not self._cap:
            return None

        start_time = time.perf_counter()
        ret, image = self._cap.read()
        capture_time = time.perf_counter() - start_time

        if not ret or image is None:
            logger.warning("Failed to capture frame")
            return None

        # Mirror so the preview matches the operator's movements
        if self.config.flip_horizontal:
            image = cv2.flip(image, 1)

        self._frame_number += 1
        self._capture_times.append(capture_time)

        return Frame(image=image, timestamp=time.time(), frame_number=self._frame_number)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.config.width, self.config.height)

    @property
    def avg_capture_time_ms(self) -> float:
        if not self._capture_times:
            return 0.0
        return (sum(self._capture_times) / len(self._capture_times)) * 1000

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
