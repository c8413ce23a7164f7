"""
Operator console: an OpenCV window over the capture studio.

Key bindings:
    r       start/stop recording
    space   capture a single sample
    n / b   next / previous label
    c       next category
    1-4     capture interval 0.5s / 1s / 2s / 3s
    s / a   detection preset standard / precise
    t       train model
    p       predict with the current model
    m       refresh models
    l       refresh sample counts
    x       clear all samples
    q       quit
"""

import asyncio
import logging

import cv2
import numpy as np

from app.studio import CaptureStudio
from utils.notices import ERROR

logger = logging.getLogger(__name__)

WINDOW_NAME = "Capture Studio"
INTERVAL_KEYS = {ord("1"): 500, ord("2"): 1000, ord("3"): 2000, ord("4"): 3000}
NOTICE_COLORS = {ERROR: (38, 38, 220)}
PANEL_WIDTH = 300


class StudioConsole:
    """Renders the studio state and maps keys to studio operations."""

    def __init__(self, studio: CaptureStudio, refresh_s: float = 0.03):
        self._studio = studio
        self._refresh_s = refresh_s
        self._font = cv2.FONT_HERSHEY_SIMPLEX

    async def run(self):
        logger.info("Console started. Press 'q' to quit.")
        cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
        try:
            while True:
                cv2.imshow(WINDOW_NAME, self.render())
                key = cv2.waitKey(1) & 0xFF
                if key == ord("q"):
                    break
                if key != 0xFF:
                    self.handle_key(key)
                await asyncio.sleep(self._refresh_s)
        finally:
            cv2.destroyAllWindows()

    def handle_key(self, key: int):
        studio = self._studio
        perform = self._perform

        if key == ord("r"):
            perform(self._sync(studio.toggle_recording))
        elif key == ord(" "):
            perform(studio.capture_sample())
        elif key == ord("n"):
            studio.selector.next_label()
        elif key == ord("b"):
            studio.selector.previous_label()
        elif key == ord("c"):
            studio.selector.next_category()
        elif key in INTERVAL_KEYS:
            studio.set_interval(INTERVAL_KEYS[key])
        elif key == ord("s"):
            perform(studio.apply_preset("standard"))
        elif key == ord("a"):
            perform(studio.apply_preset("precise"))
        elif key == ord("t"):
            perform(studio.train())
        elif key == ord("p"):
            perform(studio.predict())
        elif key == ord("m"):
            perform(studio.refresh_models())
        elif key == ord("l"):
            perform(studio.refresh_samples())
        elif key == ord("x"):
            perform(studio.clear_samples())

    def _perform(self, coro):
        self._studio.spawn(self._studio.perform(coro))

    @staticmethod
    async def _sync(fn):
        return fn()

    def render(self) -> np.ndarray:
        """Camera view with a status panel to its right."""
        studio = self._studio
        frame = studio.surface.frame
        if frame is None:
            width, height = studio.camera.resolution
            frame = np.zeros((height, width, 3), dtype=np.uint8)

        h = frame.shape[0]
        panel = np.full((h, PANEL_WIDTH, 3), 245, dtype=np.uint8)
        lines = [
            f"Category: {studio.selector.category}",
            f"Label: {studio.selector.label}",
            f"Interval: {studio.session.interval_ms} ms",
            f"Status: {studio.gate.state.status}",
            f"Recording: {'ON' if studio.session.is_active else 'off'}",
            f"Captures: {studio.session.captures_count}",
            f"Queue: {studio.queue.pending if studio.queue else 0}",
            f"Samples: {studio.samples.total_samples}",
            f"Model: {studio.model_name}",
            f"Models: {len(studio.models)}",
        ]
        if studio.last_prediction is not None:
            p = studio.last_prediction
            lines.append(f"Prediction: {p.label} ({p.confidence * 100:.1f}%)")

        y = 25
        for line in lines:
            cv2.putText(panel, line, (10, y), self._font, 0.5, (40, 40, 40), 1, cv2.LINE_AA)
            y += 22

        y += 10
        for notice in studio.notices.active():
            color = NOTICE_COLORS.get(notice.level, (60, 140, 60))
            cv2.putText(panel, notice.message[:40], (10, y), self._font, 0.45, color, 1, cv2.LINE_AA)
            y += 20

        return np.hstack([frame, panel])
