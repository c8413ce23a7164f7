"""
Ordered detection stream.

Pulls frames from the video source and runs the detector on each one in
arrival order. The next frame is not read until the consumer has fully
handled the previous result.
"""

import asyncio
import logging
from typing import AsyncIterator, Callable, Optional

from capture.camera import Frame
from core.types import DetectionResult

logger = logging.getLogger(__name__)


class LandmarkDetectorAdapter:
    """Async front for a blocking detector.

    Args:
        detect: callable turning a Frame into a DetectionResult
        read_frame: callable returning the next Frame or None
        idle_delay_s: back-off when the source has no frame yet
    """

    def __init__(self, detect: Callable[[Frame], DetectionResult],
                 read_frame: Callable[[], Optional[Frame]], idle_delay_s: float = 0.01):
        self._detect = detect
        self._read_frame = read_frame
        self._idle_delay_s = idle_delay_s
        self._frames_processed = 0
        self._errors = 0
        self._lock = asyncio.Lock()

    async def process(self, frame: Frame) -> DetectionResult:
        """Run detection for a single frame off the event loop."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, self._detect, frame)
            self._frames_processed += 1
            return result

    async def stream(self) -> AsyncIterator[DetectionResult]:
        """Yield one DetectionResult per source frame, in source order.

        A frame whose read or detection raises is logged and skipped.
        """
        loop = asyncio.get_running_loop()
        while True:
            try:
                frame = await loop.run_in_executor(None, self._read_frame)
                if frame is None:
                    await asyncio.sleep(self._idle_delay_s)
                    continue
                result = await self.process(frame)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._errors += 1
                logger.warning("Detection failed, frame skipped: %s", e)
                await asyncio.sleep(self._idle_delay_s)
                continue
            yield result

    async def run(self, on_result: Callable[[DetectionResult], None]):
        """Feed every result to ``on_result`` until cancelled."""
        async for result in self.stream():
            try:
                on_result(result)
            except Exception:
                self._errors += 1
                logger.exception("Result handler failed on frame %d", result.frame_number)

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    @property
    def errors(self) -> int:
        """Frames dropped because reading, detection or handling raised."""
        return self._errors

    async def exclusive(self, fn: Callable, *args):
        """Run ``fn`` between two detections, e.g. to rebuild the detector."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, fn, *args)
