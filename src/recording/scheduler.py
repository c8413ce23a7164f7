"""
Capture scheduler.

While a recording session is Active, a drift-free timer fires every
``interval_ms``. Each tick with the gate open snapshots the current
frame, encodes it and submits the resulting Capture to the upload queue.
Only one encode runs at a time; a tick that finds one still running is
skipped.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

import numpy as np

from capture.snapshot import encode_frame_async
from core.errors import ValidationError
from core.events import EventBus, Events
from core.types import Capture
from recording.session import RecordingConfig, RecordingSession
from recording.upload_queue import UploadQueue

logger = logging.getLogger(__name__)

Encoder = Callable[[np.ndarray, float], Awaitable[bytes]]


class CaptureScheduler:
    """
    Drives a RecordingSession from a recurring timer.

    Args:
        session: the recording session state
        queue: destination for captures
        gate: object exposing ``is_gate_open()``, ``hands_detected`` and
            ``current_frame``; read fresh on every tick
        selection: object exposing ``label`` and ``category``
        refresh: coroutine function refreshing aggregate sample counts,
            called once after each stop
        encoder: coroutine function encoding a frame to bytes
    """

    def __init__(self, session: RecordingSession, queue: UploadQueue, gate, selection,
                 config: Optional[RecordingConfig] = None,
                 refresh: Optional[Callable[[], Awaitable[object]]] = None,
                 encoder: Optional[Encoder] = None,
                 event_bus: Optional[EventBus] = None):
        self.session = session
        self.config = config or RecordingConfig()
        self._queue = queue
        self._gate = gate
        self._selection = selection
        self._refresh = refresh
        self._encoder = encoder or encode_frame_async
        self._bus = event_bus or EventBus()

        self._timer: Optional[asyncio.Task] = None
        self._encode_task: Optional[asyncio.Task] = None
        self._pending_encodes = set()
        self._generation = 0
        self._refresh_handle: Optional[asyncio.TimerHandle] = None
        self._ticks = 0
        self._skipped_ticks = 0

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------

    def start(self):
        """Start recording under the currently selected label.

        Raises:
            ValidationError: no hand is currently detected
        """
        if not self._gate.is_gate_open():
            raise ValidationError("no hand detected")

        self.session.start(self._selection.label, self._gate.hands_detected)
        # An encode left over from the previous session must not gate or count here
        self._generation += 1
        self._encode_task = None
        self._ticks = 0
        self._skipped_ticks = 0
        self._timer = asyncio.get_running_loop().create_task(self._run_timer(self.session.interval_s))
        self._bus.emit(Events.RECORDING_STARTED, label=self.session.recording_label,
                       interval_ms=self.session.interval_ms)

    def stop(self) -> int:
        """Stop recording and schedule a delayed refresh of sample counts.

        Returns:
            captures counted in the session that just ended
        """
        self._disarm()
        if not self.session.stop():
            return self.session.captures_count

        self._bus.emit(Events.RECORDING_STOPPED, label=self.session.recording_label,
                       captures=self.session.captures_count)
        if self._refresh is not None:
            loop = asyncio.get_running_loop()
            self._refresh_handle = loop.call_later(self.config.refresh_grace_s, self._spawn_refresh)
        return self.session.captures_count

    def shutdown(self):
        """Teardown: disarm the timer whether or not stop() was called."""
        self._disarm()
        self.session.stop()
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None

    def set_interval(self, interval_ms: int) -> bool:
        return self.session.set_interval(interval_ms)

    @property
    def is_armed(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def encode_in_progress(self) -> bool:
        return self._encode_task is not None and not self._encode_task.done()

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def skipped_ticks(self) -> int:
        return self._skipped_ticks

    def _disarm(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _spawn_refresh(self):
        self._refresh_handle = None
        asyncio.get_running_loop().create_task(self._run_refresh())

    async def _run_refresh(self):
        try:
            await self._refresh()
        except Exception as e:
            logger.warning("Post-recording refresh failed: %s", e)

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    async def _run_timer(self, interval_s: float):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + interval_s
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            deadline += interval_s
            self.on_tick()

    def on_tick(self):
        """One timer firing. Skipped when the gate is closed or an encode is running."""
        if not self.session.is_active:
            return
        self._ticks += 1

        if not self._gate.is_gate_open():
            self._skipped_ticks += 1
            return
        if self.encode_in_progress:
            self._skipped_ticks += 1
            logger.debug("Tick skipped: previous encode still running")
            return

        frame = self._gate.current_frame
        if frame is None:
            self._skipped_ticks += 1
            return

        # Everything the capture needs is read now, before any suspension
        snapshot = frame.copy()
        label = self.session.recording_label
        category = self._selection.category
        hands = self._gate.hands_detected
        captured_at = time.time()

        self._encode_task = asyncio.get_running_loop().create_task(
            self._encode_and_submit(self._generation, snapshot, label, category, hands, captured_at))
        self._pending_encodes.add(self._encode_task)
        self._encode_task.add_done_callback(self._pending_encodes.discard)

    async def _encode_and_submit(self, generation: int, snapshot: np.ndarray, label: str,
                                 category: str, hands: int, captured_at: float):
        try:
            image = await self._encoder(snapshot, self.config.jpeg_quality)
        except Exception as e:
            logger.warning("Snapshot encoding failed: %s", e)
            return

        capture = Capture(image=image, label=label, category=category,
                          hands_detected=hands, captured_at=captured_at)
        if generation == self._generation:
            count = self.session.record_capture()
        else:
            count = None
            logger.debug("Capture for %s finished after a new session started; not counted", label)
        self._queue.submit(capture)
        self._bus.emit(Events.CAPTURE_SUBMITTED, capture=capture, count=count)

    async def drain(self):
        """Wait for every encode started before stop() to finish."""
        if self._pending_encodes:
            await asyncio.gather(*self._pending_encodes, return_exceptions=True)
