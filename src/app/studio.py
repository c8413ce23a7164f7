"""
Capture studio: wires the video source, detector, gate, recording
session and backend client into the operations the operator drives.

Architecture:
    Camera -> LandmarkDetectorAdapter -> DetectionGate (overlay, gate)
    -> CaptureScheduler -> UploadQueue -> BackendClient
"""

import asyncio
import logging
from typing import List, Optional

from backend.client import BackendClient, BackendConfig
from capture.camera import Camera, CameraConfig
from capture.snapshot import encode_frame_async
from core.errors import CaptureStudioError, InitializationError, RemoteError, ValidationError
from core.events import EventBus, Events
from core.types import Capture, Model, Prediction, SamplesInfo
from data.categories import LabelSelector
from detection.adapter import LandmarkDetectorAdapter
from detection.gate import DetectionGate, DisplaySurface, OverlayConfig
from detection.hand_detector import HandDetector, HandDetectorConfig, apply_preset
from recording.scheduler import CaptureScheduler
from recording.session import RecordingConfig, RecordingSession
from recording.upload_queue import UploadQueue
from utils.config import Config
from utils.notices import NoticeBoard

logger = logging.getLogger(__name__)


class CaptureStudio:
    """Main application object.

    Operations raise ValidationError or RemoteError; ``perform`` turns
    those into operator notices.
    """

    def __init__(self, config: Config, client: Optional[BackendClient] = None,
                 camera: Optional[Camera] = None, detector: Optional[HandDetector] = None,
                 event_bus: Optional[EventBus] = None, notices: Optional[NoticeBoard] = None):
        self._config = config
        self._bus = event_bus or EventBus()
        self.notices = notices or NoticeBoard(ttl_s=config.get("notices.ttl_s", 5.0), event_bus=self._bus)

        self.client = client or BackendClient(BackendConfig.from_dict(config.backend))
        self.camera = camera or Camera(CameraConfig.from_dict(config.camera))
        self.detector = detector or HandDetector(HandDetectorConfig.from_dict(config.detection))

        self.recording_config = RecordingConfig.from_dict(config.recording)
        self.session = RecordingSession(interval_ms=self.recording_config.interval_ms)
        self.selector = LabelSelector(config.get("session.category", "vocales"),
                                      config.get("session.label", ""))
        self.model_name = config.get("session.model_name", "lenguaje_senas_v1")

        self.surface = DisplaySurface()
        self.gate = DetectionGate(
            self.surface,
            recording_status=lambda: (self.session.is_active, self.session.captures_count),
            config=OverlayConfig.from_dict(config.get_section("overlay")),
            event_bus=self._bus,
        )
        self.adapter = LandmarkDetectorAdapter(self.detector.detect, self.camera.read)

        self.queue: Optional[UploadQueue] = None
        self.scheduler: Optional[CaptureScheduler] = None

        self.samples = SamplesInfo()
        self.models: List[Model] = []
        self.last_prediction: Optional[Prediction] = None
        self.capture_enabled = False
        self.busy = False

        self._pump: Optional[asyncio.Task] = None
        self._tasks = set()

        self._bus.subscribe(Events.SAMPLE_UPLOADED, self._on_sample_uploaded)
        self._bus.subscribe(Events.UPLOAD_FAILED, self._on_upload_failed)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, with_capture: bool = True):
        """Bring up the upload pipeline and, if possible, the capture subsystem."""
        self.queue = UploadQueue(self.client.upload, event_bus=self._bus)
        self.queue.start()
        self.scheduler = CaptureScheduler(
            self.session, self.queue, self.gate, self.selector,
            config=self.recording_config,
            refresh=self.refresh_samples,
            event_bus=self._bus,
        )

        if with_capture:
            try:
                await self._start_capture()
            except InitializationError as e:
                logger.error("Capture subsystem disabled: %s", e)
                self.notices.error(f"Camera unavailable: {e}")

        await self.refresh_samples()
        await self.perform(self.refresh_models())

    async def _start_capture(self):
        loop = asyncio.get_running_loop()
        if not await loop.run_in_executor(None, self.camera.start):
            raise InitializationError("camera could not be opened")
        if not await loop.run_in_executor(None, self.detector.start):
            self.camera.stop()
            raise InitializationError("hand landmarker could not be initialized")
        self._pump = loop.create_task(self.adapter.run(self.gate.on_detection_result))
        self._pump.add_done_callback(self._on_pump_done)
        self.capture_enabled = True
        logger.info("Capture subsystem started")

    def _on_pump_done(self, task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Detection stream stopped: %s", error)
            self._disable_capture()
            self.notices.error(str(InitializationError(f"detection stopped: {error}")))

    def _disable_capture(self):
        """Take the capture subsystem down: stop recording and close the gate."""
        self.capture_enabled = False
        if self._pump is not None and not self._pump.done():
            self._pump.cancel()
        if self.scheduler is not None and self.session.is_active:
            count = self.scheduler.stop()
            logger.warning("Recording stopped after %d captures: capture disabled", count)
        self.gate.reset()

    async def close(self):
        """Teardown; disarms the recording timer even if stop was never called."""
        if self.scheduler is not None:
            self.scheduler.shutdown()
            await self.scheduler.drain()
        if self._pump is not None:
            self._pump.cancel()
            await asyncio.gather(self._pump, return_exceptions=True)
            self._pump = None
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        if self.queue is not None:
            await self.queue.close()
        self.detector.stop()
        self.camera.stop()
        self.capture_enabled = False
        logger.info("Capture studio closed")

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    def spawn(self, coro) -> asyncio.Task:
        """Run an operation in the background, keeping a reference to it."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def perform(self, coro):
        """Await an operation, posting any CaptureStudioError as a notice."""
        try:
            return await coro
        except CaptureStudioError as e:
            self.notices.error(str(e))
        return None

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_recording(self):
        self._require_capture()
        self.scheduler.start()
        self.notices.success(f"Recording started for: {self.session.recording_label}")

    def stop_recording(self) -> int:
        count = self.scheduler.stop()
        self.notices.success(f"Recording finished. Total captures: {count}")
        return count

    def toggle_recording(self):
        if self.session.is_active:
            self.stop_recording()
        else:
            self.start_recording()

    def set_interval(self, interval_ms: int) -> bool:
        return self.session.set_interval(interval_ms)

    # ------------------------------------------------------------------
    # Single capture and prediction
    # ------------------------------------------------------------------

    async def capture_sample(self) -> Capture:
        """Capture and upload one sample under the selected label."""
        if self.session.is_active:
            raise ValidationError("single capture is disabled while recording")
        frame, hands = self._require_hand()

        self.busy = True
        try:
            image = await encode_frame_async(frame, self.recording_config.jpeg_quality)
            capture = Capture(image=image, label=self.selector.label,
                              category=self.selector.category, hands_detected=hands)
            await self.client.upload(capture)
        finally:
            self.busy = False

        self.notices.success(f"Sample captured for: {capture.label}")
        await self.refresh_samples()
        return capture

    async def predict(self, model_name: Optional[str] = None) -> Prediction:
        """Classify the current frame. Requires a detected hand."""
        frame, hands = self._require_hand()
        model_name = model_name or self.model_name

        self.busy = True
        try:
            image = await encode_frame_async(frame, self.recording_config.jpeg_quality)
            prediction = await self.client.predict(image, model_name, hands)
        finally:
            self.busy = False

        self.last_prediction = prediction
        self.notices.success(f"Prediction: {prediction.label}")
        return prediction

    def _require_capture(self):
        if not self.capture_enabled:
            raise ValidationError("capture subsystem is not available")

    def _require_hand(self):
        self._require_capture()
        frame = self.gate.current_frame
        if not self.gate.is_gate_open() or frame is None:
            raise ValidationError("no hand detected")
        return frame, self.gate.hands_detected

    # ------------------------------------------------------------------
    # Samples and models
    # ------------------------------------------------------------------

    async def refresh_samples(self) -> SamplesInfo:
        """Refresh aggregate sample counts. Failures are logged only."""
        try:
            self.samples = await self.client.list_samples()
        except RemoteError as e:
            logger.warning("Could not fetch sample counts: %s", e)
            return self.samples
        self._bus.emit(Events.SAMPLES_REFRESHED, samples=self.samples)
        return self.samples

    async def clear_samples(self):
        await self.client.clear_samples()
        self.samples = SamplesInfo()
        self.notices.success("All samples have been deleted")

    async def train(self, model_name: Optional[str] = None) -> Model:
        model_name = model_name or self.model_name
        self.busy = True
        try:
            model = await self.client.train(model_name)
        finally:
            self.busy = False
        self.notices.success(f'Model "{model.name}" trained')
        await self.perform(self.refresh_models())
        return model

    async def refresh_models(self) -> List[Model]:
        self.models = await self.client.list_models()
        return self.models

    async def delete_model(self, name: str):
        await self.client.delete_model(name)
        self.notices.success(f'Model "{name}" deleted')
        await self.perform(self.refresh_models())

    async def apply_preset(self, preset: str):
        """Switch detection preset between two frames."""
        self._require_capture()
        try:
            new_config = apply_preset(self.detector.config, preset)
        except KeyError as e:
            raise ValidationError(str(e)) from e
        if not await self.adapter.exclusive(self.detector.reconfigure, new_config):
            logger.error("Detector rebuild failed; capture disabled")
            self._disable_capture()
            raise InitializationError(f"could not apply preset {preset}")
        self.notices.info(f"Detection preset: {preset}")

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_sample_uploaded(self, capture=None, **kwargs):
        if self.session.is_active:
            self.session.record_upload(True)

    def _on_upload_failed(self, capture=None, error=None, **kwargs):
        if self.session.is_active:
            self.session.record_upload(False)
