"""Recording session, capture scheduling and serialized uploads."""
from .session import RecordingSession, RecordingConfig, SessionStatus, ALLOWED_INTERVALS_MS
from .upload_queue import UploadQueue
from .scheduler import CaptureScheduler

__all__ = [
    "RecordingSession",
    "RecordingConfig",
    "SessionStatus",
    "ALLOWED_INTERVALS_MS",
    "UploadQueue",
    "CaptureScheduler",
]
