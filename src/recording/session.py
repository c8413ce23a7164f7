"""
Recording session state machine.

    Idle --start()--> Active --stop()/teardown--> Idle

The label is frozen on entry to Active; the capture interval can only
change while Idle.
"""

import time
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from core.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_INTERVALS_MS = (500, 1000, 2000, 3000)


class SessionStatus(Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class RecordingConfig:
    """Recording settings."""
    interval_ms: int = 1000
    jpeg_quality: float = 0.9
    refresh_grace_s: float = 2.0

    @classmethod
    def from_dict(cls, config: dict) -> "RecordingConfig":
        return cls(
            interval_ms=config.get("interval_ms", 1000),
            jpeg_quality=config.get("jpeg_quality", 0.9),
            refresh_grace_s=config.get("refresh_grace_s", 2.0),
        )


@dataclass
class RecordingSession:
    """Current recording session.

    ``captures_count`` is optimistic: it counts captures handed to the
    upload queue, not uploads acknowledged by the backend.
    """
    interval_ms: int = 1000
    status: SessionStatus = SessionStatus.IDLE
    recording_label: str = ""
    captures_count: int = 0
    started_at: Optional[float] = None
    uploads_succeeded: int = 0
    uploads_failed: int = 0
    clock: Callable[[], float] = field(default=time.time, repr=False, compare=False)

    def __post_init__(self):
        if self.interval_ms not in ALLOWED_INTERVALS_MS:
            raise ValidationError(f"interval must be one of {ALLOWED_INTERVALS_MS} ms, got {self.interval_ms}")

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def interval_s(self) -> float:
        return self.interval_ms / 1000.0

    def set_interval(self, interval_ms: int) -> bool:
        """Change the capture interval. Ignored while Active.

        Returns:
            True if the interval was changed
        """
        if self.is_active:
            logger.debug("Interval change to %dms ignored while recording", interval_ms)
            return False
        if interval_ms not in ALLOWED_INTERVALS_MS:
            raise ValidationError(f"interval must be one of {ALLOWED_INTERVALS_MS} ms, got {interval_ms}")
        self.interval_ms = interval_ms
        return True

    def start(self, label: str, hands_detected: int):
        """Enter Active with ``label`` frozen for the whole session."""
        if self.is_active:
            raise ValidationError("recording already in progress")
        if hands_detected <= 0:
            raise ValidationError("no hand detected")
        if not label:
            raise ValidationError("no label selected")

        self.captures_count = 0
        self.uploads_succeeded = 0
        self.uploads_failed = 0
        self.recording_label = label
        self.started_at = self.clock()
        self.status = SessionStatus.ACTIVE
        logger.info("Recording started: label=%s interval=%dms", label, self.interval_ms)

    def stop(self) -> bool:
        """Return to Idle. Returns False if the session was not Active."""
        if not self.is_active:
            return False
        self.status = SessionStatus.IDLE
        logger.info("Recording stopped: label=%s captures=%d (%.1fs)",
                    self.recording_label, self.captures_count, self.elapsed_s)
        return True

    def record_capture(self) -> int:
        self.captures_count += 1
        return self.captures_count

    def record_upload(self, success: bool):
        if success:
            self.uploads_succeeded += 1
        else:
            self.uploads_failed += 1

    @property
    def elapsed_s(self) -> float:
        if self.started_at is None:
            return 0.0
        return self.clock() - self.started_at
