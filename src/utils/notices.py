"""
Transient operator notices.

Errors and confirmations are posted here and disappear on their own
after ``ttl_s`` seconds; readers only ever see live notices.
"""

import time
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional

from core.events import EventBus, Events

logger = logging.getLogger(__name__)

INFO = "info"
SUCCESS = "success"
ERROR = "error"


@dataclass
class Notice:
    level: str
    message: str
    posted_at: float
    expires_at: float


class NoticeBoard:
    """Auto-dismissing notices for the operator."""

    def __init__(self, ttl_s: float = 5.0, clock: Optional[Callable[[], float]] = None,
                 event_bus: Optional[EventBus] = None, max_notices: int = 20):
        self._ttl_s = ttl_s
        self._clock = clock or time.monotonic
        self._bus = event_bus or EventBus()
        self._notices = deque(maxlen=max_notices)

    def post(self, level: str, message: str) -> Notice:
        now = self._clock()
        notice = Notice(level=level, message=message, posted_at=now, expires_at=now + self._ttl_s)
        self._notices.append(notice)
        if level == ERROR:
            logger.warning("Notice: %s", message)
        else:
            logger.info("Notice: %s", message)
        self._bus.emit(Events.NOTICE_POSTED, notice=notice)
        return notice

    def info(self, message: str) -> Notice:
        return self.post(INFO, message)

    def success(self, message: str) -> Notice:
        return self.post(SUCCESS, message)

    def error(self, message: str) -> Notice:
        return self.post(ERROR, message)

    def active(self) -> List[Notice]:
        """Live notices, oldest first. Expired ones are dropped."""
        now = self._clock()
        while self._notices and self._notices[0].expires_at <= now:
            self._notices.popleft()
        return [n for n in self._notices if n.expires_at > now]

    def dismiss_all(self):
        self._notices.clear()
