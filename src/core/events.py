"""
Lightweight event bus for the capture studio.

Components publish lifecycle events (uploads, recording transitions,
notices) instead of calling the view layer directly.

Usage:
    bus = EventBus()
    bus.subscribe(Events.SAMPLE_UPLOADED, on_uploaded)
    bus.emit(Events.SAMPLE_UPLOADED, capture=capture)
"""

import time
import logging
from collections import defaultdict, deque
from typing import Callable

logger = logging.getLogger(__name__)


class EventBus:
    """Synchronous publish/subscribe bus.

    All emits happen on the event-loop thread, so listeners run inline
    in priority order. A failing listener is logged and skipped.
    """

    _instance = None

    def __new__(cls):
        """One bus per application."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._listeners = defaultdict(list)  # event_name -> [(priority, callback)]
        self._history = deque(maxlen=100)
        self._initialized = True

    def subscribe(self, event_name: str, callback: Callable, priority: int = 0):
        """Register a listener. Higher priority runs first."""
        self._listeners[event_name].append((priority, callback))
        self._listeners[event_name].sort(key=lambda x: -x[0])
        logger.debug("Subscribed to '%s': %s (priority=%d)",
                     event_name, getattr(callback, "__name__", callback), priority)

    def unsubscribe(self, event_name: str, callback: Callable):
        self._listeners[event_name] = [
            (p, cb) for p, cb in self._listeners[event_name] if cb is not callback
        ]

    def emit(self, event_name: str, **kwargs):
        """Deliver an event to every listener registered for it."""
        self._history.append({
            "event": event_name,
            "time": time.time(),
            "data_keys": list(kwargs.keys()),
        })

        for _, callback in list(self._listeners.get(event_name, [])):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error("Event handler error [%s -> %s]: %s",
                             event_name, getattr(callback, "__name__", callback), e)

    def get_history(self, last_n: int = 10) -> list:
        return list(self._history)[-last_n:]

    @property
    def listener_count(self) -> int:
        return sum(len(cbs) for cbs in self._listeners.values())

    def reset(self):
        """Drop all listeners and history (for testing)."""
        self._listeners.clear()
        self._history.clear()


class Events:
    """Event names used throughout the system."""

    HANDS_CHANGED = "hands_changed"
    CAPTURE_SUBMITTED = "capture_submitted"
    SAMPLE_UPLOADED = "sample_uploaded"
    UPLOAD_FAILED = "upload_failed"
    RECORDING_STARTED = "recording_started"
    RECORDING_STOPPED = "recording_stopped"
    SAMPLES_REFRESHED = "samples_refreshed"
    NOTICE_POSTED = "notice_posted"
