"""
Serialized upload queue.

Captures are uploaded one at a time in submission order by a single
consumer task. A failed upload is logged and dropped; the consumer moves
on to the next capture.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from core.errors import RemoteError
from core.events import EventBus, Events
from core.types import Capture

logger = logging.getLogger(__name__)


class UploadQueue:
    """FIFO, single-flight delivery of captures to the backend.

    Args:
        upload: coroutine function performing one upload
        event_bus: bus receiving sample_uploaded / upload_failed
    """

    def __init__(self, upload: Callable[[Capture], Awaitable[object]],
                 event_bus: Optional[EventBus] = None):
        self._upload = upload
        self._bus = event_bus or EventBus()
        self._queue: "asyncio.Queue[Capture]" = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self._uploading = False
        self._uploaded = 0
        self._failed = 0

    def start(self):
        """Start the consumer task on the running loop."""
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.get_running_loop().create_task(self._consume())
            logger.debug("Upload consumer started")

    async def close(self):
        """Cancel the consumer. Captures still queued are discarded."""
        if self._consumer is not None:
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
            self._consumer = None
        if self.pending:
            logger.warning("Upload queue closed with %d captures pending", self.pending)

    def submit(self, capture: Capture):
        """Append ``capture`` to the tail. Never blocks."""
        self._queue.put_nowait(capture)
        logger.debug("Queued %r (pending=%d)", capture, self.pending)

    async def join(self):
        """Wait until every submitted capture has been attempted."""
        await self._queue.join()

    async def _consume(self):
        while True:
            capture = await self._queue.get()
            self._uploading = True
            try:
                await self._upload(capture)
            except RemoteError as e:
                self._failed += 1
                logger.warning("Upload failed for label %s: %s", capture.label, e)
                self._bus.emit(Events.UPLOAD_FAILED, capture=capture, error=e)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._failed += 1
                logger.exception("Unexpected error uploading label %s", capture.label)
                self._bus.emit(Events.UPLOAD_FAILED, capture=capture, error=e)
            else:
                self._uploaded += 1
                self._bus.emit(Events.SAMPLE_UPLOADED, capture=capture)
            finally:
                self._uploading = False
                self._queue.task_done()

    @property
    def uploading(self) -> bool:
        return self._uploading

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def uploaded(self) -> int:
        return self._uploaded

    @property
    def failed(self) -> int:
        return self._failed
