"""
Frame snapshot encoding.

Encoding is CPU-bound, so ``encode_frame_async`` hands it to the loop's
executor and the caller only suspends while it runs.
"""

import asyncio
import logging

import cv2
import numpy as np

from utils.logger import log_timing

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 0.9


@log_timing
def encode_jpeg(image: np.ndarray, quality: float = DEFAULT_QUALITY) -> bytes:
    """Encode a BGR image as JPEG.

    Args:
        image: BGR frame
        quality: 0.0-1.0 quality factor

    Returns:
        Encoded JPEG bytes
    """
    quality = min(max(quality, 0.0), 1.0)
    ok, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), int(round(quality * 100))])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return buffer.tobytes()


async def encode_frame_async(image: np.ndarray, quality: float = DEFAULT_QUALITY) -> bytes:
    """Snapshot ``image`` and encode it off the event loop."""
    snapshot = image.copy()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, encode_jpeg, snapshot, quality)
