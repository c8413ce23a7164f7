"""
Tests for Snapshot Encoding and Multipart Bodies
=================================================
"""

import asyncio

import cv2
import numpy as np
import pytest

from backend.multipart import encode_multipart
from capture.snapshot import encode_frame_async, encode_jpeg
from conftest import make_image


class TestEncodeJpeg:

    def test_produces_decodable_jpeg(self):
        data = encode_jpeg(make_image(80, 60))

        assert data[:2] == b"\xff\xd8"
        decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
        assert decoded.shape == (60, 80, 3)

    def test_quality_changes_size(self):
        rng = np.random.default_rng(0)
        image = rng.integers(0, 255, size=(120, 160, 3), dtype=np.uint8)

        assert len(encode_jpeg(image, 0.3)) < len(encode_jpeg(image, 0.9))

    def test_async_encode_snapshots_input(self):
        image = make_image()

        async def scenario():
            pending = asyncio.ensure_future(encode_frame_async(image, 0.9))
            await asyncio.sleep(0)
            image[:] = 0
            return await pending

        data = asyncio.run(scenario())
        decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
        assert abs(int(decoded.mean()) - 127) <= 2


class TestMultipart:

    def test_fields_and_files(self):
        body, content_type = encode_multipart(
            {"label": "÷", "hands_detected": 2},
            {"file": ("frame_1.jpg", b"\xff\xd8abc", "image/jpeg")},
        )

        assert content_type.startswith("multipart/form-data; boundary=")
        boundary = content_type.split("boundary=")[1].encode()
        assert body.startswith(b"--" + boundary + b"\r\n")
        assert body.endswith(b"--" + boundary + b"--\r\n")
        assert b'name="label"\r\n\r\n' + "÷".encode("utf-8") in body
        assert b'name="hands_detected"\r\n\r\n2\r\n' in body
        assert (b'name="file"; filename="frame_1.jpg"\r\n'
                b'Content-Type: image/jpeg\r\n\r\n\xff\xd8abc\r\n') in body

    def test_boundary_is_unique(self):
        _, first = encode_multipart({"name": "m"})
        _, second = encode_multipart({"name": "m"})
        assert first != second


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
