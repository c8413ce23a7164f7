"""
Shared fixtures for the capture studio tests.
"""

import asyncio
import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.errors import RemoteError
from core.events import EventBus
from core.types import DetectionResult, HandRecord, Model, Prediction, SamplesInfo
from utils.config import Config


class FakeBackend:
    """In-memory stand-in for the REST service, recording every call."""

    def __init__(self):
        self.calls = []
        self.samples = {}
        self.models = {}
        self.fail_uploads = set()  # indexes of upload calls that should fail
        self.upload_delay_s = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.uploaded = []
        self._upload_index = 0

    async def upload(self, capture):
        self.calls.append(("upload", capture.label))
        index = self._upload_index
        self._upload_index += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.upload_delay_s)
            if index in self.fail_uploads:
                raise RemoteError("POST /api/upload_sample failed with HTTP 500", status=500)
            self.samples[capture.label] = self.samples.get(capture.label, 0) + 1
            self.uploaded.append(capture)
        finally:
            self.in_flight -= 1

    async def list_samples(self):
        self.calls.append(("list_samples",))
        return SamplesInfo(total_samples=sum(self.samples.values()),
                           samples_per_class=dict(self.samples))

    async def clear_samples(self):
        self.calls.append(("clear_samples",))
        self.samples.clear()

    async def train(self, name):
        self.calls.append(("train", name))
        if not self.samples:
            raise RemoteError("POST /api/train failed with HTTP 400", status=400,
                              detail="No samples available")
        model = Model(name=name, accuracy=0.9, sample_count=sum(self.samples.values()),
                      classes=sorted(self.samples))
        self.models[name] = model
        return model

    async def list_models(self):
        self.calls.append(("list_models",))
        return list(self.models.values())

    async def delete_model(self, name):
        self.calls.append(("delete_model", name))
        if name not in self.models:
            raise RemoteError(f"DELETE /api/model/{name} failed with HTTP 404", status=404)
        del self.models[name]

    async def predict(self, image, model_name, hands_detected):
        self.calls.append(("predict", model_name, hands_detected))
        return Prediction(label="A", confidence=0.8, alternatives=[("A", 0.8), ("E", 0.2)])


def make_image(width=64, height=48):
    return np.full((height, width, 3), 127, dtype=np.uint8)


def make_hand(handedness="Right", confidence=0.97):
    landmarks = tuple((0.3 + 0.01 * i, 0.4 + 0.01 * i, 0.0) for i in range(21))
    return HandRecord(landmarks=landmarks, handedness=handedness, confidence=confidence)


def make_result(hands=1, frame_number=0):
    return DetectionResult(image=make_image(), hands=[make_hand() for _ in range(hands)],
                           frame_number=frame_number)


@pytest.fixture(autouse=True)
def fresh_singletons():
    """EventBus and Config are process-wide; isolate every test."""
    EventBus().reset()
    Config.reset()
    yield
    EventBus().reset()
    Config.reset()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def backend():
    return FakeBackend()
