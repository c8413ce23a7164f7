"""
Tests for the Backend Client
=============================
"""

import asyncio
import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from backend.client import BackendClient, BackendConfig
from core.errors import RemoteError
from core.types import Capture


def response(payload=None, raw=None):
    """A urlopen() context manager returning ``payload`` as JSON."""
    body = raw if raw is not None else (json.dumps(payload).encode() if payload is not None else b"")
    resp = MagicMock()
    resp.read.return_value = body
    resp.__enter__.return_value = resp
    resp.__exit__.return_value = False
    return resp


def http_error(code, payload=None):
    body = json.dumps(payload).encode() if payload is not None else b""
    return urllib.error.HTTPError("http://test/api", code, "error", hdrs=None, fp=io.BytesIO(body))


def sent_request(mock_urlopen):
    return mock_urlopen.call_args[0][0]


def form_fields(request):
    """Parse the multipart body back into {name: (filename, value)}."""
    content_type = request.get_header("Content-type")
    boundary = content_type.split("boundary=")[1].encode()
    fields = {}
    for part in request.data.split(b"--" + boundary):
        part = part.strip(b"\r\n")
        if not part or part == b"--":
            continue
        head, _, value = part.partition(b"\r\n\r\n")
        disposition = head.split(b"\r\n")[0].decode()
        name = disposition.split('name="')[1].split('"')[0]
        filename = disposition.split('filename="')[1].split('"')[0] if "filename=" in disposition else None
        fields[name] = (filename, value)
    return fields


@pytest.fixture
def client():
    return BackendClient(BackendConfig(base_url="http://test:8000/"))


@pytest.fixture
def mock_urlopen():
    with patch("backend.client.urllib.request.urlopen") as mock:
        yield mock


class TestBackendConfig:

    def test_defaults(self):
        config = BackendConfig()
        assert config.base_url == "http://127.0.0.1:8000"
        assert config.timeout_s is None

    def test_from_dict(self):
        config = BackendConfig.from_dict({"base_url": "http://x:1", "timeout_s": 3})
        assert config.base_url == "http://x:1"
        assert config.timeout_s == 3


class TestOperations:

    def test_upload_sends_multipart_fields(self, client, mock_urlopen):
        mock_urlopen.return_value = response({"ok": True})
        capture = Capture(image=b"\xff\xd8data", label="E", category="vocales",
                          hands_detected=2, captured_at=1.5)

        asyncio.run(client.upload(capture))

        request = sent_request(mock_urlopen)
        assert request.get_method() == "POST"
        assert request.full_url == "http://test:8000/api/upload_sample"
        fields = form_fields(request)
        assert fields["label"] == (None, b"E")
        assert fields["hands_detected"] == (None, b"2")
        assert fields["category"] == (None, b"vocales")
        assert fields["file"] == ("frame_1500.jpg", b"\xff\xd8data")

    def test_list_samples(self, client, mock_urlopen):
        mock_urlopen.return_value = response({"total_samples": 3, "samples_per_class": {"A": 2, "E": 1}})

        info = asyncio.run(client.list_samples())

        assert sent_request(mock_urlopen).get_method() == "GET"
        assert info.total_samples == 3
        assert info.samples_per_class == {"A": 2, "E": 1}

    def test_clear_samples(self, client, mock_urlopen):
        mock_urlopen.return_value = response(raw=b"")
        asyncio.run(client.clear_samples())

        request = sent_request(mock_urlopen)
        assert request.get_method() == "DELETE"
        assert request.full_url == "http://test:8000/api/clear_samples"

    def test_train(self, client, mock_urlopen):
        mock_urlopen.return_value = response(
            {"name": "m1", "accuracy": 0.93, "n_samples": 40, "classes": ["A", "E"]})

        model = asyncio.run(client.train("m1"))

        request = sent_request(mock_urlopen)
        assert request.full_url == "http://test:8000/api/train"
        assert form_fields(request)["name"] == (None, b"m1")
        assert model.name == "m1"
        assert model.accuracy == 0.93
        assert model.sample_count == 40
        assert model.classes == ["A", "E"]

    def test_train_uses_requested_name_when_response_has_none(self, client, mock_urlopen):
        mock_urlopen.return_value = response({"accuracy": 0.5})
        assert asyncio.run(client.train("m2")).name == "m2"

    def test_list_models(self, client, mock_urlopen):
        mock_urlopen.return_value = response({"models": [
            {"name": "m1", "accuracy": 0.9, "n_samples": 10, "classes": ["A"]},
            {"name": "m2", "accuracy": 0.7, "n_samples": 5, "classes": []},
        ]})

        models = asyncio.run(client.list_models())
        assert [m.name for m in models] == ["m1", "m2"]

    def test_delete_model_quotes_name(self, client, mock_urlopen):
        mock_urlopen.return_value = response(raw=b"")
        asyncio.run(client.delete_model("my model/v1"))

        request = sent_request(mock_urlopen)
        assert request.get_method() == "DELETE"
        assert request.full_url == "http://test:8000/api/model/my%20model%2Fv1"

    def test_predict(self, client, mock_urlopen):
        mock_urlopen.return_value = response({
            "prediction": "A",
            "confidence": 0.81,
            "all_predictions": [["E", 0.14], ["A", 0.81], ["I", 0.05]],
        })

        prediction = asyncio.run(client.predict(b"jpeg", "m1", 1))

        fields = form_fields(sent_request(mock_urlopen))
        assert fields["model"] == (None, b"m1")
        assert fields["hands_detected"] == (None, b"1")
        assert fields["file"] == ("frame.jpg", b"jpeg")
        assert prediction.label == "A"
        assert prediction.confidence == 0.81
        assert prediction.alternatives == [("A", 0.81), ("E", 0.14), ("I", 0.05)]

    def test_predict_with_null_alternatives(self, client, mock_urlopen):
        mock_urlopen.return_value = response(
            {"prediction": "U", "confidence": 0.6, "all_predictions": None})

        prediction = asyncio.run(client.predict(b"jpeg", "m1", 1))

        assert prediction.label == "U"
        assert prediction.alternatives == []

    def test_timeout_passed_when_configured(self, mock_urlopen):
        mock_urlopen.return_value = response({"total_samples": 0, "samples_per_class": {}})
        client = BackendClient(BackendConfig(base_url="http://test", timeout_s=2.5))
        asyncio.run(client.list_samples())
        assert mock_urlopen.call_args[1] == {"timeout": 2.5}


class TestErrors:

    def test_http_error_carries_status_and_detail(self, client, mock_urlopen):
        mock_urlopen.side_effect = http_error(400, {"detail": "No samples to train on"})

        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(client.train("m1"))

        assert exc_info.value.status == 400
        assert exc_info.value.detail == "No samples to train on"
        assert "No samples to train on" in str(exc_info.value)

    def test_http_error_without_json_body(self, client, mock_urlopen):
        mock_urlopen.side_effect = http_error(500)

        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(client.list_models())
        assert exc_info.value.status == 500
        assert exc_info.value.detail is None

    def test_network_failure(self, client, mock_urlopen):
        mock_urlopen.side_effect = urllib.error.URLError("connection refused")

        with pytest.raises(RemoteError) as exc_info:
            asyncio.run(client.list_samples())
        assert exc_info.value.status is None
        assert "connection refused" in exc_info.value.detail

    def test_invalid_json(self, client, mock_urlopen):
        mock_urlopen.return_value = response(raw=b"<html>")
        with pytest.raises(RemoteError):
            asyncio.run(client.list_samples())

    def test_unexpected_shape(self, client, mock_urlopen):
        mock_urlopen.return_value = response([1, 2, 3])
        with pytest.raises(RemoteError):
            asyncio.run(client.list_models())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
