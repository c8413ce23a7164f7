"""
Tests for the Recording Session state machine
===============================================
"""

import pytest

from core.errors import ValidationError
from recording.session import RecordingConfig, RecordingSession, SessionStatus


class TestRecordingSession:

    @pytest.fixture
    def session(self):
        return RecordingSession(interval_ms=1000, clock=lambda: 100.0)

    def test_initial_state(self, session):
        assert session.status is SessionStatus.IDLE
        assert session.captures_count == 0
        assert session.started_at is None

    def test_start_requires_hand(self, session):
        """Starting without a hand leaves the session Idle."""
        with pytest.raises(ValidationError, match="no hand detected"):
            session.start("A", hands_detected=0)
        assert session.status is SessionStatus.IDLE
        assert session.recording_label == ""

    def test_start_freezes_label_and_resets_count(self, session):
        session.captures_count = 7
        session.start("E", hands_detected=1)

        assert session.is_active
        assert session.recording_label == "E"
        assert session.captures_count == 0
        assert session.started_at == 100.0

    def test_start_twice_is_rejected(self, session):
        session.start("A", hands_detected=1)
        with pytest.raises(ValidationError):
            session.start("E", hands_detected=1)
        assert session.recording_label == "A"

    def test_interval_change_ignored_while_active(self, session):
        session.start("A", hands_detected=2)
        assert session.set_interval(500) is False
        assert session.interval_ms == 1000

    def test_interval_change_while_idle(self, session):
        assert session.set_interval(3000) is True
        assert session.interval_s == 3.0

    def test_invalid_interval_rejected(self, session):
        with pytest.raises(ValidationError):
            session.set_interval(750)
        assert session.interval_ms == 1000

    def test_invalid_initial_interval(self):
        with pytest.raises(ValidationError):
            RecordingSession(interval_ms=250)

    def test_stop(self, session):
        assert session.stop() is False
        session.start("A", hands_detected=1)
        session.record_capture()
        session.record_capture()
        assert session.stop() is True
        assert session.status is SessionStatus.IDLE
        assert session.captures_count == 2

    def test_upload_tallies_are_separate_from_count(self, session):
        session.start("A", hands_detected=1)
        session.record_capture()
        session.record_capture()
        session.record_upload(False)
        session.record_upload(True)
        assert session.captures_count == 2
        assert session.uploads_succeeded == 1
        assert session.uploads_failed == 1


class TestRecordingConfig:

    def test_defaults(self):
        config = RecordingConfig()
        assert config.interval_ms == 1000
        assert config.jpeg_quality == 0.9
        assert config.refresh_grace_s == 2.0

    def test_from_dict_partial(self):
        config = RecordingConfig.from_dict({"interval_ms": 500})
        assert config.interval_ms == 500
        assert config.refresh_grace_s == 2.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
