"""
Tests for Operator Notices
===========================
"""

import pytest

from core.events import Events
from utils.notices import ERROR, INFO, SUCCESS, NoticeBoard


class FakeClock:

    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestNoticeBoard:

    def test_notice_expires_after_ttl(self):
        clock = FakeClock()
        board = NoticeBoard(ttl_s=5.0, clock=clock)

        board.error("Camera unavailable")
        clock.now += 4.9
        assert [n.message for n in board.active()] == ["Camera unavailable"]

        clock.now += 0.1
        assert board.active() == []

    def test_levels_and_order(self):
        clock = FakeClock()
        board = NoticeBoard(clock=clock)

        board.info("one")
        clock.now += 1
        board.success("two")
        board.error("three")

        assert [(n.level, n.message) for n in board.active()] == [
            (INFO, "one"), (SUCCESS, "two"), (ERROR, "three")]

    def test_older_notices_expire_first(self):
        clock = FakeClock()
        board = NoticeBoard(ttl_s=5.0, clock=clock)

        board.info("old")
        clock.now += 3
        board.info("new")
        clock.now += 2.5

        assert [n.message for n in board.active()] == ["new"]

    def test_max_notices(self):
        board = NoticeBoard(clock=FakeClock(), max_notices=2)
        for message in ("a", "b", "c"):
            board.info(message)

        assert [n.message for n in board.active()] == ["b", "c"]

    def test_dismiss_all(self):
        board = NoticeBoard(clock=FakeClock())
        board.info("a")
        board.dismiss_all()
        assert board.active() == []

    def test_emits_event(self, bus):
        posted = []
        bus.subscribe(Events.NOTICE_POSTED, lambda notice: posted.append(notice.message))

        NoticeBoard(clock=FakeClock(), event_bus=bus).success("saved")

        assert posted == ["saved"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
