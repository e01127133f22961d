"""
Tests for deletion confirmation polling.
"""

import pytest

from autopilot_migrator.poller import PollStatus, wait_until_absent


@pytest.mark.unit
class TestWaitUntilAbsent:
    """Test polling until a record disappears."""

    def test_confirms_immediately_when_already_gone(self, source, clock) -> None:
        result = wait_until_absent(source, "ABC123", timeout=60, interval=10, clock=clock, sleep=clock.sleep)

        assert result.status is PollStatus.CONFIRMED
        assert result.attempts == 1
        assert clock.sleeps == []

    def test_confirms_once_record_stops_showing_up(self, source, clock) -> None:
        record = source.add("ABC123")
        source.lingering_finds = 2
        source.delete(record)

        result = wait_until_absent(source, "ABC123", timeout=60, interval=10, clock=clock, sleep=clock.sleep)

        assert result.confirmed
        assert result.attempts == 3
        assert result.elapsed == 20
        assert clock.sleeps == [10, 10]

    def test_confirms_before_timeout_elapses(self, source, clock) -> None:
        record = source.add("ABC123")
        source.lingering_finds = 1
        source.delete(record)

        result = wait_until_absent(source, "ABC123", timeout=600, interval=10, clock=clock, sleep=clock.sleep)

        assert result.confirmed
        assert result.elapsed < 600

    def test_times_out_when_record_never_disappears(self, source, clock) -> None:
        source.add("ABC123")

        result = wait_until_absent(source, "ABC123", timeout=60, interval=10, clock=clock, sleep=clock.sleep)

        assert result.status is PollStatus.TIMED_OUT
        assert result.attempts == 7
        assert result.elapsed == 60

    def test_uses_fixed_interval(self, source, clock) -> None:
        source.add("ABC123")

        wait_until_absent(source, "ABC123", timeout=30, interval=7, clock=clock, sleep=clock.sleep)

        assert clock.sleeps[:-1] == [7, 7, 7, 7]

    def test_last_wait_is_cut_short_at_the_deadline(self, source, clock) -> None:
        source.add("ABC123")

        result = wait_until_absent(source, "ABC123", timeout=25, interval=10, clock=clock, sleep=clock.sleep)

        assert result.status is PollStatus.TIMED_OUT
        assert clock.sleeps == [10, 10, 5]
        assert result.attempts == 4
        assert result.elapsed == 25

    def test_every_attempt_queries_the_directory(self, source, clock) -> None:
        source.add("ABC123")

        result = wait_until_absent(source, "ABC123", timeout=30, interval=10, clock=clock, sleep=clock.sleep)

        assert source.calls.count(("find", "ABC123")) == result.attempts
