"""
Tests for bulk hardware-hash registration.
"""

import pytest

from autopilot_migrator.models import MigrationTask
from autopilot_migrator.registration import register_devices


@pytest.mark.unit
class TestRegisterDevices:
    def test_registers_new_and_tolerates_existing(self, target, clock) -> None:
        target.add("BBB222")
        tasks = [MigrationTask("AAA111", "Line-01", "aGFzaDE="), MigrationTask("BBB222", None, "aGFzaDI=")]

        report = register_devices(target, tasks, pacing_delay=1, sleep=clock.sleep)

        assert report.registered == ["AAA111"]
        assert report.already_present == ["BBB222"]
        assert report.success
        assert clock.sleeps == [1]

    def test_missing_hash_fails_without_remote_call(self, target) -> None:
        report = register_devices(target, [MigrationTask("AAA111", "Line-01")])

        assert report.failed == [("AAA111", "No hardware hash")]
        assert target.mutations == []
        assert not report.success

    def test_remote_failure_is_recorded_and_batch_continues(self, target) -> None:
        target.fail_create.add("AAA111")
        tasks = [MigrationTask("AAA111", None, "aGFzaDE="), MigrationTask("BBB222", None, "aGFzaDI=")]

        report = register_devices(target, tasks)

        assert [serial for serial, _ in report.failed] == ["AAA111"]
        assert report.registered == ["BBB222"]

    def test_dry_run_makes_no_calls(self, target) -> None:
        report = register_devices(target, [MigrationTask("AAA111", None, "aGFzaDE=")], dry_run=True)

        assert report.registered == ["AAA111"]
        assert target.mutations == []
