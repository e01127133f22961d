"""Batch orchestration of device migrations.

BatchMigrator runs DeviceMigrator over an ordered list of tasks, one at a
time. Tasks are isolated from each other: a remote failure on one device is
recorded as that device's outcome and the batch moves on. Only an
AuthenticationError stops the batch, since every later call would fail the
same way.

Pacing
------
A fixed delay is inserted between consecutive tasks to stay below the
service's throttling limits. No delay follows the last task.

Cancellation
------------
An optional threading.Event is checked before each task. Once it is set,
the remaining tasks are recorded as CANCELLED without any remote call, so
the report always has exactly one result per task.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .models import MigrationOutcome, MigrationResult

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence

    from .migrator import DeviceMigrator
    from .models import MigrationTask

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Per-device results of a batch run, in input order."""

    results: list[MigrationResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success_count(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failure_count(self) -> int:
        return len(self.results) - self.success_count

    @property
    def success(self) -> bool:
        return self.failure_count == 0

    def outcome_for(self, serial_number: str) -> MigrationOutcome | None:
        """Return the outcome recorded for a serial number (case-insensitive)."""
        wanted = serial_number.strip().casefold()
        for result in self.results:
            if result.serial_number.casefold() == wanted:
                return result.outcome
        return None

    def counts(self) -> dict[MigrationOutcome, int]:
        """Count results per outcome, skipping outcomes that never occurred."""
        tally: dict[MigrationOutcome, int] = {}
        for result in self.results:
            tally[result.outcome] = tally.get(result.outcome, 0) + 1
        return tally


class BatchMigrator:
    """Applies a DeviceMigrator to many tasks sequentially."""

    def __init__(
        self,
        migrator: DeviceMigrator,
        *,
        pacing_delay: float | None = None,
        cancel_event: threading.Event | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._migrator = migrator
        self._pacing_delay = migrator.settings.pacing_delay if pacing_delay is None else pacing_delay
        self._cancel_event = cancel_event
        self._sleep = sleep

    def run(self, tasks: Sequence[MigrationTask]) -> BatchReport:
        report = BatchReport()
        total = len(tasks)
        mode = " (dry run)" if self._migrator.dry_run else ""
        logger.info(f"Starting batch migration of {total} device(s){mode}")

        for index, task in enumerate(tasks, start=1):
            if self._cancel_event is not None and self._cancel_event.is_set():
                report.cancelled = True
                report.results.append(
                    MigrationResult(task.serial_number, MigrationOutcome.CANCELLED, "Batch cancelled before this one")
                )
                continue

            logger.info(f"[{index}/{total}] Migrating {task.serial_number}")
            report.results.append(self._migrator.migrate(task))

            if index < total and self._pacing_delay > 0:
                self._sleep(self._pacing_delay)

        if report.cancelled:
            skipped = report.counts().get(MigrationOutcome.CANCELLED, 0)
            logger.warning(f"Batch cancelled; {skipped} device(s) not attempted")
        logger.info(f"Batch finished: {report.success_count} succeeded, {report.failure_count} failed")
        return report
