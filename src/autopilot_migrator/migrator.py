"""
Single-device migration between two Autopilot tenants.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from .config import MigrationSettings
from .exceptions import RemoteFailure
from .models import MigrationOutcome, MigrationResult
from .poller import wait_until_absent

if TYPE_CHECKING:
    from .directory import DirectoryClient
    from .models import MigrationTask

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


class DeviceMigrator:
    """Moves one device identity from a source tenant to a target tenant.

    The steps are strictly ordered: look up at the source, delete there, wait
    until the source lookup comes back empty, then import at the target. Every
    early exit is a named MigrationOutcome. AuthenticationError is not caught
    here because a rejected token makes every later call fail too.
    """

    source: DirectoryClient
    target: DirectoryClient
    settings: MigrationSettings

    def __init__(
        self,
        source: DirectoryClient,
        target: DirectoryClient,
        settings: MigrationSettings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self.target = target
        self.settings = settings or MigrationSettings()
        self._clock = clock
        self._sleep = sleep

    @property
    def dry_run(self) -> bool:
        return self.settings.dry_run

    def migrate(self, task: MigrationTask) -> MigrationResult:
        """Run the migration for one device and return its outcome."""
        serial = task.serial_number

        self.source.authenticate()
        try:
            record = self.source.find(serial)
        except RemoteFailure as e:
            return self._result(serial, MigrationOutcome.LOOKUP_FAILED, f"Source lookup failed: {e}")

        if record is None:
            return self._result(serial, MigrationOutcome.NOT_FOUND_AT_SOURCE, "Not found in source tenant")

        group_tag = task.group_tag if task.group_tag is not None else record.group_tag

        if self.dry_run:
            detail = (
                f"Would delete {record.id} from {self.source.tenant_name} tenant and import into "
                f"{self.target.tenant_name} tenant with group tag '{group_tag or ''}'"
            )
            return self._result(serial, MigrationOutcome.SKIPPED_DRY_RUN, detail)

        try:
            self.source.delete(record)
        except RemoteFailure as e:
            return self._result(serial, MigrationOutcome.DELETE_FAILED, f"Source delete failed: {e}")

        try:
            poll = wait_until_absent(
                self.source,
                serial,
                timeout=self.settings.poll_timeout,
                interval=self.settings.poll_interval,
                clock=self._clock,
                sleep=self._sleep,
            )
        except RemoteFailure as e:
            self._log_manual_reimport(serial)
            return self._result(serial, MigrationOutcome.CONFIRM_FAILED, f"Deletion check failed: {e}")
        if not poll.confirmed:
            detail = f"Still present in source tenant after {poll.elapsed:.0f}s ({poll.attempts} lookups)"
            return self._result(serial, MigrationOutcome.DELETE_TIMED_OUT, detail)

        self.target.authenticate()
        try:
            status = self.target.create(serial, group_tag, task.hardware_hash)
        except RemoteFailure as e:
            # The source record is already gone at this point; nothing is rolled back.
            self._log_manual_reimport(serial)
            return self._result(serial, MigrationOutcome.IMPORT_FAILED, f"Target import failed: {e}")

        return self._result(serial, MigrationOutcome.MIGRATED, f"Import {status.value}, group tag '{group_tag or ''}'")

    def _log_manual_reimport(self, serial: str) -> None:
        logger.error(
            f"{serial} was deleted from {self.source.tenant_name} tenant but not imported into "
            f"{self.target.tenant_name} tenant; re-import it manually or re-run this device once the cause is fixed"
        )

    @staticmethod
    def _result(serial: str, outcome: MigrationOutcome, detail: str) -> MigrationResult:
        if outcome.is_success:
            logger.info(f"{serial}: {outcome.value} - {detail}")
        else:
            logger.warning(f"{serial}: {outcome.value} - {detail}")
        return MigrationResult(serial_number=serial, outcome=outcome, detail=detail)
