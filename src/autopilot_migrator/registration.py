"""Bulk enrollment registration of hardware hashes into one tenant."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .exceptions import RemoteFailure
from .models import CreateStatus

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .directory import DirectoryClient
    from .models import MigrationTask

logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class RegistrationReport:
    registered: list[str] = field(default_factory=list)
    already_present: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


def register_devices(
    client: DirectoryClient,
    tasks: Sequence[MigrationTask],
    *,
    dry_run: bool = False,
    pacing_delay: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> RegistrationReport:
    """Import each task's hardware hash into the client's tenant.

    A device that already exists counts as registered, so re-running a
    partially processed file is safe.
    """
    report = RegistrationReport()
    client.authenticate()

    for index, task in enumerate(tasks, start=1):
        serial = task.serial_number
        if not task.hardware_hash:
            report.failed.append((serial, "No hardware hash"))
            logger.warning(f"{serial}: no hardware hash, cannot register")
            continue

        if dry_run:
            logger.info(f"{serial}: would register in {client.tenant_name} tenant, group tag '{task.group_tag or ''}'")
            report.registered.append(serial)
            continue

        try:
            status = client.create(serial, task.group_tag, task.hardware_hash)
        except RemoteFailure as e:
            report.failed.append((serial, str(e)))
            logger.warning(f"{serial}: registration failed: {e}")
        else:
            if status is CreateStatus.ALREADY_EXISTS:
                report.already_present.append(serial)
            else:
                report.registered.append(serial)

        if index < len(tasks) and pacing_delay > 0:
            sleep(pacing_delay)

    logger.info(
        f"Registration finished: {len(report.registered)} registered, "
        f"{len(report.already_present)} already present, {len(report.failed)} failed"
    )
    return report
