"""Wait for a deleted record to disappear from directory lookups.

A successful delete call only means the service accepted the request.
Only a later lookup that comes back empty confirms the record is gone.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .directory import DirectoryClient

logger: logging.Logger = logging.getLogger(__name__)


class PollStatus(Enum):
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollResult:
    status: PollStatus
    attempts: int
    elapsed: float

    @property
    def confirmed(self) -> bool:
        return self.status is PollStatus.CONFIRMED


def wait_until_absent(
    client: DirectoryClient,
    serial_number: str,
    *,
    timeout: float,
    interval: float,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> PollResult:
    """Poll ``client.find`` at a fixed interval until the device is gone or time runs out."""
    start = clock()
    attempts = 0

    while True:
        attempts += 1
        record = client.find(serial_number)
        elapsed = clock() - start

        if record is None:
            logger.info(f"Deletion of {serial_number} confirmed after {attempts} lookup(s), {elapsed:.0f}s")
            return PollResult(PollStatus.CONFIRMED, attempts, elapsed)

        if elapsed >= timeout:
            logger.warning(f"{serial_number} still present after {elapsed:.0f}s ({attempts} lookups), giving up")
            return PollResult(PollStatus.TIMED_OUT, attempts, elapsed)

        # The last lookup lands on the deadline, never past it
        delay = min(interval, timeout - elapsed)
        logger.debug(f"{serial_number} still present after attempt {attempts}, waiting {delay:.0f}s")
        sleep(delay)
