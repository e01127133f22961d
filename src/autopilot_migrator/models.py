"""Data models shared by the directory client, migrator and reporting code.

DeviceRecord is a read-only snapshot of what the directory service returned.
Everything else describes a unit of work or its result and is produced and
consumed within a single run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class DeviceRecord:
    """A Windows Autopilot device identity as reported by the directory service."""

    id: str  # Opaque remote id; deletes are addressed by this, never by serial
    serial_number: str
    group_tag: str | None = None
    model: str = ""
    manufacturer: str = ""
    managed_device_id: str | None = None
    azure_ad_device_id: str | None = None

    @classmethod
    def from_graph(cls, payload: dict[str, Any]) -> DeviceRecord:
        """Build a record from a ``windowsAutopilotDeviceIdentity`` JSON object."""
        # Graph reports the null GUID for devices that never enrolled
        managed_device_id = payload.get("managedDeviceId") or None
        if managed_device_id == _NULL_GUID:
            managed_device_id = None
        azure_ad_device_id = payload.get("azureActiveDirectoryDeviceId") or None
        if azure_ad_device_id == _NULL_GUID:
            azure_ad_device_id = None

        return cls(
            id=payload["id"],
            serial_number=payload.get("serialNumber") or "",
            group_tag=payload.get("groupTag") or None,
            model=payload.get("model") or "",
            manufacturer=payload.get("manufacturer") or "",
            managed_device_id=managed_device_id,
            azure_ad_device_id=azure_ad_device_id,
        )

    def matches(self, serial_number: str) -> bool:
        """Check whether this record belongs to ``serial_number`` (case-insensitive)."""
        return self.serial_number.casefold() == serial_number.strip().casefold()


_NULL_GUID = "00000000-0000-0000-0000-000000000000"


@dataclass(frozen=True)
class MigrationTask:
    """One device to migrate or register.

    When ``group_tag`` is None the tag found on the source record is carried
    over unchanged.
    """

    serial_number: str
    group_tag: str | None = None
    hardware_hash: str | None = None


class MigrationOutcome(Enum):
    """Terminal state of a single device migration."""

    MIGRATED = "migrated"
    NOT_FOUND_AT_SOURCE = "not_found_at_source"
    LOOKUP_FAILED = "lookup_failed"
    DELETE_FAILED = "delete_failed"
    DELETE_TIMED_OUT = "delete_timed_out"
    CONFIRM_FAILED = "confirm_failed"
    IMPORT_FAILED = "import_failed"
    SKIPPED_DRY_RUN = "skipped_dry_run"
    CANCELLED = "cancelled"

    @property
    def is_success(self) -> bool:
        return self in (MigrationOutcome.MIGRATED, MigrationOutcome.SKIPPED_DRY_RUN)


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of one MigrationTask, with a human-readable detail line."""

    serial_number: str
    outcome: MigrationOutcome
    detail: str = ""

    @property
    def success(self) -> bool:
        return self.outcome.is_success


class CreateStatus(Enum):
    """Successful results of an import call."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
