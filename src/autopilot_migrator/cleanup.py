"""
Enrollment-record cleanup for a single device.

Removes a device's Intune managed device, its Autopilot identity and its
Entra ID device object, in that order. Entra refuses to delete a device
object that an Autopilot identity still references, so the Autopilot record
goes first and its removal can be confirmed before the Entra step.

Finding the Entra object is best effort. The directory gives no reliable
join key for every enrollment path, so several lookups are tried in turn:
the Entra device id reported by Intune or Autopilot, then the Intune device
name, then a display-name prefix. A prefix lookup is only trusted when it
yields exactly one device.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Final

from .exceptions import RemoteFailure
from .graph import odata_quote
from .poller import wait_until_absent

if TYPE_CHECKING:
    from .directory import DirectoryClient
    from .graph import GraphClient
    from .models import DeviceRecord

logger: logging.Logger = logging.getLogger(__name__)

MANAGED_DEVICES_PATH: Final[str] = "deviceManagement/managedDevices"
ENTRA_DEVICES_PATH: Final[str] = "devices"


class StepStatus(Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    SKIPPED_DRY_RUN = "skipped_dry_run"


@dataclass(frozen=True)
class CleanupStep:
    kind: str  # "intune", "autopilot" or "entra"
    status: StepStatus
    record_id: str | None = None
    detail: str = ""


@dataclass
class CleanupReport:
    serial_number: str
    steps: list[CleanupStep] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(step.status not in (StepStatus.FAILED, StepStatus.TIMED_OUT) for step in self.steps)

    def step(self, kind: str) -> CleanupStep | None:
        return next((step for step in self.steps if step.kind == kind), None)


class DeviceCleaner:
    """Single-shot lookup-and-delete of every enrollment record of a device."""

    def __init__(
        self,
        directory: DirectoryClient,
        *,
        dry_run: bool = False,
        name_prefix: str = "",
        confirm_timeout: float | None = None,
        confirm_interval: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._directory = directory
        self._graph: GraphClient = directory.graph
        self._dry_run = dry_run
        self._name_prefix = name_prefix
        self._confirm_timeout = confirm_timeout
        self._confirm_interval = confirm_interval
        self._sleep = sleep
        self._clock = clock

    def cleanup(self, serial_number: str) -> CleanupReport:
        serial = serial_number.strip()
        report = CleanupReport(serial_number=serial)
        self._directory.authenticate()

        autopilot: DeviceRecord | None = None
        try:
            autopilot = self._directory.find(serial)
        except RemoteFailure as e:
            report.steps.append(CleanupStep("autopilot", StepStatus.FAILED, detail=f"Lookup failed: {e}"))

        try:
            managed = self._find_managed_device(serial, autopilot)
        except RemoteFailure as e:
            managed = None
            report.steps.append(CleanupStep("intune", StepStatus.FAILED, detail=f"Lookup failed: {e}"))
        else:
            report.steps.append(self._delete_managed_device(managed))

        if report.step("autopilot") is None:
            report.steps.append(self._delete_autopilot(serial, autopilot))

        try:
            entra = self._find_entra_device(serial, autopilot, managed)
        except RemoteFailure as e:
            report.steps.append(CleanupStep("entra", StepStatus.FAILED, detail=f"Lookup failed: {e}"))
        else:
            report.steps.append(self._delete_entra_device(entra))

        for step in report.steps:
            logger.info(f"{serial}: {step.kind} {step.status.value} {step.detail}".rstrip())
        return report

    def _find_managed_device(self, serial: str, autopilot: DeviceRecord | None) -> dict[str, Any] | None:
        if autopilot is not None and autopilot.managed_device_id:
            try:
                return self._graph.get(f"{MANAGED_DEVICES_PATH}/{autopilot.managed_device_id}")
            except RemoteFailure as e:
                if e.status != 404:
                    raise
                logger.debug(f"Managed device {autopilot.managed_device_id} from Autopilot record is gone")

        params = {"$filter": f"serialNumber eq '{odata_quote(serial)}'"}
        devices = list(self._graph.paginate(MANAGED_DEVICES_PATH, params))
        if len(devices) > 1:
            logger.warning(f"{len(devices)} Intune devices with serial {serial}, cleaning up the first")
        return devices[0] if devices else None

    def _find_entra_device(
        self, serial: str, autopilot: DeviceRecord | None, managed: dict[str, Any] | None
    ) -> dict[str, Any] | None:
        device_ids = []
        if managed and managed.get("azureADDeviceId"):
            device_ids.append(managed["azureADDeviceId"])
        if autopilot is not None and autopilot.azure_ad_device_id:
            device_ids.append(autopilot.azure_ad_device_id)

        for device_id in dict.fromkeys(device_ids):
            found = self._query_entra(f"deviceId eq '{odata_quote(device_id)}'")
            if found:
                return found[0]

        if managed and managed.get("deviceName"):
            found = self._query_entra(f"displayName eq '{odata_quote(managed['deviceName'])}'")
            if len(found) == 1:
                return found[0]
            if len(found) > 1:
                logger.warning(f"{len(found)} Entra devices named {managed['deviceName']}, not guessing")
                return None

        prefix = f"{self._name_prefix}{serial}"
        found = self._query_entra(f"startswith(displayName,'{odata_quote(prefix)}')")
        if len(found) == 1:
            return found[0]
        if len(found) > 1:
            logger.warning(f"{len(found)} Entra devices start with {prefix}, not guessing")
        return None

    def _query_entra(self, odata_filter: str) -> list[dict[str, Any]]:
        return list(self._graph.paginate(ENTRA_DEVICES_PATH, {"$filter": odata_filter}))

    def _delete_managed_device(self, managed: dict[str, Any] | None) -> CleanupStep:
        if managed is None:
            return CleanupStep("intune", StepStatus.NOT_FOUND)
        device_id = managed["id"]
        if self._dry_run:
            detail = f"Would delete {managed.get('deviceName', '')}"
            return CleanupStep("intune", StepStatus.SKIPPED_DRY_RUN, device_id, detail)
        try:
            self._graph.delete(f"{MANAGED_DEVICES_PATH}/{device_id}")
        except RemoteFailure as e:
            return CleanupStep("intune", StepStatus.FAILED, device_id, str(e))
        return CleanupStep("intune", StepStatus.DELETED, device_id)

    def _delete_autopilot(self, serial: str, autopilot: DeviceRecord | None) -> CleanupStep:
        if autopilot is None:
            return CleanupStep("autopilot", StepStatus.NOT_FOUND)
        if self._dry_run:
            return CleanupStep("autopilot", StepStatus.SKIPPED_DRY_RUN, autopilot.id, "Would delete")
        try:
            self._directory.delete(autopilot)
        except RemoteFailure as e:
            return CleanupStep("autopilot", StepStatus.FAILED, autopilot.id, str(e))

        if self._confirm_timeout is None:
            return CleanupStep("autopilot", StepStatus.DELETED, autopilot.id, "Deletion requested")

        try:
            poll = wait_until_absent(
                self._directory,
                serial,
                timeout=self._confirm_timeout,
                interval=self._confirm_interval,
                clock=self._clock,
                sleep=self._sleep,
            )
        except RemoteFailure as e:
            return CleanupStep("autopilot", StepStatus.FAILED, autopilot.id, f"Deletion check failed: {e}")
        if not poll.confirmed:
            detail = f"Still present after {poll.elapsed:.0f}s"
            return CleanupStep("autopilot", StepStatus.TIMED_OUT, autopilot.id, detail)
        return CleanupStep("autopilot", StepStatus.DELETED, autopilot.id, "Deletion confirmed")

    def _delete_entra_device(self, entra: dict[str, Any] | None) -> CleanupStep:
        if entra is None:
            return CleanupStep("entra", StepStatus.NOT_FOUND)
        object_id = entra["id"]
        if self._dry_run:
            detail = f"Would delete {entra.get('displayName', '')}"
            return CleanupStep("entra", StepStatus.SKIPPED_DRY_RUN, object_id, detail)
        try:
            self._graph.delete(f"{ENTRA_DEVICES_PATH}/{object_id}")
        except RemoteFailure as e:
            return CleanupStep("entra", StepStatus.FAILED, object_id, str(e))
        return CleanupStep("entra", StepStatus.DELETED, object_id)
