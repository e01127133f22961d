"""Autopilot device identity operations for one tenant.

Lookups filter on the serial number server-side and then keep only exact,
case-insensitive matches; deletes are addressed by the record's remote id.
Nothing is cached, so a lookup right after a delete always asks the service.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from .exceptions import RemoteFailure
from .graph import odata_quote
from .models import CreateStatus, DeviceRecord

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .graph import GraphClient

logger: logging.Logger = logging.getLogger(__name__)

IDENTITIES_PATH: Final[str] = "deviceManagement/windowsAutopilotDeviceIdentities"
IMPORT_PATH: Final[str] = "deviceManagement/importedWindowsAutopilotDeviceIdentities"


class DirectoryClient:
    """Lookup, listing, delete and import of Autopilot device identities."""

    _graph: GraphClient

    def __init__(self, graph: GraphClient) -> None:
        self._graph = graph

    @property
    def tenant_name(self) -> str:
        return self._graph.tenant_name

    @property
    def graph(self) -> GraphClient:
        return self._graph

    def authenticate(self) -> None:
        self._graph.authenticate()

    def find(self, serial_number: str) -> DeviceRecord | None:
        """Look up a device by serial number.

        Returns:
            The matching record, or None if the tenant has no such device

        Raises:
            RemoteFailure: For any failure other than not-found
        """
        serial = serial_number.strip()
        if not serial:
            msg = "Serial number must not be empty"
            raise ValueError(msg)

        params = {"$filter": f"contains(serialNumber,'{odata_quote(serial)}')"}
        try:
            candidates = [DeviceRecord.from_graph(item) for item in self._graph.paginate(IDENTITIES_PATH, params)]
        except RemoteFailure as e:
            if e.status == 404:
                return None
            raise

        matches = [record for record in candidates if record.matches(serial)]
        if not matches:
            logger.debug(f"{serial} not found in {self.tenant_name} tenant")
            return None
        if len(matches) > 1:
            logger.warning(
                f"{len(matches)} records for serial {serial} in {self.tenant_name} tenant, using {matches[0].id}"
            )
        return matches[0]

    def list_all(self) -> Iterator[DeviceRecord]:
        """Yield every Autopilot device identity in the tenant, page by page."""
        for item in self._graph.paginate(IDENTITIES_PATH):
            yield DeviceRecord.from_graph(item)

    def delete(self, record: DeviceRecord) -> None:
        """Request deletion of a record.

        The service accepts the request before the record disappears; use the
        poller to confirm.
        """
        logger.info(f"Deleting {record.serial_number} ({record.id}) from {self.tenant_name} tenant")
        self._graph.delete(f"{IDENTITIES_PATH}/{record.id}")

    def create(self, serial_number: str, group_tag: str | None, hardware_hash: str | None = None) -> CreateStatus:
        """Import a device identity.

        Returns:
            CreateStatus.CREATED, or CreateStatus.ALREADY_EXISTS on HTTP 409

        Raises:
            RemoteFailure: For any other failure
        """
        payload: dict[str, object] = {
            "@odata.type": "#microsoft.graph.importedWindowsAutopilotDeviceIdentity",
            "serialNumber": serial_number.strip(),
            "groupTag": group_tag or "",
            "state": {
                "@odata.type": "microsoft.graph.importedWindowsAutopilotDeviceIdentityState",
                "deviceImportStatus": "pending",
                "deviceRegistrationId": "",
                "deviceErrorCode": 0,
                "deviceErrorName": "",
            },
        }
        if hardware_hash:
            payload["hardwareIdentifier"] = hardware_hash

        try:
            self._graph.post(IMPORT_PATH, payload)
        except RemoteFailure as e:
            if e.status == 409:
                logger.info(f"{serial_number} already exists in {self.tenant_name} tenant")
                return CreateStatus.ALREADY_EXISTS
            raise

        logger.info(f"Imported {serial_number} into {self.tenant_name} tenant with group tag '{group_tag or ''}'")
        return CreateStatus.CREATED

