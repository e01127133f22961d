"""Inventory snapshot of a tenant's Autopilot devices."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from .directory import DirectoryClient

logger: logging.Logger = logging.getLogger(__name__)


class SnapshotRow(NamedTuple):
    serial_number: str
    group_tag: str
    model: str
    manufacturer: str


def snapshot(client: DirectoryClient) -> list[SnapshotRow]:
    """Project every device identity in the tenant onto a flat row, in listing order."""
    rows = [
        SnapshotRow(
            serial_number=record.serial_number,
            group_tag=record.group_tag or "",
            model=record.model,
            manufacturer=record.manufacturer,
        )
        for record in client.list_all()
    ]
    logger.info(f"Exported {len(rows)} device(s) from {client.tenant_name} tenant")
    return rows
