"""
Reading bulk device lists and writing inventory snapshots as CSV.

Bulk input follows the Autopilot hardware-hash CSV layout
(``Device Serial Number,Windows Product ID,Hardware Hash,Group Tag``);
shorter headers such as ``SerialNumber`` or ``serial`` are accepted too.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .exceptions import InputError
from .models import MigrationTask

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .exporter import SnapshotRow

logger: logging.Logger = logging.getLogger(__name__)

_SERIAL_HEADERS: Final[tuple[str, ...]] = ("device serial number", "serialnumber", "serial number", "serial")
_TAG_HEADERS: Final[tuple[str, ...]] = ("group tag", "grouptag", "tag", "ordered tag", "orderid")
_HASH_HEADERS: Final[tuple[str, ...]] = ("hardware hash", "hardwarehash", "hardwareidentifier")

SNAPSHOT_HEADER: Final[tuple[str, ...]] = ("SerialNumber", "GroupTag", "Model", "Manufacturer")


def _pick_column(fieldnames: list[str], candidates: tuple[str, ...]) -> str | None:
    normalized = {name.strip().lower(): name for name in fieldnames}
    for candidate in candidates:
        if candidate in normalized:
            return normalized[candidate]
    return None


def read_tasks(path: str | Path) -> list[MigrationTask]:
    """Read migration tasks from a CSV file, keeping file order.

    Blank serials are skipped. Repeated serials (compared case-insensitively)
    keep their first row only.

    Raises:
        InputError: If the file cannot be read or has no serial number column
    """
    csv_path = Path(path)
    try:
        # utf-8-sig strips the BOM that Get-WindowsAutopilotInfo writes
        with csv_path.open(newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            fieldnames = list(reader.fieldnames or [])
            serial_column = _pick_column(fieldnames, _SERIAL_HEADERS)
            if serial_column is None:
                msg = f"{csv_path}: no serial number column (found: {', '.join(fieldnames) or 'nothing'})"
                raise InputError(msg)
            tag_column = _pick_column(fieldnames, _TAG_HEADERS)
            hash_column = _pick_column(fieldnames, _HASH_HEADERS)

            tasks: list[MigrationTask] = []
            seen: set[str] = set()
            for line_number, row in enumerate(reader, start=2):
                serial = (row.get(serial_column) or "").strip()
                if not serial:
                    continue
                key = serial.casefold()
                if key in seen:
                    logger.warning(f"{csv_path}:{line_number}: duplicate serial {serial}, skipping")
                    continue
                seen.add(key)

                tag = (row.get(tag_column) or "").strip() if tag_column else ""
                hardware_hash = (row.get(hash_column) or "").strip() if hash_column else ""
                tasks.append(
                    MigrationTask(serial_number=serial, group_tag=tag or None, hardware_hash=hardware_hash or None)
                )
    except OSError as e:
        msg = f"Cannot read {csv_path}: {e}"
        raise InputError(msg) from e
    except csv.Error as e:
        msg = f"{csv_path} is not valid CSV: {e}"
        raise InputError(msg) from e

    logger.info(f"Read {len(tasks)} device(s) from {csv_path}")
    return tasks


def write_snapshot(rows: Iterable[SnapshotRow], path: str | Path) -> int:
    """Write snapshot rows to a CSV file and return how many were written."""
    csv_path = Path(path)
    count = 0
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(SNAPSHOT_HEADER)
        for row in rows:
            writer.writerow(row)
            count += 1
    logger.info(f"Wrote {count} row(s) to {csv_path}")
    return count
