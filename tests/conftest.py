"""
Shared test fixtures.

FakeDirectory is an in-memory stand-in for one tenant's Autopilot directory
that records every call made against it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest

from autopilot_migrator.exceptions import RemoteFailure
from autopilot_migrator.models import CreateStatus, DeviceRecord

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass
class FakeDirectory:
    """In-memory Autopilot directory for one tenant.

    ``lingering_finds`` makes a deleted record keep showing up in that many
    lookups after the delete, imitating propagation delay. Use -1 to make it
    linger forever. ``fail_delete`` / ``fail_create`` / ``fail_find`` hold
    serials whose calls raise RemoteFailure. Lookups of serials in
    ``fail_find_after_delete`` start failing once that serial was deleted.
    """

    tenant_name: str = "fake"
    records: dict[str, DeviceRecord] = field(default_factory=dict)
    lingering_finds: int = 0
    fail_find: set[str] = field(default_factory=set)
    fail_find_after_delete: set[str] = field(default_factory=set)
    fail_delete: set[str] = field(default_factory=set)
    fail_create: set[str] = field(default_factory=set)
    calls: list[tuple[str, str]] = field(default_factory=list)
    authentications: int = 0
    _lingering: dict[str, tuple[DeviceRecord, int]] = field(default_factory=dict)
    _next_id: int = 1

    def add(self, serial_number: str, group_tag: str | None = None, **kwargs: str) -> DeviceRecord:
        record_id = f"{self.tenant_name}-{self._next_id}"
        record = DeviceRecord(id=record_id, serial_number=serial_number, group_tag=group_tag, **kwargs)
        self._next_id += 1
        self.records[serial_number.casefold()] = record
        return record

    def authenticate(self) -> None:
        self.authentications += 1

    def find(self, serial_number: str) -> DeviceRecord | None:
        self.calls.append(("find", serial_number))
        key = serial_number.casefold()
        if serial_number in self.fail_find:
            raise RemoteFailure(500, "lookup exploded")
        if serial_number in self.fail_find_after_delete and ("delete", serial_number) in self.calls:
            raise RemoteFailure(503, "throttled")
        if key in self._lingering:
            record, remaining = self._lingering[key]
            if remaining == 0:
                del self._lingering[key]
                return None
            self._lingering[key] = (record, remaining - 1)
            return record
        return self.records.get(key)

    def list_all(self) -> Iterator[DeviceRecord]:
        self.calls.append(("list_all", ""))
        yield from list(self.records.values())

    def delete(self, record: DeviceRecord) -> None:
        self.calls.append(("delete", record.serial_number))
        key = record.serial_number.casefold()
        if record.serial_number in self.fail_delete:
            raise RemoteFailure(500, "delete refused")
        self.records.pop(key, None)
        if self.lingering_finds:
            self._lingering[key] = (record, self.lingering_finds)

    def create(self, serial_number: str, group_tag: str | None, hardware_hash: str | None = None) -> CreateStatus:
        self.calls.append(("create", serial_number))
        key = serial_number.casefold()
        if serial_number in self.fail_create:
            raise RemoteFailure(400, "import rejected")
        if key in self.records:
            return CreateStatus.ALREADY_EXISTS
        self.add(serial_number, group_tag)
        return CreateStatus.CREATED

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in ("delete", "create")]


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def source() -> FakeDirectory:
    return FakeDirectory(tenant_name="source")


@pytest.fixture
def target() -> FakeDirectory:
    return FakeDirectory(tenant_name="target")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
