"""
Windows Autopilot Device Tools

Moves Autopilot device identities between two tenants, registers hardware
hashes, cleans up stale enrollment records and exports tenant inventories.
"""

from __future__ import annotations

from .cli import main
from .config import MigrationSettings, TenantConfig
from .directory import DirectoryClient
from .exceptions import AuthenticationError, MigrationError, RemoteFailure
from .migrator import DeviceMigrator
from .models import DeviceRecord, MigrationOutcome, MigrationResult, MigrationTask
from .orchestrator import BatchMigrator, BatchReport
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "BatchMigrator",
    "BatchReport",
    "DeviceMigrator",
    "DeviceRecord",
    "DirectoryClient",
    "MigrationError",
    "MigrationOutcome",
    "MigrationResult",
    "MigrationSettings",
    "MigrationTask",
    "RemoteFailure",
    "TenantConfig",
    "main",
    "setup_logging",
]
