"""
Command-line interface for the Autopilot device tools.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import textwrap
import threading
from typing import TYPE_CHECKING, Any

from .cleanup import DeviceCleaner
from .config import (
    DEFAULT_PACING_DELAY,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    SOURCE_PREFIX,
    TARGET_PREFIX,
    MigrationSettings,
    load_tenant_config,
)
from .csv_io import read_tasks, write_snapshot
from .directory import DirectoryClient
from .exceptions import InputError, MigrationError
from .exporter import snapshot
from .graph import GraphClient
from .migrator import DeviceMigrator
from .models import MigrationTask
from .orchestrator import BatchMigrator
from .registration import register_devices
from .utils import setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .cleanup import CleanupReport
    from .orchestrator import BatchReport
    from .registration import RegistrationReport

logger = logging.getLogger(__name__)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    common = argparse.ArgumentParser(add_help=False)
    _ = common.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    _ = common.add_argument(
        "--source-secret-pass", help="Path for the source client secret in pass (default: SOURCE_CLIENT_SECRET)"
    )
    _ = common.add_argument(
        "--target-secret-pass", help="Path for the target client secret in pass (default: TARGET_CLIENT_SECRET)"
    )

    dry_run = argparse.ArgumentParser(add_help=False)
    _ = dry_run.add_argument(
        "--dry-run", action="store_true", help="Only look devices up; never delete or import anything"
    )

    timing = argparse.ArgumentParser(add_help=False)
    _ = timing.add_argument(
        "--poll-timeout",
        type=float,
        default=DEFAULT_POLL_TIMEOUT,
        help=f"Seconds to wait for a deletion to become visible (default: {DEFAULT_POLL_TIMEOUT:.0f})",
    )
    _ = timing.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds between deletion checks (default: {DEFAULT_POLL_INTERVAL:.0f})",
    )
    _ = timing.add_argument(
        "--pacing-delay",
        type=float,
        default=DEFAULT_PACING_DELAY,
        help=f"Seconds to pause between devices in a batch (default: {DEFAULT_PACING_DELAY:.0f})",
    )

    tenant = argparse.ArgumentParser(add_help=False)
    _ = tenant.add_argument(
        "--tenant", choices=("source", "target"), default="source", help="Tenant to operate on (default: source)"
    )

    parser = argparse.ArgumentParser(
        description="Manage Windows Autopilot device records across two tenants",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
            Credentials are read from SOURCE_TENANT_ID, SOURCE_CLIENT_ID, SOURCE_CLIENT_SECRET
            and the matching TARGET_* variables.

            Examples:
              autopilot-migrator migrate ABC123 --group-tag Line-01
              autopilot-migrator migrate-batch devices.csv --dry-run
              autopilot-migrator export inventory.csv --tenant target
        """),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    migrate = subparsers.add_parser(
        "migrate", parents=[common, dry_run, timing], help="Move one device from the source to the target tenant"
    )
    _ = migrate.add_argument("serial_number", help="Device serial number")
    _ = migrate.add_argument("--group-tag", help="Group tag for the target (default: keep the source tag)")
    _ = migrate.add_argument("--hardware-hash", help="Hardware hash to import with the device")

    batch = subparsers.add_parser(
        "migrate-batch", parents=[common, dry_run, timing], help="Move every device listed in a CSV file"
    )
    _ = batch.add_argument("input_csv", help="CSV with a serial number column and optional group tag / hardware hash")

    export = subparsers.add_parser("export", parents=[common, tenant], help="Write a tenant's devices to CSV")
    _ = export.add_argument("output_csv", help="Destination CSV file")

    register = subparsers.add_parser(
        "register", parents=[common, dry_run, tenant], help="Import hardware hashes from a CSV into one tenant"
    )
    _ = register.add_argument("input_csv", help="Autopilot hardware hash CSV")
    _ = register.add_argument(
        "--pacing-delay", type=float, default=DEFAULT_PACING_DELAY, help="Seconds to pause between devices"
    )

    cleanup = subparsers.add_parser(
        "cleanup",
        parents=[common, dry_run, tenant],
        help="Delete a device's Intune, Autopilot and Entra ID records",
    )
    _ = cleanup.add_argument("serial_number", help="Device serial number")
    _ = cleanup.add_argument("--name-prefix", default="", help="Device name prefix used by the naming template")
    _ = cleanup.add_argument(
        "--confirm-timeout",
        type=float,
        help="Wait up to this many seconds for the Autopilot deletion to become visible",
    )
    _ = cleanup.add_argument(
        "--poll-interval", type=float, default=DEFAULT_POLL_INTERVAL, help="Seconds between deletion checks"
    )

    return parser.parse_args(argv)


def _directory_client(prefix: str, pass_path: str | None) -> DirectoryClient:
    config = load_tenant_config(prefix, secret_pass_path=pass_path)
    return DirectoryClient(GraphClient(config))


def _tenant_client(args: argparse.Namespace) -> DirectoryClient:
    if args.tenant == "target":
        return _directory_client(TARGET_PREFIX, args.target_secret_pass)
    return _directory_client(SOURCE_PREFIX, args.source_secret_pass)


def _serial_number(args: argparse.Namespace) -> str:
    serial = args.serial_number.strip()
    if not serial:
        msg = "Serial number cannot be empty"
        raise InputError(msg)
    return serial


def _settings(args: argparse.Namespace) -> MigrationSettings:
    return MigrationSettings(
        poll_timeout=args.poll_timeout,
        poll_interval=args.poll_interval,
        pacing_delay=args.pacing_delay,
        dry_run=args.dry_run,
    )


def _print_batch_report(report: BatchReport) -> None:
    print("\n📊 Migration Summary:")
    for result in report.results:
        marker = "✅" if result.success else "❌"
        print(f"  {marker} {result.serial_number}: {result.outcome.value} {result.detail}".rstrip())
    print(f"\n  ✅ Succeeded: {report.success_count}")
    print(f"  ❌ Failed: {report.failure_count}")
    for outcome, count in report.counts().items():
        print(f"     {outcome.value}: {count}")
    if report.cancelled:
        print("\n⚠️  Batch was cancelled before all devices were processed")


def _print_registration_report(report: RegistrationReport) -> None:
    print("\n📊 Registration Summary:")
    print(f"  ✅ Registered: {len(report.registered)}")
    print(f"  ➖ Already present: {len(report.already_present)}")
    print(f"  ❌ Failed: {len(report.failed)}")
    for serial, error in report.failed:
        print(f"  - {serial}: {error}")


def _print_cleanup_report(report: CleanupReport) -> None:
    print(f"\n📊 Cleanup of {report.serial_number}:")
    for step in report.steps:
        print(f"  {step.kind:<10} {step.status.value:<16} {step.record_id or ''} {step.detail}".rstrip())
    print(f"\n  {'✅ PASSED' if report.success else '❌ FAILED'}")


def _run_migrate(args: argparse.Namespace) -> bool:
    serial = _serial_number(args)
    source = _directory_client(SOURCE_PREFIX, args.source_secret_pass)
    target = _directory_client(TARGET_PREFIX, args.target_secret_pass)
    migrator = DeviceMigrator(source, target, _settings(args))
    task = MigrationTask(serial, args.group_tag, args.hardware_hash)
    result = migrator.migrate(task)
    marker = "✅" if result.success else "❌"
    print(f"{marker} {result.serial_number}: {result.outcome.value} {result.detail}".rstrip())
    return result.success


def _run_migrate_batch(args: argparse.Namespace) -> bool:
    tasks = read_tasks(args.input_csv)
    source = _directory_client(SOURCE_PREFIX, args.source_secret_pass)
    target = _directory_client(TARGET_PREFIX, args.target_secret_pass)
    migrator = DeviceMigrator(source, target, _settings(args))

    cancel_event = threading.Event()

    def _request_cancel(_signum: int, _frame: Any) -> None:
        logger.warning("Interrupt received; stopping after the current device")
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, _request_cancel)
    try:
        report = BatchMigrator(migrator, cancel_event=cancel_event).run(tasks)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    _print_batch_report(report)
    return report.success


def _run_export(args: argparse.Namespace) -> bool:
    client = _tenant_client(args)
    count = write_snapshot(snapshot(client), args.output_csv)
    print(f"✅ Exported {count} device(s) from {client.tenant_name} tenant to {args.output_csv}")
    return True


def _run_register(args: argparse.Namespace) -> bool:
    tasks = read_tasks(args.input_csv)
    report = register_devices(_tenant_client(args), tasks, dry_run=args.dry_run, pacing_delay=args.pacing_delay)
    _print_registration_report(report)
    return report.success


def _run_cleanup(args: argparse.Namespace) -> bool:
    serial = _serial_number(args)
    cleaner = DeviceCleaner(
        _tenant_client(args),
        dry_run=args.dry_run,
        name_prefix=args.name_prefix,
        confirm_timeout=args.confirm_timeout,
        confirm_interval=args.poll_interval,
    )
    report = cleaner.cleanup(serial)
    _print_cleanup_report(report)
    return report.success


_COMMANDS = {
    "migrate": _run_migrate,
    "migrate-batch": _run_migrate_batch,
    "export": _run_export,
    "register": _run_register,
    "cleanup": _run_cleanup,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)

    try:
        success = _COMMANDS[args.command](args)
    except MigrationError:
        logger.exception(f"{args.command} failed")
        sys.exit(1)

    sys.exit(0 if success else 1)
