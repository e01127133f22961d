"""
Tests for CLI module.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from autopilot_migrator.cli import main, parse_arguments
from autopilot_migrator.exceptions import AuthenticationError


@pytest.fixture
def tenants(source, target):
    """Route the CLI's tenant clients to the in-memory fakes."""

    def client_for(prefix: str, pass_path: str | None):
        return source if prefix == "SOURCE" else target

    with (
        patch("autopilot_migrator.cli._directory_client", side_effect=client_for),
        patch("autopilot_migrator.cli.setup_logging"),
    ):
        yield source, target


def run_main(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


@pytest.mark.unit
class TestParseArguments:
    def test_migrate_defaults(self) -> None:
        args = parse_arguments(["migrate", "ABC123"])

        assert args.command == "migrate"
        assert args.serial_number == "ABC123"
        assert args.poll_timeout == 300
        assert args.poll_interval == 10
        assert not args.dry_run

    def test_export_tenant_choice(self) -> None:
        args = parse_arguments(["export", "out.csv", "--tenant", "target"])

        assert args.tenant == "target"

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_arguments([])


@pytest.mark.unit
class TestMain:
    """Test exit status and output of each command."""

    def test_migrate_success_exits_zero(self, tenants, capsys: pytest.CaptureFixture[str]) -> None:
        source, target = tenants
        source.add("ABC123", group_tag="Line-01")

        assert run_main(["migrate", "ABC123"]) == 0
        assert "migrated" in capsys.readouterr().out
        assert target.find("ABC123") is not None

    def test_migrate_missing_device_exits_one(self, tenants) -> None:
        assert run_main(["migrate", "ZZZ999"]) == 1

    def test_migrate_dry_run_exits_zero(self, tenants) -> None:
        source, target = tenants
        source.add("ABC123")

        assert run_main(["migrate", "ABC123", "--dry-run"]) == 0
        assert source.mutations == []
        assert target.mutations == []

    def test_batch_with_failure_exits_one(self, tenants, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        source, _ = tenants
        source.add("ABC123")
        csv_file = tmp_path / "devices.csv"
        csv_file.write_text("SerialNumber,GroupTag\nABC123,Line-01\nZZZ999,Line-01\n", encoding="utf-8")

        assert run_main(["migrate-batch", str(csv_file), "--pacing-delay", "0"]) == 1

        out = capsys.readouterr().out
        assert "Succeeded: 1" in out
        assert "Failed: 1" in out

    def test_batch_all_success_exits_zero(self, tenants, tmp_path: Path) -> None:
        source, _ = tenants
        source.add("ABC123")
        csv_file = tmp_path / "devices.csv"
        csv_file.write_text("SerialNumber\nABC123\n", encoding="utf-8")

        assert run_main(["migrate-batch", str(csv_file), "--pacing-delay", "0"]) == 0

    def test_bad_input_file_exits_one(self, tenants, tmp_path: Path) -> None:
        assert run_main(["migrate-batch", str(tmp_path / "missing.csv")]) == 1

    def test_export_writes_csv(self, tenants, tmp_path: Path) -> None:
        _, target = tenants
        target.add("ABC123", group_tag="Line-01", model="Latitude 7440", manufacturer="Dell Inc.")
        output = tmp_path / "inventory.csv"

        assert run_main(["export", str(output), "--tenant", "target"]) == 0
        assert "ABC123,Line-01,Latitude 7440,Dell Inc." in output.read_text(encoding="utf-8")

    def test_authentication_failure_exits_one(self, tenants) -> None:
        source, _ = tenants

        def reject() -> None:
            raise AuthenticationError("token rejected")

        source.authenticate = reject

        assert run_main(["migrate", "ABC123"]) == 1

    def test_invalid_timing_exits_one(self, tenants) -> None:
        assert run_main(["migrate", "ABC123", "--poll-interval", "0"]) == 1

    def test_blank_serial_exits_one(self, tenants) -> None:
        source, target = tenants

        assert run_main(["migrate", "   "]) == 1
        assert source.calls == []
        assert target.calls == []
