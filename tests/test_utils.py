"""
Tests for the pass utility wrapper.
"""

import subprocess
from unittest.mock import Mock, patch

import pytest

from autopilot_migrator.utils import InvalidPassPathError, PassError, get_pass_value


@pytest.mark.unit
class TestGetPassValue:
    @patch("autopilot_migrator.utils.subprocess.run")
    def test_returns_stripped_value(self, mock_run: Mock) -> None:
        mock_run.return_value = subprocess.CompletedProcess(["pass"], 0, stdout="secret\n", stderr="")

        assert get_pass_value("azure/source/secret") == "secret"

    def test_rejects_invalid_path(self) -> None:
        with pytest.raises(ValueError, match="Invalid pass path"):
            get_pass_value("../etc/passwd")

    @patch("autopilot_migrator.utils.subprocess.run")
    def test_missing_entry(self, mock_run: Mock) -> None:
        mock_run.side_effect = subprocess.CalledProcessError(
            1, ["pass"], stderr="Error: azure/x is not in the password store."
        )

        with pytest.raises(InvalidPassPathError):
            get_pass_value("azure/x")

    @patch("autopilot_migrator.utils.subprocess.run", side_effect=FileNotFoundError("pass"))
    def test_pass_not_installed(self, mock_run: Mock) -> None:
        with pytest.raises(PassError, match="not installed"):
            get_pass_value("azure/x")
