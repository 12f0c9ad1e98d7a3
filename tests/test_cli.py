"""
Tests for the command line interface (mock booking store only).
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from salonslots import __version__
from salonslots.cli.app import app

runner = CliRunner()

# 2099-01-05 is a Monday, 2099-01-04 a Sunday
MONDAY = "2099-01-05"
SUNDAY = "2099-01-04"

CONFIG_YAML = """
venue:
  name: "Test Spa"
  timezone: "Asia/Kuala_Lumpur"
therapists:
  - id: "1"
    name: "Maya"
  - id: "2"
    name: "Lisa"
services:
  - id: "101"
    name: "Facial Treatment"
    duration_minutes: 90
mock_data_file: "bookings.json"
"""

BOOKINGS_JSON = """
[
  {"id": "X1", "therapist_id": "1", "date": "2099-01-05", "start_time": "10:00", "duration": 60}
]
"""


@pytest.fixture
def config_path(tmp_path) -> Path:
    (tmp_path / "bookings.json").write_text(BOOKINGS_JSON, encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


class TestSlotsCommand:
    """Tests for the slots command."""

    def test_shows_full_grid(self, config_path):
        """Test that available and booked slots are both listed."""
        result = runner.invoke(
            app, ["slots", "maya", "--date", MONDAY, "--service", "101", "--mock", "--config", str(config_path)]
        )

        assert result.exit_code == 0, result.output
        assert "09:00" in result.output
        assert "available" in result.output
        assert "booked" in result.output

    def test_closed_day(self, config_path):
        """Test that a closed day is a message, not an error."""
        result = runner.invoke(
            app, ["slots", "1", "--date", SUNDAY, "--mock", "--config", str(config_path)]
        )

        assert result.exit_code == 0, result.output
        assert "No slots" in result.output

    def test_unknown_therapist(self, config_path):
        """Test error reporting for unknown therapists."""
        result = runner.invoke(app, ["slots", "nobody", "--mock", "--config", str(config_path)])

        assert result.exit_code == 1
        assert "Unknown therapist" in result.output

    def test_invalid_duration(self, config_path):
        """Test that a zero duration is rejected."""
        result = runner.invoke(
            app, ["slots", "1", "--date", MONDAY, "--duration", "0", "--mock", "--config", str(config_path)]
        )

        assert result.exit_code == 1

    def test_zero_step_is_rejected(self, config_path):
        """Test that --step 0 is an error rather than the default grid."""
        result = runner.invoke(
            app, ["slots", "1", "--date", MONDAY, "--step", "0", "--mock", "--config", str(config_path)]
        )

        assert result.exit_code == 1
        assert "step_minutes" in result.output


class TestOtherCommands:
    """Tests for book, board, therapists and version."""

    def test_book_free_slot(self, config_path):
        """Test booking into the mock store."""
        result = runner.invoke(
            app,
            ["book", "1", "--date", MONDAY, "--time", "11:00", "--service", "101", "--mock", "--config", str(config_path)],
        )

        assert result.exit_code == 0, result.output
        assert "Booked" in result.output

    def test_book_taken_slot(self, config_path):
        """Test that an already booked slot is refused."""
        result = runner.invoke(
            app,
            ["book", "1", "--date", MONDAY, "--time", "10:00", "--service", "101", "--mock", "--config", str(config_path)],
        )

        assert result.exit_code == 1
        assert "cannot be booked" in result.output

    def test_board(self, config_path):
        """Test the admin day board."""
        result = runner.invoke(app, ["board", "--date", MONDAY, "--mock", "--config", str(config_path)])

        assert result.exit_code == 0, result.output
        assert "Maya" in result.output
        assert "Lisa" in result.output

    def test_therapists(self, config_path):
        """Test listing therapists."""
        result = runner.invoke(app, ["therapists", "--config", str(config_path)])

        assert result.exit_code == 0, result.output
        assert "Maya" in result.output

    def test_version(self):
        """Test the version command."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
