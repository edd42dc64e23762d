"""
Minimal smoke tests for anchor-scheduler CLI.

Tests basic functionality:
- App runs and shows help
- Timeline renders as a table and as JSON
- Catalog, stack, defer, reactive and chronotype commands
- Bad input exits with an error
"""

import json
import logging
from datetime import date

import pytest
from typer.testing import CliRunner

from anchor_scheduler.cli.main import app


runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point HOME at an empty directory so no user overrides apply."""
    monkeypatch.setenv("HOME", str(tmp_path))
    yield tmp_path


@pytest.fixture
def restore_logging():
    logger = logging.getLogger("anchor_scheduler")
    handlers, level = logger.handlers[:], logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "timeline" in result.output
        assert "catalog" in result.output

    def test_timeline_table(self):
        result = runner.invoke(app, ["timeline", "--wake-today", "07:00", "--bed", "23:00", "--now", "12:00"])
        assert result.exit_code == 0
        assert "Timeline for" in result.output
        assert "Morning" in result.output

    def test_timeline_json(self):
        result = runner.invoke(app, [
            "timeline",
            "--wake-today", "07:00",
            "--bed", "23:00",
            "--now", "12:00",
            "--json",
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        today = date.today().isoformat()
        assert data["date"] == today
        assert data["current_action"] == f"cold_exposure_{today}"
        assert data["next_action"] == f"caffeine_cutoff_{today}"
        assert len(data["all_actions"]) == 12

    def test_timeline_with_session(self):
        result = runner.invoke(app, [
            "timeline",
            "--wake-today", "07:00",
            "--now", "12:00",
            "--session", "Strength@17:00/75!",
            "--json",
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        ids = [a["protocol"]["id"] for a in data["all_actions"]]
        assert "session_1" in ids
        assert "pre_training_fuel" in ids
        assert data["anchors"]["training_time"] == "17:00"
        assert data["unresolved_anchors"] == []

    def test_timeline_training_time_option(self):
        result = runner.invoke(app, ["timeline", "--now", "12:00", "--training-time", "17:00", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["anchors"]["has_training_today"] is True
        assert data["unresolved_anchors"] == []

    def test_timeline_done_and_skip(self):
        result = runner.invoke(app, [
            "timeline",
            "--wake-today", "07:00",
            "--now", "12:00",
            "--done", "caffeine_cutoff",
            "--json",
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["next_action"].startswith("last_meal_")

    def test_timeline_anchors_file(self, tmp_path):
        path = tmp_path / "anchors.json"
        path.write_text(json.dumps({
            "target_bed_time": "2030-01-01T23:00:00",
            "wake_time_today": "2030-01-01T07:00:00",
        }))
        result = runner.invoke(app, ["timeline", "--anchors-file", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["anchors"]["target_bed_time"] == "2030-01-01T23:00:00"

    @pytest.mark.parametrize("args", [
        ["timeline", "--session", "Strength"],
        ["timeline", "--now", "noon"],
        ["timeline", "--wake", "7am"],
        ["timeline", "--anchors-file", "does-not-exist.json"],
    ])
    def test_timeline_bad_input(self, args):
        result = runner.invoke(app, args)
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_error_text_with_brackets_is_printed(self):
        result = runner.invoke(app, ["timeline", "--session", "Strength"])
        assert result.exit_code == 1
        assert "TITLE@HH:MM[/MIN][!]" in result.output

    def test_session_title_with_brackets(self):
        result = runner.invoke(app, [
            "timeline",
            "--wake-today", "07:00",
            "--now", "17:30",
            "--session", "Legs [/heavy]@17:00",
        ])
        assert result.exit_code == 0
        assert "[/heavy]" in result.output

    def test_timeline_sessions_and_protocols_files(self, tmp_path):
        sessions = tmp_path / "sessions.json"
        sessions.write_text(json.dumps([
            {"id": "run", "title": "Easy Run", "time_of_day": "18:00", "duration_minutes": 40},
        ]))
        protocols = tmp_path / "protocols.json"
        protocols.write_text(json.dumps([{
            "id": "stretch",
            "name": "Stretch",
            "description": "Ten minutes of mobility",
            "domain": "recovery",
            "relative_to": "wake",
            "offset_minutes": 120,
            "window_minutes": 60,
            "priority": "low",
            "is_skippable": True,
            "duration_minutes": 10,
        }]))
        result = runner.invoke(app, [
            "timeline",
            "--wake-today", "07:00",
            "--now", "12:00",
            "--sessions-file", str(sessions),
            "--protocols-file", str(protocols),
            "--json",
        ])
        assert result.exit_code == 0
        data = json.loads(result.output)
        ids = [a["protocol"]["id"] for a in data["all_actions"]]
        assert "session_run" in ids
        assert "stretch" in ids
        stretch = next(a for a in data["all_actions"] if a["protocol"]["id"] == "stretch")
        assert stretch["scheduled_time"].endswith("T09:00:00")

    @pytest.mark.parametrize("name,content", [
        ("--sessions-file", {"id": "run"}),
        ("--sessions-file", ["run"]),
        ("--protocols-file", [{"id": "x", "relative_to": "lunch"}]),
    ])
    def test_timeline_bad_files(self, tmp_path, name, content):
        path = tmp_path / "data.json"
        path.write_text(json.dumps(content))
        result = runner.invoke(app, ["timeline", name, str(path)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_catalog(self):
        result = runner.invoke(app, ["catalog"])
        assert result.exit_code == 0
        assert "2024.1" in result.output

    def test_catalog_json_domain(self):
        result = runner.invoke(app, ["catalog", "--domain", "mind", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [p["id"] for p in data["protocols"]] == ["journaling", "evening_gratitude"]

    def test_catalog_unknown_domain(self):
        result = runner.invoke(app, ["catalog", "--domain", "nope"])
        assert result.exit_code == 1

    def test_stack(self):
        result = runner.invoke(app, ["stack", "09:00", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["schedule"]["wake_time"] == "07:00"
        assert data["schedule"]["bedtime"] == "23:00"
        assert len(data["protocols"]) == 6

    def test_stack_table_and_bad_time(self):
        assert runner.invoke(app, ["stack", "09:00", "--title", "Strength"]).exit_code == 0
        assert runner.invoke(app, ["stack", "9am"]).exit_code == 1

    def test_defer(self):
        result = runner.invoke(app, ["defer", "training", "--hour", "23", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["should_defer"] is True
        assert data["suggested_time"] == "09:00"

    def test_defer_fine(self):
        result = runner.invoke(app, ["defer", "sauna", "--hour", "18"])
        assert result.exit_code == 0
        assert "fine" in result.output

    def test_reactive(self):
        result = runner.invoke(app, ["reactive", "--hour", "14", "--readiness", "30", "--stress", "9", "--json"])
        assert result.exit_code == 0
        actions = [r["action"] for r in json.loads(result.output)]
        assert actions == ["Power Nap (20 min)", "Box Breathing (5 min)"]

    def test_reactive_state_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"readiness_score": 30, "stress_level": 9}))
        result = runner.invoke(app, ["reactive", "--hour", "14", "--state-file", str(path), "--json"])
        assert result.exit_code == 0
        actions = [r["action"] for r in json.loads(result.output)]
        assert actions == ["Power Nap (20 min)", "Box Breathing (5 min)"]

        # options win over the file
        result = runner.invoke(app, [
            "reactive", "--hour", "14", "--state-file", str(path), "--stress", "2", "--json",
        ])
        actions = [r["action"] for r in json.loads(result.output)]
        assert actions == ["Power Nap (20 min)"]

    def test_reactive_bad_state_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"stress_level": 11}))
        result = runner.invoke(app, ["reactive", "--hour", "14", "--state-file", str(path)])
        assert result.exit_code == 1

    def test_stack_and_defer_patterns_file(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({
            "avg_bedtime": "22:00",
            "avg_wake_time": "06:30",
            "wake_buffer_hours": 1.5,
            "target_sleep_hours": 7.5,
        }))
        result = runner.invoke(app, ["stack", "09:00", "--patterns-file", str(path), "--json"])
        assert result.exit_code == 0
        schedule = json.loads(result.output)["schedule"]
        assert schedule["wake_time"] == "07:30"
        assert schedule["bedtime"] == "00:00"

        result = runner.invoke(app, ["defer", "sauna", "--hour", "23", "--patterns-file", str(path), "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["suggested_time"] == "08:30"

    def test_bad_patterns_file(self, tmp_path):
        path = tmp_path / "patterns.json"
        path.write_text(json.dumps({"avg_bedtime": "late"}))
        result = runner.invoke(app, ["defer", "sauna", "--hour", "23", "--patterns-file", str(path)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_reactive_nothing(self):
        result = runner.invoke(app, ["reactive", "--hour", "10"])
        assert result.exit_code == 0
        assert "Nothing" in result.output

    def test_chronotype(self):
        result = runner.invoke(app, ["chronotype", "06:00", "22:00", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"chronotype": "lion"}

    def test_chronotype_bad_time(self):
        result = runner.invoke(app, ["chronotype", "six", "22:00"])
        assert result.exit_code == 1

    def test_verbose_flag(self, restore_logging):
        result = runner.invoke(app, ["--verbose", "catalog"])
        assert result.exit_code == 0
