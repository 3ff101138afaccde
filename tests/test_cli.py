"""Tests for the taskpulse command line."""

import json

import pytest
import yaml
from click.testing import CliRunner

from taskpulse.cli import cli, heat_cell, load_tasks


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tasks_file(tmp_path):
    path = tmp_path / "tasks.yaml"
    path.write_text(yaml.safe_dump({"tasks": [
        {
            "id": "water",
            "title": "Water plants",
            "due_date": "2024-03-15T09:00:00",
            "recurrence_type": "weekly",
            "recurrence_interval": 1,
            "recurrence_end_date": "2024-04-05",
        },
        {
            "id": "report",
            "title": "Write report",
            "status": "completed",
            "priority": "high",
            "created_at": "2024-03-14T09:00:00",
            "completed_at": "2024-03-15T09:00:00",
            "estimated_minutes": 60,
            "actual_minutes": 90,
        },
        {
            "id": "once",
            "title": "One-off",
            "due_date": "2024-03-10",
        },
    ]}))
    return path


class TestPreviewCommand:
    def test_lists_occurrences_until_series_ends(self, runner, tasks_file):
        result = runner.invoke(cli, ["preview", str(tasks_file), "water", "--count", "5"])

        assert result.exit_code == 0, result.output
        assert "2024-03-22" in result.output
        assert "2024-03-29" in result.output
        assert "2024-04-05" in result.output
        assert "2024-04-12" not in result.output

    def test_non_recurring_task(self, runner, tasks_file):
        result = runner.invoke(cli, ["preview", str(tasks_file), "once"])

        assert result.exit_code == 0
        assert "No upcoming occurrences" in result.output

    def test_unknown_task_id(self, runner, tasks_file):
        result = runner.invoke(cli, ["preview", str(tasks_file), "missing"])

        assert result.exit_code != 0
        assert "No task with id 'missing'" in result.output


    def test_leap_day_policy_comes_from_config_option(self, runner, tmp_path):
        tasks_path = tmp_path / "leap.yaml"
        tasks_path.write_text(yaml.safe_dump([{
            "id": "leap", "title": "Leap", "due_date": "2024-02-29",
            "recurrence_type": "yearly",
        }]))
        config_path = tmp_path / "custom.yaml"
        config_path.write_text("leap_day_policy: roll_forward\n")

        default = runner.invoke(cli, ["preview", str(tasks_path), "leap", "-n", "1"])
        rolled = runner.invoke(cli, ["--config", str(config_path),
                                     "preview", str(tasks_path), "leap", "-n", "1"])

        assert "2025-02-28" in default.output
        assert "2025-03-01" in rolled.output


class TestNextCommand:
    def test_json_output(self, runner, tasks_file):
        result = runner.invoke(cli, ["next", str(tasks_file), "water", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["due_date"] == "2024-03-22T09:00:00"
        assert data["status"] == "pending"
        assert data["id"] != "water"

    def test_no_follow_up(self, runner, tasks_file):
        result = runner.invoke(cli, ["next", str(tasks_file), "once"])

        assert result.exit_code == 0
        assert "No further occurrence" in result.output


class TestStatsCommand:
    def test_json_output(self, runner, tasks_file):
        result = runner.invoke(cli, ["stats", str(tasks_file), "--today", "2024-03-15",
                                     "--days", "7", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["total_tasks"] == 3
        assert data["completed_count"] == 1
        assert data["overdue_count"] == 1
        assert data["estimation_accuracy"] == pytest.approx(0.5)
        assert data["streak"]["current"] == 1
        assert len(data["heatmap"]) == 7
        assert data["heatmap"]["2024-03-15"] == 1

    def test_today_counts_only_earlier_due_dates_as_overdue(self, runner, tasks_file):
        # "water" is due at 09:00 on the given day, "once" five days before
        for day, expected in [("2024-03-15", 1), ("2024-03-16", 2), ("2024-03-10", 0)]:
            result = runner.invoke(cli, ["stats", str(tasks_file), "--today", day, "--json"])

            assert result.exit_code == 0, result.output
            assert json.loads(result.output)["overdue_count"] == expected

    def test_table_output(self, runner, tasks_file):
        result = runner.invoke(cli, ["stats", str(tasks_file), "--today", "2024-03-15"])

        assert result.exit_code == 0, result.output
        assert "Summary" in result.output
        assert "Completion rate" in result.output

    def test_config_option(self, runner, tasks_file, tmp_path):
        config_path = tmp_path / "custom.yaml"
        config_path.write_text("heatmap_days: 3\n")
        result = runner.invoke(cli, ["--config", str(config_path), "stats", str(tasks_file),
                                     "--today", "2024-03-15", "--json"])

        assert result.exit_code == 0, result.output
        assert len(json.loads(result.output)["heatmap"]) == 3

    def test_invalid_task_file(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- id: 1\n  status: finished\n")
        result = runner.invoke(cli, ["stats", str(path)])

        assert result.exit_code != 0
        assert "Invalid task data" in result.output


class TestParseCommand:
    def test_known_phrase(self, runner):
        result = runner.invoke(cli, ["parse", "every", "3", "weeks"])

        assert result.exit_code == 0
        assert "type=weekly interval=3" in result.output

    def test_unknown_phrase(self, runner):
        result = runner.invoke(cli, ["parse", "sometimes"])
        assert result.exit_code != 0


class TestHelpers:
    def test_load_tasks_accepts_json_list(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps([{"id": "a", "title": "A"}, {"id": "b", "title": "B"}]))
        assert [t.id for t in load_tasks(path)] == ["a", "b"]

    def test_load_tasks_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_tasks(path) == []

    def test_heat_cell(self):
        assert heat_cell(0, 5) == " "
        assert heat_cell(5, 5) == "█"
        assert heat_cell(1, 5) != " "
