"""Tests for the command line entry point."""

import json
import tomllib

import pytest

from gridcal_calendar import main, parse_days


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "gridcal.toml"
    data_dir = tmp_path / "data"
    path.write_text(f"[General]\nstorage_dir = '{data_dir}'\ntimezone = 'UTC'\n")
    return str(path)


def run(config_path, *argv) -> int:
    return main(["-c", config_path, *argv])


def test_parse_days():
    assert parse_days("mon,fri") == (1, 5)
    assert parse_days("0, 6") == (0, 6)


def test_add_and_list_day(config_path, capsys):
    assert run(config_path, "add", "Gym", "2024-03-06", "09:00", "--end", "10:00", "--category", "Health") == 0
    assert "Created 1 event(s)" in capsys.readouterr().out

    assert run(config_path, "day", "2024-03-06") == 0
    out = capsys.readouterr().out
    assert "2024-03-06 09:00-10:00 Gym [Health]" in out


def test_recurring_add(config_path, capsys):
    assert run(config_path, "add", "Yoga", "2024-03-06", "07:00", "--repeat", "weekly",
               "--days", "mon,fri", "--count", "4") == 0
    assert "Created 4 event(s)" in capsys.readouterr().out

    run(config_path, "month", "2024-03-01")
    out = capsys.readouterr().out
    for day in ("2024-03-06", "2024-03-08", "2024-03-11", "2024-03-15"):
        assert day in out


def test_conflict_blocks_unless_forced(config_path, capsys):
    run(config_path, "add", "Gym", "2024-03-06", "09:00", "--end", "10:00")
    capsys.readouterr()

    assert run(config_path, "add", "Standup", "2024-03-06", "10:00") == 1
    assert "conflicts with: Gym" in capsys.readouterr().out

    assert run(config_path, "add", "Standup", "2024-03-06", "10:00", "--force") == 0


def test_validation_error_exit_code(config_path, capsys):
    assert run(config_path, "add", "  ", "2024-03-06", "09:00") == 1
    assert "title is required" in capsys.readouterr().out


def test_search_and_categories(config_path, capsys):
    run(config_path, "add", "Gym", "2024-03-06", "07:00", "--category", "Health")
    run(config_path, "add", "Standup", "2024-03-06", "11:00", "--category", "Work")
    capsys.readouterr()

    run(config_path, "search", "gym")
    out = capsys.readouterr().out
    assert "Gym" in out and "Standup" not in out

    run(config_path, "search", "x", "--category", "Work")
    assert "No events" in capsys.readouterr().out

    run(config_path, "categories")
    assert capsys.readouterr().out.split() == ["Health", "Work"]


def test_missing_id_commands_succeed(config_path):
    assert run(config_path, "delete", "nonexistent") == 0
    assert run(config_path, "move", "nonexistent", "2024-03-07") == 0
    assert run(config_path, "update", "nonexistent", "--title", "X") == 0


def test_export(config_path, tmp_path, capsys):
    run(config_path, "add", "Gym", "2024-03-06", "07:00")
    target = tmp_path / "out.ics"
    assert run(config_path, "export", str(target)) == 0
    assert target.exists()
    assert "Exported 1 event(s)" in capsys.readouterr().out


def test_missing_config_file(tmp_path, capsys):
    assert main(["-c", str(tmp_path / "absent.toml"), "categories"]) == 1
    assert "Configuration file not found" in capsys.readouterr().out


def test_example_config_is_valid_toml(tmp_path, capsys):
    main(["-c", str(tmp_path / "absent.toml"), "categories"])
    example = capsys.readouterr().out.split("Example configuration:", 1)[1]
    data = tomllib.loads(example)
    assert data["General"]["timezone"] == "Europe/Amsterdam"
    assert data["Events"]["categories"] == "Work Personal Health"


def test_add_resolves_color_and_category(config_path, tmp_path):
    assert run(config_path, "add", "Gym", "2024-03-06", "07:00", "--color", "red", "--category", "health") == 0
    [record] = json.loads((tmp_path / "data" / "calendar-events.json").read_text())
    assert record["color"] == "#EF4444"
    assert record["category"] == "Health"


def test_unknown_category_rejected(config_path, capsys):
    assert run(config_path, "add", "Gym", "2024-03-06", "07:00", "--category", "Chores") == 1
    assert "Unknown category 'Chores'" in capsys.readouterr().out
    run(config_path, "day", "2024-03-06")
    assert "No events" in capsys.readouterr().out


def test_unknown_color_rejected(config_path, capsys):
    assert run(config_path, "update", "placeholder", "--color", "chartreuse") == 1
    assert "Unknown color 'chartreuse'" in capsys.readouterr().out


def test_configured_categories(config_path, capsys):
    run(config_path, "categories", "--configured")
    assert capsys.readouterr().out.split() == [
        "Work", "Personal", "Health", "Social", "Family", "Travel", "Education",
    ]
