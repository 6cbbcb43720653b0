import pytest

from work_report.config import DEFAULT_CONFIG, from_dict, load_config


def test_defaults_are_complete():
    config = from_dict(None)
    assert config.work_hours.start == "09:00"
    assert config.work_hours.lunch_break.start == "13:30"
    assert config.work_hours.timezone == "Europe/Rome"
    assert config.filters.min_duration_seconds == 10
    assert config.filters.exclude_afk is True
    assert config.editors.commit_association_window_minutes == 15
    assert config.output.formats == ["markdown", "csv"]
    assert config.reminders == []


def test_user_values_override_defaults_section_by_section():
    config = from_dict({"work_hours": {"end": "17:00"}, "filters": {"merge_gap_seconds": 30}})
    assert config.work_hours.end == "17:00"
    assert config.work_hours.start == "09:00"
    assert config.filters.merge_gap_seconds == 30
    assert config.filters.min_duration_seconds == 10
    assert DEFAULT_CONFIG["work_hours"]["end"] == "18:00"


def test_overrides_and_reminders_are_parsed():
    config = from_dict(
        {
            "work_hours": {"daily_overrides": {"Friday": {"end": "16:00", "lunch_break": None}}},
            "reminders": [{"time": "17:45", "title": "Fill in the report"}],
        }
    )
    friday = config.work_hours.override_for(4)
    assert friday.end == "16:00"
    assert friday.start is None
    assert friday.lunch_break is None
    assert config.reminders[0].title == "Fill in the report"


def test_null_lunch_disables_break():
    assert from_dict({"work_hours": {"lunch_break": None}}).work_hours.lunch_break is None


def test_yaml_file_with_unquoted_times(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "work_hours:\n"
        "  start: 08:30\n"
        "  end: 17:30\n"
        "  lunch_break:\n"
        "    start: 13:00\n"
        "    end: 14:00\n"
        "  timezone: UTC\n"
        "reminders:\n"
        "  - time: 17:15\n"
        "    title: Wrap up\n",
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config.work_hours.start == "08:30"
    assert config.work_hours.end == "17:30"
    assert config.work_hours.lunch_break.start == "13:00"
    assert config.work_hours.lunch_break.end == "14:00"
    assert config.reminders[0].time == "17:15"


def test_empty_yaml_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(str(path)).work_hours.timezone == "Europe/Rome"


def test_missing_explicit_file_is_an_error(tmp_path):
    with pytest.raises(ValueError):
        load_config(str(tmp_path / "missing.yaml"))


@pytest.mark.parametrize(
    "user_config",
    [
        {"work_hours": {"timezone": "Mars/Olympus"}},
        {"activity_watch": {"base_url": "localhost:5600"}},
        {"work_hours": {"work_days": ["Funday"]}},
        {"work_hours": {"daily_overrides": {"someday": {"end": "16:00"}}}},
        {"output": {"formats": ["pdf"]}},
        {"reminders": [{"time": "10:00"}]},
        {"paths": {"repos_root": "/definitely/not/here"}},
        {"filters": None},
    ],
)
def test_invalid_settings_raise_value_error(user_config):
    with pytest.raises(ValueError):
        from_dict(user_config)


def test_root_must_be_mapping():
    with pytest.raises(ValueError):
        from_dict(["not", "a", "mapping"])
