"""Configuration management for the daily work report."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "paths": {"repos_root": "", "reports_dir": "reports"},
    "work_hours": {
        "start": "09:00",
        "end": "18:00",
        "lunch_break": {"start": "13:30", "end": "14:30"},
        "daily_overrides": {},
        "work_days": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"],
        "timezone": "Europe/Rome",
    },
    "activity_watch": {
        "base_url": "http://127.0.0.1:5600/api/0",
        "watchers": ["aw-watcher-window", "aw-watcher-web", "aw-watcher-afk"],
        "timeout_seconds": 10,
    },
    "filters": {"min_duration_seconds": 10, "merge_gap_seconds": 60, "exclude_afk": True},
    "editors": {
        "recognized_apps": ["code", "devenv", "rider", "pycharm", "idea"],
        "commit_association_window_minutes": 15,
    },
    "calendar": {"enabled": False, "ics_file": "", "timezone": None},
    "report_window": {"start_date": None, "end_date": None},
    "output": {"formats": ["markdown", "csv"], "file_name_template": "daily-{date}"},
    "reminders": [],
}

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
OUTPUT_FORMATS = {"csv", "markdown", "json"}


@dataclass
class LunchBreak:
    start: str = "13:30"
    end: str = "14:30"


@dataclass
class DayOverride:
    start: Optional[str] = None
    end: Optional[str] = None
    lunch_break: Optional[LunchBreak] = None


@dataclass
class WorkHours:
    start: str = "09:00"
    end: str = "18:00"
    lunch_break: Optional[LunchBreak] = field(default_factory=LunchBreak)
    daily_overrides: dict[str, DayOverride] = field(default_factory=dict)
    work_days: list[str] = field(default_factory=lambda: list(WEEKDAYS[:5]))
    timezone: str = "Europe/Rome"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def weekday_numbers(self) -> set[int]:
        return {WEEKDAYS.index(day.lower()) for day in self.work_days}

    def override_for(self, weekday: int) -> Optional[DayOverride]:
        return self.daily_overrides.get(WEEKDAYS[weekday])


@dataclass
class PathsConfig:
    repos_root: str = ""
    reports_dir: str = "reports"


@dataclass
class ActivityWatchConfig:
    base_url: str = "http://127.0.0.1:5600/api/0"
    watchers: list[str] = field(default_factory=list)
    timeout_seconds: float = 10


@dataclass
class FiltersConfig:
    min_duration_seconds: int = 10
    merge_gap_seconds: int = 60
    exclude_afk: bool = True


@dataclass
class EditorsConfig:
    recognized_apps: list[str] = field(default_factory=list)
    commit_association_window_minutes: int = 15


@dataclass
class CalendarConfig:
    enabled: bool = False
    ics_file: str = ""
    timezone: Optional[str] = None


@dataclass
class ReportWindowConfig:
    start_date: Optional[str] = None
    end_date: Optional[str] = None


@dataclass
class OutputConfig:
    formats: list[str] = field(default_factory=lambda: ["markdown", "csv"])
    file_name_template: str = "daily-{date}"


@dataclass
class Reminder:
    time: str
    title: str


@dataclass
class ReportConfig:
    """Root of the report configuration."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    work_hours: WorkHours = field(default_factory=WorkHours)
    activity_watch: ActivityWatchConfig = field(default_factory=ActivityWatchConfig)
    filters: FiltersConfig = field(default_factory=FiltersConfig)
    editors: EditorsConfig = field(default_factory=EditorsConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    report_window: ReportWindowConfig = field(default_factory=ReportWindowConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    reminders: list[Reminder] = field(default_factory=list)


def _deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _time_str(value: Any) -> Optional[str]:
    # unquoted HH:MM in YAML 1.1 loads as a base-60 integer
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value // 60:02d}:{value % 60:02d}"
    return None if value is None else str(value)


def _lunch(raw: Any) -> Optional[LunchBreak]:
    if not raw:
        return None
    return LunchBreak(start=_time_str(raw.get("start")) or "", end=_time_str(raw.get("end")) or "")


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _build(data: dict) -> ReportConfig:
    wh = data["work_hours"]
    overrides = {}
    for day, raw in (wh.get("daily_overrides") or {}).items():
        key = str(day).strip().lower()
        if key not in WEEKDAYS:
            raise ValueError(f"work_hours.daily_overrides: unknown weekday '{day}'")
        raw = raw or {}
        overrides[key] = DayOverride(
            start=_time_str(raw.get("start")),
            end=_time_str(raw.get("end")),
            lunch_break=_lunch(raw.get("lunch_break")),
        )

    work_days = [str(day).strip() for day in wh.get("work_days") or []]
    unknown = [day for day in work_days if day.lower() not in WEEKDAYS]
    if unknown:
        raise ValueError(f"work_hours.work_days: unknown weekdays {unknown}")

    reminders = []
    for index, raw in enumerate(data.get("reminders") or [], start=1):
        if not isinstance(raw, dict) or not raw.get("time") or not raw.get("title"):
            raise ValueError(f"reminders[{index}]: 'time' and 'title' are required")
        reminders.append(Reminder(time=_time_str(raw["time"]), title=str(raw["title"])))

    aw = data["activity_watch"]
    filters = data["filters"]
    editors = data["editors"]
    calendar = data["calendar"]
    window = data.get("report_window") or {}
    output = data["output"]

    return ReportConfig(
        paths=PathsConfig(
            repos_root=str(data["paths"].get("repos_root") or ""),
            reports_dir=str(data["paths"].get("reports_dir") or "reports"),
        ),
        work_hours=WorkHours(
            start=_time_str(wh["start"]),
            end=_time_str(wh["end"]),
            lunch_break=_lunch(wh.get("lunch_break")),
            daily_overrides=overrides,
            work_days=work_days,
            timezone=str(wh["timezone"]),
        ),
        activity_watch=ActivityWatchConfig(
            base_url=str(aw["base_url"]),
            watchers=[str(w) for w in aw.get("watchers") or []],
            timeout_seconds=float(aw.get("timeout_seconds", 10)),
        ),
        filters=FiltersConfig(
            min_duration_seconds=int(filters["min_duration_seconds"]),
            merge_gap_seconds=int(filters["merge_gap_seconds"]),
            exclude_afk=bool(filters["exclude_afk"]),
        ),
        editors=EditorsConfig(
            recognized_apps=[str(a) for a in editors.get("recognized_apps") or []],
            commit_association_window_minutes=int(editors["commit_association_window_minutes"]),
        ),
        calendar=CalendarConfig(
            enabled=bool(calendar.get("enabled")),
            ics_file=str(calendar.get("ics_file") or ""),
            timezone=_optional_str(calendar.get("timezone")),
        ),
        report_window=ReportWindowConfig(
            start_date=_optional_str(window.get("start_date")),
            end_date=_optional_str(window.get("end_date")),
        ),
        output=OutputConfig(
            formats=[str(f).lower() for f in output.get("formats") or []],
            file_name_template=str(output.get("file_name_template") or "daily-{date}"),
        ),
        reminders=reminders,
    )


def validate(config: ReportConfig) -> ReportConfig:
    """Raise ``ValueError`` for settings that make a run impossible."""

    try:
        ZoneInfo(config.work_hours.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"work_hours.timezone: unknown time zone '{config.work_hours.timezone}'") from exc

    parsed = urlparse(config.activity_watch.base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"activity_watch.base_url: invalid URL '{config.activity_watch.base_url}'")

    repos_root = config.paths.repos_root
    if repos_root and not Path(repos_root).expanduser().is_dir():
        raise ValueError(f"paths.repos_root: '{repos_root}' is not a directory")

    bad_formats = sorted(set(config.output.formats) - OUTPUT_FORMATS)
    if bad_formats:
        raise ValueError(f"output.formats: unsupported formats {bad_formats}")

    return config


def from_dict(user_config: Optional[dict]) -> ReportConfig:
    """Merge ``user_config`` over the defaults and build a validated config."""

    if user_config is not None and not isinstance(user_config, dict):
        raise ValueError("configuration root must be a mapping")
    try:
        config = _build(_deep_merge(DEFAULT_CONFIG, user_config or {}))
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"malformed configuration: {exc}") from exc
    return validate(config)


def load_config(path: Optional[str] = None) -> ReportConfig:
    """Load configuration from file or fall back to the defaults."""

    if path is not None:
        config_paths = [Path(path)]
        if not config_paths[0].exists():
            raise ValueError(f"configuration file not found: {path}")
    else:
        config_paths = [
            Path.home() / ".config" / "work-daily-report" / "config.yaml",
            Path.cwd() / "config.yaml",
        ]

    for config_path in config_paths:
        if config_path.exists():
            with open(config_path, encoding="utf-8") as handle:
                return from_dict(yaml.safe_load(handle))

    return from_dict(None)
