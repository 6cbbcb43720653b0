"""Report time window resolution."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfoNotFoundError

from work_report.config import ReportWindowConfig, WorkHours
from work_report.schema import ReportWindow


def parse_time_of_day(value: Optional[str]) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a :class:`datetime.time`."""

    if not value or not str(value).strip():
        raise ValueError("empty time of day")
    text = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"malformed time of day '{value}'")


def local_instant(day: date, moment: time, tz: tzinfo) -> datetime:
    """Attach ``tz`` to a wall-clock time; the offset follows DST for that day."""

    return datetime.combine(day, moment, tzinfo=tz)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value or not str(value).strip():
        return None
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def report_dates(report_window: Optional[ReportWindowConfig], today: date) -> tuple[date, date]:
    """Explicit date range when both bounds parse, otherwise ``today`` only."""

    if report_window is not None:
        start = _parse_date(report_window.start_date)
        end = _parse_date(report_window.end_date)
        if start is not None and end is not None:
            if start > end:
                raise ValueError(f"report_window: start_date {start} is after end_date {end}")
            return start, end
    return today, today


def resolve_window(
    work_hours: WorkHours,
    report_window: Optional[ReportWindowConfig] = None,
    today: Optional[date] = None,
) -> ReportWindow:
    """Compute activity and commit query bounds for the report."""

    try:
        tz = work_hours.tz
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown time zone '{work_hours.timezone}'") from exc
    if today is None:
        today = datetime.now(tz).date()

    start_date, end_date = report_dates(report_window, today)
    start_time = parse_time_of_day(work_hours.start)
    end_time = parse_time_of_day(work_hours.end)

    return ReportWindow(
        since=local_instant(start_date, start_time, tz),
        until=local_instant(end_date, end_time, tz),
        start_date=start_date,
        end_date=end_date,
        commit_since=local_instant(start_date, time.min, tz),
        commit_until=local_instant(end_date + timedelta(days=1), time.min, tz),
    )


def iter_days(start_date: date, end_date: date):
    day = start_date
    while day <= end_date:
        yield day
        day += timedelta(days=1)
