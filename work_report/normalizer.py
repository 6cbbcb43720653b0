"""Conversion of raw source records into normalized events."""

from __future__ import annotations

import logging
from datetime import date, timedelta, tzinfo
from typing import Iterable, Optional

from work_report.config import Reminder, WorkHours
from work_report.schema import (
    KIND_AFK,
    KIND_CALENDAR,
    KIND_REMINDER,
    KIND_WINDOW,
    SOURCE_ACTIVITYWATCH,
    SOURCE_OUTLOOK,
    SOURCE_SCHEDULER,
    CalendarEntry,
    NormalizedEvent,
    RawSample,
)
from work_report.time_window import iter_days, local_instant, parse_time_of_day

logger = logging.getLogger(__name__)

AFK_APP = "AFK"
AFK_TITLE = "Assente"
CALENDAR_APP = "Outlook"


def is_recognized_app(app: Optional[str], recognized_apps: Iterable[str]) -> bool:
    """True when ``app`` contains any recognized editor name, ignoring case."""

    if not app:
        return False
    lowered = app.lower()
    return any(name and name.lower() in lowered for name in recognized_apps)


def _span(sample: RawSample, tz: tzinfo):
    start = sample.timestamp.astimezone(tz)
    duration = sample.duration or 0.0
    end = start + timedelta(seconds=duration) if duration > 0 else start
    return start, end


def normalize_window_events(
    samples: Iterable[RawSample],
    recognized_apps: Iterable[str],
    tz: tzinfo,
) -> list[NormalizedEvent]:
    """Window watcher samples to ``Window`` events in the report time zone."""

    recognized = list(recognized_apps)
    events = []
    for sample in samples:
        start, end = _span(sample, tz)
        events.append(
            NormalizedEvent(
                start=start,
                end=end,
                source=SOURCE_ACTIVITYWATCH,
                kind=KIND_WINDOW,
                app=sample.app,
                title=sample.title,
                url=sample.url,
                is_coding=is_recognized_app(sample.app, recognized),
            )
        )
    return events


def normalize_afk_events(samples: Iterable[RawSample], tz: tzinfo) -> list[NormalizedEvent]:
    """AFK watcher samples with status ``afk`` to ``AFK`` events."""

    events = []
    for sample in samples:
        if (sample.status or "").strip().lower() != "afk":
            continue
        start, end = _span(sample, tz)
        events.append(
            NormalizedEvent(
                start=start,
                end=end,
                source=SOURCE_ACTIVITYWATCH,
                kind=KIND_AFK,
                app=AFK_APP,
                title=AFK_TITLE,
            )
        )
    return events


def normalize_calendar_events(entries: Iterable[CalendarEntry], tz: tzinfo) -> list[NormalizedEvent]:
    events = []
    for entry in entries:
        title = entry.title or ""
        if entry.location:
            title = f"{title} ({entry.location})" if title else entry.location
        start = entry.start.astimezone(tz)
        end = max(entry.end.astimezone(tz), start)
        events.append(
            NormalizedEvent(
                start=start,
                end=end,
                source=SOURCE_OUTLOOK,
                kind=KIND_CALENDAR,
                app=CALENDAR_APP,
                title=title or None,
            )
        )
    return events


def build_reminders(
    reminders: Iterable[Reminder],
    work_hours: WorkHours,
    start_date: date,
    end_date: date,
) -> list[NormalizedEvent]:
    """Zero-length reminder events on every work day of the range."""

    reminders = list(reminders)
    if not reminders:
        return []

    tz = work_hours.tz
    work_days = work_hours.weekday_numbers()
    events = []
    for day in iter_days(start_date, end_date):
        if day.weekday() not in work_days:
            continue
        for reminder in reminders:
            try:
                moment = local_instant(day, parse_time_of_day(reminder.time), tz)
            except ValueError:
                logger.warning("Skipping reminder '%s': malformed time '%s'", reminder.title, reminder.time)
                continue
            events.append(
                NormalizedEvent(
                    start=moment,
                    end=moment,
                    source=SOURCE_SCHEDULER,
                    kind=KIND_REMINDER,
                    title=reminder.title,
                )
            )
    return sorted(events, key=lambda e: e.start)
