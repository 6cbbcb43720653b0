"""Work schedule intervals and clipping."""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from work_report.config import WEEKDAYS, LunchBreak, WorkHours
from work_report.schema import NormalizedEvent, WorkInterval
from work_report.time_window import iter_days, local_instant, parse_time_of_day

logger = logging.getLogger(__name__)


def day_intervals(day: date, work_hours: WorkHours) -> list[WorkInterval]:
    """Work intervals of one day: two around a valid lunch break, else one.

    Raises ``ValueError`` when the day's times do not parse.
    """

    override = work_hours.override_for(day.weekday())
    start_raw = override.start if override and override.start else work_hours.start
    end_raw = override.end if override and override.end else work_hours.end
    lunch: Optional[LunchBreak] = work_hours.lunch_break
    if override is not None and override.lunch_break is not None:
        lunch = override.lunch_break

    tz = work_hours.tz
    start = local_instant(day, parse_time_of_day(start_raw), tz)
    end = local_instant(day, parse_time_of_day(end_raw), tz)
    if start >= end:
        return []

    if lunch is not None and lunch.start and lunch.end:
        lunch_start = local_instant(day, parse_time_of_day(lunch.start), tz)
        lunch_end = local_instant(day, parse_time_of_day(lunch.end), tz)
        if lunch_start < lunch_end:
            pieces = [(start, min(lunch_start, end)), (max(lunch_end, start), end)]
            return [WorkInterval(s, e) for s, e in pieces if e > s]

    return [WorkInterval(start, end)]


def build_work_intervals(work_hours: WorkHours, start_date: date, end_date: date) -> list[WorkInterval]:
    """Work intervals for every configured work day in ``[start_date, end_date]``."""

    work_days = work_hours.weekday_numbers()
    intervals: list[WorkInterval] = []
    for day in iter_days(start_date, end_date):
        if day.weekday() not in work_days:
            continue
        try:
            found = day_intervals(day, work_hours)
        except ValueError as exc:
            logger.warning("Skipping %s (%s): invalid schedule: %s", day, WEEKDAYS[day.weekday()], exc)
            continue
        if not found:
            logger.warning("Skipping %s: work day start is not before its end", day)
        intervals.extend(found)
    return intervals


def clip_to_work_intervals(
    events: Iterable[NormalizedEvent],
    intervals: Iterable[WorkInterval],
) -> list[NormalizedEvent]:
    """Intersect each event with each work interval, dropping empty pieces."""

    intervals = list(intervals)
    clipped = []
    for event in events:
        for interval in intervals:
            start = max(event.start, interval.start)
            end = min(event.end, interval.end)
            if end <= start:
                continue
            if start == event.start and end == event.end:
                clipped.append(event)
            else:
                clipped.append(event.with_span(start, end))
    return clipped
