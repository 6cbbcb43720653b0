"""Pure composition of the report stages."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Optional

from work_report.afk import merge_afk, remove_afk_overlap
from work_report.associator import associate_all
from work_report.config import ReportConfig
from work_report.focus import build_focus_blocks
from work_report.merging import filter_by_duration, merge_adjacent
from work_report.normalizer import (
    build_reminders,
    normalize_afk_events,
    normalize_calendar_events,
    normalize_window_events,
)
from work_report.rows import build_rows
from work_report.schedule import build_work_intervals, clip_to_work_intervals
from work_report.schema import (
    KIND_WINDOW,
    CalendarEntry,
    CommitAssociation,
    CommitEvent,
    FocusBlock,
    NormalizedEvent,
    ProjectBlock,
    RawSample,
    ReportRow,
    ReportWindow,
)
from work_report.summary import summarize
from work_report.tagging import tag_projects

logger = logging.getLogger(__name__)


@dataclass
class DailyReport:
    """Everything produced for one report window."""

    window: ReportWindow
    events: list[NormalizedEvent] = field(default_factory=list)
    focus_blocks: list[FocusBlock] = field(default_factory=list)
    project_blocks: list[ProjectBlock] = field(default_factory=list)
    associations: list[CommitAssociation] = field(default_factory=list)
    rows: list[ReportRow] = field(default_factory=list)
    summary: dict = field(default_factory=dict)


def build_timeline(
    config: ReportConfig,
    window: ReportWindow,
    window_samples: Iterable[RawSample],
    afk_samples: Iterable[RawSample],
    calendar_entries: Iterable[CalendarEntry],
) -> list[NormalizedEvent]:
    """Normalize, remove AFK time, clip, filter and merge all activity."""

    tz = config.work_hours.tz
    events = normalize_window_events(window_samples, config.editors.recognized_apps, tz)
    events += normalize_calendar_events(calendar_entries, tz)
    afk = merge_afk(normalize_afk_events(afk_samples, tz), config.filters.merge_gap_seconds)

    if config.filters.exclude_afk and afk:
        events = remove_afk_overlap(events, afk)
    events += afk

    intervals = build_work_intervals(config.work_hours, window.start_date, window.end_date)
    events = clip_to_work_intervals(events, intervals)
    events = filter_by_duration(events, config.filters.min_duration_seconds)
    events = merge_adjacent(events, config.filters.merge_gap_seconds)

    reminders = build_reminders(config.reminders, config.work_hours, window.start_date, window.end_date)
    logger.debug("Timeline: %d events, %d reminders, %d work intervals", len(events), len(reminders), len(intervals))
    return sorted(events + reminders, key=lambda e: (e.start, e.end))


def run_pipeline(
    config: ReportConfig,
    window: ReportWindow,
    window_samples: Iterable[RawSample] = (),
    afk_samples: Iterable[RawSample] = (),
    calendar_entries: Iterable[CalendarEntry] = (),
    commits: Iterable[CommitEvent] = (),
    project_titles: Optional[Mapping[str, str]] = None,
) -> DailyReport:
    """Build the complete daily report from already collected source data."""

    events = build_timeline(config, window, window_samples, afk_samples, calendar_entries)
    focus_blocks = build_focus_blocks(events)
    project_blocks = tag_projects(
        events,
        focus_blocks,
        project_titles or {},
        config.editors.commit_association_window_minutes,
    )

    tz = config.work_hours.tz
    commits = sorted(
        (replace(c, timestamp=c.timestamp.astimezone(tz)) for c in commits),
        key=lambda c: c.timestamp,
    )
    activity = [event for event in events if event.kind == KIND_WINDOW]
    associations = associate_all(commits, activity, config.editors.commit_association_window_minutes)

    return DailyReport(
        window=window,
        events=events,
        focus_blocks=focus_blocks,
        project_blocks=project_blocks,
        associations=associations,
        rows=build_rows(events, commits),
        summary=summarize(events, focus_blocks, associations),
    )
