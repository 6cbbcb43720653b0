"""Collection of source data and execution of the report pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Optional, Protocol

import requests

from work_report.adapters.activitywatch import AFK_WATCHER, WINDOW_WATCHER, Bucket, find_bucket
from work_report.cancellation import CancelToken, check
from work_report.config import ReportConfig
from work_report.pipeline import DailyReport, run_pipeline
from work_report.schema import CalendarEntry, CommitEvent, RawSample, ReportWindow
from work_report.time_window import resolve_window

logger = logging.getLogger(__name__)


class ActivitySource(Protocol):
    def list_buckets(self) -> list[Bucket]: ...

    def get_events(self, bucket_id: str, start: datetime, end: datetime) -> list[RawSample]: ...


class CalendarSource(Protocol):
    def get_events(self, since: datetime, until_exclusive: datetime) -> list[CalendarEntry]: ...


CommitCollector = Callable[[str, datetime, datetime, Optional[CancelToken]], list[CommitEvent]]
RepositoryLocator = Callable[[str], list[str]]
TitleIndexer = Callable[[list[str]], dict[str, str]]


@dataclass
class CollectedData:
    window_samples: list[RawSample] = field(default_factory=list)
    afk_samples: list[RawSample] = field(default_factory=list)
    calendar_entries: list[CalendarEntry] = field(default_factory=list)
    commits: list[CommitEvent] = field(default_factory=list)
    project_titles: dict[str, str] = field(default_factory=dict)


def _watchers(config: ReportConfig, marker: str) -> list[str]:
    return [w for w in config.activity_watch.watchers if marker in w.lower()]


def collect_activity(
    source: ActivitySource,
    config: ReportConfig,
    window: ReportWindow,
    cancel: Optional[CancelToken] = None,
) -> tuple[list[RawSample], list[RawSample]]:
    """Window and AFK samples for the report window."""

    try:
        return _fetch_activity(source, config, window, cancel)
    except requests.RequestException as exc:
        logger.error("ActivityWatch request failed: %s", exc)
        return [], []


def _fetch_activity(
    source: ActivitySource,
    config: ReportConfig,
    window: ReportWindow,
    cancel: Optional[CancelToken],
) -> tuple[list[RawSample], list[RawSample]]:
    buckets = source.list_buckets()
    if not buckets:
        logger.warning("No ActivityWatch buckets found; is ActivityWatch running?")
        return [], []

    window_bucket = find_bucket(buckets, _watchers(config, "window"), WINDOW_WATCHER)
    afk_bucket = find_bucket(buckets, _watchers(config, "afk"), AFK_WATCHER)

    window_samples: list[RawSample] = []
    if window_bucket is None:
        logger.warning("No window watcher bucket among %d buckets", len(buckets))
    else:
        check(cancel)
        window_samples = source.get_events(window_bucket.id, window.since, window.until)

    afk_samples: list[RawSample] = []
    if afk_bucket is not None:
        check(cancel)
        afk_samples = source.get_events(afk_bucket.id, window.since, window.until)

    logger.info("Activity: %d window samples, %d AFK samples", len(window_samples), len(afk_samples))
    return window_samples, afk_samples


def collect(
    config: ReportConfig,
    window: ReportWindow,
    activity_source: Optional[ActivitySource] = None,
    calendar_source: Optional[CalendarSource] = None,
    commit_collector: Optional[CommitCollector] = None,
    repository_locator: Optional[RepositoryLocator] = None,
    title_indexer: Optional[TitleIndexer] = None,
    cancel: Optional[CancelToken] = None,
) -> CollectedData:
    """Fetch every configured source; missing sources contribute nothing."""

    data = CollectedData()
    if activity_source is not None:
        data.window_samples, data.afk_samples = collect_activity(activity_source, config, window, cancel)

    if calendar_source is not None:
        check(cancel)
        data.calendar_entries = calendar_source.get_events(window.commit_since, window.commit_until)
        logger.info("Calendar: %d entries", len(data.calendar_entries))

    repos_root = config.paths.repos_root
    if repos_root and commit_collector is not None:
        data.commits = commit_collector(repos_root, window.commit_since, window.commit_until, cancel)
    if repos_root and repository_locator is not None and title_indexer is not None:
        data.project_titles = title_indexer(repository_locator(repos_root))
        logger.debug("Indexed %d project titles", len(data.project_titles))
    return data


def run_daily(
    config: ReportConfig,
    activity_source: Optional[ActivitySource] = None,
    calendar_source: Optional[CalendarSource] = None,
    commit_collector: Optional[CommitCollector] = None,
    repository_locator: Optional[RepositoryLocator] = None,
    title_indexer: Optional[TitleIndexer] = None,
    today: Optional[date] = None,
    cancel: Optional[CancelToken] = None,
) -> DailyReport:
    """Resolve the window, collect all sources and build the report."""

    window = resolve_window(config.work_hours, config.report_window, today)
    logger.info("Report window: %s -> %s", window.since.isoformat(), window.until.isoformat())

    data = collect(
        config,
        window,
        activity_source=activity_source,
        calendar_source=calendar_source,
        commit_collector=commit_collector,
        repository_locator=repository_locator,
        title_indexer=title_indexer,
        cancel=cancel,
    )
    report = run_pipeline(
        config,
        window,
        window_samples=data.window_samples,
        afk_samples=data.afk_samples,
        calendar_entries=data.calendar_entries,
        commits=data.commits,
        project_titles=data.project_titles,
    )
    logger.info(
        "Report: %d events, %d focus blocks, %d commits, %d rows",
        len(report.events),
        len(report.focus_blocks),
        len(report.associations),
        len(report.rows),
    )
    return report
