"""Flattening of events and commits into report rows."""

from __future__ import annotations

from typing import Iterable

from work_report.schema import KIND_COMMIT, SOURCE_GIT, CommitEvent, NormalizedEvent, ReportRow

SHORT_HASH_LENGTH = 7


def _event_row(event: NormalizedEvent) -> ReportRow:
    return ReportRow(
        start=event.start,
        end=event.end,
        duration_seconds=event.duration.total_seconds(),
        source=event.source,
        kind=event.kind,
        app=event.app,
        title=event.title,
        url=event.url,
        project=event.project_tag,
        commits=tuple(commit.hash[:SHORT_HASH_LENGTH] for commit in event.linked_commits),
    )


def _commit_row(commit: CommitEvent) -> ReportRow:
    return ReportRow(
        start=commit.timestamp,
        end=commit.timestamp,
        duration_seconds=0.0,
        source=SOURCE_GIT,
        kind=KIND_COMMIT,
        app=commit.repo_name,
        title=commit.message,
        url=None,
        project=commit.repo_name,
        commits=(commit.hash[:SHORT_HASH_LENGTH],),
    )


def build_rows(events: Iterable[NormalizedEvent], commits: Iterable[CommitEvent]) -> list[ReportRow]:
    """One time-ordered row list for events and commits."""

    rows = [_event_row(event) for event in events]
    rows.extend(_commit_row(commit) for commit in commits)
    return sorted(rows, key=lambda r: (r.start, r.end, r.source, r.kind, r.title or ""))
