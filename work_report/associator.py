"""Association of commits with the activity that produced them."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence

from work_report.schema import CommitAssociation, CommitEvent, NormalizedEvent

DEFAULT_WINDOW_MINUTES = 15


def matches_repo(event: NormalizedEvent, repo_name: Optional[str]) -> bool:
    """Blank repo names match everything; otherwise a substring of tag, title or URL."""

    if not repo_name or not repo_name.strip():
        return True
    needle = repo_name.strip().lower()
    return any(needle in value.lower() for value in (event.project_tag, event.title, event.url) if value)


def _day_start(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _primary(
    commit: CommitEvent,
    events: Sequence[NormalizedEvent],
    order: Sequence[int],
    used: set[int],
) -> list[int]:
    day_start = _day_start(commit.timestamp)
    return [
        index
        for index in order
        if index not in used
        and day_start <= events[index].start <= commit.timestamp
        and matches_repo(events[index], commit.repo_name)
    ]


def _fallback(
    commit: CommitEvent,
    events: Sequence[NormalizedEvent],
    order: Sequence[int],
    used: set[int],
    window: timedelta,
) -> list[int]:
    window_start = commit.timestamp - window
    window_end = commit.timestamp + window

    def scan(coding_only: bool) -> tuple[Optional[int], Optional[int]]:
        first = None
        for index in order:
            event = events[index]
            if event.end < window_start:
                continue
            if event.start > window_end:
                break
            if index in used or (coding_only and not event.is_coding):
                continue
            if first is None:
                first = index
            if matches_repo(event, commit.repo_name):
                return first, index
        return first, None

    first_coding, match = scan(coding_only=True)
    if match is not None:
        return [match]
    first_any, match = scan(coding_only=False)
    if match is not None:
        return [match]
    best = first_coding if first_coding is not None else first_any
    return [] if best is None else [best]


def associate(
    commits: Sequence[CommitEvent],
    events: Sequence[NormalizedEvent],
    window_minutes: int = DEFAULT_WINDOW_MINUTES,
) -> list[CommitAssociation]:
    """Match each commit to the events that plausibly produced it.

    Same-day events up to the commit time that mention the repository are
    taken first; when there are none, a ``±window_minutes`` search picks a
    single event, preferring repository matches and coding activity. An event
    consumed by a commit cannot be claimed again by a later commit of the same
    repository, but stays available to other repositories.

    Commits must be ordered by timestamp.
    """

    for previous, current in zip(commits, commits[1:]):
        if current.timestamp < previous.timestamp:
            raise ValueError(f"commits must be ordered by timestamp: {current.hash} precedes {previous.hash}")

    window = timedelta(minutes=window_minutes if window_minutes > 0 else DEFAULT_WINDOW_MINUTES)
    order = sorted(range(len(events)), key=lambda i: (events[i].start, events[i].end))
    used_by_repo: dict[str, set[int]] = defaultdict(set)

    associations = []
    for commit in commits:
        used = used_by_repo[(commit.repo_name or "").strip().lower()]
        matched = _primary(commit, events, order, used) or _fallback(commit, events, order, used, window)
        matched = list(dict.fromkeys(matched))
        for index in matched:
            events[index].link_commit(commit)
            used.add(index)
        associations.append(CommitAssociation(commit, tuple(events[i] for i in matched)))
    return associations


def associate_all(
    commits: Iterable[CommitEvent],
    events: Iterable[NormalizedEvent],
    window_minutes: int = DEFAULT_WINDOW_MINUTES,
) -> list[CommitAssociation]:
    """Sort commits by timestamp, then :func:`associate`."""

    return associate(sorted(commits, key=lambda c: c.timestamp), list(events), window_minutes)
