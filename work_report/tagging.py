"""Project tagging by browser titles and block membership."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional

from work_report.schema import FocusBlock, NormalizedEvent, ProjectBlock

BROWSER_NAMES = ("chrome", "firefox", "msedge", "edge", "brave", "opera", "safari", "vivaldi", "chromium")
FOCUS_TAG_MARGIN = timedelta(minutes=2)
DEFAULT_PROJECT_GAP_MINUTES = 15


def is_browser(app: Optional[str]) -> bool:
    if not app:
        return False
    lowered = app.lower()
    return any(name in lowered for name in BROWSER_NAMES)


def match_project(title: Optional[str], project_titles: Mapping[str, str]) -> Optional[str]:
    """Repository whose indexed page title is the longest match inside ``title``."""

    if not title or not title.strip():
        return None
    lowered = title.lower()
    best: Optional[str] = None
    best_length = 0
    for project, page_title in sorted(project_titles.items()):
        needle = (page_title or "").strip().lower()
        if needle and needle in lowered and len(needle) > best_length:
            best, best_length = project, len(needle)
    return best


def browser_hits(
    events: Iterable[NormalizedEvent],
    project_titles: Mapping[str, str],
) -> list[tuple[NormalizedEvent, str]]:
    """Browser events whose title names a known project."""

    hits = []
    for event in events:
        if not is_browser(event.app):
            continue
        project = match_project(event.title, project_titles)
        if project is not None:
            hits.append((event, project))
    return hits


def tag_by_title(events: Iterable[NormalizedEvent], project_titles: Mapping[str, str]) -> int:
    """Tag untagged browser events from their titles; returns the tag count."""

    tagged = 0
    for event, project in browser_hits(events, project_titles):
        if event.assign_project(project):
            tagged += 1
    return tagged


def _overlaps(event: NormalizedEvent, start: datetime, end: datetime) -> bool:
    return event.start <= end and event.end >= start


def tag_from_focus_blocks(events: Iterable[NormalizedEvent], blocks: Iterable[FocusBlock]) -> int:
    """Give untagged events near a focus block the block's label."""

    events = list(events)
    tagged = 0
    for block in blocks:
        low, high = block.start - FOCUS_TAG_MARGIN, block.end + FOCUS_TAG_MARGIN
        for event in events:
            if event.project_tag is None and _overlaps(event, low, high):
                tagged += int(event.assign_project(block.label))
    return tagged


def build_project_blocks(
    hits: Iterable[tuple[NormalizedEvent, str]],
    gap_minutes: int,
) -> list[ProjectBlock]:
    """Compact same-project browser hits into contiguous blocks."""

    gap = timedelta(minutes=gap_minutes if gap_minutes > 0 else DEFAULT_PROJECT_GAP_MINUTES)
    by_project: dict[str, list[NormalizedEvent]] = defaultdict(list)
    for event, project in hits:
        by_project[project].append(event)

    blocks = []
    for project, project_events in by_project.items():
        ordered = sorted(project_events, key=lambda e: e.start)
        start, end = ordered[0].start, ordered[0].end
        for event in ordered[1:]:
            if event.start - end <= gap:
                end = max(end, event.end)
            else:
                blocks.append(ProjectBlock(project, start, end))
                start, end = event.start, event.end
        blocks.append(ProjectBlock(project, start, end))
    return sorted(blocks, key=lambda b: (b.start, b.project))


def tag_from_project_blocks(events: Iterable[NormalizedEvent], blocks: Iterable[ProjectBlock]) -> int:
    events = list(events)
    tagged = 0
    for block in blocks:
        for event in events:
            if event.project_tag is None and _overlaps(event, block.start, block.end):
                tagged += int(event.assign_project(block.project))
    return tagged


def tag_projects(
    events: list[NormalizedEvent],
    focus_blocks: Iterable[FocusBlock],
    project_titles: Mapping[str, str],
    gap_minutes: int,
) -> list[ProjectBlock]:
    """Run every tagging pass in order and return the browser project blocks.

    Title matching runs first, then focus block propagation, then browser
    project block propagation. An assigned tag is never replaced.
    """

    tag_by_title(events, project_titles)
    tag_from_focus_blocks(events, focus_blocks)
    hits = browser_hits(events, project_titles)
    blocks = build_project_blocks(hits, gap_minutes)
    tag_from_project_blocks(events, blocks)
    return blocks
