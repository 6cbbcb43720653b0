"""Duration filtering and adjacent event compaction."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from work_report.schema import KIND_AFK, KIND_CALENDAR, NormalizedEvent

_ALWAYS_KEPT = {KIND_AFK, KIND_CALENDAR}


def filter_by_duration(events: Iterable[NormalizedEvent], min_duration_seconds: float) -> list[NormalizedEvent]:
    """Drop events shorter than the minimum; AFK and calendar events are kept."""

    minimum = timedelta(seconds=min_duration_seconds)
    return [event for event in events if event.kind in _ALWAYS_KEPT or event.duration >= minimum]


def merge_adjacent(events: Iterable[NormalizedEvent], merge_gap_seconds: float) -> list[NormalizedEvent]:
    """Merge consecutive events with identical attributes and a small gap.

    Only neighbours in start order are compared, so a dissimilar event in
    between always keeps two similar events apart.
    """

    ordered = sorted(events, key=lambda e: e.start)
    if not ordered:
        return []

    max_gap = timedelta(seconds=max(0.0, merge_gap_seconds))
    merged: list[NormalizedEvent] = []
    current = ordered[0]
    start, end = current.start, current.end
    for event in ordered[1:]:
        gap = max(timedelta(0), event.start - end)
        if event.identity() == current.identity() and gap <= max_gap:
            start = min(start, event.start)
            end = max(end, event.end)
            continue
        merged.append(current if (start, end) == (current.start, current.end) else current.with_span(start, end))
        current = event
        start, end = event.start, event.end
    merged.append(current if (start, end) == (current.start, current.end) else current.with_span(start, end))
    return merged
