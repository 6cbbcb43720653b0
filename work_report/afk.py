"""Away-from-keyboard interval merging and subtraction."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from work_report.schema import KIND_AFK, NormalizedEvent


def _gap(previous_end: datetime, next_start: datetime) -> timedelta:
    return max(timedelta(0), next_start - previous_end)


def merge_afk(afk_events: Iterable[NormalizedEvent], merge_gap_seconds: float) -> list[NormalizedEvent]:
    """Merge AFK intervals separated by at most ``merge_gap_seconds``.

    Each merged run keeps the attributes of its first interval and spans from
    the earliest start to the latest end. The result is ordered and
    non-overlapping.
    """

    ordered = sorted(afk_events, key=lambda e: (e.start, e.end))
    if not ordered:
        return []

    max_gap = timedelta(seconds=max(0.0, merge_gap_seconds))
    merged: list[NormalizedEvent] = []
    current = ordered[0]
    start, end = current.start, current.end
    for event in ordered[1:]:
        if _gap(end, event.start) <= max_gap:
            end = max(end, event.end)
            continue
        merged.append(current.with_span(start, end))
        current = event
        start, end = event.start, event.end
    merged.append(current.with_span(start, end))
    return merged


def subtract_interval(
    start: datetime,
    end: datetime,
    cut_start: datetime,
    cut_end: datetime,
) -> list[tuple[datetime, datetime]]:
    """Pieces of ``[start, end]`` left after removing ``[cut_start, cut_end]``."""

    if cut_end <= start or cut_start >= end:
        return [(start, end)]

    pieces = []
    if cut_start > start:
        pieces.append((start, cut_start))
    if cut_end < end:
        pieces.append((cut_end, end))
    return pieces


def remove_afk_overlap(
    events: Iterable[NormalizedEvent],
    afk_intervals: Iterable[NormalizedEvent],
) -> list[NormalizedEvent]:
    """Punch every AFK interval out of every non-AFK event.

    An event fully covered by AFK time disappears, an edge overlap truncates
    it and AFK time strictly inside splits it in two. AFK events in
    ``events`` are returned untouched.
    """

    afk = sorted(afk_intervals, key=lambda e: e.start)
    result = []
    for event in events:
        if event.kind == KIND_AFK or not afk:
            result.append(event)
            continue

        pieces = [(event.start, event.end)]
        for interval in afk:
            if interval.start > event.end:
                break
            pieces = [
                piece
                for start, end in pieces
                for piece in subtract_interval(start, end, interval.start, interval.end)
            ]
            if not pieces:
                break

        if pieces == [(event.start, event.end)]:
            result.append(event)
        else:
            result.extend(event.with_span(start, end) for start, end in pieces)
    return result
