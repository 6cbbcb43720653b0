from datetime import datetime

from work_report.merging import filter_by_duration, merge_adjacent
from work_report.schema import NormalizedEvent


def ts(value: str) -> datetime:
    return datetime.fromisoformat(f"2025-12-29T{value}+00:00")


def event(start: str, end: str, title: str = "main.py", kind: str = "Window", app: str = "Code") -> NormalizedEvent:
    return NormalizedEvent(ts(start), ts(end), "ActivityWatch", kind, app, title, None, app == "Code")


def describe(events):
    return [(e.start, e.end, e.title) for e in events]


def test_filter_drops_short_events_but_keeps_afk_and_calendar():
    events = [
        event("09:00:00", "09:00:05"),
        event("09:01:00", "09:01:30"),
        event("09:02:00", "09:02:01", kind="AFK", app="AFK"),
        event("09:03:00", "09:03:00", kind="Calendar", app="Outlook"),
    ]
    kept = filter_by_duration(events, min_duration_seconds=10)
    assert [e.start for e in kept] == [ts("09:01:00"), ts("09:02:00"), ts("09:03:00")]


def test_merge_identical_events_within_gap():
    merged = merge_adjacent([event("09:01:30", "09:05:00"), event("09:00:00", "09:01:00")], merge_gap_seconds=60)
    assert describe(merged) == [(ts("09:00:00"), ts("09:05:00"), "main.py")]


def test_merge_respects_gap_threshold():
    merged = merge_adjacent([event("09:00:00", "09:01:00"), event("09:03:00", "09:04:00")], merge_gap_seconds=60)
    assert len(merged) == 2


def test_merge_never_crosses_dissimilar_event():
    events = [
        event("09:00:00", "09:01:00"),
        event("09:01:10", "09:01:20", title="other.py"),
        event("09:01:30", "09:02:00"),
    ]
    merged = merge_adjacent(events, merge_gap_seconds=60)
    assert [e.title for e in merged] == ["main.py", "other.py", "main.py"]


def test_merge_requires_all_identity_fields():
    a = event("09:00:00", "09:01:00")
    b = NormalizedEvent(ts("09:01:00"), ts("09:02:00"), "ActivityWatch", "Window", "Code", "main.py", "http://x", True)
    assert len(merge_adjacent([a, b], merge_gap_seconds=60)) == 2


def test_merge_is_idempotent():
    events = [
        event("09:00:00", "09:10:00"),
        event("09:05:00", "09:06:00", title="other.py"),
        event("09:10:30", "09:12:00"),
        event("09:12:30", "09:20:00"),
        event("09:30:00", "09:31:00", title="other.py"),
    ]
    once = merge_adjacent(events, merge_gap_seconds=60)
    twice = merge_adjacent(once, merge_gap_seconds=60)
    assert describe(once) == describe(twice)


def test_merge_empty():
    assert merge_adjacent([], merge_gap_seconds=60) == []
