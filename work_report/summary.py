"""Daily summary metrics."""

from __future__ import annotations

from collections import defaultdict

import numpy as np

from work_report.schema import KIND_AFK, CommitAssociation, FocusBlock, NormalizedEvent

UNTAGGED = "(none)"


def _seconds(values) -> np.ndarray:
    return np.fromiter((value.total_seconds() for value in values), dtype=float)


def summarize(
    events: list[NormalizedEvent],
    focus_blocks: list[FocusBlock],
    associations: list[CommitAssociation],
) -> dict:
    """Compute time totals, focus and commit coverage metrics."""

    durations = _seconds(event.duration for event in events)
    focus = _seconds(block.end - block.start for block in focus_blocks)

    by_kind: dict[str, float] = defaultdict(float)
    by_project: dict[str, float] = defaultdict(float)
    coding_mask = np.array([event.is_coding for event in events], dtype=bool)
    for event, seconds in zip(events, durations):
        by_kind[event.kind] += float(seconds)
        if event.kind != KIND_AFK:
            by_project[event.project_tag or UNTAGGED] += float(seconds)

    matched = sum(1 for association in associations if association.events)

    return {
        "seconds_by_kind": dict(sorted(by_kind.items())),
        "seconds_by_project": dict(sorted(by_project.items(), key=lambda item: (-item[1], item[0]))),
        "coding_seconds": float(durations[coding_mask].sum()) if len(events) else 0.0,
        "focus_blocks": len(focus_blocks),
        "focus_seconds": float(focus.sum()) if len(focus) else 0.0,
        "longest_focus_seconds": float(focus.max()) if len(focus) else 0.0,
        "commits": len(associations),
        "matched_commit_rate": matched / len(associations) if associations else 0.0,
    }
