"""Focus block detection over coding activity."""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import timedelta
from functools import reduce
from typing import Iterable, Optional

from work_report.schema import DEFAULT_FOCUS_LABEL, FocusBlock, NormalizedEvent

FOCUS_MERGE_GAP = timedelta(minutes=5)

IDE_NAMES = {"visual studio code", "visual studio", "vs code", "vscode", "rider", "pycharm", "intellij idea"}

_SEPARATOR = re.compile(r"\s+[-–—]\s+")
_FILE_NAME = re.compile(r"^[●*]?\s*[\w .()\[\]-]+\.[A-Za-z0-9]{1,8}$")


def _strip_exe(app: str) -> str:
    name = app.strip()
    return name[:-4] if name.lower().endswith(".exe") else name


def _is_candidate(segment: str, app: Optional[str]) -> bool:
    lowered = segment.lower()
    if len(segment) <= 2 or lowered in IDE_NAMES:
        return False
    if app and lowered in (app.strip().lower(), _strip_exe(app).lower()):
        return False
    return not _FILE_NAME.match(segment)


def derive_label(title: Optional[str], app: Optional[str]) -> str:
    """Human readable label for an editor window title.

    ``"Program.cs - ProjectX - Visual Studio Code"`` gives ``"ProjectX"``.
    Falls back to the first title segment, then the app name, then
    ``"Coding"``.
    """

    segments = [s.strip() for s in _SEPARATOR.split(title or "") if s.strip()]
    for segment in reversed(segments):
        if _is_candidate(segment, app):
            return segment
    if segments:
        return segments[0]
    if app and app.strip():
        return _strip_exe(app)
    return DEFAULT_FOCUS_LABEL


def can_extend(block: FocusBlock, event: NormalizedEvent) -> bool:
    return event.start - block.end <= FOCUS_MERGE_GAP


def extend(block: FocusBlock, event: NormalizedEvent) -> FocusBlock:
    """Block grown to cover ``event``; a default label is replaced once."""

    end = max(block.end, event.end)
    label = block.label
    if label == DEFAULT_FOCUS_LABEL:
        label = derive_label(event.title, event.app)
    return replace(block, end=end, label=label)


def _step(blocks: tuple[FocusBlock, ...], event: NormalizedEvent) -> tuple[FocusBlock, ...]:
    if blocks and can_extend(blocks[-1], event):
        return blocks[:-1] + (extend(blocks[-1], event),)
    return blocks + (FocusBlock(start=event.start, end=event.end, label=derive_label(event.title, event.app)),)


def build_focus_blocks(events: Iterable[NormalizedEvent]) -> list[FocusBlock]:
    """Group coding events into focus blocks, ordered by start."""

    coding = sorted((e for e in events if e.is_coding), key=lambda e: (e.start, e.end))
    return list(reduce(_step, coding, ()))
