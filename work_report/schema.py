"""Core data schema for the daily work report."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

SOURCE_ACTIVITYWATCH = "ActivityWatch"
SOURCE_OUTLOOK = "Outlook"
SOURCE_GIT = "Git"
SOURCE_SCHEDULER = "Scheduler"

KIND_WINDOW = "Window"
KIND_AFK = "AFK"
KIND_CALENDAR = "Calendar"
KIND_COMMIT = "Commit"
KIND_REMINDER = "Reminder"

DEFAULT_FOCUS_LABEL = "Coding"


@dataclass(frozen=True)
class CommitEvent:
    """One commit read from a repository log."""

    repo_name: str
    repo_path: str
    hash: str
    author: str
    timestamp: datetime
    message: str


@dataclass(eq=False)
class NormalizedEvent:
    """Normalized interval record used by all pipeline stages.

    Only ``project_tag`` (through :meth:`assign_project`) and
    ``linked_commits`` change after construction.
    """

    start: datetime
    end: datetime
    source: str
    kind: str
    app: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    is_coding: bool = False
    project_tag: Optional[str] = None
    linked_commits: list[CommitEvent] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"event end {self.end} is before start {self.start}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def identity(self) -> tuple:
        """Attributes that must match for two events to be merged."""

        return (self.source, self.kind, self.app, self.title, self.url, self.is_coding)

    def assign_project(self, project: Optional[str]) -> bool:
        """Set the project tag unless one is already present."""

        if self.project_tag is not None or not project:
            return False
        self.project_tag = project
        return True

    def link_commit(self, commit: CommitEvent) -> None:
        if commit not in self.linked_commits:
            self.linked_commits.append(commit)

    def with_span(self, start: datetime, end: datetime) -> "NormalizedEvent":
        """Copy of this event over another span, without linked commits."""

        return NormalizedEvent(
            start=start,
            end=end,
            source=self.source,
            kind=self.kind,
            app=self.app,
            title=self.title,
            url=self.url,
            is_coding=self.is_coding,
            project_tag=self.project_tag,
        )


@dataclass(frozen=True)
class CommitAssociation:
    commit: CommitEvent
    events: tuple[NormalizedEvent, ...] = ()


@dataclass(frozen=True)
class FocusBlock:
    """Span of sustained coding activity."""

    start: datetime
    end: datetime
    label: str = DEFAULT_FOCUS_LABEL


@dataclass(frozen=True)
class WorkInterval:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class ProjectBlock:
    project: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class ReportWindow:
    """Resolved report bounds.

    ``since``/``until`` bound activity queries, ``start_date``/``end_date``
    are the inclusive report days and ``commit_since``/``commit_until`` the
    commit query bounds (``commit_until`` exclusive).
    """

    since: datetime
    until: datetime
    start_date: date
    end_date: date
    commit_since: datetime
    commit_until: datetime


@dataclass(frozen=True)
class ReportRow:
    """Flat presentation row."""

    start: datetime
    end: datetime
    duration_seconds: float
    source: str
    kind: str
    app: Optional[str]
    title: Optional[str]
    url: Optional[str]
    project: Optional[str]
    commits: tuple[str, ...] = ()


@dataclass(frozen=True)
class RawSample:
    """Activity sample as returned by an activity source."""

    timestamp: datetime
    duration: Optional[float] = None
    app: Optional[str] = None
    title: Optional[str] = None
    url: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class CalendarEntry:
    start: datetime
    end: datetime
    title: str
    location: Optional[str] = None
