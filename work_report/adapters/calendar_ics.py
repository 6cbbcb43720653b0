"""iCalendar (.ics) calendar source, local file or http(s) URL."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, tzinfo
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests
from icalendar import Calendar

from work_report.cancellation import CancelToken, check
from work_report.schema import CalendarEntry

logger = logging.getLogger(__name__)


def resolve_timezone(tz_id: Optional[str]) -> Optional[tzinfo]:
    if not tz_id or not tz_id.strip():
        return None
    try:
        return ZoneInfo(tz_id.strip().strip('"'))
    except (ZoneInfoNotFoundError, ValueError):
        return None


def to_aware(value: Any, fallback_tz: tzinfo) -> Optional[datetime]:
    """Offset-aware start or end of a decoded ``DTSTART``/``DTEND`` value.

    Floating times and all-day dates are placed in ``fallback_tz``.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=fallback_tz)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=fallback_tz)
    return None


def _decoded(component, key: str, fallback_tz: tzinfo) -> Optional[datetime]:
    prop = component.get(key)
    if prop is None:
        return None
    return to_aware(getattr(prop, "dt", None), fallback_tz)


def _text(component, key: str) -> Optional[str]:
    value = component.get(key)
    if value is None:
        return None
    return " ".join(str(value).split()) or None


def parse_events(ics: str, fallback_tz: tzinfo) -> list[CalendarEntry]:
    """``VEVENT`` components with both a start and an end.

    ``TZID`` references resolve through the document's ``VTIMEZONE`` blocks,
    so custom Outlook zone names keep their offsets. Raises ``ValueError``
    when the document does not parse.
    """

    calendar = Calendar.from_ical(ics)
    entries = []
    for component in calendar.walk("VEVENT"):
        start = _decoded(component, "dtstart", fallback_tz)
        end = _decoded(component, "dtend", fallback_tz)
        if start is None or end is None:
            continue
        entries.append(
            CalendarEntry(
                start=start,
                end=end,
                title=_text(component, "summary") or "",
                location=_text(component, "location"),
            )
        )
    return entries


class IcsCalendarSource:
    """Calendar events from an ``.ics`` document."""

    def __init__(
        self,
        location: str,
        timezone_id: Optional[str] = None,
        enabled: bool = True,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.location = (location or "").strip()
        self.enabled = enabled
        self.fallback_tz = resolve_timezone(timezone_id) or datetime.now().astimezone().tzinfo
        self.session = session
        self.timeout = timeout
        self.cancel = cancel

    @property
    def is_remote(self) -> bool:
        return urlparse(self.location).scheme in ("http", "https")

    def _download(self) -> Optional[str]:
        check(self.cancel)
        session = self.session or requests.Session()
        try:
            response = session.get(self.location, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Calendar download failed for %s: %s", self.location, exc)
            return None
        finally:
            if self.session is None:
                session.close()
        return response.text

    def _read(self) -> Optional[str]:
        if self.is_remote:
            return self._download()
        path = Path(self.location).expanduser()
        if not self.location or not path.is_file():
            logger.warning("Calendar file not found: '%s'", self.location)
            return None
        try:
            # exports are not always UTF-8; undecodable bytes become U+FFFD
            return path.read_bytes().decode("utf-8-sig", errors="replace")
        except OSError as exc:
            logger.warning("Cannot read calendar file %s: %s", path, exc)
            return None

    def get_events(self, since: datetime, until_exclusive: datetime) -> list[CalendarEntry]:
        """Events overlapping ``[since, until_exclusive)``, ordered by start."""

        if not self.enabled:
            return []
        content = self._read()
        if not content:
            return []

        try:
            entries = parse_events(content, self.fallback_tz)
        except ValueError as exc:
            logger.warning("Cannot parse calendar %s: %s", self.location, exc)
            return []
        if not entries:
            logger.warning("No events found in calendar %s", self.location)
        return sorted(
            (e for e in entries if e.end > since and e.start < until_exclusive),
            key=lambda e: e.start,
        )
