"""ActivityWatch REST adapter."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional
from urllib.parse import quote

import requests

from work_report.cancellation import CancelToken, check
from work_report.schema import RawSample

logger = logging.getLogger(__name__)

WINDOW_WATCHER = "aw-watcher-window"
AFK_WATCHER = "aw-watcher-afk"


@dataclass(frozen=True)
class Bucket:
    id: str
    client: str = ""


def to_iso(moment: datetime) -> str:
    if moment.tzinfo is None:
        raise ValueError("ActivityWatch queries need offset-aware datetimes")
    return moment.isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing ``Z`` means UTC."""

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp without offset: '{value}'")
    return parsed


def _text(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    return None if value is None else str(value)


def _parse_event(item: dict, index: int) -> RawSample:
    if not isinstance(item, dict) or not item.get("timestamp"):
        raise ValueError(f"Event {index}: missing timestamp")
    try:
        timestamp = parse_timestamp(str(item["timestamp"]))
    except ValueError as exc:
        raise ValueError(f"Event {index}: malformed timestamp") from exc

    duration = item.get("duration")
    data = item.get("data") or {}
    return RawSample(
        timestamp=timestamp,
        duration=float(duration) if duration is not None else None,
        app=_text(data, "app"),
        title=_text(data, "title"),
        url=_text(data, "url"),
        status=_text(data, "status"),
    )


class ActivityWatchClient:
    """Minimal client for the ActivityWatch ``/api/0`` endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
        cancel: Optional[CancelToken] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.cancel = cancel

    def _get(self, path: str, params: Optional[dict] = None) -> Any:
        check(self.cancel)
        response = self.session.get(f"{self.base_url}/{path}", params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def list_buckets(self) -> list[Bucket]:
        # /buckets -> {"<bucket id>": {"id": ..., "client": ...}, ...}
        payload = self._get("buckets")
        if not isinstance(payload, dict):
            return []
        buckets = []
        for key, value in payload.items():
            value = value if isinstance(value, dict) else {}
            buckets.append(Bucket(id=str(value.get("id") or key), client=str(value.get("client") or "")))
        return buckets

    def get_events(self, bucket_id: str, start: datetime, end: datetime) -> list[RawSample]:
        payload = self._get(
            f"buckets/{quote(bucket_id, safe='')}/events",
            params={"start": to_iso(start), "end": to_iso(end)},
        )
        if not isinstance(payload, list):
            raise ValueError(f"unexpected events payload for bucket '{bucket_id}'")
        return [_parse_event(item, index) for index, item in enumerate(payload, start=1)]

    def close(self) -> None:
        self.session.close()


def find_bucket(buckets: Iterable[Bucket], preferred: Iterable[str], fallback: str) -> Optional[Bucket]:
    """First bucket whose id contains a preferred watcher, else ``fallback``."""

    buckets = list(buckets)
    for watcher in preferred:
        for bucket in buckets:
            if watcher.lower() in bucket.id.lower():
                return bucket
    for bucket in buckets:
        if fallback.lower() in bucket.id.lower():
            return bucket
    return None
