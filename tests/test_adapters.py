from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest
import requests

from work_report.adapters.activitywatch import ActivityWatchClient, Bucket, find_bucket, parse_timestamp
from work_report.adapters.calendar_ics import IcsCalendarSource, parse_events, to_aware
from work_report.adapters.project_titles import index_project_titles
from work_report.cancellation import CancelToken, OperationCancelled

ROME = ZoneInfo("Europe/Rome")

SAMPLE_ICS = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "BEGIN:VEVENT\r\n"
    "DTSTART;TZID=Europe/Rome:20251216T100000\r\n"
    "DTEND;TZID=Europe/Rome:20251216T110000\r\n"
    "SUMMARY:Test \r\n"
    " Meeting\r\n"
    "LOCATION:Room 1\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "DTSTART:20251218T070000Z\r\n"
    "DTEND:20251218T080000Z\r\n"
    "SUMMARY:Other day\r\n"
    "END:VEVENT\r\n"
    "BEGIN:VEVENT\r\n"
    "DTSTART:20251216T120000Z\r\n"
    "SUMMARY:No end\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)


class FakeResponse:
    def __init__(self, payload=None, text="", status=200):
        self.payload = payload
        self.text = text
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"status {self.status}")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.responses = responses
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        pass


BASE = "http://127.0.0.1:5600/api/0"


def test_list_buckets_and_events():
    session = FakeSession(
        {
            f"{BASE}/buckets": FakeResponse({"aw-watcher-window_host": {"id": "aw-watcher-window_host", "client": "aw-watcher-window"}}),
            f"{BASE}/buckets/aw-watcher-window_host/events": FakeResponse(
                [
                    {"timestamp": "2025-12-29T08:00:00Z", "duration": 12.5, "data": {"app": "Code.exe", "title": "main.py"}},
                    {"timestamp": "2025-12-29T09:00:00+01:00", "data": {"status": "afk"}},
                ]
            ),
        }
    )
    client = ActivityWatchClient(BASE + "/", timeout=3, session=session)

    buckets = client.list_buckets()
    assert buckets == [Bucket("aw-watcher-window_host", "aw-watcher-window")]

    start = datetime(2025, 12, 29, 9, tzinfo=ROME)
    samples = client.get_events("aw-watcher-window_host", start, start.replace(hour=18))
    assert samples[0].timestamp == datetime(2025, 12, 29, 8, tzinfo=timezone.utc)
    assert samples[0].duration == 12.5
    assert samples[0].app == "Code.exe"
    assert samples[1].duration is None
    assert samples[1].status == "afk"
    assert session.requests[1][1] == {"start": start.isoformat(), "end": start.replace(hour=18).isoformat()}
    assert session.requests[1][2] == 3


def test_malformed_event_is_rejected():
    session = FakeSession({f"{BASE}/buckets/b/events": FakeResponse([{"duration": 1}])})
    client = ActivityWatchClient(BASE, session=session)
    start = datetime(2025, 12, 29, 9, tzinfo=ROME)
    with pytest.raises(ValueError):
        client.get_events("b", start, start)


def test_http_errors_propagate():
    client = ActivityWatchClient(BASE, session=FakeSession({f"{BASE}/buckets": FakeResponse(status=500)}))
    with pytest.raises(requests.HTTPError):
        client.list_buckets()


def test_cancelled_client_does_not_send_requests():
    token = CancelToken()
    token.cancel()
    session = FakeSession({})
    with pytest.raises(OperationCancelled):
        ActivityWatchClient(BASE, session=session, cancel=token).list_buckets()
    assert session.requests == []


def test_naive_timestamps_are_rejected():
    with pytest.raises(ValueError):
        parse_timestamp("2025-12-29T08:00:00")


def test_find_bucket_prefers_configured_watchers():
    buckets = [Bucket("aw-watcher-web-chrome_host"), Bucket("custom-window_host"), Bucket("aw-watcher-window_host")]
    assert find_bucket(buckets, ["custom-window"], "aw-watcher-window").id == "custom-window_host"
    assert find_bucket(buckets, [], "aw-watcher-window").id == "aw-watcher-window_host"
    assert find_bucket(buckets, [], "aw-watcher-afk") is None


def test_parse_ics_unfolds_and_drops_events_without_end():
    entries = parse_events(SAMPLE_ICS, ROME)
    assert [e.title for e in entries] == ["Test Meeting", "Other day"]
    assert entries[0].location == "Room 1"
    assert entries[0].start == datetime(2025, 12, 16, 9, tzinfo=timezone.utc)
    assert entries[1].start == datetime(2025, 12, 18, 7, tzinfo=timezone.utc)


def test_floating_and_all_day_values_use_fallback_zone():
    entries = parse_events(
        "BEGIN:VCALENDAR\r\n"
        "BEGIN:VEVENT\r\n"
        "DTSTART:20251216T080000\r\n"
        "DTEND:20251216T083000\r\n"
        "SUMMARY:Floating\r\n"
        "END:VEVENT\r\n"
        "BEGIN:VEVENT\r\n"
        "DTSTART;VALUE=DATE:20251217\r\n"
        "DTEND;VALUE=DATE:20251218\r\n"
        "SUMMARY:Holiday\r\n"
        "END:VEVENT\r\n"
        "END:VCALENDAR\r\n",
        ROME,
    )
    assert [(e.title, e.start, e.end) for e in entries] == [
        ("Floating", datetime(2025, 12, 16, 8, tzinfo=ROME), datetime(2025, 12, 16, 8, 30, tzinfo=ROME)),
        ("Holiday", datetime(2025, 12, 17, tzinfo=ROME), datetime(2025, 12, 18, tzinfo=ROME)),
    ]


def test_outlook_timezone_block_is_honoured():
    entries = parse_events(
        "BEGIN:VCALENDAR\r\n"
        "VERSION:2.0\r\n"
        "BEGIN:VTIMEZONE\r\n"
        "TZID:W. Europe Standard Time\r\n"
        "BEGIN:STANDARD\r\n"
        "DTSTART:16010101T030000\r\n"
        "TZOFFSETFROM:+0200\r\n"
        "TZOFFSETTO:+0100\r\n"
        "RRULE:FREQ=YEARLY;BYDAY=-1SU;BYMONTH=10\r\n"
        "END:STANDARD\r\n"
        "BEGIN:DAYLIGHT\r\n"
        "DTSTART:16010101T020000\r\n"
        "TZOFFSETFROM:+0100\r\n"
        "TZOFFSETTO:+0200\r\n"
        "RRULE:FREQ=YEARLY;BYDAY=-1SU;BYMONTH=3\r\n"
        "END:DAYLIGHT\r\n"
        "END:VTIMEZONE\r\n"
        "BEGIN:VEVENT\r\n"
        "DTSTART;TZID=W. Europe Standard Time:20251229T100000\r\n"
        "DTEND;TZID=W. Europe Standard Time:20251229T110000\r\n"
        "SUMMARY:Sprint review\r\n"
        "END:VEVENT\r\n"
        "END:VCALENDAR\r\n",
        timezone.utc,
    )
    assert entries[0].start == datetime(2025, 12, 29, 9, tzinfo=timezone.utc)
    assert entries[0].end == datetime(2025, 12, 29, 10, tzinfo=timezone.utc)


def test_to_aware():
    assert to_aware(datetime(2025, 12, 16, 7, tzinfo=timezone.utc), ROME).utcoffset().total_seconds() == 0
    assert to_aware(datetime(2025, 12, 16, 7), ROME) == datetime(2025, 12, 16, 7, tzinfo=ROME)
    assert to_aware(date(2025, 12, 16), ROME) == datetime(2025, 12, 16, tzinfo=ROME)
    assert to_aware(None, ROME) is None


def test_latin1_calendar_file_is_read(tmp_path):
    path = tmp_path / "export.ics"
    path.write_bytes(
        b"BEGIN:VCALENDAR\r\n"
        b"BEGIN:VEVENT\r\n"
        b"DTSTART:20251216T090000Z\r\n"
        b"DTEND:20251216T100000Z\r\n"
        b"SUMMARY:Riunione cos\xec\r\n"
        b"END:VEVENT\r\n"
        b"END:VCALENDAR\r\n"
    )
    source = IcsCalendarSource(str(path), timezone_id="Europe/Rome")

    events = source.get_events(datetime(2025, 12, 16, tzinfo=ROME), datetime(2025, 12, 17, tzinfo=ROME))

    assert len(events) == 1
    assert events[0].title.startswith("Riunione cos")


def test_unparseable_calendar_file_yields_no_events(tmp_path):
    path = tmp_path / "broken.ics"
    path.write_text("this is not a calendar\n", encoding="utf-8")
    source = IcsCalendarSource(str(path), timezone_id="Europe/Rome")
    assert source.get_events(datetime(2025, 12, 16, tzinfo=ROME), datetime(2025, 12, 17, tzinfo=ROME)) == []


def test_local_ics_file_events_in_range(tmp_path):
    path = tmp_path / "outlook.ics"
    path.write_text(SAMPLE_ICS, encoding="utf-8")
    source = IcsCalendarSource(str(path), timezone_id="Europe/Rome", session=FakeSession({}))

    since = datetime(2025, 12, 16, tzinfo=ROME)
    events = source.get_events(since, datetime(2025, 12, 17, tzinfo=ROME))

    assert len(events) == 1
    assert events[0].title == "Test Meeting"
    assert events[0].location == "Room 1"


def test_remote_ics_is_downloaded():
    ics = "BEGIN:VCALENDAR\nBEGIN:VEVENT\nDTSTART:20251220T070000Z\nDTEND:20251220T080000Z\nSUMMARY:Remote Test\nEND:VEVENT\nEND:VCALENDAR\n"
    url = "https://example.com/calendar.ics"
    source = IcsCalendarSource(url, "Europe/Rome", session=FakeSession({url: FakeResponse(text=ics)}))
    assert source.is_remote

    since = datetime(2025, 12, 20, tzinfo=ROME)
    events = source.get_events(since, datetime(2025, 12, 21, tzinfo=ROME))
    assert [e.title for e in events] == ["Remote Test"]


def test_calendar_failures_yield_no_events(tmp_path):
    url = "https://example.com/calendar.ics"
    since = datetime(2025, 12, 20, tzinfo=ROME)
    until = datetime(2025, 12, 21, tzinfo=ROME)

    failing = IcsCalendarSource(url, session=FakeSession({url: requests.ConnectionError("down")}))
    missing = IcsCalendarSource(str(tmp_path / "missing.ics"))
    disabled = IcsCalendarSource(url, enabled=False, session=FakeSession({}))

    assert failing.get_events(since, until) == []
    assert missing.get_events(since, until) == []
    assert disabled.get_events(since, until) == []


def test_index_project_titles(tmp_path):
    site = tmp_path / "dashboard"
    (site / "public").mkdir(parents=True)
    (site / "public" / "index.html").write_text("<html><head><title>\n  Dashboard &amp; Co\n</title></head></html>", encoding="utf-8")
    plain = tmp_path / "library"
    plain.mkdir()
    untitled = tmp_path / "untitled"
    untitled.mkdir()
    (untitled / "index.html").write_text("<html></html>", encoding="utf-8")

    titles = index_project_titles([str(site), str(plain), str(untitled)])
    assert titles == {"dashboard": "Dashboard & Co"}
