"""Demo script for work-daily-report on a synthetic day."""

import sys
from datetime import date, datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from work_report.config import from_dict
from work_report.pipeline import run_pipeline
from work_report.schema import CalendarEntry, CommitEvent, RawSample
from work_report.time_window import resolve_window

UTC = timezone.utc


def sample(hour: int, minute: int, minutes: float, app: str, title: str, url=None, status=None) -> RawSample:
    return RawSample(
        timestamp=datetime(2025, 12, 29, hour, minute, tzinfo=UTC),
        duration=minutes * 60,
        app=app,
        title=title,
        url=url,
        status=status,
    )


def main() -> None:
    config = from_dict({"work_hours": {"timezone": "UTC"}, "editors": {"recognized_apps": ["Code"]}})
    window = resolve_window(config.work_hours, today=date(2025, 12, 29))

    window_samples = [
        sample(9, 0, 12, "Code", "Program.cs - WorkDailyReport - Visual Studio Code"),
        sample(9, 12, 18, "Code", "README.md - WorkDailyReport - Visual Studio Code"),
        sample(9, 40, 10, "chrome.exe", "WorkDailyReport Dashboard - Google Chrome", url="http://localhost:5000"),
        sample(10, 0, 45, "Code", "notes.md - AltProject - Visual Studio Code"),
    ]
    afk_samples = [sample(10, 20, 5, "", "", status="afk")]
    calendar = [
        CalendarEntry(
            start=datetime(2025, 12, 29, 11, 0, tzinfo=UTC),
            end=datetime(2025, 12, 29, 11, 30, tzinfo=UTC),
            title="Stand-up",
            location="Room 1",
        )
    ]
    commits = [
        CommitEvent(
            repo_name="WorkDailyReport",
            repo_path="/repos/WorkDailyReport",
            hash="abc1234def",
            author="Dev <dev@example.com>",
            timestamp=datetime(2025, 12, 29, 9, 35, tzinfo=UTC),
            message="feat: daily summary",
        )
    ]

    report = run_pipeline(
        config,
        window,
        window_samples=window_samples,
        afk_samples=afk_samples,
        calendar_entries=calendar,
        commits=commits,
        project_titles={"WorkDailyReport": "WorkDailyReport Dashboard"},
    )
    for row in report.rows:
        print(f"{row.start:%H:%M}-{row.end:%H:%M} {row.kind:<9} {row.project or '-':<16} {row.title}")
    print("Focus blocks:", [(b.label, b.start.strftime("%H:%M"), b.end.strftime("%H:%M")) for b in report.focus_blocks])
    print("Summary:", report.summary)


if __name__ == "__main__":
    main()
