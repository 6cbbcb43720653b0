"""Build the daily work report from ActivityWatch, git and calendar data."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from work_report.adapters.activitywatch import ActivityWatchClient
from work_report.adapters.calendar_ics import IcsCalendarSource
from work_report.adapters.git_source import collect_commits, find_repositories
from work_report.adapters.project_titles import index_project_titles
from work_report.cancellation import CancelToken, OperationCancelled
from work_report.config import load_config
from work_report.export import write_reports
from work_report.runner import run_daily
from work_report.time_window import resolve_window

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> list[logging.Handler]:
    """Attach console and optional file handlers to the root logger."""

    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    root = logging.getLogger()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    return handlers


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Build a daily work report")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--start-date", help="First report day (YYYY-MM-DD)")
    parser.add_argument("--end-date", help="Last report day (YYYY-MM-DD)")
    parser.add_argument("--output-dir", help="Directory for written reports")
    parser.add_argument("--no-write", action="store_true", help="Only print the summary")
    parser.add_argument("--log-file", help="Also write the run log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    configure_logging(args.verbose, args.log_file)
    log = logging.getLogger("run_daily_report")

    try:
        config = load_config(args.config)
        if args.start_date or args.end_date:
            config.report_window.start_date = args.start_date or args.end_date
            config.report_window.end_date = args.end_date or args.start_date
        resolve_window(config.work_hours, config.report_window)
    except ValueError as exc:
        log.error("Invalid configuration: %s", exc)
        return 2

    cancel = CancelToken()
    activity = ActivityWatchClient(
        config.activity_watch.base_url,
        timeout=config.activity_watch.timeout_seconds,
        cancel=cancel,
    )
    calendar = None
    if config.calendar.enabled:
        calendar = IcsCalendarSource(
            config.calendar.ics_file,
            timezone_id=config.calendar.timezone or config.work_hours.timezone,
            cancel=cancel,
        )

    previous_handler = signal.signal(signal.SIGINT, cancel.interrupt)
    try:
        report = run_daily(
            config,
            activity_source=activity,
            calendar_source=calendar,
            commit_collector=collect_commits,
            repository_locator=find_repositories,
            title_indexer=index_project_titles,
            cancel=cancel,
        )
    except OperationCancelled:
        log.error("Cancelled")
        return 130
    except ValueError as exc:
        log.error("Invalid source data: %s", exc)
        return 1
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        activity.close()

    print(json.dumps(report.summary, indent=2))

    if not args.no_write and config.output.formats:
        out_dir = args.output_dir or config.paths.reports_dir
        for path in write_reports(report, out_dir, config.output.formats, config.output.file_name_template):
            log.info("Saved report to %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
