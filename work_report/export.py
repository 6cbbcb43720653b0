"""Report writers."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable

from work_report.pipeline import DailyReport
from work_report.schema import ReportRow

CSV_FIELDS = ["start", "end", "duration_seconds", "source", "kind", "app", "title", "url", "project", "commits"]
_EXTENSIONS = {"csv": ".csv", "markdown": ".md", "json": ".json"}


def row_to_dict(row: ReportRow) -> dict:
    return {
        "start": row.start.isoformat(),
        "end": row.end.isoformat(),
        "duration_seconds": round(row.duration_seconds, 3),
        "source": row.source,
        "kind": row.kind,
        "app": row.app or "",
        "title": row.title or "",
        "url": row.url or "",
        "project": row.project or "",
        "commits": " ".join(row.commits),
    }


def write_csv(rows: Iterable[ReportRow], path: Path) -> Path:
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row_to_dict(row))
    return path


def _cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def render_markdown(report: DailyReport) -> str:
    window = report.window
    lines = [f"# Daily report {window.start_date}" + ("" if window.start_date == window.end_date else f" - {window.end_date}"), ""]

    if report.focus_blocks:
        lines += ["## Focus blocks", ""]
        for block in report.focus_blocks:
            minutes = (block.end - block.start).total_seconds() / 60.0
            lines.append(f"- {block.start:%H:%M}-{block.end:%H:%M} **{_cell(block.label)}** ({minutes:.0f} min)")
        lines.append("")

    if report.associations:
        lines += ["## Commits", ""]
        for association in report.associations:
            commit = association.commit
            lines.append(
                f"- {commit.timestamp:%H:%M} `{commit.hash[:7]}` {_cell(commit.repo_name)}: "
                f"{_cell(commit.message)} ({len(association.events)} linked events)"
            )
        lines.append("")

    lines += ["## Timeline", "", "| Start | End | Kind | App | Title | Project | Commits |", "| --- | --- | --- | --- | --- | --- | --- |"]
    for row in report.rows:
        lines.append(
            f"| {row.start:%Y-%m-%d %H:%M} | {row.end:%H:%M} | {row.kind} | {_cell(row.app or '')} "
            f"| {_cell(row.title or '')} | {_cell(row.project or '')} | {' '.join(row.commits)} |"
        )
    return "\n".join(lines) + "\n"


def report_to_json(report: DailyReport) -> dict:
    return {
        "window": {
            "since": report.window.since.isoformat(),
            "until": report.window.until.isoformat(),
            "start_date": report.window.start_date.isoformat(),
            "end_date": report.window.end_date.isoformat(),
        },
        "summary": report.summary,
        "focus_blocks": [
            {"start": b.start.isoformat(), "end": b.end.isoformat(), "label": b.label} for b in report.focus_blocks
        ],
        "commits": [
            {
                "repo": a.commit.repo_name,
                "hash": a.commit.hash,
                "timestamp": a.commit.timestamp.isoformat(),
                "message": a.commit.message,
                "linked_events": len(a.events),
            }
            for a in report.associations
        ],
        "rows": [row_to_dict(row) for row in report.rows],
    }


def write_reports(
    report: DailyReport,
    directory: str,
    formats: Iterable[str],
    file_name_template: str = "daily-{date}",
) -> list[Path]:
    """Write the report in each requested format and return the paths."""

    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = file_name_template.format(date=report.window.start_date.isoformat())

    written = []
    for fmt in formats:
        extension = _EXTENSIONS.get(fmt)
        if extension is None:
            raise ValueError(f"Unsupported output format '{fmt}'")
        path = out_dir / f"{stem}{extension}"
        if fmt == "csv":
            write_csv(report.rows, path)
        elif fmt == "markdown":
            path.write_text(render_markdown(report), encoding="utf-8")
        else:
            path.write_text(json.dumps(report_to_json(report), indent=2), encoding="utf-8")
        written.append(path)
    return written
