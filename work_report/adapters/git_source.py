"""Git repository discovery and commit extraction."""

from __future__ import annotations

import logging
import subprocess
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path
from typing import Optional

from work_report.adapters.activitywatch import parse_timestamp
from work_report.cancellation import CancelToken, OperationCancelled, check
from work_report.schema import CommitEvent

logger = logging.getLogger(__name__)

LOG_FORMAT = "%H|%an <%ae>|%aI|%s"
POLL_SECONDS = 0.2
DEFAULT_MAX_DEPTH = 3


def find_repositories(root: str, max_depth: int = DEFAULT_MAX_DEPTH) -> list[str]:
    """Breadth-first scan for git repositories below ``root``.

    Descent stops at a directory that contains ``.git``.
    """

    root_path = Path(root).expanduser()
    if not root or not root_path.is_dir():
        return []

    found = []
    queue = deque([(root_path, 0)])
    while queue:
        directory, depth = queue.popleft()
        if (directory / ".git").exists():
            found.append(str(directory))
            continue
        if depth >= max_depth:
            continue
        try:
            children = sorted(p for p in directory.iterdir() if p.is_dir() and not p.name.startswith("."))
        except OSError as exc:
            logger.debug("Cannot list %s: %s", directory, exc)
            continue
        queue.extend((child, depth + 1) for child in children)
    return found


def parse_log_line(line: str, repo_name: str, repo_path: str) -> Optional[CommitEvent]:
    """One ``hash|author|date|subject`` line; ``None`` when malformed."""

    parts = line.strip().split("|", 3)
    if len(parts) != 4 or not parts[0]:
        return None
    commit_hash, author, raw_date, message = parts
    try:
        timestamp = parse_timestamp(raw_date)
    except ValueError:
        return None
    return CommitEvent(
        repo_name=repo_name,
        repo_path=repo_path,
        hash=commit_hash,
        author=author.strip(),
        timestamp=timestamp,
        message=message.strip(),
    )


def _run_git(args: list[str], cancel: Optional[CancelToken], timeout: float) -> str:
    check(cancel)
    process = subprocess.Popen(
        args,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    waited = 0.0
    while True:
        try:
            stdout, stderr = process.communicate(timeout=POLL_SECONDS)
            break
        except subprocess.TimeoutExpired:
            waited += POLL_SECONDS
            if (cancel is not None and cancel.cancelled) or waited >= timeout:
                process.kill()
                process.communicate()
                check(cancel)
                raise
    if process.returncode != 0:
        raise subprocess.CalledProcessError(process.returncode, args, stdout, stderr)
    return stdout


def get_commits(
    repo_path: str,
    since: datetime,
    until_exclusive: datetime,
    cancel: Optional[CancelToken] = None,
    timeout: float = 60,
) -> list[CommitEvent]:
    """Commits of one repository with ``since <= timestamp < until_exclusive``."""

    repo_name = Path(repo_path.rstrip("/\\")).name
    output = _run_git(
        [
            "git",
            "-C",
            repo_path,
            "log",
            "--all",
            f"--since={since.isoformat()}",
            f"--until={until_exclusive.isoformat()}",
            f"--pretty=format:{LOG_FORMAT}",
        ],
        cancel,
        timeout,
    )
    commits = []
    for line in output.splitlines():
        commit = parse_log_line(line, repo_name, repo_path)
        if commit is not None and since <= commit.timestamp < until_exclusive:
            commits.append(commit)
    return commits


def collect_commits(
    repos_root: str,
    since: datetime,
    until_exclusive: datetime,
    cancel: Optional[CancelToken] = None,
    max_workers: Optional[int] = None,
) -> list[CommitEvent]:
    """Commits of every repository under ``repos_root``, ordered by timestamp.

    A failing repository is logged and skipped; cancellation propagates.
    """

    repos = find_repositories(repos_root)
    if not repos:
        logger.warning("No git repositories found under '%s'", repos_root)
        return []

    collected: list[CommitEvent] = []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {pool.submit(get_commits, repo, since, until_exclusive, cancel): repo for repo in repos}
        for future in as_completed(futures):
            repo = futures[future]
            try:
                collected.extend(future.result())
            except OperationCancelled:
                for pending in futures:
                    pending.cancel()
                raise
            except (OSError, subprocess.SubprocessError) as exc:
                logger.warning("Commit extraction failed for %s: %s", repo, exc)

    logger.info("Collected %d commits from %d repositories", len(collected), len(repos))
    return sorted(collected, key=lambda c: (c.timestamp, c.repo_name, c.hash))
