"""Project page titles used for browser tagging."""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

INDEX_FOLDERS = ("", "public", "src", "wwwroot", "docs")
_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def read_page_title(path: Path) -> Optional[str]:
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None
    match = _TITLE.search(content)
    if not match:
        return None
    title = " ".join(html.unescape(match.group(1)).split())
    return title or None


def index_project_titles(repo_paths: Iterable[str]) -> dict[str, str]:
    """Map repository name to the ``<title>`` of its ``index.html``."""

    titles = {}
    for repo in repo_paths:
        root = Path(repo)
        for folder in INDEX_FOLDERS:
            candidate = root / folder / "index.html"
            if not candidate.is_file():
                continue
            title = read_page_title(candidate)
            if title:
                titles[root.name] = title
                break
    return titles
