"""Recently changed source files according to git."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path, PurePosixPath

from project_graph.scanner.language_map import SOURCE_EXTENSIONS

logger = logging.getLogger(__name__)

DEFAULT_REVISION = "HEAD~5"

_GIT_TIMEOUT = 30


def changed_files(root: Path, revision: str = DEFAULT_REVISION) -> list[str]:
    """Source files under *root* changed since *revision*, relative to *root*.

    Returns an empty list when git is missing or *root* is not in a repository.
    """
    try:
        result = subprocess.run(
            ["git", "diff", "--relative", "--name-only", revision],
            capture_output=True, text=True, cwd=str(root), timeout=_GIT_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, NotADirectoryError) as exc:
        logger.info("git diff unavailable in %s: %s", root, exc)
        return []
    if result.returncode != 0:
        logger.info("git diff failed: %s", result.stderr.strip())
        return []

    return [
        line.strip()
        for line in result.stdout.splitlines()
        if line.strip() and PurePosixPath(line.strip()).suffix in SOURCE_EXTENSIONS
    ]
