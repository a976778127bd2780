"""Visibility filters: excluded directories, file patterns and .gitignore."""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path

from project_graph.models import FilterConfig

logger = logging.getLogger(__name__)


def parse_gitignore(root: Path) -> list[str]:
    """Read simple patterns from ``root/.gitignore``.

    Comments and blank lines are dropped and trailing slashes stripped.
    Negations are not supported.
    """
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return []
    try:
        content = gitignore.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Cannot read %s: %s", gitignore, exc)
        return []

    patterns: list[str] = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("!"):
            continue
        patterns.append(line.rstrip("/").lstrip("/"))
    return patterns


class PathFilter:
    """Decides whether a directory or file under a root is visible."""

    def __init__(self, config: FilterConfig, gitignore: list[str] | None = None):
        self.config = config
        self.gitignore = gitignore or []

    @classmethod
    def for_root(cls, root: Path, config: FilterConfig | None = None) -> "PathFilter":
        config = config or FilterConfig()
        patterns = parse_gitignore(root) if config.use_gitignore else []
        return cls(config, patterns)

    def skip_dir(self, name: str, rel_path: str = "") -> bool:
        if not self.config.include_hidden and name.startswith("."):
            return True
        for pattern in self.config.exclude_dirs:
            if fnmatch.fnmatch(name, pattern):
                return True
        return self._gitignored(name, rel_path)

    def skip_file(self, name: str, rel_path: str = "") -> bool:
        for pattern in self.config.exclude_patterns:
            if fnmatch.fnmatch(name, pattern):
                return True
        return self._gitignored(name, rel_path)

    def _gitignored(self, name: str, rel_path: str) -> bool:
        if not self.config.use_gitignore:
            return False
        for pattern in self.gitignore:
            if pattern == name:
                return True
            if "*" in pattern or "?" in pattern:
                if fnmatch.fnmatch(name, pattern):
                    return True
                continue
            if rel_path and (rel_path == pattern or rel_path.startswith(pattern + "/")):
                return True
        return False
