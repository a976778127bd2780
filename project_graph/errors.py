"""Error types shared by the analyzers."""

from __future__ import annotations


class ProjectGraphError(Exception):
    """Base class for project-graph failures."""


class ParseFailure(ProjectGraphError):
    """A single file could not be parsed."""

    def __init__(self, path: str, reason: str = "syntax error"):
        super().__init__(f"Parse error in {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigurationError(ProjectGraphError):
    """A rule-set record is malformed."""


def unknown_symbol(symbol: str) -> dict:
    """Payload returned when a caller names a code absent from the Graph."""
    return {
        "error": (
            f"Unknown symbol: {symbol}. Run get_skeleton on your project first, "
            f"then use symbols from the L (Legend) field."
        ),
        "symbol": symbol,
    }
