"""tree-sitter parser wrapper for JS/TS sources."""

from __future__ import annotations

from pathlib import Path

from project_graph.errors import ParseFailure
from project_graph.models import Language
from project_graph.scanner.language_map import EXT_TO_LANGUAGE

try:
    from tree_sitter_language_pack import get_parser
except ImportError as _err:
    raise ImportError(
        "tree-sitter-language-pack is required. Install with: "
        "pip install tree-sitter-language-pack"
    ) from _err


class SourceParser:
    """Parses source text into syntax trees, caching one parser per grammar."""

    def __init__(self):
        self._parser_cache: dict[str, object] = {}

    def language_for(self, path: Path | str) -> Language | None:
        entry = EXT_TO_LANGUAGE.get(Path(path).suffix)
        return entry[0] if entry else None

    def parse(self, text: str, path: Path | str):
        """Parse *text*; raise ParseFailure on unsupported files or syntax errors."""
        entry = EXT_TO_LANGUAGE.get(Path(path).suffix)
        if entry is None:
            raise ParseFailure(str(path), "unsupported file type")

        _, grammar_name = entry
        parser = self._get_parser(grammar_name)
        tree = parser.parse(text.encode("utf-8"))
        if tree.root_node.has_error:
            raise ParseFailure(str(path), f"syntax error near line {_first_error_line(tree.root_node)}")
        return tree

    def _get_parser(self, grammar_name: str):
        if grammar_name not in self._parser_cache:
            self._parser_cache[grammar_name] = get_parser(grammar_name)
        return self._parser_cache[grammar_name]


def _first_error_line(node) -> int:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current.start_point[0] + 1
        stack.extend(reversed(current.children))
    return node.start_point[0] + 1
