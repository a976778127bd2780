"""Shared extension-to-language mapping for the walker and the parser."""

from __future__ import annotations

from project_graph.models import Language

# Maps file extension -> (Language enum, tree-sitter grammar name)
EXT_TO_LANGUAGE: dict[str, tuple[Language, str]] = {
    ".js": (Language.JAVASCRIPT, "javascript"),
    ".jsx": (Language.JAVASCRIPT, "javascript"),
    ".mjs": (Language.JAVASCRIPT, "javascript"),
    ".cjs": (Language.JAVASCRIPT, "javascript"),
    ".ts": (Language.TYPESCRIPT, "typescript"),
    ".mts": (Language.TYPESCRIPT, "typescript"),
    ".tsx": (Language.TYPESCRIPT, "tsx"),
}

# Extensions parsed into syntax trees
SOURCE_EXTENSIONS: set[str] = set(EXT_TO_LANGUAGE)

# Extension appended to extensionless relative import specifiers
DEFAULT_SOURCE_EXTENSION = ".js"

# Tried in order when the default extension does not exist on disk
RESOLVE_EXTENSIONS: tuple[str, ...] = (".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs")
