"""Tests for the fact extractor and the tree-sitter parser wrapper."""

import pytest

from project_graph.errors import ParseFailure
from project_graph.extractor import SourceParser, extract_facts
from project_graph.extractor.node_kinds import NodeKind, node_kind
from project_graph.models import DeclarationKind, Language


# ── Helpers ───────────────────────────────────────────────────

def _facts(code, file="a.js"):
    tree = SourceParser().parse(code, file)
    return extract_facts(tree, file)


def _class(sheet, name):
    return next(c for c in sheet.classes if c.name == name)


# ── Parser ────────────────────────────────────────────────────

class TestSourceParser:
    def test_language_for(self):
        parser = SourceParser()
        assert parser.language_for("a.js") == Language.JAVASCRIPT
        assert parser.language_for("a.tsx") == Language.TYPESCRIPT
        assert parser.language_for("a.py") is None

    def test_syntax_error_raises(self):
        with pytest.raises(ParseFailure) as exc:
            SourceParser().parse("function (", "broken.js")
        assert exc.value.path == "broken.js"

    def test_unsupported_extension(self):
        with pytest.raises(ParseFailure):
            SourceParser().parse("x", "notes.txt")

    def test_node_kind_mapping(self):
        tree = SourceParser().parse("function f() {}", "a.js")
        fn = tree.root_node.named_children[0]
        assert node_kind(fn) == NodeKind.FUNCTION_DECLARATION
        assert node_kind(tree.root_node) is None


# ── Declarations ──────────────────────────────────────────────

class TestDeclarations:
    def test_function_declaration(self):
        sheet = _facts("function parse(text) {\n  return text;\n}\n")
        assert [f.name for f in sheet.functions] == ["parse"]
        fn = sheet.functions[0]
        assert fn.kind == DeclarationKind.FUNCTION
        assert fn.line == 1
        assert fn.end_line == 3
        assert not fn.exported

    def test_module_level_arrow_is_function(self):
        sheet = _facts("const handler = (e) => e.target;\n")
        assert [f.name for f in sheet.functions] == ["handler"]
        assert sheet.bindings == []

    def test_nested_arrow_is_local_binding(self):
        sheet = _facts("function outer() {\n  const inner = () => 1;\n  return inner();\n}\n")
        assert [f.name for f in sheet.functions] == ["outer"]
        assert [b.name for b in sheet.bindings] == ["inner"]

    def test_class_methods_and_extends(self):
        code = (
            "class SymNode extends BaseNode {\n"
            "  constructor() { super(); this.setup(); }\n"
            "  togglePin() { this.render(); }\n"
            "  get label() { return 1; }\n"
            "  onClick = () => this.togglePin();\n"
            "}\n"
        )
        sheet = _facts(code)
        cls = _class(sheet, "SymNode")
        assert cls.extends == "BaseNode"
        assert [m.name for m in cls.methods] == ["togglePin", "label", "onClick"]
        assert cls.methods[1].method_kind == "get"
        assert all(m.owner == "SymNode" for m in cls.methods)
        # Constructor calls still belong to the class
        assert "SymNode.setup" in [c.key for c in cls.calls]
        assert "BaseNode" in sheet.references

    def test_property_block(self):
        code = "class Card {\n  init$ = {\n    title: '',\n    'is-open': false,\n  };\n}\n"
        cls = _class(_facts(code), "Card")
        assert cls.properties == ["title", "is-open"]
        assert cls.methods == []

    def test_object_literal_methods_are_not_class_methods(self):
        sheet = _facts("const api = {\n  load() { return 1; },\n};\n")
        assert sheet.classes == []
        assert [b.name for b in sheet.bindings] == ["api"]

    def test_destructured_bindings(self):
        sheet = _facts("const { a, b: renamed, ...rest } = obj;\nconst [x, y = 2] = list;\n")
        assert [b.name for b in sheet.bindings] == ["a", "renamed", "rest", "x", "y"]


# ── Calls ─────────────────────────────────────────────────────

class TestCalls:
    def test_four_call_shapes(self):
        code = (
            "class Panel {\n"
            "  render() {\n"
            "    draw();\n"
            "    Registry.lookup();\n"
            "    this.layout();\n"
            "    this.store.save();\n"
            "  }\n"
            "}\n"
        )
        method = _class(_facts(code), "Panel").methods[0]
        keys = [c.key for c in method.calls]
        assert keys == ["draw", "Registry.lookup", "Panel.layout", "store.save"]
        by_key = {c.key: c for c in method.calls}
        assert by_key["Panel.layout"].via_this
        assert by_key["store.save"].via_this
        assert not by_key["Registry.lookup"].via_this
        assert all(c.caller == "Panel.render" for c in method.calls)

    def test_calls_deduplicated_per_declaration(self):
        sheet = _facts("function f() {\n  g();\n  g();\n  h.g();\n}\n")
        assert [c.key for c in sheet.functions[0].calls] == ["g", "h.g"]

    def test_module_level_call(self):
        sheet = _facts("boot();\n")
        assert sheet.calls[0].caller is None
        assert "boot" in sheet.references

    def test_references_from_arguments_new_and_jsx(self):
        code = "function App() {\n  use(handler);\n  const s = new Store();\n  return <Widget />;\n}\n"
        sheet = _facts(code, "app.jsx")
        assert {"use", "handler", "Store", "Widget"} <= sheet.references


# ── Imports and exports ───────────────────────────────────────

class TestModules:
    def test_import_forms(self):
        code = (
            "import React from 'react';\n"
            "import * as utils from './utils';\n"
            "import { load, save as persist } from './store.js';\n"
        )
        sheet = _facts(code)
        imports = [(b.imported_name, b.local_alias, b.source) for b in sheet.imports]
        assert imports == [
            ("default", "React", "react"),
            ("*", "utils", "./utils"),
            ("load", "load", "./store.js"),
            ("save", "persist", "./store.js"),
        ]
        assert not sheet.imports[0].is_relative
        assert sheet.imports[1].is_relative
        assert [b.name for b in sheet.bindings if b.kind == "import"] == ["React", "utils", "load", "persist"]

    def test_export_declarations(self):
        code = (
            "export function helperFn() {}\n"
            "export class Widget {}\n"
            "export const LIMIT = 3, other = 4;\n"
        )
        sheet = _facts(code)
        assert [e.name for e in sheet.exports] == ["helperFn", "Widget", "LIMIT", "other"]
        assert sheet.functions[0].exported
        assert sheet.classes[0].declaration.exported

    def test_export_default(self):
        sheet = _facts("export default function main() {}\n")
        export = sheet.exports[0]
        assert export.name == "default"
        assert export.local_name == "main"
        assert export.display_name == "main (default)"
        assert sheet.functions[0].exported

    def test_export_default_identifier(self):
        sheet = _facts("function run() {}\nexport default run;\n")
        assert [(e.name, e.local_name) for e in sheet.exports] == [("default", "run")]
        assert sheet.functions[0].exported

    def test_export_clause_marks_local(self):
        sheet = _facts("function a() {}\nfunction b() {}\nexport { a, b as bee };\n")
        assert [(e.name, e.local_name) for e in sheet.exports] == [("a", "a"), ("bee", "b")]
        assert all(f.exported for f in sheet.functions)

    def test_reexports_count_as_imports(self):
        sheet = _facts("export { parse } from './parser';\nexport * from './helpers';\n")
        assert [(b.imported_name, b.source) for b in sheet.imports] == [
            ("parse", "./parser"),
            ("*", "./helpers"),
        ]
        assert sheet.exports[0].reexport_source == "./parser"
        assert sheet.exported_names == set()
