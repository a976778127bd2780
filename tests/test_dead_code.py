"""Tests for the liveness (dead code) analyzer."""

import json
from pathlib import Path

from project_graph.analysis.dead_code import analyze_liveness, count_word, is_reportable, resolve_import

FIXTURES = Path(__file__).parent / "fixtures"


# ── Helpers ───────────────────────────────────────────────────

def _make_project(root, files, package=None):
    (root / "package.json").write_text(json.dumps(package or {"name": "fixture"}))
    for rel_path, code in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(code)
    return root


def _names(result, kind=None):
    return [i["name"] for i in result["items"] if kind is None or i["type"] == kind]


# ── Import resolution ─────────────────────────────────────────

class TestResolveImport:
    def test_default_extension(self):
        assert resolve_import("src/a.js", "./b", {"src/b.js"}) == "src/b.js"

    def test_explicit_extension(self):
        assert resolve_import("src/a.js", "../lib/c.js", {"lib/c.js"}) == "lib/c.js"

    def test_typescript_fallback(self):
        assert resolve_import("src/a.ts", "./b", {"src/b.ts"}) == "src/b.ts"
        assert resolve_import("src/a.ts", "./b.js", {"src/b.ts"}) == "src/b.ts"

    def test_index_file(self):
        assert resolve_import("src/a.js", "./widgets", {"src/widgets/index.js"}) == "src/widgets/index.js"

    def test_unresolved(self):
        assert resolve_import("src/a.js", "./missing", {"src/a.js"}) is None
        assert resolve_import("a.js", "../../outside", {"a.js"}) is None


class TestHelpers:
    def test_count_word(self):
        text = "const total = 1;\nconst totals = total + $total;\n"
        assert count_word(text, "total") == 2
        assert count_word(text, "$total") == 1

    def test_is_reportable(self):
        assert is_reportable("src/app.js")
        assert not is_reportable("src/app.test.js")
        assert not is_reportable("src/__tests__/app.js")
        assert not is_reportable("test/helpers.js")
        assert not is_reportable("types/index.d.ts")


# ── Classification ────────────────────────────────────────────

class TestAnalyzeLiveness:
    def test_end_to_end_helper_and_unused(self, tmp_path):
        _make_project(tmp_path, {
            "a.js": "export function helperFn() {\n  return 1;\n}\n",
            "b.js": "function unused() {\n  return 2;\n}\n",
        })
        result = analyze_liveness(tmp_path)
        assert result["total"] == 2
        assert [(i["name"], i["type"]) for i in result["items"]] == [
            ("helperFn", "export"),
            ("unused", "function"),
        ]

    def test_called_declaration_is_live(self, tmp_path):
        _make_project(tmp_path, {
            "a.js": "function used() {}\nfunction main() { used(); }\nmain();\n",
        })
        result = analyze_liveness(tmp_path)
        assert "used" not in _names(result)
        assert "main" not in _names(result)

    def test_imported_export_is_live(self, tmp_path):
        _make_project(tmp_path, {
            "lib/math.js": "export function add(a, b) { return a + b; }\nexport function sub(a, b) { return a - b; }\n",
            "main.js": "import { add } from './lib/math';\nadd(1, 2);\n",
        })
        result = analyze_liveness(tmp_path)
        assert _names(result, "export") == ["sub"]

    def test_default_export_imported(self, tmp_path):
        _make_project(tmp_path, {
            "widget.js": "export default function Widget() {}\n",
            "main.js": "import Widget from './widget.js';\nWidget();\n",
        })
        assert analyze_liveness(tmp_path)["total"] == 0

    def test_unimported_default_export_reports_local_name(self, tmp_path):
        _make_project(tmp_path, {"widget.js": "export default function Widget() {}\n"})
        assert _names(analyze_liveness(tmp_path), "export") == ["Widget (default)"]

    def test_star_import_keeps_all_exports(self, tmp_path):
        _make_project(tmp_path, {
            "util.js": "export const a = 1;\nexport const b = 2;\n",
            "main.js": "import * as util from './util';\nconsole.log(util.a);\n",
        })
        assert _names(analyze_liveness(tmp_path), "export") == []

    def test_self_registration_counts_as_use(self, tmp_path):
        _make_project(tmp_path, {
            "registry.js": "export class Registry {\n  static add() {}\n}\nRegistry.add('x');\n",
        })
        assert analyze_liveness(tmp_path)["total"] == 0

    def test_unused_locals(self, tmp_path):
        _make_project(tmp_path, {
            "main.js": (
                "import { thing } from 'pkg';\n"
                "const unusedVar = 1;\n"
                "const used = 2;\n"
                "const _ignored = 3;\n"
                "console.log(used);\n"
            ),
        })
        result = analyze_liveness(tmp_path)
        assert _names(result, "import") == ["thing"]
        assert _names(result, "variable") == ["unusedVar"]
        assert result["byType"]["import"] == 1
        assert result["byType"]["variable"] == 1

    def test_test_files_not_reported(self, tmp_path):
        _make_project(tmp_path, {"src/__tests__/helpers.js": "function fixture() {}\n"})
        assert analyze_liveness(tmp_path)["total"] == 0

    def test_scope_reports_subdirectory_but_resolves_project(self, tmp_path):
        _make_project(tmp_path, {
            "src/lib.js": "export function shared() {}\nexport function stale() {}\n",
            "app/main.js": "import { shared } from '../src/lib';\nshared();\nfunction orphan() {}\n",
        })
        result = analyze_liveness(tmp_path / "src")
        assert [i["file"] for i in result["items"]] == ["src/lib.js"]
        assert _names(result) == ["stale"]

    def test_unparseable_file_does_not_abort(self, tmp_path):
        _make_project(tmp_path, {
            "broken.js": "function (\n",
            "ok.js": "function lonely() {}\n",
        })
        assert _names(analyze_liveness(tmp_path)) == ["lonely"]

    def test_sample_project(self):
        result = analyze_liveness(FIXTURES / "sample_project")
        assert result["total"] == 3
        assert result["byType"]["function"] == 1
        assert result["byType"]["export"] == 2
        assert _names(result) == ["Panel", "legacyHelper", "unusedExport"]

    def test_page_size(self, tmp_path):
        code = "".join(f"function dead{i}() {{}}\n" for i in range(40))
        _make_project(tmp_path, {"many.js": code})
        result = analyze_liveness(tmp_path)
        assert result["total"] == 40
        assert len(result["items"]) == 30
