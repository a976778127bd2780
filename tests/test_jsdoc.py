"""Tests for the JSDoc skeleton generator."""

from pathlib import Path

from project_graph.analysis.jsdoc import build_jsdoc, generate_jsdoc, generate_jsdoc_for

FIXTURES = Path(__file__).parent / "fixtures"
SAMPLE = FIXTURES / "sample_project"


def _write(root, files):
    for rel_path, code in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(code)
    return root


def _params(jsdoc):
    return [line.split("@param ", 1)[1] for line in jsdoc.splitlines() if "@param" in line]


class TestBuildJSDoc:
    def test_layout(self):
        doc = build_jsdoc("load", [("*", "id"), ("number", "[retries]")], is_async=True)
        assert doc.splitlines() == [
            "/**",
            " * Describe load.",
            " * @param {*} id",
            " * @param {number} [retries]",
            " * @returns {Promise<*>}",
            " * @test action: describe the test scenario",
            " * @expect result: describe the expected outcome",
            " */",
        ]

    def test_without_tests(self):
        doc = build_jsdoc("f", [], is_async=False, include_tests=False)
        assert "@test" not in doc
        assert " * @returns {*}" in doc


class TestGenerateJSDoc:
    def test_sample_project(self):
        result = generate_jsdoc(SAMPLE)
        names = [item["name"] for item in result["items"]]
        assert names == ["Panel.render", "legacyHelper", "SymNode.togglePin", "SymNode.render", "unusedExport"]
        assert result["total"] == 5

        unused = result["items"][-1]
        assert unused["type"] == "function"
        assert unused["file"] == "src/utils.js"
        assert unused["jsdoc"].startswith("/**\n * Describe unusedExport.\n * @returns {*}")

    def test_param_inference(self, tmp_path):
        _write(tmp_path, {
            "a.js": (
                "function f(a, b = 'x', c = 3, { d }, [e], flag = true, list = [], opts = {}, ...rest) {}\n"
            ),
        })
        item = generate_jsdoc(tmp_path)["items"][0]
        assert _params(item["jsdoc"]) == [
            "{*} a",
            "{string} [b]",
            "{number} [c]",
            "{Object} options",
            "{Array} args",
            "{boolean} [flag]",
            "{Array} [list]",
            "{Object} [opts]",
            "{Array} ...rest",
        ]

    def test_typescript_annotations(self, tmp_path):
        _write(tmp_path, {"a.ts": "function g(name: string, count?: number, mode = 'fast') {}\n"})
        item = generate_jsdoc(tmp_path)["items"][0]
        assert _params(item["jsdoc"]) == ["{string} name", "{number} [count]", "{string} [mode]"]

    def test_skips_documented_private_and_special_methods(self, tmp_path):
        _write(tmp_path, {
            "a.js": (
                "class Store {\n"
                "  constructor() {}\n"
                "  get size() { return 0; }\n"
                "  _flush() {}\n"
                "  /** Loads one record. */\n"
                "  load(id) {}\n"
                "  async save(record) {}\n"
                "}\n"
                "const helper = () => 1;\n"
            ),
        })
        items = generate_jsdoc(tmp_path)["items"]
        assert [(i["name"], i["type"], i["line"]) for i in items] == [("Store.save", "method", 7)]
        assert "@returns {Promise<*>}" in items[0]["jsdoc"]

    def test_generate_for_one_name(self):
        assert generate_jsdoc_for(SAMPLE, "render")["name"] == "Panel.render"
        assert generate_jsdoc_for(SAMPLE, "SymNode.render")["file"] == "src/sym_node.js"
        assert generate_jsdoc_for(SAMPLE, "formatLabel") is None
        assert generate_jsdoc_for(SAMPLE, "legacyHelper", include_tests=False)["jsdoc"].count("@test") == 0
