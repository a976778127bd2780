"""Tests for the @test/@expect checklist."""

import datetime
from pathlib import Path

from project_graph.analysis.checklist import Checklist, get_all_features, parse_block
from project_graph.analysis.undocumented import jsdoc_above

FIXTURES = Path(__file__).parent / "fixtures"
SAMPLE = FIXTURES / "sample_project"

BOARD = (
    "export class Board {\n"
    "  /**\n"
    "   * Pin a node to the board.\n"
    "   * @test click: press the pin button\n"
    "   * @test key: press P with the node selected\n"
    "   * @expect visual: the node shows a pin icon\n"
    "   */\n"
    "  togglePin() {}\n"
    "\n"
    "  /** Plain description only. */\n"
    "  render() {}\n"
    "}\n"
)


def _board(tmp_path):
    (tmp_path / "board.js").write_text(BOARD)
    return get_all_features(tmp_path)


# ── Parsing ───────────────────────────────────────────────────

class TestParsing:
    def test_jsdoc_above(self):
        lines = BOARD.split("\n")
        assert jsdoc_above(lines, 8).startswith("/**\n   * Pin a node")
        assert jsdoc_above(lines, 11) == "/** Plain description only. */"
        assert jsdoc_above(lines, 1) is None

    def test_jsdoc_above_stops_at_code(self):
        lines = ["/** Doc for a. */", "function a() {}", "function b() {}"]
        assert jsdoc_above(lines, 2) == "/** Doc for a. */"
        assert jsdoc_above(lines, 3) is None

    def test_typed_steps(self, tmp_path):
        features = _board(tmp_path)
        assert len(features) == 1
        feature = features[0]
        assert feature.name == "Board.togglePin"
        assert feature.description == "Pin a node to the board."
        assert feature.file == "board.js"
        assert feature.line == 8
        assert [(t.id, t.type, t.description) for t in feature.tests] == [
            ("Board.togglePin.0", "click", "press the pin button"),
            ("Board.togglePin.1", "key", "press P with the node selected"),
        ]
        assert feature.expects == [{"type": "visual", "description": "the node shows a pin icon"}]

    def test_untyped_steps(self):
        features = get_all_features(SAMPLE)
        assert [f.name for f in features] == ["formatLabel"]
        feature = features[0]
        assert feature.description == "Format a label for display."
        assert feature.tests[0].to_dict() == {
            "id": "formatLabel.0",
            "type": "step",
            "description": "formatLabel('a') returns 'A'",
        }
        assert feature.expects == [{"type": "result", "description": "uppercase output"}]

    def test_single_line_block(self):
        feature = parse_block("/** @test click: open the menu */", "open", "a.js", 3)
        assert feature.description == "open"
        assert feature.tests[0].description == "open the menu"

    def test_block_without_annotations(self):
        assert parse_block("/** Just text. */", "f", "a.js", 1) is None


# ── Checklist ─────────────────────────────────────────────────

class TestChecklist:
    def test_pending_and_summary(self, tmp_path):
        features = _board(tmp_path)
        checklist = Checklist()
        assert [s["id"] for s in checklist.pending(features)] == ["Board.togglePin.0", "Board.togglePin.1"]
        assert checklist.summary(features)["progress"] == 0

        assert checklist.mark_passed("Board.togglePin.0") == {"success": True, "testId": "Board.togglePin.0"}
        checklist.mark_failed("Board.togglePin.1", "no keyboard shortcut")

        assert checklist.pending(features) == []
        assert checklist.summary(features) == {
            "total": 2,
            "passed": 1,
            "failed": 1,
            "pending": 0,
            "progress": 100,
            "failures": [{"id": "Board.togglePin.1", "reason": "no keyboard shortcut"}],
        }

    def test_pending_step_fields(self, tmp_path):
        step = Checklist().pending(_board(tmp_path))[0]
        assert step["feature"] == "Board.togglePin"
        assert step["file"] == "board.js"
        assert step["type"] == "click"

    def test_reset(self, tmp_path):
        features = _board(tmp_path)
        checklist = Checklist()
        checklist.mark_passed("Board.togglePin.0")
        assert checklist.reset() == {"success": True}
        assert checklist.summary(features)["pending"] == 2

    def test_markdown(self, tmp_path):
        features = _board(tmp_path)
        checklist = Checklist()
        checklist.mark_passed("Board.togglePin.0")
        text = checklist.markdown(features, today=datetime.date(2026, 1, 2))
        lines = text.splitlines()
        assert lines[0] == "# Test Checklist"
        assert "> Generated: 2026-01-02" in lines
        assert "## board.js" in lines
        assert "### Board.togglePin()" in lines
        assert "- [x] `click`: press the pin button" in lines
        assert "- [ ] `key`: press P with the node selected" in lines
        assert "- `visual`: the node shows a pin icon" in lines

    def test_state_file_round_trip(self, tmp_path):
        state_file = tmp_path / "state" / "checklist.json"
        Checklist(state_file).mark_failed("a.0", "broken")
        reloaded = Checklist(state_file)
        assert reloaded.result("a.0") == {"completed": True, "passed": False, "reason": "broken"}
        assert [p.name for p in state_file.parent.iterdir()] == ["checklist.json"]

    def test_unreadable_state_file(self, tmp_path):
        state_file = tmp_path / "checklist.json"
        state_file.write_text("{not json")
        assert Checklist(state_file).result("a.0") is None
