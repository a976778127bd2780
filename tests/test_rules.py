"""Tests for the rule engine, rule-set detection and the rule store."""

import json
from pathlib import Path

import pytest

from project_graph.config import BUILTIN_RULES_DIR
from project_graph.errors import ConfigurationError
from project_graph.models import Severity
from project_graph.rules import RuleStore
from project_graph.rules.detect import detect_rule_sets
from project_graph.rules.engine import (
    check_rules,
    check_text,
    in_comment_or_string,
    markup_depths,
    match_line,
)
from project_graph.rules.models import Rule, RuleSet

FIXTURES = Path(__file__).parent / "fixtures"
SAMPLE = FIXTURES / "sample_project"


# ── Helpers ───────────────────────────────────────────────────

def _make_rule(pattern="console.log(", pattern_type="string", **kwargs):
    data = {"id": kwargs.pop("id", "r1"), "pattern": pattern, "patternType": pattern_type, **kwargs}
    return Rule.from_dict(data, "custom")


def _write_rule_set(directory, name, rules, **extra):
    directory.mkdir(parents=True, exist_ok=True)
    record = {"name": name, "description": f"{name} rules", "rules": rules, **extra}
    (directory / f"{name}.json").write_text(json.dumps(record, indent=2))
    return record


def _store(tmp_path, builtin=False):
    return RuleStore(user_dir=tmp_path / "rules", builtin_dir=BUILTIN_RULES_DIR if builtin else None)


# ── Matching ──────────────────────────────────────────────────

class TestMatching:
    def test_in_comment_or_string(self):
        line = "const s = 'a // b'; // tail"
        assert in_comment_or_string(line, line.index("a //"))
        assert not in_comment_or_string(line, line.index("const"))
        assert in_comment_or_string(line, line.index("tail"))

    def test_escaped_quote_stays_in_string(self):
        line = r'x = "say \"hi\" eval(";'
        assert in_comment_or_string(line, line.index("eval"))

    def test_template_literal(self):
        line = "const t = `debugger;`;"
        assert match_line(_make_rule("debugger;"), line) is None

    def test_literal_in_string_then_live_code(self):
        rule = _make_rule()
        text = 'const msg = "console.log(x)";\nconsole.log(msg);\n'
        violations = check_text(rule, text, "a.js")
        assert [(v.line, v.match) for v in violations] == [(2, "console.log(")]

    def test_regex_match_text(self):
        rule = _make_rule(r"\beval\s*\(", "regex", severity="error")
        violations = check_text(rule, "run();\nresult = eval  (code);\n", "a.js")
        assert [(v.line, v.match, v.severity) for v in violations] == [(2, "eval  (", Severity.ERROR)]

    def test_later_live_occurrence_on_same_line(self):
        rule = _make_rule()
        assert match_line(rule, "log('console.log('); console.log(1);") == "console.log("

    def test_markup_depths(self):
        lines = ["<template>", "  <div/>", "  <template v-if='x'>", "  </template>", "</template>", "<script>"]
        assert markup_depths(lines, "template") == [1, 1, 2, 1, 0, 0]

    def test_markup_context(self):
        rule = _make_rule("v-html", context="template", filePattern="*.vue")
        text = (
            "<template>\n"
            "  <div v-html=\"raw\"></div>\n"
            "</template>\n"
            "<script>\n"
            "el.dataset.v-html\n"
            "</script>\n"
        )
        assert [v.line for v in check_text(rule, text, "App.vue")] == [2]

    def test_block_comment_inner_lines_still_match(self):
        # Only the line's own text is inspected; /* */ spanning lines is not tracked
        rule = _make_rule()
        text = "/*\n  console.log(old);\n */\nrun(); /* console.log(x) */\n"
        violations = check_text(rule, text, "a.js")
        assert [v.line for v in violations] == [2, 4]

    def test_multiline_template_literal_inner_line_matches(self):
        rule = _make_rule("debugger;")
        text = "const tpl = `\n  debugger;\n`;\n"
        assert [v.line for v in check_text(rule, text, "a.js")] == [2]


# ── Rule records ──────────────────────────────────────────────

class TestRuleModels:
    def test_defaults(self):
        rule = _make_rule()
        assert rule.name == "r1"
        assert rule.severity == Severity.WARNING
        assert rule.file_pattern == "*.js"
        assert rule.rule_set == "custom"

    def test_invalid_regex(self):
        with pytest.raises(ConfigurationError):
            _make_rule("(unclosed", "regex")

    def test_invalid_severity(self):
        with pytest.raises(ConfigurationError):
            _make_rule(severity="fatal")

    def test_missing_pattern(self):
        with pytest.raises(ConfigurationError):
            Rule.from_dict({"id": "x"})

    def test_rule_set_from_dict(self):
        rs = RuleSet.from_dict({"rules": [{"id": "a", "pattern": "x"}], "alwaysApply": True}, "fallback")
        assert rs.name == "fallback"
        assert rs.always_apply
        assert [r.id for r in rs.rules] == ["a"]


# ── Detection ─────────────────────────────────────────────────

class TestDetection:
    def _rule_sets(self):
        return {
            "react": RuleSet.from_dict({
                "name": "react",
                "detect": {"packageJson": ["react"], "imports": ["from 'react'"]},
                "rules": [],
            }),
            "vue": RuleSet.from_dict({
                "name": "vue",
                "detect": {"packageJson": ["vue"], "patterns": ["createApp("]},
                "rules": [],
            }),
        }

    def test_package_json(self, tmp_path):
        (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"react": "18"}}))
        result = detect_rule_sets(tmp_path, self._rule_sets())
        assert result["detected"] == ["react"]
        assert result["reasons"]["react"] == 'Found "react" in package.json'

    def test_sample_scan_fallback(self, tmp_path):
        (tmp_path / "package.json").write_text("{}")
        (tmp_path / "main.js").write_text("const app = createApp(App);\n")
        result = detect_rule_sets(tmp_path, self._rule_sets())
        assert result["detected"] == ["vue"]
        assert result["reasons"]["vue"] == 'Found "createApp(" in main.js'

    def test_nothing_detected(self, tmp_path):
        (tmp_path / "main.js").write_text("run();\n")
        assert detect_rule_sets(tmp_path, self._rule_sets())["detected"] == []


# ── check_rules ───────────────────────────────────────────────

class TestCheckRules:
    def test_dedup_across_rule_sets(self, tmp_path):
        store = _store(tmp_path)
        rule = {"id": "no-log", "pattern": "console.log(", "severity": "warning"}
        _write_rule_set(store.user_dir, "first", [rule])
        _write_rule_set(store.user_dir, "second", [dict(rule, id="no-log-2")])
        project = tmp_path / "project"
        project.mkdir()
        (project / "a.js").write_text("console.log(1);\n")

        result = check_rules(project, store=store, auto_detect=False)
        assert result["total"] == 1
        assert result["violations"][0]["ruleId"] == "no-log"

    def test_always_apply_joins_detected(self, tmp_path):
        store = _store(tmp_path)
        _write_rule_set(store.user_dir, "base", [{"id": "no-debugger", "pattern": "debugger;"}], alwaysApply=True)
        _write_rule_set(store.user_dir, "react", [{"id": "no-find", "pattern": "findDOMNode("}],
                        detect={"packageJson": ["react"]})
        _write_rule_set(store.user_dir, "vue", [{"id": "no-set", "pattern": "Vue.set("}],
                        detect={"packageJson": ["vue"]})
        project = tmp_path / "project"
        project.mkdir()
        (project / "package.json").write_text(json.dumps({"dependencies": {"react": "18"}}))
        (project / "a.js").write_text("debugger;\nfindDOMNode(this);\nVue.set(a, b, c);\n")

        result = check_rules(project, store=store)
        assert sorted(result["byRule"]) == ["no-debugger", "no-find"]
        assert result["detected"]["detected"] == ["react"]

    def test_nothing_detected_runs_everything(self, tmp_path):
        store = _store(tmp_path)
        _write_rule_set(store.user_dir, "react", [{"id": "no-find", "pattern": "findDOMNode("}],
                        detect={"packageJson": ["react"]})
        project = tmp_path / "project"
        project.mkdir()
        (project / "a.js").write_text("findDOMNode(this);\n")
        assert check_rules(project, store=store)["total"] == 1

    def test_explicit_rule_set(self, tmp_path):
        store = _store(tmp_path)
        _write_rule_set(store.user_dir, "a", [{"id": "one", "pattern": "foo"}])
        _write_rule_set(store.user_dir, "b", [{"id": "two", "pattern": "bar"}])
        project = tmp_path / "project"
        project.mkdir()
        (project / "x.js").write_text("foo();\nbar();\n")
        result = check_rules(project, rule_set="b", store=store)
        assert list(result["byRule"]) == ["two"]
        assert "detected" not in result

    def test_sorting_severity_filter_and_excludes(self, tmp_path):
        store = _store(tmp_path)
        _write_rule_set(store.user_dir, "mixed", [
            {"id": "info-rule", "pattern": "alpha", "severity": "info"},
            {"id": "error-rule", "pattern": "beta", "severity": "error"},
            {"id": "skip-config", "pattern": "gamma", "exclude": ["*.config.js"]},
        ])
        project = tmp_path / "project"
        project.mkdir()
        (project / "a.js").write_text("alpha();\nbeta();\n")
        (project / "app.config.js").write_text("gamma();\n")

        result = check_rules(project, store=store, auto_detect=False)
        assert [v["ruleId"] for v in result["violations"]] == ["error-rule", "info-rule"]
        assert result["bySeverity"] == {"error": 1, "warning": 0, "info": 1}

        errors = check_rules(project, store=store, auto_detect=False, severity="error")
        assert errors["total"] == 1

    def test_file_pattern(self, tmp_path):
        store = _store(tmp_path)
        _write_rule_set(store.user_dir, "tsx", [{"id": "any", "pattern": "any", "filePattern": "*.tsx"}])
        project = tmp_path / "project"
        project.mkdir()
        (project / "a.js").write_text("let x: any;\n")
        (project / "b.tsx").write_text("let y: any;\n")
        result = check_rules(project, store=store, auto_detect=False)
        assert [v["file"] for v in result["violations"]] == ["b.tsx"]

    def test_file_pattern_on_single_file_root(self, tmp_path):
        store = _store(tmp_path)
        _write_rule_set(store.user_dir, "vue", [{"id": "no-v-html", "pattern": "v-html", "filePattern": "*.vue"}])
        project = tmp_path / "project"
        project.mkdir()
        (project / "app.js").write_text("el.setAttribute('x', 1); v-html\n")
        (project / "App.vue").write_text("<div v-html=\"raw\"></div>\n")

        assert check_rules(project / "app.js", store=store, auto_detect=False)["total"] == 0
        result = check_rules(project / "App.vue", store=store, auto_detect=False)
        assert [v["file"] for v in result["violations"]] == ["App.vue"]

    def test_builtin_rule_sets_on_sample(self, tmp_path):
        result = check_rules(SAMPLE, store=_store(tmp_path, builtin=True))
        assert result["detected"]["detected"] == []
        assert result["byRule"] == {"no-console-log": 1}
        assert result["violations"][0]["file"] == "src/utils.js"


# ── Store ─────────────────────────────────────────────────────

class TestRuleStore:
    def test_list_builtin(self, tmp_path):
        data = _store(tmp_path, builtin=True).list_rule_sets()
        assert set(data["ruleSets"]) == {"javascript", "react", "vue"}
        assert data["totalRules"] == sum(rs["ruleCount"] for rs in data["ruleSets"].values())

    def test_user_overrides_builtin(self, tmp_path):
        store = _store(tmp_path, builtin=True)
        _write_rule_set(store.user_dir, "react", [{"id": "mine", "pattern": "x"}])
        assert [r.id for r in store.get("react").rules] == ["mine"]

    def test_malformed_record_skipped(self, tmp_path):
        store = _store(tmp_path)
        store.user_dir.mkdir(parents=True)
        (store.user_dir / "broken.json").write_text("{not json")
        _write_rule_set(store.user_dir, "good", [])
        assert list(store.load()) == ["good"]

    def test_set_rule_creates_and_updates(self, tmp_path):
        store = _store(tmp_path)
        result = store.set_rule("team", {"id": "no-foo", "pattern": "foo"})
        assert result["success"]
        assert "Added" in result["message"]

        result = store.set_rule("team", {"id": "no-foo", "pattern": "foo2", "severity": "error"})
        assert "Updated" in result["message"]
        rules = store.get("team").rules
        assert len(rules) == 1
        assert rules[0].pattern == "foo2"
        assert rules[0].severity == Severity.ERROR

    def test_set_rule_validates(self, tmp_path):
        store = _store(tmp_path)
        with pytest.raises(ConfigurationError):
            store.set_rule("team", {"id": "bad", "pattern": "(", "patternType": "regex"})
        assert store.get("team") is None

    def test_round_trip_preserves_untouched_fields(self, tmp_path):
        store = _store(tmp_path)
        original = _write_rule_set(store.user_dir, "team", [
            {"id": "keep", "pattern": "a", "customField": {"nested": [1, 2]}},
            {"id": "edit", "pattern": "b"},
        ], owner="platform", tags=["x"])

        store.set_rule("team", {"id": "edit", "pattern": "c"})
        saved = json.loads((store.user_dir / "team.json").read_text())
        assert saved["owner"] == "platform"
        assert saved["tags"] == ["x"]
        assert saved["rules"][0] == original["rules"][0]
        assert saved["rules"][1] == {"id": "edit", "pattern": "c"}

    def test_delete_rule(self, tmp_path):
        store = _store(tmp_path)
        store.set_rule("team", {"id": "a", "pattern": "x"})
        store.set_rule("team", {"id": "b", "pattern": "y"})
        assert store.delete_rule("team", "a")["success"]
        assert [r.id for r in store.get("team").rules] == ["b"]
        assert not store.delete_rule("team", "missing")["success"]
        assert not store.delete_rule("nobody", "a")["success"]

    def test_save_leaves_no_temp_files(self, tmp_path):
        store = _store(tmp_path)
        store.set_rule("team", {"id": "a", "pattern": "x"})
        assert [p.name for p in store.user_dir.iterdir()] == ["team.json"]

    def test_invalid_name(self, tmp_path):
        with pytest.raises(ConfigurationError):
            _store(tmp_path).save({"name": "../escape", "rules": []})
