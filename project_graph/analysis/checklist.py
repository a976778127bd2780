"""Manual test checklist built from ``@test``/``@expect`` JSDoc annotations.

A step is written ``@test <action>: <what to do>``; an expected outcome
``@expect <kind>: <what should happen>``. Without the ``<action>:`` prefix the
whole text is the description. Step ids are ``<feature>.<index>``.
"""

from __future__ import annotations

import datetime
import json
import logging
import os
import re
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path

from project_graph.analysis.undocumented import documentable_units, jsdoc_above
from project_graph.analysis.units import scoped_files
from project_graph.models import FilterConfig, Project

logger = logging.getLogger(__name__)

_TEST_RE = re.compile(r"@test[ \t]+(?:(\w+):[ \t]*)?(\S[^\n]*)")
_EXPECT_RE = re.compile(r"@expect[ \t]+(?:(\w+):[ \t]*)?(\S[^\n]*)")
_DESCRIPTION_RE = re.compile(r"^[ \t]*\*?[ \t]*([^@\s][^\n]*)", re.MULTILINE)

DEFAULT_STEP_TYPE = "step"
DEFAULT_EXPECT_TYPE = "result"


@dataclass
class AnnotatedStep:
    id: str
    type: str
    description: str

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.type, "description": self.description}


@dataclass
class Feature:
    name: str
    description: str
    file: str
    line: int
    tests: list[AnnotatedStep] = field(default_factory=list)
    expects: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "file": self.file,
            "line": self.line,
            "tests": [t.to_dict() for t in self.tests],
            "expects": list(self.expects),
        }


def parse_block(block: str, name: str, rel_path: str, line: int) -> Feature | None:
    """Feature for one ``/** ... */`` block, or None if it has no annotations."""
    inner = block[3:-2]
    if "@test" not in inner and "@expect" not in inner:
        return None

    description = _DESCRIPTION_RE.search(inner)
    tests = [
        AnnotatedStep(id=f"{name}.{i}", type=m.group(1) or DEFAULT_STEP_TYPE, description=m.group(2).strip())
        for i, m in enumerate(_TEST_RE.finditer(inner))
    ]
    expects = [
        {"type": m.group(1) or DEFAULT_EXPECT_TYPE, "description": m.group(2).strip()}
        for m in _EXPECT_RE.finditer(inner)
    ]
    if not tests and not expects:
        return None
    return Feature(
        name=name,
        description=description.group(1).strip() if description else name,
        file=rel_path,
        line=line,
        tests=tests,
        expects=expects,
    )


def get_all_features(
    path: Path | str | None = None,
    filters: FilterConfig | None = None,
    project: Project | None = None,
    scope: str = "",
) -> list[Feature]:
    """Annotated functions and methods, in file and source order."""
    features: list[Feature] = []
    for source in scoped_files(path, filters, project, scope):
        for name, unit in documentable_units(source.tree.root_node):
            block = jsdoc_above(source.lines, unit.line)
            if block is None:
                continue
            feature = parse_block(block, name, source.rel_path, unit.line)
            if feature is not None:
                features.append(feature)
    return features


class Checklist:
    """Pass/fail results keyed by step id.

    Kept in memory; with a *state_file* the results are loaded from and
    written back to that JSON file on every change.
    """

    def __init__(self, state_file: Path | None = None):
        self.state_file = Path(state_file) if state_file is not None else None
        self._lock = threading.Lock()
        self._results: dict[str, dict] = self._load()

    def mark_passed(self, step_id: str) -> dict:
        self._set(step_id, {"completed": True, "passed": True})
        return {"success": True, "testId": step_id}

    def mark_failed(self, step_id: str, reason: str) -> dict:
        self._set(step_id, {"completed": True, "passed": False, "reason": reason})
        return {"success": True, "testId": step_id, "reason": reason}

    def reset(self) -> dict:
        with self._lock:
            self._results = {}
            self._save()
        return {"success": True}

    def result(self, step_id: str) -> dict | None:
        return self._results.get(step_id)

    def pending(self, features: list[Feature]) -> list[dict]:
        """Steps without a recorded result."""
        steps: list[dict] = []
        for feature in features:
            for step in feature.tests:
                if self.result(step.id) is None:
                    steps.append({**step.to_dict(), "feature": feature.name, "file": feature.file})
        return steps

    def summary(self, features: list[Feature]) -> dict:
        total = passed = failed = 0
        failures: list[dict] = []
        for feature in features:
            for step in feature.tests:
                total += 1
                result = self.result(step.id)
                if result is None:
                    continue
                if result["passed"]:
                    passed += 1
                else:
                    failed += 1
                    failures.append({"id": step.id, "reason": result.get("reason", "")})
        return {
            "total": total,
            "passed": passed,
            "failed": failed,
            "pending": total - passed - failed,
            "progress": round((passed + failed) / total * 100) if total else 0,
            "failures": failures,
        }

    def markdown(self, features: list[Feature], today: datetime.date | None = None) -> str:
        """Checklist grouped by file; passed steps are ticked."""
        today = today or datetime.date.today()
        lines = [
            "# Test Checklist",
            "",
            "> Generated from JSDoc @test/@expect annotations",
            f"> Generated: {today.isoformat()}",
            "",
        ]
        by_file: dict[str, list[Feature]] = {}
        for feature in features:
            by_file.setdefault(feature.file, []).append(feature)

        for file, file_features in by_file.items():
            lines += [f"## {file}", ""]
            for feature in file_features:
                lines += [f"### {feature.name}()", feature.description, ""]
                if feature.tests:
                    lines.append("**Steps:**")
                    for step in feature.tests:
                        result = self.result(step.id)
                        check = "[x]" if result and result["passed"] else "[ ]"
                        lines.append(f"- {check} `{step.type}`: {step.description}")
                    lines.append("")
                if feature.expects:
                    lines.append("**Expected:**")
                    for expect in feature.expects:
                        lines.append(f"- `{expect['type']}`: {expect['description']}")
                    lines.append("")
        return "\n".join(lines)

    # ── Persistence ─────────────────────────────────────────────

    def _set(self, step_id: str, result: dict) -> None:
        with self._lock:
            self._results[step_id] = result
            self._save()

    def _load(self) -> dict[str, dict]:
        if self.state_file is None or not self.state_file.is_file():
            return {}
        try:
            data = json.loads(self.state_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable checklist state %s: %s", self.state_file, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        if self.state_file is None:
            return
        directory = self.state_file.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{self.state_file.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._results, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self.state_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
