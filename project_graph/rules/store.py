"""Rule-set store: bundled JSON defaults plus a user directory that overrides them."""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path

from project_graph.config import BUILTIN_RULES_DIR, RULES_DIR
from project_graph.errors import ConfigurationError
from project_graph.rules.models import Rule, RuleSet

logger = logging.getLogger(__name__)


class RuleStore:
    """One JSON record per rule-set name; writes replace whole records atomically."""

    def __init__(self, user_dir: Path | None = None, builtin_dir: Path | None = BUILTIN_RULES_DIR):
        self.user_dir = Path(user_dir) if user_dir is not None else RULES_DIR
        self.builtin_dir = Path(builtin_dir) if builtin_dir is not None else None

    # ── Loading ─────────────────────────────────────────────────

    def load(self) -> dict[str, RuleSet]:
        """All valid rule sets by name; malformed records are logged and skipped."""
        rule_sets: dict[str, RuleSet] = {}
        for directory in (self.builtin_dir, self.user_dir):
            if directory is None or not directory.is_dir():
                continue
            for path in sorted(directory.glob("*.json")):
                try:
                    rule_set = RuleSet.from_dict(read_record(path), path.stem)
                except ConfigurationError as exc:
                    logger.warning("Skipping rule set %s: %s", path, exc)
                    continue
                rule_sets[rule_set.name] = rule_set
        return rule_sets

    def get(self, name: str) -> RuleSet | None:
        return self.load().get(name)

    # ── Management ──────────────────────────────────────────────

    def list_rule_sets(self) -> dict:
        summary: dict[str, dict] = {}
        total = 0
        for name, rule_set in self.load().items():
            summary[name] = {
                "description": rule_set.description,
                "ruleCount": len(rule_set.rules),
                "rules": [
                    {"id": r.id, "name": r.name, "severity": r.severity.value}
                    for r in rule_set.rules
                ],
            }
            total += len(rule_set.rules)
        return {"ruleSets": summary, "totalRules": total}

    def set_rule(self, rule_set_name: str, rule: dict) -> dict:
        """Add *rule* to the set, or replace the rule with the same id."""
        Rule.from_dict(rule, rule_set_name)

        existing = self.get(rule_set_name)
        if existing is not None:
            record = copy.deepcopy(existing.record)
        else:
            record = {
                "name": rule_set_name,
                "description": f"Custom rules for {rule_set_name}",
                "rules": [],
            }
        rules = record.setdefault("rules", [])

        index = _rule_index(rules, rule["id"])
        if index is None:
            rules.append(rule)
            message = f'Added rule "{rule["id"]}" to {rule_set_name}'
        else:
            rules[index] = rule
            message = f'Updated rule "{rule["id"]}" in {rule_set_name}'

        self.save(record)
        return {"success": True, "message": message}

    def delete_rule(self, rule_set_name: str, rule_id: str) -> dict:
        existing = self.get(rule_set_name)
        if existing is None:
            return {"success": False, "message": f'Ruleset "{rule_set_name}" not found'}

        record = copy.deepcopy(existing.record)
        rules = record.get("rules", [])
        index = _rule_index(rules, rule_id)
        if index is None:
            return {"success": False, "message": f'Rule "{rule_id}" not found'}

        del rules[index]
        self.save(record)
        return {"success": True, "message": f'Deleted rule "{rule_id}" from {rule_set_name}'}

    # ── Persistence ─────────────────────────────────────────────

    def save(self, record: dict) -> Path:
        """Write *record* to ``<user_dir>/<name>.json`` via temp file + rename."""
        name = record.get("name")
        if not name or "/" in name or name.startswith("."):
            raise ConfigurationError(f"Invalid rule set name: {name!r}")

        self.user_dir.mkdir(parents=True, exist_ok=True)
        target = self.user_dir / f"{name}.json"
        fd, tmp_path = tempfile.mkstemp(dir=self.user_dir, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, target)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.info("Saved rule set %s", target)
        return target


def read_record(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Cannot read {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path.name} does not hold a JSON object")
    return data


def _rule_index(rules: list, rule_id: str) -> int | None:
    for i, existing in enumerate(rules):
        if isinstance(existing, dict) and existing.get("id") == rule_id:
            return i
    return None
