"""Rule and rule-set records.

Rule sets are stored as plain JSON dicts and kept that way so a save
reproduces every field it was loaded with; ``Rule.from_dict`` is the
validated view the engine matches with.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from project_graph.errors import ConfigurationError
from project_graph.models import Severity

DEFAULT_FILE_PATTERN = "*.js"

PATTERN_TYPES = ("string", "literal", "regex")


@dataclass
class Rule:
    id: str
    name: str
    pattern: str
    pattern_type: str = "string"
    severity: Severity = Severity.WARNING
    description: str = ""
    replacement: str = ""
    file_pattern: str = DEFAULT_FILE_PATTERN
    exclude: list[str] = field(default_factory=list)
    context: str | None = None  # markup tag the match must sit inside, e.g. "template"
    rule_set: str = ""
    _regex: re.Pattern | None = field(default=None, repr=False, compare=False)

    @property
    def is_regex(self) -> bool:
        return self.pattern_type == "regex"

    @property
    def regex(self) -> re.Pattern:
        if self._regex is None:
            self._regex = re.compile(self.pattern)
        return self._regex

    @classmethod
    def from_dict(cls, data: dict, rule_set: str = "") -> "Rule":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Rule in {rule_set!r} is not an object")
        rule_id = data.get("id")
        pattern = data.get("pattern")
        if not isinstance(rule_id, str) or not rule_id:
            raise ConfigurationError(f"Rule in {rule_set!r} has no id")
        if not isinstance(pattern, str) or not pattern:
            raise ConfigurationError(f"Rule {rule_id!r} has no pattern")

        pattern_type = data.get("patternType", "string")
        if pattern_type not in PATTERN_TYPES:
            raise ConfigurationError(f"Rule {rule_id!r} has unknown patternType {pattern_type!r}")

        try:
            severity = Severity(data.get("severity", "warning"))
        except ValueError as exc:
            raise ConfigurationError(f"Rule {rule_id!r} has unknown severity {data.get('severity')!r}") from exc

        exclude = data.get("exclude") or []
        if isinstance(exclude, str):
            exclude = [exclude]

        rule = cls(
            id=rule_id,
            name=data.get("name") or rule_id,
            pattern=pattern,
            pattern_type=pattern_type,
            severity=severity,
            description=data.get("description", ""),
            replacement=data.get("replacement", ""),
            file_pattern=data.get("filePattern") or DEFAULT_FILE_PATTERN,
            exclude=list(exclude),
            context=data.get("context") or None,
            rule_set=rule_set,
        )
        if rule.is_regex:
            try:
                rule._regex = re.compile(pattern)
            except re.error as exc:
                raise ConfigurationError(f"Rule {rule_id!r} has an invalid regex: {exc}") from exc
        return rule


@dataclass
class RuleSet:
    name: str
    description: str = ""
    always_apply: bool = False
    detect: dict = field(default_factory=dict)
    rules: list[Rule] = field(default_factory=list)
    record: dict = field(default_factory=dict, repr=False)  # raw JSON as loaded

    @classmethod
    def from_dict(cls, data: dict, fallback_name: str = "") -> "RuleSet":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Rule set {fallback_name!r} is not an object")
        name = data.get("name") or fallback_name
        if not name:
            raise ConfigurationError("Rule set has no name")
        raw_rules = data.get("rules", [])
        if not isinstance(raw_rules, list):
            raise ConfigurationError(f"Rule set {name!r}: 'rules' must be a list")
        detect = data.get("detect") or {}
        if not isinstance(detect, dict):
            raise ConfigurationError(f"Rule set {name!r}: 'detect' must be an object")

        return cls(
            name=name,
            description=data.get("description", ""),
            always_apply=bool(data.get("alwaysApply", False)),
            detect=detect,
            rules=[Rule.from_dict(r, name) for r in raw_rules],
            record=data,
        )
