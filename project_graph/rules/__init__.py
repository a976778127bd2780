"""Pattern-rule engine, rule-set detection and the rule-set store."""

from __future__ import annotations

from project_graph.rules.engine import check_rules, check_text, in_comment_or_string, markup_depths
from project_graph.rules.models import Rule, RuleSet
from project_graph.rules.store import RuleStore

__all__ = [
    "Rule",
    "RuleSet",
    "RuleStore",
    "check_rules",
    "check_text",
    "in_comment_or_string",
    "markup_depths",
]
