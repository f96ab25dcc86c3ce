"""Rules domain: dependency patterns, rule evaluation and rule file loading."""

from depwall.rules.config import CONFIG_FILENAME, load_rule_set, parse_rule_set
from depwall.rules.patterns import DependencyPattern, compile_pattern
from depwall.rules.rule_engine import (
    Rule,
    RuleEvaluation,
    RuleSet,
    RunResult,
    Violation,
)

__all__ = [
    "CONFIG_FILENAME",
    "DependencyPattern",
    "Rule",
    "RuleEvaluation",
    "RuleSet",
    "RunResult",
    "Violation",
    "compile_pattern",
    "load_rule_set",
    "parse_rule_set",
]
