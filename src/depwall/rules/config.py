"""Rule file loading: parse depwall.yml, validate, and compile it into a RuleSet."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

import yaml

from depwall.errors import ConfigError
from depwall.rules.patterns import compile_pattern, compile_regex
from depwall.rules.rule_engine import Rule, RuleSet

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "depwall.yml"

_TOP_LEVEL_KEYS: frozenset[str] = frozenset({"options", "rules"})
_OPTION_KEYS: frozenset[str] = frozenset({"working_package"})
_RULE_KEYS: frozenset[str] = frozenset({"name", "packages", "may_depend", "expected"})

_PACKAGE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*")


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def _check_keys(data: dict[object, object], allowed: frozenset[str], context: str) -> None:
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        msg = f"{context}: unknown keys {unknown}, expected some of {sorted(allowed)}"
        raise ConfigError(msg)


def _string_list(value: object, context: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        msg = f"{context} must be a list"
        raise ConfigError(msg)
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            msg = f"{context} entries must be strings, got {item!r}"
            raise ConfigError(msg)
        items.append(item)
    return items


def validate_working_prefix(value: object) -> str:
    """Validate ``options.working_package``: a dotted module path like ``myproj``."""
    if not isinstance(value, str) or not value:
        msg = "options.working_package must be a non-empty string"
        raise ConfigError(msg)
    if value.endswith("."):
        msg = f"options.working_package must be a module path, was {value}"
        raise ConfigError(msg)
    if _PACKAGE_NAME_RE.fullmatch(value) is None:
        msg = f"options.working_package is not a valid dotted module path: {value}"
        raise ConfigError(msg)
    return value


def _qualify(prefix: str, name: str, context: str) -> str:
    name = name.strip()
    if not name:
        msg = f"{context}: empty package name"
        raise ConfigError(msg)
    return f"{prefix}.{name}"


def parse_exceptions(
    prefix: str, entries: list[str], context: str
) -> tuple[frozenset[str], dict[str, frozenset[str]]]:
    """Split ``expected`` entries into generic and per-package exceptions.

    ``"child"`` declares a rule-wide exception; ``"parent -> child"``
    declares one for ``parent`` only.  Names are relative to *prefix*.
    """
    generic: set[str] = set()
    specific: dict[str, set[str]] = {}

    for entry in entries:
        parts = entry.split("->")
        if len(parts) == 1:
            generic.add(_qualify(prefix, parts[0], context))
        elif len(parts) == 2:
            parent = _qualify(prefix, parts[0], context)
            child = _qualify(prefix, parts[1], context)
            specific.setdefault(parent, set()).add(child)
        else:
            msg = f"{context}: malformed expectation '{entry}'"
            raise ConfigError(msg)

    return frozenset(generic), {parent: frozenset(kids) for parent, kids in specific.items()}


# ---------------------------------------------------------------------------
# Rule parsing
# ---------------------------------------------------------------------------


def _parse_rule(prefix: str, index: int, data: object) -> Rule:
    if not isinstance(data, dict):
        msg = f"Rule #{index + 1} must be a mapping"
        raise ConfigError(msg)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        msg = f"Rule #{index + 1}: 'name' must be a non-empty string"
        raise ConfigError(msg)
    context = f"Rule '{name}'"
    _check_keys(data, _RULE_KEYS, context)

    packages = data.get("packages")
    if not isinstance(packages, str):
        msg = f"{context}: 'packages' must be a string"
        raise ConfigError(msg)
    selector = compile_regex(f"^{re.escape(prefix)}\\.(?:{packages})$", f"{context} packages")

    allowed = tuple(
        compile_pattern(prefix, expr)
        for expr in _string_list(data.get("may_depend"), f"{context}: 'may_depend'")
    )
    generic, specific = parse_exceptions(
        prefix, _string_list(data.get("expected"), f"{context}: 'expected'"), context
    )

    return Rule(
        name=name,
        package_selector=selector,
        allowed=allowed,
        generic_exceptions=generic,
        specific_exceptions=specific,
    )


def parse_rule_set(data: object) -> RuleSet:
    """Validate a deserialized rule file and compile it into a :class:`RuleSet`.

    Raises :class:`ConfigError` (or its :class:`PatternError` subclass) on
    the first problem found.
    """
    if not isinstance(data, dict):
        msg = "Rule file must be a YAML mapping"
        raise ConfigError(msg)
    _check_keys(data, _TOP_LEVEL_KEYS, "Rule file")

    options = data.get("options")
    if not isinstance(options, dict):
        msg = "Rule file must have an 'options' mapping"
        raise ConfigError(msg)
    _check_keys(options, _OPTION_KEYS, "options")
    prefix = validate_working_prefix(options.get("working_package"))

    rules_data = data.get("rules", [])
    if rules_data is None:
        rules_data = []
    if not isinstance(rules_data, list):
        msg = "'rules' must be a list"
        raise ConfigError(msg)

    rules = tuple(_parse_rule(prefix, i, rule_data) for i, rule_data in enumerate(rules_data))

    names = [rule.name for rule in rules]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        msg = f"Duplicate rule names: {duplicates}"
        raise ConfigError(msg)

    return RuleSet(working_prefix=prefix, rules=rules)


def load_rule_set(config_path: Path) -> RuleSet:
    """Read and compile a rule file."""
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        msg = f"Cannot read rule file {config_path}: {exc}"
        raise ConfigError(msg) from exc
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {config_path}: {exc}"
        raise ConfigError(msg) from exc

    rule_set = parse_rule_set(data)
    logger.debug("Loaded %d rules from %s", len(rule_set.rules), config_path)
    return rule_set
