"""Linter orchestrator: load rules, build the package graph, evaluate, format results."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from depwall.errors import ResolutionError
from depwall.graph.builder import build_graph
from depwall.rules.config import CONFIG_FILENAME, load_rule_set
from depwall.rules.rule_engine import RunResult

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

# Column width of the widest violation kind ("disallowed").
_KIND_WIDTH = 10


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class LintResult:
    """Result of a lint run."""

    run: RunResult = field(default_factory=RunResult)
    rules_evaluated: int = 0
    packages_scanned: int = 0
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.run.ok


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def find_package_root(project_root: Path, working_prefix: str) -> Path:
    """Locate the directory of the package the graph is built from.

    *project_root* itself when it is a package, otherwise the package named
    by *working_prefix* in a flat or ``src/`` layout below it.
    """
    if (project_root / "__init__.py").is_file():
        return project_root

    relative = working_prefix.split(".")
    for candidate in (project_root.joinpath(*relative), project_root.joinpath("src", *relative)):
        if (candidate / "__init__.py").is_file():
            return candidate

    msg = f"No package '{working_prefix}' found in {project_root} (tried flat and src/ layouts)"
    raise ResolutionError(msg)


def lint(project_root: Path, *, config_path: Path | None = None) -> LintResult:
    """Load the rule file, build the graph from *project_root* and run every rule.

    Parameters
    ----------
    project_root:
        Either the root package directory itself or a repository root that
        holds the working package in a flat or ``src/`` layout.
    config_path:
        Optional explicit path to the rule file.  When *None* the default
        location ``<project_root>/depwall.yml`` is used.

    Raises
    ------
    ConfigError
        When the rule file is missing or invalid.  Raised before any
        import is resolved.
    ResolutionError
        When a module reachable from the project root cannot be resolved.
    """
    start = time.monotonic()

    if config_path is None:
        config_path = project_root / CONFIG_FILENAME
    rule_set = load_rule_set(config_path)

    package_root = find_package_root(project_root, rule_set.working_prefix)
    graph = build_graph(package_root, rule_set.working_prefix)
    run = rule_set.run(graph)

    elapsed = (time.monotonic() - start) * 1000
    logger.info(
        "Checked %d packages against %d rules: %d violations",
        len(graph),
        len(rule_set.rules),
        run.violation_count,
    )
    return LintResult(
        run=run,
        rules_evaluated=len(rule_set.rules),
        packages_scanned=len(graph),
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_text(result: LintResult) -> str:
    """Format a LintResult as human-readable text.

    Each failing rule prints its name followed by one line per violation::

        storage stays low-level
        - disallowed myproj.storage -> myproj.api
        - expected   myproj.storage.cache -> myproj.api.client
        - missing    myproj.storage.legacy

        3 violations found (2 rules, 14 packages, 0.1s)
    """
    lines: list[str] = []
    for evaluation in result.run.failed_rules:
        lines.append(evaluation.rule.name)
        for v in evaluation.violations:
            detail = v.source if v.target is None else f"{v.source} -> {v.target}"
            lines.append(f"- {v.kind:<{_KIND_WIDTH}} {detail}")
        lines.append("")

    stats = (
        f"{result.rules_evaluated} rules, {result.packages_scanned} packages, "
        f"{result.elapsed_ms / 1000:.1f}s"
    )
    count = result.run.violation_count
    if count:
        lines.append(f"{count} violations found ({stats})")
    else:
        lines.append(f"No violations found ({stats})")
    return "\n".join(lines)


def format_json(result: LintResult) -> str:
    """Format a LintResult as structured JSON.

    Returns a JSON string with ``violations`` array and ``summary`` object.
    """
    violations_list: list[dict[str, object]] = []
    for evaluation in result.run.evaluations:
        for v in evaluation.violations:
            violations_list.append(
                {
                    "rule_name": evaluation.rule.name,
                    "kind": v.kind,
                    "source": v.source,
                    "target": v.target,
                    "message": str(v),
                }
            )

    output: dict[str, object] = {
        "violations": violations_list,
        "summary": {
            "rules_evaluated": result.rules_evaluated,
            "rules_failed": len(result.run.failed_rules),
            "violations_count": result.run.violation_count,
            "packages_scanned": result.packages_scanned,
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: LintResult) -> str:
    """Format a LintResult as machine-readable one-line-per-violation output.

    Format: ``rule_name:kind:source:target``; ``target`` is empty for
    ``missing`` violations.  Returns empty string when there are no
    violations.
    """
    lines: list[str] = []
    for evaluation in result.run.evaluations:
        for v in evaluation.violations:
            target = v.target if v.target is not None else ""
            lines.append(f"{evaluation.rule.name}:{v.kind}:{v.source}:{target}")
    return "\n".join(lines)


FORMATTERS = {
    "text": format_text,
    "json": format_json,
    "porcelain": format_porcelain,
}
