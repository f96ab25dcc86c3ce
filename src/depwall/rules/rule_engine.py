"""Rule engine: evaluate dependency rules against a package graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import re
    from collections.abc import Mapping

    from depwall.graph.model import Package, PackageGraph
    from depwall.rules.patterns import DependencyPattern

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DISALLOWED = "disallowed"
EXPECTED = "expected"
MISSING = "missing"

VIOLATION_KINDS: tuple[str, ...] = (DISALLOWED, EXPECTED, MISSING)

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single rule violation."""

    kind: str  # "disallowed" | "expected" | "missing"
    source: str  # display form of the source package
    target: str | None = None  # display form of the dependency, None for "missing"

    def __post_init__(self) -> None:
        if self.kind not in VIOLATION_KINDS:
            msg = f"Unknown violation kind '{self.kind}', expected one of {list(VIOLATION_KINDS)}"
            raise ValueError(msg)

    def __str__(self) -> str:
        if self.target is None:
            return f"{self.kind} {self.source}"
        return f"{self.kind} {self.source} -> {self.target}"


@dataclass(frozen=True)
class Rule:
    """One dependency constraint.

    A rule applies to every package whose name fully matches
    ``package_selector``.  An edge from such a package is allowed when any
    of the ``allowed`` patterns matches the dependency, or when the
    dependency is declared as an exception: rule-wide in
    ``generic_exceptions`` or for one source package in
    ``specific_exceptions``.
    """

    name: str
    package_selector: re.Pattern[str]
    allowed: tuple[DependencyPattern, ...] = ()
    generic_exceptions: frozenset[str] = frozenset()
    specific_exceptions: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def applies_to(self, package: Package) -> bool:
        return self.package_selector.fullmatch(package.name) is not None

    def is_allowed(self, dependency: Package) -> bool:
        return any(pattern.match(dependency) for pattern in self.allowed)


@dataclass
class RuleEvaluation:
    """Violations gathered for one rule during one run.

    Accumulation is append-only: processing the same package twice reports
    its violations twice.
    """

    rule: Rule
    processed_packages: set[str] = field(default_factory=set)
    violations: list[Violation] = field(default_factory=list)

    def process(self, graph: PackageGraph, package: Package) -> None:
        """Check every outgoing edge of *package* against the rule."""
        rule = self.rule
        self.processed_packages.add(package.name)

        specific = rule.specific_exceptions.get(package.name, frozenset())
        generic_actuals: set[str] = set()
        specific_actuals: set[str] = set()
        disallowed: list[Package] = []

        for dependency in graph.dependencies(package):
            if rule.is_allowed(dependency):
                continue
            if dependency.name in rule.generic_exceptions:
                generic_actuals.add(dependency.name)
                continue
            if dependency.name in specific:
                specific_actuals.add(dependency.name)
                continue
            disallowed.append(dependency)

        for dependency in disallowed:
            self.violations.append(Violation(DISALLOWED, str(package), str(dependency)))

        for expected in sorted(rule.generic_exceptions - generic_actuals):
            # A rule-wide exception naming the package itself cannot apply to it.
            if expected == package.name:
                continue
            self.violations.append(Violation(EXPECTED, str(package), expected))

        for expected in sorted(specific - specific_actuals):
            self.violations.append(Violation(EXPECTED, str(package), expected))

    def process_missing_packages(self) -> None:
        """Report specific exceptions declared for packages that were never processed."""
        for name in sorted(self.rule.specific_exceptions):
            if name not in self.processed_packages:
                self.violations.append(Violation(MISSING, name))

    @property
    def messages(self) -> list[str]:
        return [str(v) for v in self.violations]


@dataclass
class RunResult:
    """Outcome of running a rule set once."""

    evaluations: list[RuleEvaluation] = field(default_factory=list)

    @property
    def failed_rules(self) -> list[RuleEvaluation]:
        return [ev for ev in self.evaluations if ev.violations]

    @property
    def ok(self) -> bool:
        return not self.failed_rules

    @property
    def violation_count(self) -> int:
        return sum(len(ev.violations) for ev in self.evaluations)


@dataclass(frozen=True)
class RuleSet:
    """The working prefix and the ordered rules of a project."""

    working_prefix: str
    rules: tuple[Rule, ...] = ()

    def run(self, graph: PackageGraph) -> RunResult:
        """Run every package of *graph* through every rule that selects it.

        Each call starts from fresh accumulators, so a rule set can be run
        any number of times.
        """
        result = RunResult(evaluations=[RuleEvaluation(rule=rule) for rule in self.rules])

        for package in graph:
            for evaluation in result.evaluations:
                if evaluation.rule.applies_to(package):
                    evaluation.process(graph, package)

        for evaluation in result.evaluations:
            evaluation.process_missing_packages()
            logger.debug(
                "Rule '%s': %d packages processed, %d violations",
                evaluation.rule.name,
                len(evaluation.processed_packages),
                len(evaluation.violations),
            )

        return result
