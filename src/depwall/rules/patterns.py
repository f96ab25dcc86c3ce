"""Dependency patterns: compile ``may_depend`` expressions into package matchers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from depwall.errors import PatternError
from depwall.graph.model import is_under_prefix

if TYPE_CHECKING:
    from depwall.graph.model import Package

THIRD_PARTIES = "third_parties"


@dataclass(frozen=True)
class DependencyPattern:
    """A compiled pattern of packages.

    Exactly one mode is active: standard library packages matching
    ``expression`` (``stdlib=True``), non standard library packages matching
    ``expression``, or any package outside the working prefix
    (``third_parties=True``, ``expression`` is ``None``).
    """

    working_prefix: str
    expression: re.Pattern[str] | None = None
    stdlib: bool = False
    third_parties: bool = False

    def match(self, package: Package) -> bool:
        """Return True if *package* falls under this pattern.

        The third-party wildcard ignores the standard library flag: stdlib
        names never sit under the working prefix, so they match too.
        """
        if self.third_parties:
            return not is_under_prefix(package.name, self.working_prefix)

        if self.stdlib != package.is_stdlib:
            return False
        return self.expression is not None and self.expression.search(package.name) is not None

    def __str__(self) -> str:
        if self.third_parties:
            return THIRD_PARTIES
        source = self.expression.pattern if self.expression is not None else ""
        return f"<{source}>" if self.stdlib else source


def compile_regex(expression: str, context: str) -> re.Pattern[str]:
    """Compile *expression*, turning ``re.error`` into :class:`PatternError`."""
    try:
        return re.compile(expression)
    except re.error as exc:
        msg = f"{context}: invalid regular expression '{expression}': {exc}"
        raise PatternError(msg) from exc


def compile_pattern(working_prefix: str, expression: str) -> DependencyPattern:
    """Compile a pattern such as ``<json>``, ``myproj\\.util`` or ``third_parties``.

    - ``third_parties`` matches any package outside the working prefix
    - ``<pattern>`` matches standard library packages matching ``pattern``
    - ``pattern`` matches non standard library packages matching ``pattern``
    """
    if not isinstance(expression, str) or not expression.strip():
        msg = f"Dependency pattern must be a non-empty string, got {expression!r}"
        raise PatternError(msg)

    if expression == THIRD_PARTIES:
        return DependencyPattern(working_prefix=working_prefix, third_parties=True)

    stdlib = False
    source = expression
    if len(expression) >= 2 and expression.startswith("<") and expression.endswith(">"):
        source = expression[1:-1]
        stdlib = True
        if not source:
            msg = "Dependency pattern '<>' has an empty expression"
            raise PatternError(msg)

    return DependencyPattern(
        working_prefix=working_prefix,
        expression=compile_regex(source, "Dependency pattern"),
        stdlib=stdlib,
    )
