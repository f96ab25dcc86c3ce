"""Package graph model: nodes, edges and the owning registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True)
class Package:
    """A single module in the dependency graph.

    Dependencies are stored by name; the nodes themselves are owned by the
    :class:`PackageGraph` the package belongs to.
    """

    name: str
    is_stdlib: bool = False
    depends_on: tuple[str, ...] = ()

    def __str__(self) -> str:
        if self.is_stdlib:
            return f"<{self.name}>"
        return self.name


class PackageGraph:
    """Registry of every package reachable from a project root."""

    def __init__(self, packages: list[Package] | None = None) -> None:
        self._packages: dict[str, Package] = {}
        for package in packages or []:
            self.add(package)

    def add(self, package: Package) -> None:
        if package.name in self._packages:
            msg = f"Package '{package.name}' is already in the graph"
            raise ValueError(msg)
        if package.is_stdlib and package.depends_on:
            msg = f"Standard library package '{package.name}' cannot have dependencies"
            raise ValueError(msg)
        self._packages[package.name] = package

    def get(self, name: str) -> Package | None:
        return self._packages.get(name)

    def dependencies(self, package: Package) -> Iterator[Package]:
        """Yield the dependency nodes of *package* in declaration order.

        Raises ``KeyError`` when an edge points at a name that is not in the
        graph, which only happens for hand-built graphs.
        """
        for name in package.depends_on:
            yield self._packages[name]

    def __getitem__(self, name: str) -> Package:
        return self._packages[name]

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __iter__(self) -> Iterator[Package]:
        return iter(self._packages.values())

    def __len__(self) -> int:
        return len(self._packages)

    def names(self) -> list[str]:
        return list(self._packages)


def is_under_prefix(name: str, prefix: str) -> bool:
    """Return True if dotted *name* is *prefix* itself or nested below it."""
    return name == prefix or name.startswith(prefix + ".")
