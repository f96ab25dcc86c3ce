"""Graph builder: resolve a project root's imports into a PackageGraph."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from depwall.graph.import_resolver import ROOT_MODULE, ModuleResolver
from depwall.graph.model import Package, PackageGraph, is_under_prefix

if TYPE_CHECKING:
    from pathlib import Path

    from depwall.graph.import_resolver import ResolvedModule

logger = logging.getLogger(__name__)


def build_graph(
    root: Path,
    working_prefix: str,
    *,
    resolver: ModuleResolver | None = None,
) -> PackageGraph:
    """Build the dependency graph of every module reachable from *root*.

    Traversal is breadth-first over a worklist.  Each name is resolved at
    most once, so shared dependencies and import cycles terminate without a
    depth limit.  Standard library modules and modules outside
    *working_prefix* are recorded as leaves: their own imports are never
    read.

    Raises
    ------
    ResolutionError
        When the root or any reachable import cannot be resolved.
    """
    if resolver is None:
        resolver = ModuleResolver(root)

    root_module = resolver.resolve(ROOT_MODULE)
    resolved: dict[str, ResolvedModule] = {root_module.name: root_module}
    edges: dict[str, tuple[str, ...]] = {}
    queue: deque[str] = deque([root_module.name])

    while queue:
        name = queue.popleft()
        module = resolved[name]

        if module.is_stdlib or not is_under_prefix(name, working_prefix):
            edges[name] = ()
            continue

        imports = resolver.direct_imports(module)
        edges[name] = imports
        logger.debug("Resolved %s (%d imports)", name, len(imports))

        for imp in imports:
            if imp not in resolved:
                resolved[imp] = resolver.resolve(imp)
                queue.append(imp)

    graph = PackageGraph()
    for name, module in resolved.items():
        graph.add(Package(name=name, is_stdlib=module.is_stdlib, depends_on=edges[name]))

    internal = sum(1 for p in graph if is_under_prefix(p.name, working_prefix))
    logger.info(
        "Built graph from %s: %d packages (%d internal)", root_module.name, len(graph), internal
    )
    return graph
