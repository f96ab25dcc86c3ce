"""Graph domain: package model, import resolution and graph building."""

from depwall.graph.builder import build_graph
from depwall.graph.import_resolver import (
    ImportInfo,
    ModuleResolver,
    ResolvedModule,
    extract_imports,
    parse_imports,
)
from depwall.graph.model import Package, PackageGraph, is_under_prefix

__all__ = [
    "ImportInfo",
    "ModuleResolver",
    "Package",
    "PackageGraph",
    "ResolvedModule",
    "build_graph",
    "extract_imports",
    "is_under_prefix",
    "parse_imports",
]
