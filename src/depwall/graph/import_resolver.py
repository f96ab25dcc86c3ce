"""Import resolver: extract Python imports via tree-sitter and resolve module names."""

from __future__ import annotations

import importlib.util
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

import tree_sitter_python as tspython
from tree_sitter import Language, Parser

from depwall.errors import ResolutionError

if TYPE_CHECKING:
    from pathlib import Path

    from tree_sitter import Node as TSNode

logger = logging.getLogger(__name__)

ROOT_MODULE = "."

PY_LANGUAGE = Language(tspython.language())

STDLIB_MODULES: frozenset[str] = frozenset(sys.stdlib_module_names) | frozenset(
    sys.builtin_module_names
)


@dataclass(frozen=True)
class ImportInfo:
    """A single import extracted from source code.

    ``import a.b`` gives ``module="a.b", names=()``; ``from .x import y, z``
    gives ``module="x", names=("y", "z"), level=1``.  Wildcard imports keep
    an empty ``names`` tuple.
    """

    line_number: int  # 1-based line number
    module: str
    names: tuple[str, ...] = ()
    level: int = 0


@dataclass(frozen=True)
class ResolvedModule:
    """Canonical identity of a module as seen from the project root."""

    name: str
    is_stdlib: bool
    is_package: bool = False
    path: Path | None = None  # source file, only for project-local modules


# ---------------------------------------------------------------------------
# Import extraction
# ---------------------------------------------------------------------------


def _text(node: TSNode | None) -> str:
    if node is None or not node.text:
        return ""
    return node.text.decode("utf-8")


def _imported_name(node: TSNode) -> str:
    """Return the dotted name of a ``dotted_name`` or ``aliased_import`` node."""
    if node.type == "aliased_import":
        return _text(node.child_by_field_name("name"))
    return _text(node)


def _parse_import_statement(node: TSNode) -> list[ImportInfo]:
    line = node.start_point.row + 1
    results: list[ImportInfo] = []
    for child in node.children_by_field_name("name"):
        module = _imported_name(child)
        if module:
            results.append(ImportInfo(line_number=line, module=module))
    return results


def _parse_import_from_statement(node: TSNode) -> ImportInfo | None:
    module_node = node.child_by_field_name("module_name")
    if module_node is None:
        return None

    level = 0
    module = ""
    if module_node.type == "relative_import":
        for sub in module_node.children:
            if sub.type == "import_prefix":
                level = _text(sub).count(".")
            elif sub.type == "dotted_name":
                module = _text(sub)
    else:
        module = _text(module_node)

    names = tuple(
        name
        for name in (_imported_name(child) for child in node.children_by_field_name("name"))
        if name
    )
    return ImportInfo(
        line_number=node.start_point.row + 1,
        module=module,
        names=names,
        level=level,
    )


def parse_imports(source: bytes) -> list[ImportInfo]:
    """Extract every import statement from Python *source*, in source order.

    Nested imports (inside functions, ``if TYPE_CHECKING:`` or ``try:``
    blocks) are included.  ``from __future__`` statements are compiler
    directives and are skipped.
    """
    tree = Parser(PY_LANGUAGE).parse(source)
    if tree.root_node.has_error:
        logger.warning("Syntax errors in source, imports may be incomplete")

    results: list[ImportInfo] = []
    stack: list[TSNode] = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type == "import_statement":
            results.extend(_parse_import_statement(node))
            continue
        if node.type == "import_from_statement":
            info = _parse_import_from_statement(node)
            if info is not None:
                results.append(info)
            continue
        if node.type == "future_import_statement":
            continue
        stack.extend(reversed(node.children))
    return results


def extract_imports(file_path: Path) -> list[ImportInfo]:
    """Extract import statements from a Python file.

    Raises :class:`ResolutionError` when the file cannot be read.
    """
    try:
        content = file_path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read {file_path}: {exc}"
        raise ResolutionError(msg) from exc
    if not content.strip():
        return []
    return parse_imports(content)


# ---------------------------------------------------------------------------
# Module resolution
# ---------------------------------------------------------------------------


def _package_root(directory: Path) -> tuple[Path, str]:
    """Find the import root and dotted name of the package at *directory*."""
    if not (directory / "__init__.py").is_file():
        msg = f"{directory} is not a Python package (no __init__.py)"
        raise ResolutionError(msg)

    parts: list[str] = []
    current = directory
    while (current / "__init__.py").is_file():
        if not current.name.isidentifier():
            msg = f"Directory name '{current.name}' is not a valid module name"
            raise ResolutionError(msg)
        parts.append(current.name)
        current = current.parent
    return current, ".".join(reversed(parts))


class ModuleResolver:
    """Resolve module names the way ``import`` would from a project root.

    *root* must be a package directory.  Its import root is the closest
    ancestor directory without an ``__init__.py``; project-local modules are
    looked up below that directory and shadow standard library modules of
    the same name.  Directories without ``__init__.py`` inside a local
    package resolve as namespace packages, which have no imports of their own.
    """

    def __init__(self, root: Path) -> None:
        self.root = root.resolve()
        self.search_root, self.root_name = _package_root(self.root)

    def _find_local(self, name: str) -> tuple[Path | None, bool] | None:
        parts = name.split(".")
        if not all(part.isidentifier() for part in parts):
            return None
        base = self.search_root.joinpath(*parts)
        init = base / "__init__.py"
        if init.is_file():
            return init, True
        module_file = base.with_name(parts[-1] + ".py")
        if module_file.is_file():
            return module_file, False
        if len(parts) > 1 and base.is_dir():
            return None, True
        return None

    def _is_local_top_level(self, top: str) -> bool:
        return (self.search_root / top).is_dir() or (self.search_root / f"{top}.py").is_file()

    def resolve(self, name: str) -> ResolvedModule:
        """Resolve *name* (or ``"."`` for the root package) to a module.

        Raises :class:`ResolutionError` when the module cannot be found.
        """
        if name == ROOT_MODULE:
            return ResolvedModule(
                name=self.root_name,
                is_stdlib=False,
                is_package=True,
                path=self.root / "__init__.py",
            )

        local = self._find_local(name)
        if local is not None:
            path, is_package = local
            return ResolvedModule(name=name, is_stdlib=False, is_package=is_package, path=path)

        top = name.partition(".")[0]
        owned = top == self.root_name.partition(".")[0]
        if top in STDLIB_MODULES and not owned:
            return ResolvedModule(name=name, is_stdlib=True)
        if owned or self._is_local_top_level(top):
            msg = f"No module named '{name}' under {self.search_root}"
            raise ResolutionError(msg)

        try:
            spec = importlib.util.find_spec(top)
        except (ImportError, ValueError) as exc:
            msg = f"Failed to import {name}: {exc}"
            raise ResolutionError(msg) from exc
        if spec is None:
            msg = f"Failed to import {name}: module '{top}' is not installed"
            raise ResolutionError(msg)
        return ResolvedModule(name=name, is_stdlib=False)

    def _relative_base(self, module: ResolvedModule, level: int, line: int) -> list[str]:
        package_parts = module.name.split(".")
        if not module.is_package:
            package_parts = package_parts[:-1]
        climb = level - 1
        if climb >= len(package_parts):
            msg = (
                f"{module.path}:{line}: attempted relative import beyond "
                f"top-level package in '{module.name}'"
            )
            raise ResolutionError(msg)
        return package_parts[: len(package_parts) - climb]

    def _targets(self, module: ResolvedModule, info: ImportInfo) -> list[str]:
        if info.level == 0 and not info.names and info.module:
            # `import a.b` or `from a.b import *`
            return [info.module]

        if info.level:
            base = self._relative_base(module, info.level, info.line_number)
            parent = ".".join([*base, info.module] if info.module else base)
        else:
            parent = info.module

        if not info.names:
            return [parent]

        targets: list[str] = []
        for imported in info.names:
            candidate = f"{parent}.{imported}"
            targets.append(candidate if self._find_local(candidate) is not None else parent)
        return targets

    def direct_imports(self, module: ResolvedModule) -> tuple[str, ...]:
        """Return the de-duplicated direct imports of a project-local module.

        Self references are dropped, first-seen order is kept.
        """
        if module.path is None:
            return ()

        seen: dict[str, None] = {}
        for info in extract_imports(module.path):
            for target in self._targets(module, info):
                if target != module.name:
                    seen.setdefault(target, None)
        return tuple(seen)
