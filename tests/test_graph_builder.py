"""Tests for depwall.graph.builder — building the package graph from a project root."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from depwall.errors import ResolutionError
from depwall.graph.builder import build_graph

if TYPE_CHECKING:
    from pathlib import Path


def _write(base: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


class TestBuildGraph:
    """Graph shape and classification for the sample project."""

    def test_collect_packages(self, sample_package: Path) -> None:
        graph = build_graph(sample_package, "sampleproj")

        assert len(graph) == 5
        assert set(graph.names()) == {
            "sampleproj",
            "sampleproj.a",
            "sampleproj.b",
            "json",
            "yaml",
        }

        assert graph["sampleproj"].depends_on == ("sampleproj.a", "sampleproj.b")
        assert graph["sampleproj.a"].depends_on == ("json",)
        assert graph["sampleproj.b"].depends_on == ("sampleproj.a", "yaml")
        assert graph["json"].depends_on == ()
        assert graph["yaml"].depends_on == ()

    def test_stdlib_classification(self, sample_package: Path) -> None:
        graph = build_graph(sample_package, "sampleproj")
        assert graph["json"].is_stdlib
        assert not graph["yaml"].is_stdlib
        assert not graph["sampleproj"].is_stdlib
        assert not graph["sampleproj.a"].is_stdlib
        assert not graph["sampleproj.b"].is_stdlib

    def test_stdlib_packages_are_leaves(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {"proj/__init__.py": "import os\nimport collections.abc\nfrom json import decoder\n"},
        )
        graph = build_graph(tmp_path / "proj", "proj")
        stdlib = [p for p in graph if p.is_stdlib]
        assert {p.name for p in stdlib} == {"os", "collections.abc", "json"}
        assert all(p.depends_on == () for p in stdlib)

    def test_import_cycle_terminates(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "proj/__init__.py": "from proj import a\n",
                "proj/a.py": "from proj import b\n",
                "proj/b.py": "from proj import a\n",
            },
        )
        graph = build_graph(tmp_path / "proj", "proj")
        assert graph["proj.a"].depends_on == ("proj.b",)
        assert graph["proj.b"].depends_on == ("proj.a",)

    def test_diamond_resolves_shared_node_once(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "proj/__init__.py": "from proj import left, right\n",
                "proj/left.py": "from proj import base\n",
                "proj/right.py": "from proj import base\n",
                "proj/base.py": "",
            },
        )
        graph = build_graph(tmp_path / "proj", "proj")
        assert len(graph) == 4
        (from_left,) = graph.dependencies(graph["proj.left"])
        (from_right,) = graph.dependencies(graph["proj.right"])
        assert from_left is from_right is graph["proj.base"]

    def test_modules_outside_prefix_are_not_expanded(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "proj/__init__.py": "from proj import core, extras\n",
                "proj/core.py": "",
                "proj/extras.py": "import depwall_no_such_dist_xyz\n",
            },
        )
        graph = build_graph(tmp_path / "proj", "proj.core")
        # The root itself is outside `proj.core`, so nothing is traversed.
        assert graph.names() == ["proj"]

    def test_sibling_local_package_is_a_leaf(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "proj/__init__.py": "import vendored\n",
                "vendored.py": "import depwall_no_such_dist_xyz\n",
            },
        )
        graph = build_graph(tmp_path / "proj", "proj")
        assert graph["vendored"].depends_on == ()
        assert not graph["vendored"].is_stdlib

    def test_unresolvable_import_fails_build(self, tmp_path: Path) -> None:
        _write(tmp_path, {"proj/__init__.py": "from proj import missing\nimport proj.missing\n"})
        with pytest.raises(ResolutionError, match="proj.missing"):
            build_graph(tmp_path / "proj", "proj")

    def test_unknown_third_party_fails_build(self, tmp_path: Path) -> None:
        _write(tmp_path, {"proj/__init__.py": "import depwall_no_such_dist_xyz\n"})
        with pytest.raises(ResolutionError, match="depwall_no_such_dist_xyz"):
            build_graph(tmp_path / "proj", "proj")

    def test_logs_summary(self, sample_package: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="depwall.graph.builder"):
            build_graph(sample_package, "sampleproj")
        assert "Built graph from sampleproj: 5 packages (3 internal)" in caplog.text

    def test_root_package_named_like_stdlib_module(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "calendar/__init__.py": "from calendar import a\n",
                "calendar/a.py": "from calendar import b\n",
                "calendar/b.py": "import json\n",
            },
        )
        graph = build_graph(tmp_path / "calendar", "calendar")

        assert graph.names() == ["calendar", "calendar.a", "calendar.b", "json"]
        assert not graph["calendar.a"].is_stdlib
        assert not graph["calendar.b"].is_stdlib
        assert graph["calendar.a"].depends_on == ("calendar.b",)
        assert graph["calendar.b"].depends_on == ("json",)
        assert graph["json"].is_stdlib

    def test_nested_root_under_stdlib_named_top_level(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "email/__init__.py": "",
                "email/core/__init__.py": "from email.core import parser\n",
                "email/core/parser.py": "from email import utils\n",
                "email/utils.py": "import os\n",
            },
        )
        graph = build_graph(tmp_path / "email" / "core", "email")

        assert graph["email.core"].depends_on == ("email.core.parser",)
        assert graph["email.core.parser"].depends_on == ("email.utils",)
        assert not graph["email.utils"].is_stdlib
        assert graph["email.utils"].depends_on == ("os",)

    def test_namespace_subpackage(self, tmp_path: Path) -> None:
        _write(
            tmp_path,
            {
                "proj/__init__.py": "import proj.plugins\nfrom proj.plugins import extra\n",
                "proj/plugins/extra.py": "import json\n",
            },
        )
        graph = build_graph(tmp_path / "proj", "proj")

        assert graph["proj"].depends_on == ("proj.plugins", "proj.plugins.extra")
        assert graph["proj.plugins"].depends_on == ()
        assert graph["proj.plugins.extra"].depends_on == ("json",)
