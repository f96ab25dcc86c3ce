"""Shared test fixtures for depwall."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


def _write_files(base: Path, files: dict[str, str]) -> None:
    """Write ``{relative_path: content}`` below *base*, creating directories."""
    for rel, content in files.items():
        path = base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture()
def sample_project(tmp_path: Path) -> Path:
    """Create a small ``src/`` layout project and return the repository root.

    Layout::

        src/sampleproj/__init__.py   from sampleproj import a, b
        src/sampleproj/a.py          import json
        src/sampleproj/b/__init__.py from ..a import helper; import yaml
    """
    _write_files(
        tmp_path,
        {
            "src/sampleproj/__init__.py": "from sampleproj import a, b\n",
            "src/sampleproj/a.py": "import json\n\n\ndef helper():\n    return json.dumps({})\n",
            "src/sampleproj/b/__init__.py": "from ..a import helper\nimport yaml\n",
        },
    )
    return tmp_path


@pytest.fixture()
def sample_package(sample_project: Path) -> Path:
    """Return the root package directory of :func:`sample_project`."""
    return sample_project / "src" / "sampleproj"
