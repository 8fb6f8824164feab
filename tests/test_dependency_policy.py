"""Tests enforcing dependency pinning policy for the distribution."""

from __future__ import annotations

import re
from pathlib import Path

import tomllib

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def _load_project() -> dict[str, object]:
    return tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]


def _names(requirements: list[str]) -> set[str]:
    return {
        re.split(r"[=<>\[; ]", item, maxsplit=1)[0].lower() for item in requirements
    }


def test_all_dependencies_are_pinned() -> None:
    """Project dependencies must be pinned to exact versions."""

    project = _load_project()
    dependencies = project["dependencies"]
    optional = project.get("optional-dependencies", {})

    for requirement in dependencies:
        assert "==" in requirement, f"Core dependency not pinned: {requirement}"

    for group, requirements in optional.items():
        for requirement in requirements:
            assert "==" in requirement, (
                f"Optional dependency '{group}' not pinned: {requirement}"
            )


def test_runtime_stack_is_declared() -> None:
    """Libraries imported by the package must be declared."""

    project = _load_project()

    assert _names(project["dependencies"]) == {"httpx", "pydantic", "pydantic-settings"}
    assert {"pytest", "hypothesis"} <= _names(project["optional-dependencies"]["test"])
