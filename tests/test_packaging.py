"""Checks on the declared distribution metadata."""

import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def _project() -> dict:
    with PYPROJECT.open("rb") as f:
        return tomllib.load(f)["project"]


def test_mock_server_stack_is_test_only():
    project = _project()

    runtime = [dep.split(">")[0].split("=")[0] for dep in project["dependencies"]]
    assert "fastapi" not in runtime
    assert any(dep.startswith("fastapi") for dep in project["optional-dependencies"]["test"])


def test_console_script_points_at_driver():
    assert _project()["scripts"]["media-offset"] == "media_offset.main:main"
