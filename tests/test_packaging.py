"""Tests that the integration declares the library it imports."""
from __future__ import annotations

import json
from pathlib import Path
import tomllib

ROOT = Path(__file__).parent.parent


def test_manifest_requires_library_distribution() -> None:
    project = tomllib.loads((ROOT / "pyproject.toml").read_text())["project"]
    manifest = json.loads((ROOT / "custom_components" / "renpho_scale" / "manifest.json").read_text())

    assert f"{project['name']}=={project['version']}" in manifest["requirements"]
    assert project["version"] == manifest["version"]


def test_library_is_the_only_installed_package() -> None:
    setuptools = tomllib.loads((ROOT / "pyproject.toml").read_text())["tool"]["setuptools"]

    assert setuptools["packages"] == ["renpho_ble"]
