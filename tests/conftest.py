"""
Shared pytest fixtures for spine-cloudevents tests.

This module provides:
- Automatic `unit` marking (select with `pytest -m unit`)
- Settings cache reset and CLOUDEVENTS_* env isolation
- Fresh attribute maps for the supported spec versions
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure spine_cloudevents is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spine_cloudevents import AttributeMap, SpecVersion
from spine_cloudevents.settings import clear_settings_cache


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every collected test as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if "unit" not in markers:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Drop CLOUDEVENTS_* env vars and any cached settings around each test."""
    for name in list(os.environ):
        if name.startswith("CLOUDEVENTS_"):
            monkeypatch.delenv(name)
    # Keep a stray .env in the working directory out of the settings
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Attribute Maps
# =============================================================================


@pytest.fixture
def attributes() -> AttributeMap:
    """Fresh permissive map for spec version 1.0 without extensions."""
    return AttributeMap(SpecVersion.V1_0)


@pytest.fixture
def strict_attributes() -> AttributeMap:
    """Fresh strict-mode map for spec version 1.0 without extensions."""
    return AttributeMap(SpecVersion.V1_0, strict=True)
