"""
Shared pytest fixtures and configuration for taskrein tests.

This module provides:
- Auto-marking of tests by location
- Settings cache reset for environment-driven tests
- Logging configured once, at DEBUG, so every log call is exercised

Usage:
    Fixtures are auto-discovered by pytest. Use them as function arguments:

    def test_something(controller):
        ...
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure taskrein package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taskrein.core.logging import configure_logging
from taskrein.core.settings import reset_settings
from taskrein.execution.controller import ExecutionController


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Markers are defined in pyproject.toml; logging is configured once here."""
    configure_logging(level="DEBUG", json_format=False)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        # Mark all tests without explicit markers as unit tests
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_fixture() -> Generator[None, None, None]:
    """Clear the cached settings before and after each test.

    Tests that set ``TASKREIN_*`` variables with ``monkeypatch.setenv`` then
    see fresh values on the next ``get_settings()`` call.
    """
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# Controller Fixtures
# =============================================================================


@pytest.fixture
def controller() -> Generator[ExecutionController, None, None]:
    """A caller-owned controller, disposed after the test."""
    ctrl = ExecutionController(name="test")
    yield ctrl
    ctrl.dispose()
