"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator

import pytest

# Set test environment
os.environ.setdefault("DAGWAVE_LOG_LEVEL", "DEBUG")
os.environ.setdefault("DAGWAVE_MAX_PARALLEL", "4")


@pytest.fixture
def mock_settings() -> Generator:
    """Clear cached settings around a test that changes the environment."""
    from dagwave.core.config import clear_settings_cache

    clear_settings_cache()

    yield

    clear_settings_cache()


@pytest.fixture
def diamond_tasks() -> list:
    """A; B and C depend on A; D depends on B and C."""
    from dagwave.graph.models import TaskDescriptor

    return [
        TaskDescriptor(id="A", dependencies=[]),
        TaskDescriptor(id="B", dependencies=["A"]),
        TaskDescriptor(id="C", dependencies=["A"]),
        TaskDescriptor(id="D", dependencies=["B", "C"]),
    ]


@pytest.fixture
def sample_tasks() -> list:
    """Provide a realistic task list with forward references."""
    return [
        ("T005", ["T002", "T003", "T004"]),
        ("T001", []),
        ("T002", ["T001"]),
        ("T003", ["T001"]),
        ("T004", ["T002"]),
        ("T006", []),
    ]


@pytest.fixture
def diamond_graph(diamond_tasks: list):
    """Provide a scheduled diamond graph."""
    from dagwave.graph.builder import build_graph

    graph = build_graph(diamond_tasks)
    graph.compute_waves()
    return graph


# Markers
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
