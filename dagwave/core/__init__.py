"""Core module - configuration, logging and errors."""

from dagwave.core.config import Settings, clear_settings_cache, get_settings
from dagwave.core.errors import (
    CoordinatorClosedError,
    DagwaveError,
    GraphValidationError,
    TaskNotFoundError,
    Violation,
    ViolationKind,
    WaveComputationError,
)
from dagwave.core.logging import configure_logging

__all__ = [
    "CoordinatorClosedError",
    "DagwaveError",
    "GraphValidationError",
    "Settings",
    "TaskNotFoundError",
    "Violation",
    "ViolationKind",
    "WaveComputationError",
    "clear_settings_cache",
    "configure_logging",
    "get_settings",
]
