"""Render module - ASCII views of scheduled graphs."""

from dagwave.render.visualize import (
    render_ascii,
    render_compact,
    render_detailed,
    render_progress,
    render_stats,
    status_symbol,
)

__all__ = [
    "render_ascii",
    "render_compact",
    "render_detailed",
    "render_progress",
    "render_stats",
    "status_symbol",
]
