"""
Windowing Layer.

Fixed-extent virtualization for huge ordered collections:
    - compute: visible index range for a list at a scroll offset
    - compute_grid: visible cells for a row-wrapped grid
    - scroll_offset_for_index: offset that brings an item into view
    - WindowingEngine: the same, bound to one item extent
"""

from journal_perf.windowing.engine import (
    GridWindow,
    Window,
    WindowingEngine,
    compute,
    compute_grid,
    scroll_offset_for_index,
)

__all__ = [
    "GridWindow",
    "Window",
    "WindowingEngine",
    "compute",
    "compute_grid",
    "scroll_offset_for_index",
]
