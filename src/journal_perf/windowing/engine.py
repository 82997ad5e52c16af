"""
Windowing Engine - Fixed-Extent List and Grid Virtualization.

Computes which slice of an ordered collection is visible for a given
scroll offset, so a renderer only draws the rows near the viewport.

Design Notes:
    - Pure functions: no scroll state is held between calls
    - O(1) in the item count; only the windowed slice is materialized
    - Every item shares one extent (no variable-height rows)
    - Callers decide when to recompute (see scheduling.Throttler)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from journal_perf.errors import InvalidArgument, InvalidConfiguration

Number = Union[int, float]

ALIGNMENTS = ("start", "center", "end", "auto")

DEFAULT_OVERSCAN = 5


@dataclass(frozen=True)
class Window:
    """The renderable slice of a collection for one scroll position."""

    start_index: Optional[int]
    end_index: Optional[int]
    items: Sequence[Any]
    total_extent: Number
    item_offsets: Dict[int, Number] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the collection has no items."""
        return self.start_index is None

    @property
    def indices(self) -> range:
        """Windowed indices, inclusive of end_index."""
        if self.start_index is None or self.end_index is None:
            return range(0)
        return range(self.start_index, self.end_index + 1)

    def __len__(self) -> int:
        return len(self.indices)


@dataclass(frozen=True)
class GridWindow:
    """The renderable cells of a fixed-size grid for one scroll position."""

    start_index: Optional[int]
    end_index: Optional[int]
    start_row: Optional[int]
    end_row: Optional[int]
    columns: int
    items: Sequence[Any]
    total_extent: Number
    cell_offsets: Dict[int, Tuple[Number, Number]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when the collection has no items."""
        return self.start_index is None

    @property
    def indices(self) -> range:
        """Windowed indices, inclusive of end_index."""
        if self.start_index is None or self.end_index is None:
            return range(0)
        return range(self.start_index, self.end_index + 1)


def compute(
    item_count: int,
    item_extent: Number,
    viewport_extent: Number,
    scroll_offset: Number,
    overscan: int = DEFAULT_OVERSCAN,
    items: Optional[Sequence[Any]] = None,
) -> Window:
    """
    Compute the visible window of a fixed-extent list.

    Args:
        item_count: Number of items in the collection
        item_extent: Extent (height) shared by every item, must be > 0
        viewport_extent: Visible extent of the scroll container
        scroll_offset: Current scroll position, clamped to
            0 .. total_extent - viewport_extent
        overscan: Extra items kept on each side of the viewport
        items: Optional collection to slice into Window.items

    Returns:
        Window for the given scroll position

    Raises:
        InvalidConfiguration: If item_extent <= 0 or items length mismatches
        InvalidArgument: If item_count, viewport_extent or overscan is negative
    """
    _validate(item_count, item_extent, viewport_extent, overscan, items)

    if item_count == 0:
        return Window(start_index=None, end_index=None, items=(), total_extent=0)

    total_extent = item_count * item_extent
    # Same range a scroll container allows: 0 .. content minus viewport
    scroll_offset = min(max(0, scroll_offset), max(0, total_extent - viewport_extent))
    visible_count = math.ceil(viewport_extent / item_extent)

    start_index = max(0, math.floor(scroll_offset / item_extent) - overscan)
    end_index = min(item_count - 1, start_index + visible_count + 2 * overscan)

    return Window(
        start_index=start_index,
        end_index=end_index,
        items=_slice(items, start_index, end_index),
        total_extent=total_extent,
        item_offsets={i: i * item_extent for i in range(start_index, end_index + 1)},
    )


def compute_grid(
    item_count: int,
    item_width: Number,
    item_height: Number,
    viewport_width: Number,
    viewport_height: Number,
    scroll_offset: Number,
    overscan: int = DEFAULT_OVERSCAN,
    gap: Number = 0,
    items: Optional[Sequence[Any]] = None,
) -> GridWindow:
    """
    Compute the visible cells of a fixed-size, row-wrapped grid.

    Columns are derived from the viewport width; rows are windowed with
    the same formula as compute(), using item_height + gap as row extent.

    Raises:
        InvalidConfiguration: If a cell dimension is <= 0 or gap < 0
        InvalidArgument: If item_count, a viewport dimension or overscan is negative
    """
    if item_width <= 0 or item_height <= 0:
        raise InvalidConfiguration(
            f"Cell size must be positive, got {item_width}x{item_height}"
        )
    if gap < 0:
        raise InvalidConfiguration(f"gap must be >= 0, got {gap}")
    if viewport_width < 0:
        raise InvalidArgument(f"viewport_width must be >= 0, got {viewport_width}")
    if item_count < 0:
        raise InvalidArgument(f"item_count must be >= 0, got {item_count}")

    row_extent = item_height + gap
    columns = max(1, math.floor((viewport_width + gap) / (item_width + gap)))
    total_rows = math.ceil(item_count / columns) if item_count > 0 else 0

    rows = compute(total_rows, row_extent, viewport_height, scroll_offset, overscan)

    if items is not None and len(items) != item_count:
        raise InvalidConfiguration(
            f"items has {len(items)} elements but item_count is {item_count}"
        )

    if rows.is_empty:
        return GridWindow(
            start_index=None,
            end_index=None,
            start_row=None,
            end_row=None,
            columns=columns,
            items=(),
            total_extent=0,
        )

    start_index = rows.start_index * columns
    end_index = min(item_count - 1, (rows.end_index + 1) * columns - 1)

    cell_offsets = {
        i: ((i // columns) * row_extent, (i % columns) * (item_width + gap))
        for i in range(start_index, end_index + 1)
    }

    return GridWindow(
        start_index=start_index,
        end_index=end_index,
        start_row=rows.start_index,
        end_row=rows.end_index,
        columns=columns,
        items=_slice(items, start_index, end_index),
        total_extent=total_rows * row_extent - gap,
        cell_offsets=cell_offsets,
    )


def scroll_offset_for_index(
    index: int,
    item_count: int,
    item_extent: Number,
    viewport_extent: Number,
    alignment: str = "start",
    current_offset: Number = 0,
) -> Number:
    """
    Scroll offset that brings an item into view.

    Alignments:
        start:  item at the top of the viewport
        center: item centered in the viewport
        end:    item at the bottom of the viewport
        auto:   smallest move that makes the item fully visible;
                current_offset when it already is

    Returns:
        Offset clamped to [0, total_extent - viewport_extent]
    """
    if item_extent <= 0:
        raise InvalidConfiguration(f"item_extent must be positive, got {item_extent}")
    if not 0 <= index < item_count:
        raise InvalidArgument(f"index {index} out of range for {item_count} items")
    if alignment not in ALIGNMENTS:
        raise InvalidArgument(
            f"alignment must be one of {', '.join(ALIGNMENTS)}, got {alignment!r}"
        )

    top = index * item_extent
    bottom = top + item_extent

    if alignment == "start":
        target = top
    elif alignment == "center":
        target = top - (viewport_extent - item_extent) / 2
    elif alignment == "end":
        target = bottom - viewport_extent
    elif top < current_offset:
        target = top
    elif bottom > current_offset + viewport_extent:
        target = bottom - viewport_extent
    else:
        target = current_offset

    max_offset = max(0, item_count * item_extent - viewport_extent)
    return max(0, min(target, max_offset))


class WindowingEngine:
    """
    Stateless list virtualizer bound to one item extent.

    Holds only configuration; every compute() call is independent, so a
    viewport resize or a scroll needs nothing but a fresh call.

    Usage:
        engine = WindowingEngine(item_extent=48, overscan=3)
        window = engine.compute(len(trades), viewport_extent=600, scroll_offset=960)
        for index in window.indices:
            draw(trades[index], top=window.item_offsets[index])
    """

    def __init__(self, item_extent: Number, overscan: int = DEFAULT_OVERSCAN) -> None:
        if item_extent <= 0:
            raise InvalidConfiguration(f"item_extent must be positive, got {item_extent}")
        if overscan < 0:
            raise InvalidArgument(f"overscan must be >= 0, got {overscan}")
        self.item_extent = item_extent
        self.overscan = overscan

    def compute(
        self,
        item_count: int,
        viewport_extent: Number,
        scroll_offset: Number,
        overscan: Optional[int] = None,
        items: Optional[Sequence[Any]] = None,
    ) -> Window:
        """Compute the window using the engine's extent and default overscan."""
        return compute(
            item_count,
            self.item_extent,
            viewport_extent,
            scroll_offset,
            self.overscan if overscan is None else overscan,
            items,
        )

    def total_extent(self, item_count: int) -> Number:
        """Full scrollable extent; independent of scroll position."""
        return item_count * self.item_extent

    def scroll_offset_for_index(
        self,
        index: int,
        item_count: int,
        viewport_extent: Number,
        alignment: str = "start",
        current_offset: Number = 0,
    ) -> Number:
        """See module-level scroll_offset_for_index()."""
        return scroll_offset_for_index(
            index, item_count, self.item_extent, viewport_extent, alignment, current_offset
        )


def _validate(
    item_count: int,
    item_extent: Number,
    viewport_extent: Number,
    overscan: int,
    items: Optional[Sequence[Any]],
) -> None:
    if item_extent <= 0:
        raise InvalidConfiguration(f"item_extent must be positive, got {item_extent}")
    if item_count < 0:
        raise InvalidArgument(f"item_count must be >= 0, got {item_count}")
    if viewport_extent < 0:
        raise InvalidArgument(f"viewport_extent must be >= 0, got {viewport_extent}")
    if overscan < 0:
        raise InvalidArgument(f"overscan must be >= 0, got {overscan}")
    if items is not None and len(items) != item_count:
        raise InvalidConfiguration(
            f"items has {len(items)} elements but item_count is {item_count}"
        )


def _slice(items: Optional[Sequence[Any]], start: int, end: int) -> Sequence[Any]:
    if items is None:
        return range(start, end + 1)
    return items[start : end + 1]
