"""
Visible index range for virtualized rendering of long lists.

Only rows inside the viewport, plus ``overscan`` rows on either side, need
to be rendered. :func:`calculate_visible_range` computes that window from the
scroll offset and fixed row size.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Window:
    """Index window to render.

    Attributes
    ----------
    start_index : int
        First index to render (never negative).
    end_index : int
        Last index to render, inclusive. ``-1`` when the list is empty.
    visible_count : int
        Number of rows that fit in the viewport.
    """

    start_index: int
    end_index: int
    visible_count: int

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to render."""
        return self.end_index < self.start_index

    def indices(self) -> range:
        """Range of indices to render (empty for an empty window)."""
        return range(self.start_index, self.end_index + 1)


def calculate_visible_range(
    scroll_offset: float,
    viewport_size: float,
    item_size: float,
    total_items: int,
    overscan: int = 3,
) -> Window:
    """
    Compute the window of list indices to render.

    Parameters
    ----------
    scroll_offset : float
        Distance scrolled from the top of the list (>= 0).
    viewport_size : float
        Height of the visible area (> 0).
    item_size : float
        Fixed height of each row (> 0).
    total_items : int
        Number of rows in the list (>= 0).
    overscan : int, default=3
        Extra rows rendered before and after the viewport.

    Returns
    -------
    Window
        ``end_index`` is ``-1`` when ``total_items`` is 0; callers must
        handle that explicitly (see :attr:`Window.is_empty`).

    Raises
    ------
    ValueError
        If ``item_size`` or ``viewport_size`` is not positive.

    Examples
    --------
    >>> calculate_visible_range(0, 500, 50, 100)
    Window(start_index=0, end_index=16, visible_count=10)
    """
    if item_size <= 0:
        raise ValueError(f"item_size must be positive, got {item_size}")
    if viewport_size <= 0:
        raise ValueError(f"viewport_size must be positive, got {viewport_size}")

    start_index = max(0, math.floor(scroll_offset / item_size) - overscan)
    visible_count = math.ceil(viewport_size / item_size)
    end_index = min(total_items - 1, start_index + visible_count + 2 * overscan)
    return Window(
        start_index=start_index, end_index=end_index, visible_count=visible_count
    )
