"""Rolling series of data points backing a usage graph."""

from __future__ import annotations

import math
from collections import deque

DEFAULT_LOCKED_MAX_Y = 1.0


def _total_order(value):
    # NaN sorts above every number, as a total ordering of floats does
    if math.isnan(value):
        return (1, 0.0)
    return (0, value)


class Graph:
    """A fixed-width window of the most recent data points.

    The y axis is either locked to ``locked_max_y`` or, when that is None,
    scales to the highest point currently shown.
    """

    def __init__(self, max_amount=0, locked_max_y=DEFAULT_LOCKED_MAX_Y):
        if max_amount < 0:
            raise ValueError("max_amount must not be negative")
        self.max_amount = max_amount
        self.locked_max_y = locked_max_y
        self._points: deque[float] = deque()

    def __len__(self):
        return len(self._points)

    @property
    def points(self):
        """The data points pushed so far, oldest first."""
        return tuple(self._points)

    def set_max_amount(self, max_amount):
        """Set how many data points the graph shows."""
        if max_amount < 0:
            raise ValueError("max_amount must not be negative")
        self.max_amount = max_amount

    def push(self, value):
        """Append a data point, dropping the oldest one once the graph is full."""
        if len(self._points) >= self.max_amount and self._points:
            self._points.popleft()
        self._points.append(float(value))

    def highest_value(self):
        """Return the highest data point, or 0.0 if there are none."""
        if not self._points:
            return 0.0
        return max(self._points, key=_total_order)

    def filled_points(self):
        """Return exactly ``max_amount`` points, padded at the front with zeros."""
        missing = self.max_amount - len(self._points)
        if missing < 0:
            raise ValueError(
                f"graph holds {len(self._points)} points but shows only {self.max_amount}"
            )
        return [0.0] * missing + list(self._points)

    def y_max(self):
        """Return the upper bound of the y axis."""
        if self.locked_max_y is not None:
            return self.locked_max_y
        filled = self.filled_points()
        if not filled:
            raise ValueError("graph has no points to scale to")
        return max(filled, key=_total_order)