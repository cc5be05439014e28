# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Batch accumulator for sampling data points between publishes.

Keeps the latest data point per path for the current interval.
"""

import threading
from typing import Dict, List, Any, Optional

import logging

from .models import DataPoint
from .normalizer import PointNormalizer

logger = logging.getLogger(__name__)


class BatchAccumulator:
    """
    Accumulates the current interval's working set.

    Features:
    - Last-write-wins per path (intermediate values are dropped)
    - Atomic snapshot-and-clear for publishing
    - Thread-safe operations
    """

    def __init__(self, normalizer: Optional[PointNormalizer] = None):
        """
        Initialize batch accumulator.

        Args:
            normalizer: Normalizer used by absorb()/absorb_delta()
        """
        self.normalizer = normalizer
        self._points: Dict[str, DataPoint] = {}
        self._lock = threading.Lock()

    def add_points(self, points: List[DataPoint]) -> None:
        """
        Merge data points into the batch, overwriting by name.

        Args:
            points: Data points in arrival order
        """
        with self._lock:
            for point in points:
                self._points[point.name] = point

    def absorb(self, update: Dict[str, Any]) -> int:
        """
        Normalize an update and merge its points.

        Returns:
            Number of points merged
        """
        points = self.normalizer.normalize_update(update)
        self.add_points(points)
        return len(points)

    def absorb_delta(self, delta: Dict[str, Any]) -> int:
        """
        Normalize a delta and merge its points.

        Returns:
            Number of points merged
        """
        points = self.normalizer.normalize_delta(delta)
        self.add_points(points)
        return len(points)

    def drain(self) -> List[DataPoint]:
        """
        Snapshot the batch and reset it.

        Returns:
            Data points in first-seen path order
        """
        with self._lock:
            snapshot = list(self._points.values())
            self._points = {}
            return snapshot

    def clear(self) -> None:
        """Discard the current batch."""
        with self._lock:
            self._points = {}

    def get(self, name: str) -> Optional[DataPoint]:
        """Current point for a path, if any."""
        with self._lock:
            return self._points.get(name)

    def size(self) -> int:
        """
        Get current batch size.

        Returns:
            Number of distinct paths in current batch
        """
        with self._lock:
            return len(self._points)

    def is_empty(self) -> bool:
        """
        Check if batch is empty.

        Returns:
            True if batch is empty
        """
        return self.size() == 0
