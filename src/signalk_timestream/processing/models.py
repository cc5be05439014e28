# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Data point model shared by the sampling pipeline.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DataPoint:
    """
    One scalar reading at one instant.

    Attributes:
        name: Dotted Signal K path (composite values already expanded)
        value: Scalar reading
        timestamp: Epoch milliseconds of the update that carried it
    """

    name: str
    value: Any
    timestamp: int

    def __post_init__(self):
        if not self.name:
            raise ValueError("DataPoint name must be non-empty")
        if isinstance(self.value, dict):
            raise ValueError(f"DataPoint {self.name} value must be scalar, got an object")
