# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Sampling pipeline: filter, normalize, batch and publish deltas.
"""

from .filters import PathFilter
from .models import DataPoint
from .normalizer import PointNormalizer
from .batch_manager import BatchAccumulator
from .publisher import TimestreamPublisher
from .scheduler import IntervalScheduler

__all__ = [
    'PathFilter',
    'DataPoint',
    'PointNormalizer',
    'BatchAccumulator',
    'TimestreamPublisher',
    'IntervalScheduler',
]
