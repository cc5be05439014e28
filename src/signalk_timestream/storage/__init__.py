# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Amazon Timestream storage adapter.
"""

from .timestream import TimestreamClient, build_range_query, format_instant

__all__ = ["TimestreamClient", "build_range_query", "format_instant"]
