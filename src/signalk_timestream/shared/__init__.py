# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""Shared configuration and constants."""

from .config import Config, ConfigurationError, SelfIdentity

__all__ = ["Config", "ConfigurationError", "SelfIdentity"]
