# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Include/exclude path filtering.

Glob patterns use ``*`` as a wildcard and ``.`` as a literal separator, and
always match the whole path.
"""

import logging
import re
from typing import Iterable, List, Pattern

logger = logging.getLogger(__name__)

INCLUDE = "include"
EXCLUDE = "exclude"


def compile_glob(pattern: str) -> Pattern:
    """
    Convert a path glob into a regex.

    Args:
        pattern: Glob such as ``navigation.*``

    Returns:
        Compiled regex, applied with fullmatch
    """
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    logger.debug(f"created regex={regex} from path={pattern}")
    return re.compile(regex)


class PathFilter:
    """
    Compiled include/exclude filter.

    Patterns are compiled once, when the filter is built, and reused for
    every path evaluated afterwards.
    """

    def __init__(self, patterns: Iterable[str], mode: str = EXCLUDE):
        """
        Initialize path filter.

        Args:
            patterns: Glob patterns
            mode: 'include' to keep matching paths, 'exclude' to drop them

        Raises:
            ValueError: If mode is unknown or a pattern is not a non-empty string
        """
        if mode not in (INCLUDE, EXCLUDE):
            raise ValueError(f"Unknown filter mode: {mode}. Valid modes: {INCLUDE}, {EXCLUDE}")

        self.mode = mode
        self.patterns: List[str] = list(patterns)
        for pattern in self.patterns:
            if not isinstance(pattern, str) or not pattern:
                raise ValueError(f"Invalid filter pattern: {pattern!r}")
        self._regexes = [compile_glob(p) for p in self.patterns]

    def accepts(self, path: str) -> bool:
        """
        Check whether a path passes the filter.

        An empty include list accepts nothing; an empty exclude list accepts
        everything.
        """
        if self.mode == INCLUDE:
            return any(regex.fullmatch(path) for regex in self._regexes)
        return not any(regex.fullmatch(path) for regex in self._regexes)

    def __call__(self, path: str) -> bool:
        return self.accepts(path)

    def __repr__(self) -> str:
        return f"PathFilter(mode={self.mode!r}, patterns={self.patterns!r})"
