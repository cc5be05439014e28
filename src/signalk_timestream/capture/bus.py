# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
In-process delta bus.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

DeltaHandler = Callable[[Dict[str, Any]], None]


class DeltaBus:
    """Delivers each emitted delta to every registered handler, in order."""

    def __init__(self):
        self._handlers: List[DeltaHandler] = []

    def on(self, handler: DeltaHandler) -> None:
        self._handlers.append(handler)

    def off(self, handler: DeltaHandler) -> None:
        """Unregister a handler; unknown handlers are ignored."""
        try:
            self._handlers.remove(handler)
        except ValueError:
            logger.debug(f"Handler {handler!r} was not registered")

    def emit(self, delta: Dict[str, Any]) -> None:
        """
        Deliver a delta.

        A failing handler is logged and does not stop delivery to the rest.
        """
        for handler in list(self._handlers):
            try:
                handler(delta)
            except Exception as e:
                logger.error(f"Delta handler {handler!r} failed: {e}", exc_info=True)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)
