"""
Connection status for the "live / offline" indicator.

Single writer (the feed loop), single reader (snapshot builder).
"""

from __future__ import annotations

import logging
import time

from ..types import ConnectionStatus

logger = logging.getLogger(__name__)


class ConnectionTracker:
    """Process-wide connected/disconnected flag with a little history."""

    __slots__ = ('_connected', 'changed_at', 'connect_count')

    def __init__(self) -> None:
        self._connected: bool = False
        self.changed_at: float = time.time()
        self.connect_count: int = 0

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def status(self) -> ConnectionStatus:
        return ConnectionStatus.CONNECTED if self._connected else ConnectionStatus.DISCONNECTED

    @property
    def reconnect_count(self) -> int:
        """Number of successful connections after the first one."""
        return max(0, self.connect_count - 1)

    def mark_connected(self) -> bool:
        """Returns True if the flag flipped."""
        if self._connected:
            return False
        self._connected = True
        self.changed_at = time.time()
        self.connect_count += 1
        logger.info("Connected to server")
        return True

    def mark_disconnected(self) -> bool:
        """Returns True if the flag flipped. Held orders are left alone."""
        if not self._connected:
            return False
        self._connected = False
        self.changed_at = time.time()
        logger.info("Disconnected from server")
        return True
