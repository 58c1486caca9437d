#!/usr/bin/env python3
"""
Scoped timers: delayed callbacks owned by one controller and cancelled together.
"""

import asyncio
import logging
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)


class TimerScope:
    """Tracks every call_later handle it hands out so teardown can revoke them"""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()
        self._handles: Set[asyncio.TimerHandle] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not fired or been cancelled"""
        return len(self._handles)

    def call_later(self, delay: float, callback: Callable, *args) -> asyncio.TimerHandle:
        """Schedule callback(*args) after delay seconds"""
        if self._closed:
            raise RuntimeError("Timer scope is closed")

        handle = None

        def fire():
            self._handles.discard(handle)
            callback(*args)

        handle = self.loop.call_later(max(0.0, delay), fire)
        self._handles.add(handle)
        return handle

    def cancel(self, handle: Optional[asyncio.TimerHandle]):
        """Cancel one handle; unknown or already-fired handles are ignored"""
        if handle is None:
            return
        handle.cancel()
        self._handles.discard(handle)

    def cancel_all(self):
        for handle in list(self._handles):
            handle.cancel()
        self._handles.clear()

    def close(self):
        """Cancel everything and refuse new callbacks"""
        if self._handles:
            logger.debug("Cancelling %d pending timer(s)", len(self._handles))
        self.cancel_all()
        self._closed = True
