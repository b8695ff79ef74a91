"""Deferred continuation queue.

Work that must observe the state *after* a mutation has committed (selection
re-checks, loupe auto-advance, background asset results) is scheduled here and
runs only when the host calls `flush()`. Callbacks read live state when they
run; nothing is captured at scheduling time beyond the callable itself.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
import threading
from typing import Any

from loguru import logger


class EventQueue:
    """FIFO of zero-delay continuations, safe to post to from worker threads."""

    def __init__(self) -> None:
        self._pending: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._lock = threading.Lock()

    def schedule(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue `callback(*args)` to run on the next `flush()`."""
        with self._lock:
            self._pending.append((callback, args))

    def flush(self) -> int:
        """Run queued callbacks in order until the queue is empty.

        Callbacks scheduled while flushing run in the same flush, after
        everything queued before them.

        Returns:
            Number of callbacks executed.
        """
        executed = 0
        while True:
            with self._lock:
                if not self._pending:
                    break
                callback, args = self._pending.popleft()
            callback(*args)
            executed += 1
        if executed:
            logger.debug("Flushed {} deferred callbacks", executed)
        return executed

    def clear(self) -> None:
        """Drop everything still pending."""
        with self._lock:
            self._pending.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)
