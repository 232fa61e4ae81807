"""Deferred work queue for asynchronous watchers and teardown tasks."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from modstore.exceptions import ReactiveError

if TYPE_CHECKING:
    from modstore.reactive.watcher import Watcher

_logger = logging.getLogger(__name__)

#: Flush rounds allowed before a watcher that keeps re-queueing itself is
#: reported as a runaway update loop.
MAX_FLUSH_ROUNDS = 100


class Scheduler:
    """Batch queued watchers and deferred callbacks into one flush.

    The flush is scheduled with ``loop.call_soon`` on the running asyncio
    loop.  Without a running loop the queue simply accumulates until
    :meth:`flush` is called explicitly.
    """

    def __init__(self) -> None:
        self._watchers: dict[int, Watcher] = {}
        self._callbacks: deque[Callable[[], Any]] = deque()
        self._scheduled = False
        self._flushing = False

    @property
    def pending(self) -> bool:
        """Whether watchers or callbacks are waiting for a flush."""
        return bool(self._watchers or self._callbacks)

    def queue_watcher(self, watcher: Watcher) -> None:
        if watcher.id in self._watchers:
            return
        self._watchers[watcher.id] = watcher
        self._schedule()

    def defer(self, callback: Callable[[], Any]) -> None:
        """Run *callback* on the next flush, after queued watchers."""
        self._callbacks.append(callback)
        self._schedule()

    def _schedule(self) -> None:
        if self._scheduled or self._flushing:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.call_soon(self.flush)
        self._scheduled = True

    def flush(self) -> None:
        """Run every queued watcher (in creation order), then deferred callbacks."""
        self._scheduled = False
        if self._flushing:
            return
        self._flushing = True
        try:
            rounds = 0
            while self.pending:
                rounds += 1
                if rounds > MAX_FLUSH_ROUNDS:
                    self._watchers.clear()
                    raise ReactiveError(
                        f"Watchers re-queued themselves more than {MAX_FLUSH_ROUNDS} times; "
                        "likely an infinite update loop."
                    )
                watchers = sorted(self._watchers.values(), key=lambda w: w.id)
                self._watchers.clear()
                for watcher in watchers:
                    try:
                        watcher.run()
                    except Exception:
                        _logger.error("Watcher %s callback failed", watcher.id, exc_info=True)
                callbacks = list(self._callbacks)
                self._callbacks.clear()
                for callback in callbacks:
                    callback()
        finally:
            self._flushing = False

    async def next_tick(self) -> None:
        """Yield to the loop once, then flush whatever is still queued."""
        await asyncio.sleep(0)
        self.flush()
