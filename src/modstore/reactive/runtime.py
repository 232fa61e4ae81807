"""Default reactive-binding provider.

The store only talks to the :class:`ReactiveProvider` and
:class:`ProjectionHandle` protocols, so any implementation offering the
same surface can be injected with ``Store(provider=...)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from modstore.reactive.observer import ReactiveDict, delete_property, set_property
from modstore.reactive.scheduler import Scheduler
from modstore.reactive.watcher import WatchCallback, Watcher

_logger = logging.getLogger(__name__)

Unwatch = Callable[[], None]


@runtime_checkable
class ProjectionHandle(Protocol):
    """State tree plus lazily cached derived values."""

    @property
    def state(self) -> Any: ...

    def read(self, key: str) -> Any: ...

    def set_property(self, target: Any, key: Any, value: Any) -> None: ...

    def delete_property(self, target: Any, key: Any) -> None: ...

    def watch(
        self,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        sync: bool = False,
        immediate: bool = False,
    ) -> Unwatch: ...

    def replace_state(self, state: Any) -> None: ...

    def clear_state(self) -> None: ...

    def deferred_destroy(self) -> None: ...


@runtime_checkable
class ReactiveProvider(Protocol):
    """Factory for projections plus store-lifetime watchers."""

    def create_projection(self, state: Any, derived: Mapping[str, Callable[[], Any]]) -> ProjectionHandle: ...

    def set_property(self, target: Any, key: Any, value: Any) -> None: ...

    def delete_property(self, target: Any, key: Any) -> None: ...

    def watch(
        self,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        sync: bool = False,
        immediate: bool = False,
    ) -> Unwatch: ...

    def flush(self) -> None: ...

    async def next_tick(self) -> None: ...


class Projection:
    """A state tree and one memoization cell per derived key.

    The state tree hangs off a private observed root under ``"state"``, so
    replacing or clearing it notifies every watcher and cell that read it.
    """

    def __init__(
        self,
        runtime: ReactiveRuntime,
        state: Any,
        derived: Mapping[str, Callable[[], Any]],
    ) -> None:
        self._runtime = runtime
        self._root = ReactiveDict({"state": state})
        self._cells: dict[str, Watcher] = {key: Watcher(fn, lazy=True) for key, fn in derived.items()}
        self._watchers: list[Watcher] = []
        self._destroyed = False

    @property
    def state(self) -> Any:
        return self._root["state"]

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def keys(self) -> list[str]:
        return list(self._cells)

    def read(self, key: str) -> Any:
        """Return the cached value for *key*, recomputing only if a dependency changed."""
        return self._cells[key].read()

    def set_property(self, target: Any, key: Any, value: Any) -> None:
        set_property(target, key, value)

    def delete_property(self, target: Any, key: Any) -> None:
        delete_property(target, key)

    def watch(
        self,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        sync: bool = False,
        immediate: bool = False,
    ) -> Unwatch:
        """Watch *selector*; the watcher is torn down with this projection."""
        watcher = self._runtime.make_watcher(selector, callback, deep=deep, sync=sync, immediate=immediate)
        self._watchers.append(watcher)
        return watcher.teardown

    def replace_state(self, state: Any) -> None:
        self._root["state"] = state

    def clear_state(self) -> None:
        self._root["state"] = None

    def destroy(self) -> None:
        if self._destroyed:
            return
        for cell in self._cells.values():
            cell.teardown()
        for watcher in self._watchers:
            watcher.teardown()
        self._watchers.clear()
        self._destroyed = True
        _logger.debug("Projection destroyed (%d derived keys)", len(self._cells))

    def deferred_destroy(self) -> None:
        """Destroy on the next scheduler flush instead of mid-tick."""
        self._runtime.scheduler.defer(self.destroy)


class ReactiveRuntime:
    """Default provider backed by :mod:`modstore.reactive` primitives.

    One runtime may serve several stores; each owns its projections.
    """

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self.scheduler = scheduler or Scheduler()

    def create_projection(self, state: Any, derived: Mapping[str, Callable[[], Any]]) -> Projection:
        return Projection(self, state, derived)

    def set_property(self, target: Any, key: Any, value: Any) -> None:
        set_property(target, key, value)

    def delete_property(self, target: Any, key: Any) -> None:
        delete_property(target, key)

    def make_watcher(
        self,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        sync: bool = False,
        immediate: bool = False,
    ) -> Watcher:
        watcher = Watcher(selector, callback, deep=deep, sync=sync, scheduler=self.scheduler)
        if immediate:
            callback(watcher.value, None)
        return watcher

    def watch(
        self,
        selector: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        sync: bool = False,
        immediate: bool = False,
    ) -> Unwatch:
        """Watch *selector* for the lifetime of the runtime.  Returns an unwatch callable."""
        return self.make_watcher(selector, callback, deep=deep, sync=sync, immediate=immediate).teardown

    def flush(self) -> None:
        self.scheduler.flush()

    async def next_tick(self) -> None:
        await self.scheduler.next_tick()
