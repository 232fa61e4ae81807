"""Watchers: dependency-collecting evaluators.

One class covers the three flavours the store needs:

* ``lazy=True`` -- a memoization cell for a derived value.  A dependency
  change only sets the dirty bit; the value is recomputed on next read.
* ``sync=True`` -- the callback runs inside the notifying write.
* otherwise -- the watcher is queued on a :class:`Scheduler` and runs on
  the next flush.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from modstore.reactive.dep import Dep, current_target, pop_target, push_target
from modstore.reactive.observer import is_observed, traverse

if TYPE_CHECKING:
    from modstore.reactive.scheduler import Scheduler

_watcher_ids = itertools.count()

WatchCallback = Callable[[Any, Any], Any]


def _has_changed(value: Any, old: Any) -> bool:
    if value is not old:
        try:
            return bool(value != old)
        except Exception:  # noqa: BLE001
            return True
    return False


class Watcher:
    """Evaluate *getter* while recording every dependency it reads."""

    def __init__(
        self,
        getter: Callable[[], Any],
        callback: WatchCallback | None = None,
        *,
        lazy: bool = False,
        deep: bool = False,
        sync: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.id = next(_watcher_ids)
        self.getter = getter
        self.callback = callback
        self.lazy = lazy
        self.deep = deep
        self.sync = sync
        self.scheduler = scheduler
        self.active = True
        self.dirty = lazy
        self.deps: set[Dep] = set()
        self._new_deps: set[Dep] = set()
        self.value: Any = None if lazy else self.get()

    def get(self) -> Any:
        push_target(self)
        try:
            value = self.getter()
            if self.deep:
                traverse(value)
        finally:
            pop_target()
            self._cleanup_deps()
        return value

    def add_dep(self, dep: Dep) -> None:
        if dep in self._new_deps:
            return
        self._new_deps.add(dep)
        if dep not in self.deps:
            dep.add_sub(self)

    def _cleanup_deps(self) -> None:
        for dep in self.deps - self._new_deps:
            dep.remove_sub(self)
        self.deps, self._new_deps = self._new_deps, set()

    def update(self) -> None:
        if self.lazy:
            self.dirty = True
        elif self.sync or self.scheduler is None:
            self.run()
        else:
            self.scheduler.queue_watcher(self)

    def run(self) -> None:
        if not self.active:
            return
        value = self.get()
        if self.deep or isinstance(value, (dict, list)) or is_observed(value) or _has_changed(value, self.value):
            old = self.value
            self.value = value
            if self.callback is not None:
                self.callback(value, old)

    def evaluate(self) -> Any:
        """Recompute a lazy watcher's value and clear its dirty bit."""
        self.value = self.get()
        self.dirty = False
        return self.value

    def read(self) -> Any:
        """Return the cached value, recomputing only when dirty.

        When read from inside another watcher, that watcher inherits this
        one's dependencies so it is notified by the same writes.
        """
        if self.dirty:
            self.evaluate()
        if current_target() is not None:
            self.depend()
        return self.value

    def depend(self) -> None:
        for dep in list(self.deps):
            dep.depend()

    def teardown(self) -> None:
        if not self.active:
            return
        for dep in self.deps:
            dep.remove_sub(self)
        self.deps = set()
        self.active = False

    def __repr__(self) -> str:
        return f"Watcher(id={self.id}, lazy={self.lazy}, sync={self.sync}, deps={len(self.deps)})"
