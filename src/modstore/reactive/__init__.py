"""Reactive-binding layer.

Observed containers, dependency tracking, memoized derived cells and
watchers.  :class:`ReactiveRuntime` is the provider a store uses unless
another one is injected.
"""

from modstore.reactive.dep import Dep
from modstore.reactive.observer import (
    ReactiveDict,
    ReactiveList,
    delete_property,
    is_observed,
    observe,
    set_property,
    to_plain,
)
from modstore.reactive.runtime import Projection, ProjectionHandle, ReactiveProvider, ReactiveRuntime, Unwatch
from modstore.reactive.scheduler import Scheduler
from modstore.reactive.watcher import Watcher

__all__ = [
    "Dep",
    "Projection",
    "ProjectionHandle",
    "ReactiveDict",
    "ReactiveList",
    "ReactiveProvider",
    "ReactiveRuntime",
    "Scheduler",
    "Unwatch",
    "Watcher",
    "delete_property",
    "is_observed",
    "observe",
    "set_property",
    "to_plain",
]
