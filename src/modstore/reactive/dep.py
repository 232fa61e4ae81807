"""Dependency tracking primitives.

A :class:`Dep` is attached to every observed key and container.  While a
watcher evaluates, it sits on top of the target stack and every
``Dep.depend()`` call records the dependency on it.  A later
``Dep.notify()`` informs every recorded watcher.
"""

from __future__ import annotations

import itertools
from typing import Protocol

_dep_ids = itertools.count()


class Subscriber(Protocol):
    """Anything a :class:`Dep` can notify (in practice a watcher)."""

    def add_dep(self, dep: Dep) -> None: ...

    def update(self) -> None: ...


# Evaluation is single-threaded and getters are synchronous, so one stack
# per process is enough.  ``None`` entries suspend tracking.
_target_stack: list[Subscriber | None] = []


def push_target(target: Subscriber | None) -> None:
    _target_stack.append(target)


def pop_target() -> None:
    _target_stack.pop()


def current_target() -> Subscriber | None:
    """Return the watcher currently collecting dependencies, if any."""
    return _target_stack[-1] if _target_stack else None


class Dep:
    """A single observable slot with an ordered set of subscribers."""

    __slots__ = ("id", "subs")

    def __init__(self) -> None:
        self.id = next(_dep_ids)
        self.subs: dict[Subscriber, None] = {}

    def add_sub(self, sub: Subscriber) -> None:
        self.subs[sub] = None

    def remove_sub(self, sub: Subscriber) -> None:
        self.subs.pop(sub, None)

    def depend(self) -> None:
        target = current_target()
        if target is not None:
            target.add_dep(self)

    def notify(self) -> None:
        """Update every subscriber, then re-raise the first failure, if any."""
        error: Exception | None = None
        # Subscribers may (un)subscribe while being notified.
        for sub in list(self.subs):
            try:
                sub.update()
            except Exception as exc:
                if error is None:
                    error = exc
        if error is not None:
            raise error

    def __repr__(self) -> str:
        return f"Dep(id={self.id}, subs={len(self.subs)})"
