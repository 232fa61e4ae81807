"""Explicit store linkage for consuming objects.

A consumer gets its store either directly, from its parent consumer, or
from the ambient binding established by :func:`provide_store`.
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from modstore.exceptions import StoreUsageError

if TYPE_CHECKING:
    from modstore.store import Store

_current_store: ContextVar[Store | None] = ContextVar("modstore_current_store", default=None)


@contextlib.contextmanager
def provide_store(store: Store) -> Iterator[Store]:
    """Make *store* the ambient store for the enclosed block (and tasks created in it)."""
    token = _current_store.set(store)
    try:
        yield store
    finally:
        _current_store.reset(token)


def current_store() -> Store:
    store = _current_store.get()
    if store is None:
        raise StoreUsageError("No store bound; pass store= explicitly or use provide_store().")
    return store


def resolve_store(store: Store | None = None) -> Store:
    """Return *store* if given, else the ambient one."""
    return store if store is not None else current_store()


class StoreConsumer:
    """Base for objects that read from and write to a store.

    The store is resolved once, at construction, in this order: the
    ``store`` argument (a store or a zero-argument factory returning
    one), the ``parent``'s store, the ambient store.  A consumer without
    any of those has ``store = None``.
    """

    def __init__(
        self,
        *,
        store: Store | Callable[[], Store] | None = None,
        parent: Any = None,
    ) -> None:
        self.parent = parent
        self.store: Store | None
        if store is not None:
            self.store = store() if callable(store) else store
        elif parent is not None and getattr(parent, "store", None) is not None:
            self.store = parent.store
        else:
            self.store = _current_store.get()
