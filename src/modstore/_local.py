"""Per-module views of dispatch, commit, getters and state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from modstore._utils import MISSING, get_nested_state, unify_object_style
from modstore.getters import NamespacedGetters

if TYPE_CHECKING:
    from modstore.store import Store

_logger = logging.getLogger(__name__)


class LocalContext:
    """Dispatch/commit/getters/state scoped to one module's namespace.

    ``state`` is resolved on every access because the state tree is
    replaced by ``replace_state``.  The namespaced ``getters`` view is
    kept until a rebuild replaces the store's root view.
    """

    def __init__(self, store: Store, namespace: str, path: Sequence[str]) -> None:
        self._store = store
        self.namespace = namespace
        self.path = tuple(path)
        self._local_getters: tuple[Mapping[str, Any], NamespacedGetters] | None = None

    def dispatch(
        self,
        type_: Any,
        payload: Any = MISSING,
        options: Mapping[str, Any] | None = None,
    ) -> asyncio.Future[Any] | None:
        store = self._store
        if not self.namespace:
            return store.dispatch(type_, payload)

        local_type, payload, options = unify_object_style(type_, payload, options, checks=store.config.dev_checks)
        type_ = local_type
        if not options or not options.get("root"):
            type_ = self.namespace + local_type
            if not store.has_action(type_):
                _logger.error("unknown local action type: %s, global type: %s", local_type, type_)
                return None
        return store.dispatch(type_, payload)

    def commit(
        self,
        type_: Any,
        payload: Any = MISSING,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        store = self._store
        if not self.namespace:
            store.commit(type_, payload, options)
            return

        local_type, payload, options = unify_object_style(type_, payload, options, checks=store.config.dev_checks)
        type_ = local_type
        if not options or not options.get("root"):
            type_ = self.namespace + local_type
            if not store.has_mutation(type_):
                _logger.error("unknown local mutation type: %s, global type: %s", local_type, type_)
                return
        store.commit(type_, payload, options)

    @property
    def getters(self) -> Mapping[str, Any]:
        root = self._store.getters
        if not self.namespace:
            return root
        # The root view is replaced on every rebuild, which invalidates this one.
        cached = self._local_getters
        if cached is None or cached[0] is not root:
            cached = self._local_getters = (root, NamespacedGetters(root, self.namespace))
        return cached[1]

    @property
    def state(self) -> Any:
        return get_nested_state(self._store.state, self.path)

    def __repr__(self) -> str:
        return f"LocalContext(namespace={self.namespace!r}, path={list(self.path)})"


@dataclass(frozen=True, slots=True)
class ActionContext:
    """First argument of every action handler.

    ``state`` and ``getters`` are local to the declaring module,
    ``root_state`` and ``root_getters`` belong to the whole store.
    """

    dispatch: Callable[..., asyncio.Future[Any] | None]
    commit: Callable[..., None]
    getters: Mapping[str, Any]
    state: Any
    root_getters: Mapping[str, Any]
    root_state: Any
