"""Binding helpers: expose selected state, getters, mutations and actions.

Each ``map_*`` helper returns ``{name: callable}``.  The callables take an
optional ``store=`` keyword and otherwise use the ambient store (see
:func:`modstore.binding.provide_store`), so they can be attached to
consumer classes or called directly::

    counter = map_state(["count"])
    counter["count"](store=store)

    cart = map_actions("cart", {"checkout": "checkout"})
    await cart["checkout"](items, store=store)

A leading namespace argument scopes the mapping to the namespaced module
registered under it.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from modstore._utils import bind_arity
from modstore.binding import resolve_store
from modstore.module import NAMESPACE_SEPARATOR

if TYPE_CHECKING:
    from modstore.module import Module
    from modstore.store import Store

_logger = logging.getLogger(__name__)

MapSpec = Iterable[str] | Mapping[str, Any]


def _normalize_namespace(namespace: str | MapSpec, map_: MapSpec | None) -> tuple[str, MapSpec]:
    if not isinstance(namespace, str):
        return "", namespace
    if map_ is None:
        raise TypeError("a map is required after the namespace argument")
    if not namespace.endswith(NAMESPACE_SEPARATOR):
        namespace += NAMESPACE_SEPARATOR
    return namespace, map_


def _normalize_map(map_: MapSpec) -> list[tuple[str, Any]]:
    if isinstance(map_, Mapping):
        return list(map_.items())
    return [(key, key) for key in map_]


def _module_by_namespace(store: Store, helper: str, namespace: str) -> Module | None:
    module = store.module_by_namespace(namespace)
    if module is None:
        _logger.error("module namespace not found in %s(): %s", helper, namespace)
    return module


def map_state(namespace: str | MapSpec, states: MapSpec | None = None) -> dict[str, Callable[..., Any]]:
    """Map names to state values.

    A string value reads that key from the (local) state; a callable is
    called with ``(state, getters)``.
    """
    namespace, states = _normalize_namespace(namespace, states)

    def make(val: Any) -> Callable[..., Any]:
        select = bind_arity(val) if callable(val) else None

        def mapped_state(*, store: Store | None = None) -> Any:
            store = resolve_store(store)
            state, getters = store.state, store.getters
            if namespace:
                module = _module_by_namespace(store, "map_state", namespace)
                if module is None or module.context is None:
                    return None
                state, getters = module.context.state, module.context.getters
            if select is not None:
                return select(state, getters)
            return state[val]

        return mapped_state

    return {key: make(val) for key, val in _normalize_map(states)}


def map_getters(namespace: str | MapSpec, getters: MapSpec | None = None) -> dict[str, Callable[..., Any]]:
    """Map names to (namespaced) getter values."""
    namespace, getters = _normalize_namespace(namespace, getters)

    def make(val: str) -> Callable[..., Any]:
        type_ = namespace + val

        def mapped_getter(*, store: Store | None = None) -> Any:
            store = resolve_store(store)
            if namespace and _module_by_namespace(store, "map_getters", namespace) is None:
                return None
            if type_ not in store.getters:
                _logger.error("unknown getter: %s", type_)
                return None
            return store.getters[type_]

        return mapped_getter

    return {key: make(val) for key, val in _normalize_map(getters)}


def map_mutations(namespace: str | MapSpec, mutations: MapSpec | None = None) -> dict[str, Callable[..., Any]]:
    """Map names to commit calls.

    A string value commits that type with the call arguments as payload; a
    callable is called with ``(commit, *args)``.
    """
    namespace, mutations = _normalize_namespace(namespace, mutations)

    def make(val: Any) -> Callable[..., Any]:
        def mapped_mutation(*args: Any, store: Store | None = None) -> Any:
            store = resolve_store(store)
            commit: Callable[..., Any] = store.commit
            if namespace:
                module = _module_by_namespace(store, "map_mutations", namespace)
                if module is None or module.context is None:
                    return None
                commit = module.context.commit
            if callable(val):
                return val(commit, *args)
            return commit(val, *args)

        return mapped_mutation

    return {key: make(val) for key, val in _normalize_map(mutations)}


def map_actions(namespace: str | MapSpec, actions: MapSpec | None = None) -> dict[str, Callable[..., Any]]:
    """Map names to dispatch calls; callables receive ``(dispatch, *args)``."""
    namespace, actions = _normalize_namespace(namespace, actions)

    def make(val: Any) -> Callable[..., Any]:
        def mapped_action(*args: Any, store: Store | None = None) -> Any:
            store = resolve_store(store)
            dispatch: Callable[..., Any] = store.dispatch
            if namespace:
                module = _module_by_namespace(store, "map_actions", namespace)
                if module is None or module.context is None:
                    return None
                dispatch = module.context.dispatch
            if callable(val):
                return val(dispatch, *args)
            return dispatch(val, *args)

        return mapped_action

    return {key: make(val) for key, val in _normalize_map(actions)}


@dataclass(frozen=True)
class NamespacedHelpers:
    map_state: Callable[..., dict[str, Callable[..., Any]]]
    map_getters: Callable[..., dict[str, Callable[..., Any]]]
    map_mutations: Callable[..., dict[str, Callable[..., Any]]]
    map_actions: Callable[..., dict[str, Callable[..., Any]]]


def create_namespaced_helpers(namespace: str) -> NamespacedHelpers:
    """Return the four ``map_*`` helpers pre-bound to *namespace*."""
    return NamespacedHelpers(
        map_state=functools.partial(map_state, namespace),
        map_getters=functools.partial(map_getters, namespace),
        map_mutations=functools.partial(map_mutations, namespace),
        map_actions=functools.partial(map_actions, namespace),
    )
