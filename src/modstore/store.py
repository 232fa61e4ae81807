"""The store: module installation, write pipeline and derived-value projection.

All state writes are expected to go through :meth:`Store.commit`, which
runs mutation handlers synchronously inside a committing scope.
:meth:`Store.dispatch` runs actions, which may be asynchronous and commit
mutations of their own.  Derived values (getters) are memoized by the
reactive provider and rebuilt whenever the module tree changes shape.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, Protocol, TypeVar

from modstore._local import ActionContext, LocalContext
from modstore._utils import MISSING, bind_arity, get_nested_state, normalize_path, payload_or_none, unify_object_style
from modstore.config import StoreConfig
from modstore.exceptions import IllegalStateMutationError, StoreUsageError
from modstore.getters import GettersView
from modstore.models.options import ModuleOptions, action_handler
from modstore.models.records import ActionRecord, MutationRecord
from modstore.module import Module, ModuleCollection
from modstore.reactive import ProjectionHandle, ReactiveProvider, ReactiveRuntime, Unwatch, observe

_logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Event emitted to the diagnostics hook when an action handler fails.
ERROR_EVENT = "modstore:error"

MutationSubscriber = Callable[[MutationRecord, Any], Any]
ActionSubscriber = Callable[[ActionRecord, Any], Any]
Plugin = Callable[["Store"], Any]
_WrappedMutation = Callable[[Any], None]
_WrappedAction = Callable[[Any], "asyncio.Future[Any]"]
_WrappedGetter = Callable[["Store"], Any]


class DiagnosticsHook(Protocol):
    """Optional observer informed of action handler failures."""

    def emit(self, event: str, payload: Any) -> None: ...


def _generic_subscribe(fn: Callable[..., Any], subscribers: list[Callable[..., Any]]) -> Callable[[], None]:
    if fn not in subscribers:
        subscribers.append(fn)

    def unsubscribe() -> None:
        if fn in subscribers:
            subscribers.remove(fn)

    return unsubscribe


def _as_future(result: Any) -> asyncio.Future[Any]:
    """Coerce a handler result into a future on the running loop."""
    if asyncio.isfuture(result):
        return result
    if inspect.isawaitable(result):
        return asyncio.ensure_future(result)
    future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    future.set_result(result)
    return future


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


async def _report_errors(future: Awaitable[T], hook: DiagnosticsHook) -> T:
    try:
        return await future
    except Exception as exc:
        hook.emit(ERROR_EVENT, exc)
        raise


async def _settle_all(futures: list[asyncio.Future[Any]]) -> list[Any]:
    """Wait for every future; fail with the first error only once all have settled."""
    results = await asyncio.gather(*futures, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class Store:
    """Hierarchical, namespaced state container.

    Usage::

        store = Store(
            state={"count": 0},
            mutations={"increment": lambda state, n=1: state.update(count=state.count + n)},
            getters={"doubled": lambda state: state.count * 2},
        )
        store.commit("increment", 5)
        assert store.getters.doubled == 10

    Parameters
    ----------
    state, mutations, actions, getters, modules
        The root module definition (see :class:`~modstore.models.ModuleOptions`).
    plugins
        Callables invoked with the store once construction is complete.
    strict
        Enable the strict-mode monitor.  Defaults to ``config.strict``.
    provider
        Reactive-binding provider.  Defaults to a private
        :class:`~modstore.reactive.ReactiveRuntime`.
    config
        Store configuration.  Defaults to :class:`~modstore.config.StoreConfig`.
    diagnostics
        Optional hook informed of action handler failures.
    """

    def __init__(
        self,
        *,
        state: Any = None,
        mutations: Mapping[str, Callable[..., Any]] | None = None,
        actions: Mapping[str, Any] | None = None,
        getters: Mapping[str, Callable[..., Any]] | None = None,
        modules: Mapping[str, Any] | None = None,
        plugins: Iterable[Plugin] = (),
        strict: bool | None = None,
        provider: ReactiveProvider | None = None,
        config: StoreConfig | None = None,
        diagnostics: DiagnosticsHook | None = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._provider: ReactiveProvider = provider or ReactiveRuntime()
        self._diagnostics = diagnostics
        self.strict = self._config.strict if strict is None else strict

        self._committing = False
        self._mutations: dict[str, list[_WrappedMutation]] = {}
        self._actions: dict[str, list[_WrappedAction]] = {}
        self._wrapped_getters: dict[str, _WrappedGetter] = {}
        self._modules_namespace_map: dict[str, Module] = {}
        self._subscribers: list[MutationSubscriber] = []
        self._action_subscribers: list[ActionSubscriber] = []
        self._projection: ProjectionHandle | None = None
        self._getters = GettersView({})

        raw_root: dict[str, Any] = {
            "state": state,
            "mutations": dict(mutations or {}),
            "actions": dict(actions or {}),
            "getters": dict(getters or {}),
            "modules": dict(modules or {}),
        }
        self._modules = ModuleCollection(raw_root)

        root_state = observe(self._modules.root.state)
        self._install_module(root_state, [], self._modules.root)
        self._reset_projection(root_state)

        for plugin in plugins:
            plugin(self)

    # ------------------------------------------------------------------
    # Public read surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def provider(self) -> ReactiveProvider:
        return self._provider

    @property
    def state(self) -> Any:
        """The root state tree.  Replace it with :meth:`replace_state`."""
        return self._current_projection().state

    @state.setter
    def state(self, value: Any) -> None:
        if self._config.dev_checks:
            raise StoreUsageError("Use store.replace_state() to explicit replace store state.")

    @property
    def getters(self) -> GettersView:
        """Read-only, cached derived values keyed by fully-qualified type."""
        return self._getters

    @property
    def diagnostics(self) -> DiagnosticsHook | None:
        return self._diagnostics

    @diagnostics.setter
    def diagnostics(self, hook: DiagnosticsHook | None) -> None:
        self._diagnostics = hook

    def has_mutation(self, type_: str) -> bool:
        return type_ in self._mutations

    def has_action(self, type_: str) -> bool:
        return type_ in self._actions

    def module_by_namespace(self, namespace: str) -> Module | None:
        return self._modules_namespace_map.get(namespace)

    # ------------------------------------------------------------------
    # Write pipeline
    # ------------------------------------------------------------------

    def commit(self, type_: Any, payload: Any = MISSING, options: Mapping[str, Any] | None = None) -> None:
        """Run every mutation handler registered for *type_*, then notify subscribers."""
        type_, payload, options = unify_object_style(type_, payload, options, checks=self._config.dev_checks)

        entry = self._mutations.get(type_)
        if not entry:
            _logger.error("unknown mutation type: %s", type_)
            return

        with self._with_commit():
            for handler in entry:
                handler(payload)

        mutation = MutationRecord(type=type_, payload=payload_or_none(payload))
        state = self.state
        for subscriber in list(self._subscribers):
            subscriber(mutation, state)

        if options and options.get("silent"):
            _logger.warning(
                "mutation type: %s. Silent option has been removed; subscribers are always notified.",
                type_,
            )

    def dispatch(self, type_: Any, payload: Any = MISSING) -> asyncio.Future[Any] | None:
        """Run every action handler registered for *type_*.

        Returns a future for the handler's result, a joined future when
        several modules registered the same type, or ``None`` for an
        unknown type.
        """
        type_, payload, _ = unify_object_style(type_, payload, checks=self._config.dev_checks)

        entry = self._actions.get(type_)
        if not entry:
            _logger.error("unknown action type: %s", type_)
            return None

        try:
            asyncio.get_running_loop()
        except RuntimeError as exc:
            raise StoreUsageError(f"dispatch({type_!r}) must be called from a running event loop") from exc

        action = ActionRecord(type=type_, payload=payload_or_none(payload))
        state = self.state
        for subscriber in list(self._action_subscribers):
            subscriber(action, state)

        if len(entry) > 1:
            return asyncio.ensure_future(_settle_all([handler(payload) for handler in entry]))
        return entry[0](payload)

    def subscribe(self, fn: MutationSubscriber) -> Callable[[], None]:
        """Call *fn(mutation, state)* after every commit.  Returns an unsubscribe callable."""
        return _generic_subscribe(fn, self._subscribers)

    def subscribe_action(self, fn: ActionSubscriber) -> Callable[[], None]:
        """Call *fn(action, state)* before every dispatched action runs."""
        return _generic_subscribe(fn, self._action_subscribers)

    def watch(
        self,
        getter: Callable[..., Any],
        callback: Callable[[Any, Any], Any],
        *,
        deep: bool = False,
        sync: bool = False,
        immediate: bool = False,
    ) -> Unwatch:
        """Call *callback(new, old)* when ``getter(state, getters)`` changes.

        Non-``sync`` callbacks run on the provider's next flush.
        """
        if not callable(getter):
            raise StoreUsageError("store.watch only accepts a function.")
        select = bind_arity(getter)
        return self._provider.watch(
            lambda: select(self.state, self.getters),
            callback,
            deep=deep,
            sync=sync,
            immediate=immediate,
        )

    def replace_state(self, state: Any) -> None:
        """Swap the whole state tree (e.g. when rehydrating)."""
        projection = self._current_projection()
        with self._with_commit():
            projection.replace_state(observe(state))

    @contextlib.contextmanager
    def _with_commit(self) -> Iterator[None]:
        committing = self._committing
        self._committing = True
        try:
            yield
        finally:
            self._committing = committing

    # ------------------------------------------------------------------
    # Dynamic module lifecycle
    # ------------------------------------------------------------------

    def register_module(
        self,
        path: str | Sequence[str],
        raw_module: ModuleOptions | Mapping[str, Any],
        *,
        preserve_state: bool = False,
    ) -> None:
        """Add a module (and its children) at *path* after construction.

        With ``preserve_state=True`` any state already present at *path*
        (e.g. rehydrated with :meth:`replace_state`) is kept.
        """
        path = normalize_path(path)
        if not path:
            raise StoreUsageError("cannot register the root module by using register_module.")

        self._modules.register(path, raw_module)
        self._install_module(self.state, path, self._modules.get(path), hot=preserve_state)
        self._reset_projection(self.state)
        _logger.debug("Registered module %s", "/".join(path))

    def unregister_module(self, path: str | Sequence[str]) -> None:
        """Remove a dynamically registered module and its state."""
        path = normalize_path(path)
        if not path:
            raise StoreUsageError("cannot unregister the root module.")

        if not self._modules.unregister(path):
            return
        with self._with_commit():
            parent_state = get_nested_state(self.state, path[:-1])
            self._provider.delete_property(parent_state, path[-1])
        self._reset_store()
        _logger.debug("Unregistered module %s", "/".join(path))

    def has_module(self, path: str | Sequence[str]) -> bool:
        return self._modules.is_registered(normalize_path(path))

    def hot_update(self, new_options: ModuleOptions | Mapping[str, Any]) -> None:
        """Swap handler definitions in place, keeping the current state values."""
        self._modules.update(new_options)
        self._reset_store(hot=True)
        _logger.debug("Hot update applied")

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def _reset_store(self, hot: bool = False) -> None:
        self._actions = {}
        self._mutations = {}
        self._wrapped_getters = {}
        self._modules_namespace_map = {}
        state = self.state
        # Reinstall the whole tree without touching state.
        self._install_module(state, [], self._modules.root, hot=True)
        self._reset_projection(state, hot=hot)

    def _install_module(self, root_state: Any, path: list[str], module: Module, hot: bool = False) -> None:
        is_root = not path
        namespace = self._modules.get_namespace(path)

        if module.namespaced:
            if namespace in self._modules_namespace_map:
                _logger.error("duplicate namespace %s for the namespaced module %s", namespace, "/".join(path))
            self._modules_namespace_map[namespace] = module

        if not is_root and not hot:
            parent_state = get_nested_state(root_state, path[:-1])
            module_name = path[-1]
            with self._with_commit():
                self._provider.set_property(parent_state, module_name, module.state)

        local = module.context = LocalContext(self, namespace, path)

        for key, mutation in module.iter_mutations():
            self._register_mutation(namespace + key, mutation, local)

        for key, action in module.iter_actions():
            handler, root = action_handler(action)
            self._register_action(key if root else namespace + key, handler, local)

        for key, getter in module.iter_getters():
            self._register_getter(namespace + key, getter, local)

        for key, child in module.iter_children():
            self._install_module(root_state, [*path, key], child, hot)

    def _register_mutation(self, type_: str, handler: Callable[..., Any], local: LocalContext) -> None:
        call = bind_arity(handler)

        def wrapped_mutation_handler(payload: Any) -> None:
            if payload is MISSING:
                call(local.state)
            else:
                call(local.state, payload)

        self._mutations.setdefault(type_, []).append(wrapped_mutation_handler)

    def _register_action(self, type_: str, handler: Callable[..., Any], local: LocalContext) -> None:
        call = bind_arity(handler)

        def wrapped_action_handler(payload: Any) -> asyncio.Future[Any]:
            context = ActionContext(
                dispatch=local.dispatch,
                commit=local.commit,
                getters=local.getters,
                state=local.state,
                root_getters=self.getters,
                root_state=self.state,
            )
            result = call(context) if payload is MISSING else call(context, payload)
            future = _as_future(result)
            if self._diagnostics is not None:
                return asyncio.ensure_future(_report_errors(future, self._diagnostics))
            return future

        self._actions.setdefault(type_, []).append(wrapped_action_handler)

    def _register_getter(self, type_: str, raw_getter: Callable[..., Any], local: LocalContext) -> None:
        if type_ in self._wrapped_getters:
            _logger.error("duplicate getter key: %s", type_)
            return
        call = bind_arity(raw_getter)

        def wrapped_getter(store: Store) -> Any:
            return call(local.state, local.getters, store.state, store.getters)

        self._wrapped_getters[type_] = wrapped_getter

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def _current_projection(self) -> ProjectionHandle:
        if self._projection is None:
            raise StoreUsageError("store has no projection; it was not fully constructed.")
        return self._projection

    def _reset_projection(self, state: Any, hot: bool = False) -> None:
        old_projection = self._projection

        derived = {key: functools.partial(fn, self) for key, fn in self._wrapped_getters.items()}
        projection = self._provider.create_projection(state, derived)
        self._getters = GettersView({key: functools.partial(projection.read, key) for key in derived})
        self._projection = projection

        if self.strict:
            self._enable_strict_mode(projection)

        if old_projection is not None:
            if hot:
                # Readers still bound to the old projection must recompute
                # against the new one instead of serving stale values.
                with self._with_commit():
                    old_projection.clear_state()
            old_projection.deferred_destroy()
            if not _loop_running():
                # Nothing would flush the deferred teardown otherwise.
                self._provider.flush()

    def _enable_strict_mode(self, projection: ProjectionHandle) -> None:
        def check_committing(_value: Any, _old: Any) -> None:
            if self._config.dev_checks and not self._committing:
                raise IllegalStateMutationError("Do not mutate store state outside mutation handlers.")

        projection.watch(lambda: projection.state, check_committing, deep=True, sync=True)
