from __future__ import annotations

from typing import Any

import pytest

from modstore import IllegalStateMutationError, Store, StoreConfig


def _set_count(state: Any, value: int) -> None:
    state.count = value


def _strict_store(**kwargs: Any) -> Store:
    kwargs.setdefault("config", StoreConfig(strict=True, dev_checks=True))
    return Store(
        state={"count": 0},
        mutations={"set_count": _set_count},
        modules={"m": {"namespaced": True, "state": {"n": 0}}},
        **kwargs,
    )


def test_direct_write_raises_in_strict_mode() -> None:
    store = _strict_store()

    with pytest.raises(IllegalStateMutationError):
        store.state.count = 5

    # The write itself is not rolled back.
    assert store.state.count == 5


def test_direct_write_in_nested_module_raises() -> None:
    store = _strict_store()

    with pytest.raises(IllegalStateMutationError):
        store.state.m.n = 1


def test_adding_a_key_outside_a_mutation_raises() -> None:
    store = _strict_store()

    with pytest.raises(IllegalStateMutationError):
        store.state.m["extra"] = True


def test_writes_through_commit_are_allowed() -> None:
    store = _strict_store()

    store.commit("set_count", 3)

    assert store.state.count == 3


def test_replace_state_and_register_module_are_allowed() -> None:
    store = _strict_store()

    store.replace_state({"count": 9, "m": {"n": 1}})
    store.register_module("extra", {"state": {"ready": True}})

    assert store.state.count == 9
    assert store.state.extra.ready is True


def test_strict_argument_overrides_config() -> None:
    store = _strict_store(strict=False)

    store.state.count = 5

    assert store.strict is False
    assert store.state.count == 5


def test_strict_mode_is_silent_without_dev_checks() -> None:
    store = _strict_store(config=StoreConfig(strict=True, dev_checks=False))

    store.state.count = 5

    assert store.state.count == 5


def test_cached_getters_still_see_a_rejected_write() -> None:
    store = _strict_store()
    store.register_module("calc", {"getters": {"doubled": lambda state, getters, root_state: root_state.count * 2}})
    assert store.getters.doubled == 0

    with pytest.raises(IllegalStateMutationError):
        store.state.count = 5

    assert store.getters.doubled == 10
