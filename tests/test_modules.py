from __future__ import annotations

import logging
from typing import Any

import pytest

from modstore import ModuleOptions, NamespacedGetters, Store, StoreConfigError


def _inc(state: Any) -> None:
    state.n += 1


def test_nested_namespaces_resolve_from_root_and_locally() -> None:
    store = Store(
        modules={
            "a": {
                "namespaced": True,
                "modules": {"b": {"namespaced": True, "state": {"n": 0}, "mutations": {"inc": _inc}}},
            }
        }
    )

    store.commit("a/b/inc")
    assert store.state.a.b.n == 1

    module = store.module_by_namespace("a/b/")
    assert module is not None and module.context is not None
    module.context.commit("inc")
    assert store.state.a.b.n == 2


def test_unnamespaced_child_inherits_parent_namespace() -> None:
    store = Store(
        modules={
            "a": {
                "namespaced": True,
                "modules": {"c": {"state": {"n": 0}, "mutations": {"inc": _inc}}},
            }
        }
    )

    assert store.has_mutation("a/inc")
    assert not store.has_mutation("a/c/inc")

    store.commit("a/inc")
    assert store.state.a.c.n == 1


def test_state_tree_mirrors_module_tree() -> None:
    store = Store(
        state={"top": True},
        modules={
            "a": {"state": {"x": 1}, "modules": {"b": {"state": {"y": 2}}}},
            "c": {},
        },
    )

    assert store.state == {"top": True, "a": {"x": 1, "b": {"y": 2}}, "c": {}}


def test_root_action_in_namespaced_module_is_registered_unprefixed() -> None:
    def handler(context: Any) -> None:
        return None

    store = Store(modules={"a": {"namespaced": True, "actions": {"global_load": {"handler": handler, "root": True}}}})

    assert store.has_action("global_load")
    assert not store.has_action("a/global_load")


def test_duplicate_getter_keeps_first(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="modstore.store"):
        store = Store(
            getters={"name": lambda state: "root"},
            modules={"a": {"getters": {"name": lambda state: "module"}}},
        )

    assert store.getters.name == "root"
    assert "duplicate getter key: name" in caplog.text


def test_state_factory_gives_each_store_its_own_state() -> None:
    module = {"state": lambda: {"n": 0}, "mutations": {"inc": _inc}}
    first = Store(modules={"m": module})
    second = Store(modules={"m": module})

    first.commit("inc")

    assert first.state.m.n == 1
    assert second.state.m.n == 0


def test_module_options_instances_are_accepted() -> None:
    store = Store(modules={"m": ModuleOptions(namespaced=True, state={"n": 5})})

    assert store.state.m.n == 5
    assert store.module_by_namespace("m/") is not None


@pytest.mark.parametrize(
    "options",
    [
        {"mutations": {"inc": 1}},
        {"state": 3},
        {"getters": {"g": "not callable"}},
        {"actions": {"a": {"root": True}}},
        {"modules": {"m": {"unknown": True}}},
    ],
)
def test_invalid_module_definition_fails_fast(options: dict[str, Any]) -> None:
    with pytest.raises(StoreConfigError):
        Store(**options)


def test_namespaced_getters_are_local_and_forward_to_root() -> None:
    calls: list[int] = []

    def count(state: Any) -> int:
        calls.append(1)
        return len(state["products"])

    store = Store(
        modules={
            "cart": {
                "namespaced": True,
                "state": {"products": ["a", "b"]},
                "getters": {
                    "count": count,
                    "total": lambda state, getters: getters.count * 10,
                },
            }
        }
    )

    assert store.getters["cart/total"] == 20
    assert store.getters["cart/count"] == 2
    assert len(calls) == 1

    module = store.module_by_namespace("cart/")
    assert module is not None and module.context is not None
    local = module.context.getters
    assert isinstance(local, NamespacedGetters)
    assert sorted(local) == ["count", "total"]
    assert local["count"] == 2
    assert len(calls) == 1


def test_getters_receive_root_state_and_root_getters() -> None:
    store = Store(
        state={"base": 2},
        getters={"double_base": lambda state: state.base * 2},
        modules={
            "m": {
                "namespaced": True,
                "state": {"n": 3},
                "getters": {
                    "combined": lambda state, getters, root_state, root_getters: (
                        state.n + root_state.base + root_getters["double_base"]
                    )
                },
            }
        },
    )

    assert store.getters["m/combined"] == 3 + 2 + 4


def test_local_state_is_resolved_on_every_access() -> None:
    store = Store(modules={"m": {"namespaced": True, "state": {"n": 1}}})
    module = store.module_by_namespace("m/")
    assert module is not None and module.context is not None

    store.replace_state({"m": {"n": 42}})

    assert module.context.state.n == 42


def test_duplicate_namespace_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="modstore.store"):
        Store(
            modules={
                "a": {"namespaced": True, "modules": {"x": {"namespaced": False}}},
                "b": {"modules": {"a": {"namespaced": True}}},
            }
        )

    assert "duplicate namespace a/" in caplog.text


def test_namespaced_getters_view_is_reused_until_a_rebuild() -> None:
    store = Store(modules={"cart": {"namespaced": True, "state": {"n": 1}, "getters": {"n": lambda state: state.n}}})
    context = store.module_by_namespace("cart/").context  # type: ignore[union-attr]
    assert context is not None

    view = context.getters
    assert context.getters is view

    store.register_module("cart_extras", {"namespaced": True})
    rebuilt = store.module_by_namespace("cart/").context  # type: ignore[union-attr]
    assert rebuilt is not None
    assert rebuilt.getters is not view
    assert rebuilt.getters["n"] == 1
