from __future__ import annotations

import logging
from typing import Any

import pytest

from modstore import (
    ActionContext,
    Store,
    StoreConsumer,
    StoreUsageError,
    create_namespaced_helpers,
    current_store,
    map_actions,
    map_getters,
    map_mutations,
    map_state,
    provide_store,
)


def _add(state: Any, product: str) -> None:
    state["products"].append(product)


async def _checkout(context: ActionContext, note: str) -> str:
    context.commit("add", note)
    return f"checked out {len(context.state['products'])}"


def _shop() -> Store:
    return Store(
        state={"count": 3},
        mutations={"bump": lambda state, n=1: state.update(count=state.count + n)},
        getters={"doubled": lambda state: state.count * 2},
        modules={
            "cart": {
                "namespaced": True,
                "state": {"products": ["apple"]},
                "mutations": {"add": _add},
                "actions": {"checkout": _checkout},
                "getters": {"size": lambda state: len(state["products"])},
            }
        },
    )


def test_map_state_with_keys_and_selectors() -> None:
    store = _shop()

    mapped = map_state(["count"])
    selected = map_state({"plus_one": lambda state: state.count + 1, "twice": lambda state, getters: getters.doubled})

    assert mapped["count"](store=store) == 3
    assert selected["plus_one"](store=store) == 4
    assert selected["twice"](store=store) == 6


def test_namespaced_map_state_reads_local_state() -> None:
    store = _shop()

    mapped = map_state("cart", {"products": "products", "size": lambda state, getters: getters.size})

    assert mapped["products"](store=store) == ["apple"]
    assert mapped["size"](store=store) == 1


def test_map_getters() -> None:
    store = _shop()

    root = map_getters(["doubled"])
    cart = map_getters("cart/", {"cart_size": "size"})

    assert root["doubled"](store=store) == 6
    assert cart["cart_size"](store=store) == 1


def test_map_getters_logs_unknown_getter(caplog: pytest.LogCaptureFixture) -> None:
    store = _shop()

    with caplog.at_level(logging.ERROR, logger="modstore.helpers"):
        assert map_getters(["nope"])["nope"](store=store) is None

    assert "unknown getter: nope" in caplog.text


def test_map_mutations_commits_with_arguments() -> None:
    store = _shop()

    root = map_mutations({"bump": "bump", "bump_twice": lambda commit, n: commit("bump", n * 2)})
    cart = map_mutations("cart", ["add"])

    root["bump"](2, store=store)
    root["bump_twice"](1, store=store)
    cart["add"]("pear", store=store)

    assert store.state.count == 7
    assert store.state.cart["products"] == ["apple", "pear"]


@pytest.mark.asyncio
async def test_map_actions_dispatches_within_namespace() -> None:
    store = _shop()

    cart = map_actions("cart", ["checkout"])
    result = await cart["checkout"]("pear", store=store)

    assert result == "checked out 2"


def test_unknown_namespace_is_logged_and_returns_none(caplog: pytest.LogCaptureFixture) -> None:
    store = _shop()

    with caplog.at_level(logging.ERROR, logger="modstore.helpers"):
        assert map_state("ghost", ["x"])["x"](store=store) is None
        assert map_mutations("ghost", ["x"])["x"](store=store) is None

    assert "module namespace not found in map_state(): ghost/" in caplog.text
    assert "module namespace not found in map_mutations(): ghost/" in caplog.text


def test_namespace_without_map_is_rejected() -> None:
    with pytest.raises(TypeError):
        map_state("cart")


def test_create_namespaced_helpers_binds_the_namespace() -> None:
    store = _shop()
    helpers = create_namespaced_helpers("cart")

    helpers.map_mutations(["add"])["add"]("plum", store=store)

    assert helpers.map_state(["products"])["products"](store=store) == ["apple", "plum"]
    assert helpers.map_getters(["size"])["size"](store=store) == 2


def test_helpers_use_the_ambient_store() -> None:
    store = _shop()
    mapped = map_state(["count"])

    with provide_store(store):
        assert current_store() is store
        assert mapped["count"]() == 3

    with pytest.raises(StoreUsageError):
        mapped["count"]()


def test_store_consumer_resolution_order() -> None:
    first = _shop()
    second = _shop()

    class Panel(StoreConsumer):
        pass

    direct = Panel(store=first)
    from_factory = Panel(store=lambda: second)
    child = Panel(parent=direct)
    orphan = Panel()

    with provide_store(second):
        ambient = Panel()

    assert direct.store is first
    assert from_factory.store is second
    assert child.store is first
    assert orphan.store is None
    assert ambient.store is second
