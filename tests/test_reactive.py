from __future__ import annotations

import logging
from typing import Any

import pytest

from modstore import ReactiveDict, ReactiveError, ReactiveList, ReactiveRuntime, to_plain
from modstore.reactive import Watcher, delete_property, is_observed, observe, set_property


def test_observe_converts_nested_containers() -> None:
    state = observe({"cart": {"products": [{"id": 1}]}, "count": 0})

    assert isinstance(state, ReactiveDict)
    assert isinstance(state.cart, ReactiveDict)
    assert isinstance(state.cart["products"], ReactiveList)
    assert is_observed(state.cart["products"][0])
    assert observe(state) is state
    assert observe(3) == 3


def test_attribute_and_item_access_are_equivalent() -> None:
    state = ReactiveDict({"count": 1})

    state.count = 2
    assert state["count"] == 2
    state["label"] = "x"
    assert state.label == "x"
    del state.label
    assert "label" not in state
    with pytest.raises(AttributeError):
        _ = state.missing


def test_to_plain_returns_untracked_copies() -> None:
    state = observe({"a": {"b": [1, 2]}})

    plain = to_plain(state)
    plain["a"]["b"].append(3)

    assert plain == {"a": {"b": [1, 2, 3]}}
    assert type(plain["a"]) is dict
    assert state.a["b"] == [1, 2]


def test_lazy_watcher_recomputes_only_when_dirty() -> None:
    state = observe({"x": 1, "y": 10})
    calls: list[int] = []

    def compute() -> int:
        calls.append(1)
        return state.x + 1

    cell = Watcher(compute, lazy=True)
    assert cell.read() == 2
    assert cell.read() == 2
    state.y = 11
    assert cell.read() == 2
    assert len(calls) == 1

    state.x = 5
    assert cell.dirty
    assert cell.read() == 6
    assert len(calls) == 2


def test_dependencies_follow_branches() -> None:
    state = observe({"flag": True, "a": 1, "b": 2})
    seen: list[Any] = []
    Watcher(lambda: state.a if state.flag else state.b, lambda new, old: seen.append(new), sync=True)

    state.b = 3
    assert seen == []

    state.flag = False
    state.a = 100
    state.b = 4

    assert seen == [3, 4]


def test_new_keys_and_list_changes_notify_readers() -> None:
    state = observe({"cart": {}, "tags": []})
    sizes: list[tuple[int, int]] = []
    Watcher(
        lambda: (len(state.cart), len(state.tags)),
        lambda new, old: sizes.append(new),
        sync=True,
    )

    state.cart["apple"] = 1
    state.tags.append("fresh")
    state.tags.extend(["a", "b"])
    del state.cart["apple"]

    assert sizes == [(1, 0), (1, 1), (1, 3), (0, 3)]


def test_set_and_delete_property() -> None:
    state = observe({"a": 1})

    set_property(state, "b", {"c": 2})
    delete_property(state, "a")
    delete_property(state, "missing")

    assert to_plain(state) == {"b": {"c": 2}}
    assert isinstance(state.b, ReactiveDict)


def test_queued_watchers_run_once_per_flush() -> None:
    runtime = ReactiveRuntime()
    state = observe({"n": 0})
    seen: list[tuple[int, int]] = []

    runtime.watch(lambda: state.n, lambda new, old: seen.append((new, old)))
    state.n = 1
    state.n = 2
    assert runtime.scheduler.pending

    runtime.flush()

    assert seen == [(2, 0)]
    assert not runtime.scheduler.pending


def test_unwatch_stops_notifications() -> None:
    runtime = ReactiveRuntime()
    state = observe({"n": 0})
    seen: list[int] = []

    unwatch = runtime.watch(lambda: state.n, lambda new, old: seen.append(new), sync=True)
    state.n = 1
    unwatch()
    state.n = 2

    assert seen == [1]


def test_runaway_update_loop_raises() -> None:
    runtime = ReactiveRuntime()
    state = observe({"n": 0})

    def bump(new: int, old: int) -> None:
        state.n = new + 1

    runtime.watch(lambda: state.n, bump)
    state.n = 1

    with pytest.raises(ReactiveError, match="infinite update loop"):
        runtime.flush()
    assert not runtime.scheduler.pending


def test_failing_watcher_callback_is_logged_and_others_still_run(caplog: pytest.LogCaptureFixture) -> None:
    runtime = ReactiveRuntime()
    state = observe({"n": 0})
    seen: list[int] = []

    def broken(new: int, old: int) -> None:
        raise RuntimeError("watcher broke")

    runtime.watch(lambda: state.n, broken)
    runtime.watch(lambda: state.n, lambda new, old: seen.append(new))
    state.n = 1

    with caplog.at_level(logging.ERROR, logger="modstore.reactive.scheduler"):
        runtime.flush()

    assert seen == [1]
    assert "callback failed" in caplog.text


def test_projection_destroy_tears_down_cells_and_watchers() -> None:
    runtime = ReactiveRuntime()
    state = observe({"n": 1})
    projection = runtime.create_projection(state, {"double": lambda: state.n * 2})
    seen: list[int] = []
    projection.watch(lambda: projection.state.n, lambda new, old: seen.append(new), sync=True)

    assert projection.read("double") == 2
    projection.deferred_destroy()
    assert not projection.destroyed

    runtime.flush()
    state.n = 5

    assert projection.destroyed
    assert seen == []
