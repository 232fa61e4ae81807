from __future__ import annotations

import pytest

from modstore import ModuleOptions, StoreConfigError, StoreUsageError
from modstore.models import ActionOptions
from modstore.models.options import action_handler
from modstore.module import ModuleCollection


def _noop(state: object) -> None:
    return None


def _collection() -> ModuleCollection:
    return ModuleCollection(
        {
            "modules": {
                "a": {
                    "namespaced": True,
                    "modules": {
                        "b": {"modules": {"c": {"namespaced": True}}},
                    },
                },
            }
        }
    )


def test_namespace_joins_only_namespaced_modules() -> None:
    collection = _collection()

    assert collection.get_namespace([]) == ""
    assert collection.get_namespace(["a"]) == "a/"
    assert collection.get_namespace(["a", "b"]) == "a/"
    assert collection.get_namespace(["a", "b", "c"]) == "a/c/"


def test_get_and_is_registered() -> None:
    collection = _collection()

    assert collection.get(["a", "b"]).namespaced is False
    assert collection.is_registered(["a", "b", "c"])
    assert not collection.is_registered(["a", "x", "c"])
    with pytest.raises(StoreUsageError, match="module not found: a/x"):
        collection.get(["a", "x"])


def test_only_runtime_modules_can_be_unregistered() -> None:
    collection = _collection()
    collection.register(["a", "dyn"], {"state": {"n": 1}})

    assert collection.get(["a", "dyn"]).runtime is True
    assert collection.unregister(["a", "b"]) is False
    assert collection.unregister(["a", "dyn"]) is True
    assert not collection.is_registered(["a", "dyn"])


def test_update_replaces_only_declared_handler_groups() -> None:
    collection = ModuleCollection({"mutations": {"m": _noop}, "getters": {"g": _noop}})

    collection.update({"mutations": {"m2": _noop}})

    root = collection.root
    assert list(root.raw.mutations) == ["m2"]
    assert list(root.raw.getters) == ["g"]


def test_state_factory_is_called_per_module() -> None:
    collection = ModuleCollection({"state": lambda: {"fresh": True}})

    assert collection.root.state == {"fresh": True}


def test_invalid_definition_raises_config_error() -> None:
    with pytest.raises(StoreConfigError, match="Invalid module definition"):
        ModuleCollection({"namespaced": "sometimes"})


def test_action_declaration_styles() -> None:
    options = ModuleOptions(actions={"plain": _noop, "global": {"handler": _noop, "root": True}})

    assert action_handler(options.actions["plain"]) == (_noop, False)
    assert isinstance(options.actions["global"], ActionOptions)
    assert action_handler(options.actions["global"]) == (_noop, True)
