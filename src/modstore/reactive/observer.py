"""Observed state containers.

Plain ``dict`` and ``list`` values placed in the state tree are converted
to :class:`ReactiveDict` / :class:`ReactiveList`.  Reads record
dependencies on the watcher currently evaluating, writes notify them.

Tracking granularity:

* ``ReactiveDict`` keeps one :class:`Dep` per key (value reads/writes) and
  one container-level dep (key added/removed, iteration, ``len``).
* ``ReactiveList`` keeps a single container-level dep.
* Reading a container value through its parent also depends on the
  child's container-level dep, so adding a key to ``state.cart`` notifies
  whoever read ``state.cart``.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Mapping, MutableMapping, MutableSequence
from typing import Any

from modstore.reactive.dep import Dep


def _container_dep(value: Any) -> Dep | None:
    if isinstance(value, (ReactiveDict, ReactiveList)):
        return value._dep
    return None


def _depend_child(value: Any) -> None:
    child = _container_dep(value)
    if child is not None:
        child.depend()


def observe(value: Any) -> Any:
    """Return *value* as an observed container.

    Dicts and lists are converted recursively; already observed
    containers and every other value are returned unchanged.
    """
    if isinstance(value, (ReactiveDict, ReactiveList)):
        return value
    if isinstance(value, dict):
        return ReactiveDict(value)
    if isinstance(value, list):
        return ReactiveList(value)
    return value


def is_observed(value: Any) -> bool:
    return isinstance(value, (ReactiveDict, ReactiveList))


class ReactiveDict(MutableMapping[Any, Any]):
    """Dependency-tracked mapping.

    String keys are also reachable as attributes (``state.count``), unless
    the key collides with a mapping method name such as ``items`` or
    ``get``; use item access for those.
    """

    __slots__ = ("_data", "_deps", "_dep")

    def __init__(self, data: Mapping[Any, Any] | None = None) -> None:
        object.__setattr__(self, "_data", {})
        object.__setattr__(self, "_deps", {})
        object.__setattr__(self, "_dep", Dep())
        if data:
            for key, value in data.items():
                self._data[key] = observe(value)

    def _key_dep(self, key: Any) -> Dep:
        dep = self._deps.get(key)
        if dep is None:
            dep = Dep()
            self._deps[key] = dep
        return dep

    def __getitem__(self, key: Any) -> Any:
        try:
            value = self._data[key]
        except KeyError:
            # A missing key becomes visible through the container dep.
            self._dep.depend()
            raise
        self._key_dep(key).depend()
        _depend_child(value)
        return value

    def __setitem__(self, key: Any, value: Any) -> None:
        value = observe(value)
        if key in self._data:
            if self._data[key] is value:
                return
            self._data[key] = value
            self._key_dep(key).notify()
            return
        self._data[key] = value
        self._dep.notify()

    def __delitem__(self, key: Any) -> None:
        del self._data[key]
        dep = self._deps.pop(key, None)
        if dep is not None:
            dep.notify()
        self._dep.notify()

    def __iter__(self) -> Iterator[Any]:
        self._dep.depend()
        return iter(self._data)

    def __len__(self) -> int:
        self._dep.depend()
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        if key in self._data:
            self._key_dep(key).depend()
            return True
        self._dep.depend()
        return False

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
        else:
            self[name] = value

    def __delattr__(self, name: str) -> None:
        if name.startswith("_"):
            object.__delattr__(self, name)
            return
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __deepcopy__(self, memo: dict[int, Any]) -> ReactiveDict:
        return ReactiveDict(copy.deepcopy(self._data, memo))

    def __repr__(self) -> str:
        return f"ReactiveDict({self._data!r})"


class ReactiveList(MutableSequence[Any]):
    """Dependency-tracked list.  Any structural or item change notifies."""

    __slots__ = ("_data", "_dep")

    def __init__(self, items: Iterable[Any] = ()) -> None:
        self._data: list[Any] = [observe(item) for item in items]
        self._dep = Dep()

    def __getitem__(self, index: Any) -> Any:
        self._dep.depend()
        if isinstance(index, slice):
            return list(self._data[index])
        value = self._data[index]
        _depend_child(value)
        return value

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            self._data[index] = [observe(item) for item in value]
        else:
            self._data[index] = observe(value)
        self._dep.notify()

    def __delitem__(self, index: Any) -> None:
        del self._data[index]
        self._dep.notify()

    def __len__(self) -> int:
        self._dep.depend()
        return len(self._data)

    def __iter__(self) -> Iterator[Any]:
        self._dep.depend()
        for item in self._data:
            _depend_child(item)
        return iter(self._data)

    def __contains__(self, value: object) -> bool:
        self._dep.depend()
        return value in self._data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReactiveList):
            other = other._data
        if not isinstance(other, (list, tuple)):
            return NotImplemented
        self._dep.depend()
        return self._data == list(other)

    __hash__ = None  # type: ignore[assignment]

    def insert(self, index: int, value: Any) -> None:
        self._data.insert(index, observe(value))
        self._dep.notify()

    def append(self, value: Any) -> None:
        self._data.append(observe(value))
        self._dep.notify()

    def extend(self, values: Iterable[Any]) -> None:
        self._data.extend(observe(item) for item in values)
        self._dep.notify()

    def reverse(self) -> None:
        self._data.reverse()
        self._dep.notify()

    def sort(self, *, key: Any = None, reverse: bool = False) -> None:
        self._data.sort(key=key, reverse=reverse)
        self._dep.notify()

    def __deepcopy__(self, memo: dict[int, Any]) -> ReactiveList:
        return ReactiveList(copy.deepcopy(self._data, memo))

    def __repr__(self) -> str:
        return f"ReactiveList({self._data!r})"


def to_plain(value: Any) -> Any:
    """Deep-copy *value* into plain dicts and lists without tracking reads."""
    if isinstance(value, ReactiveDict):
        return {key: to_plain(item) for key, item in value._data.items()}
    if isinstance(value, ReactiveList):
        return [to_plain(item) for item in value._data]
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    return copy.deepcopy(value)


def traverse(value: Any, seen: set[int] | None = None) -> None:
    """Read every nested value so the current watcher depends on all of them."""
    if seen is None:
        seen = set()
    if not isinstance(value, (ReactiveDict, ReactiveList)):
        return
    if id(value) in seen:
        return
    seen.add(id(value))
    if isinstance(value, ReactiveDict):
        for key in value:
            traverse(value[key], seen)
    else:
        for item in value:
            traverse(item, seen)


def set_property(target: Any, key: Any, value: Any) -> None:
    """Set ``target[key]`` so that the change is observed."""
    if isinstance(target, (MutableMapping, MutableSequence)):
        target[key] = value
        return
    setattr(target, key, value)


def delete_property(target: Any, key: Any) -> None:
    """Delete ``target[key]``, notifying watchers.  Missing keys are ignored."""
    if isinstance(target, (MutableMapping, MutableSequence)):
        try:
            del target[key]
        except (KeyError, IndexError):
            return
        return
    if hasattr(target, key):
        delattr(target, key)
