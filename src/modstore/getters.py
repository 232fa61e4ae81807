"""Read-only getter views.

Neither view computes anything: every read forwards to a memoized cell
of the current projection.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any


class _ReadOnlyGetters(Mapping[str, Any]):
    """Mapping with attribute access that rejects writes."""

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"getters are read-only (tried to set {name!r})")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"getters are read-only (tried to delete {name!r})")


class GettersView(_ReadOnlyGetters):
    """The store's public ``getters``: one slot per fully-qualified key."""

    __slots__ = ("_slots",)

    def __init__(self, slots: Mapping[str, Callable[[], Any]]) -> None:
        object.__setattr__(self, "_slots", dict(slots))

    def __getitem__(self, key: str) -> Any:
        return self._slots[key]()

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, key: object) -> bool:
        return key in self._slots

    def __repr__(self) -> str:
        return f"GettersView({list(self._slots)})"


class NamespacedGetters(_ReadOnlyGetters):
    """Getters of one namespace, keyed without the namespace prefix.

    The key set is captured at construction; reads delegate to the root
    getters so cached values are shared.
    """

    __slots__ = ("_root", "_namespace", "_keys")

    def __init__(self, root: Mapping[str, Any], namespace: str) -> None:
        split = len(namespace)
        keys = [key[split:] for key in root if key.startswith(namespace)]
        object.__setattr__(self, "_root", root)
        object.__setattr__(self, "_namespace", namespace)
        object.__setattr__(self, "_keys", keys)

    def __getitem__(self, key: str) -> Any:
        if key not in self._keys:
            raise KeyError(key)
        return self._root[self._namespace + key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __repr__(self) -> str:
        return f"NamespacedGetters({self._namespace!r}, {self._keys})"
