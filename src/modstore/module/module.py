"""A node of the module tree."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from modstore.models.options import ActionOptions, ModuleOptions

if TYPE_CHECKING:
    from modstore._local import LocalContext


class Module:
    """Wraps a validated raw module plus its children and runtime state.

    ``runtime`` marks modules added through ``Store.register_module``;
    only those can be unregistered later.
    """

    def __init__(self, raw: ModuleOptions, *, runtime: bool) -> None:
        self.runtime = runtime
        self._raw = raw
        self._children: dict[str, Module] = {}
        raw_state = raw.state
        self.state: Any = (raw_state() if callable(raw_state) else raw_state) or {}
        self.context: LocalContext | None = None

    @property
    def raw(self) -> ModuleOptions:
        return self._raw

    @property
    def namespaced(self) -> bool:
        return self._raw.namespaced

    def add_child(self, key: str, module: Module) -> None:
        self._children[key] = module

    def remove_child(self, key: str) -> None:
        self._children.pop(key, None)

    def get_child(self, key: str) -> Module | None:
        return self._children.get(key)

    def update(self, raw: ModuleOptions) -> None:
        """Swap handlers in place; state and children are kept.

        ``namespaced`` always follows the new definition, handler groups
        are replaced only when the new definition declares them.
        """
        changes: dict[str, Any] = {"namespaced": raw.namespaced}
        for field in ("actions", "mutations", "getters"):
            if field in raw.model_fields_set:
                changes[field] = getattr(raw, field)
        self._raw = self._raw.model_copy(update=changes)

    def iter_children(self) -> Iterator[tuple[str, Module]]:
        yield from list(self._children.items())

    def iter_mutations(self) -> Iterator[tuple[str, Callable[..., Any]]]:
        yield from self._raw.mutations.items()

    def iter_actions(self) -> Iterator[tuple[str, Callable[..., Any] | ActionOptions]]:
        yield from self._raw.actions.items()

    def iter_getters(self) -> Iterator[tuple[str, Callable[..., Any]]]:
        yield from self._raw.getters.items()

    def __repr__(self) -> str:
        return f"Module(namespaced={self.namespaced}, runtime={self.runtime}, children={list(self._children)})"
