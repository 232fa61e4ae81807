"""The module tree: registration, lookup and namespace resolution."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from modstore.exceptions import StoreUsageError
from modstore.models.options import ModuleOptions, parse_module_options
from modstore.module.module import Module

_logger = logging.getLogger(__name__)

#: Appended after every namespaced module name when building a namespace.
NAMESPACE_SEPARATOR = "/"


class ModuleCollection:
    """Tree of :class:`Module` nodes rooted at the store's own options."""

    def __init__(self, raw_root: ModuleOptions | Mapping[str, Any]) -> None:
        self.root: Module
        self.register([], raw_root, runtime=False)

    def get(self, path: Sequence[str]) -> Module:
        module = self.root
        for depth, key in enumerate(path):
            child = module.get_child(key)
            if child is None:
                raise StoreUsageError(f"module not found: {'/'.join(path[: depth + 1])}")
            module = child
        return module

    def is_registered(self, path: Sequence[str]) -> bool:
        module: Module | None = self.root
        for key in path:
            module = module.get_child(key) if module is not None else None
        return module is not None

    def get_namespace(self, path: Sequence[str]) -> str:
        """Join the names of the namespaced modules along *path*."""
        module = self.root
        namespace = ""
        for key in path:
            module = module.get_child(key)  # type: ignore[assignment]
            if module is None:
                raise StoreUsageError(f"module not found: {'/'.join(path)}")
            if module.namespaced:
                namespace += key + NAMESPACE_SEPARATOR
        return namespace

    def update(self, raw_root: ModuleOptions | Mapping[str, Any]) -> None:
        """Hot-swap handler definitions across the existing tree."""
        self._update([], self.root, parse_module_options(raw_root))

    def _update(self, path: list[str], target: Module, new_module: ModuleOptions) -> None:
        target.update(new_module)
        for key, raw_child in new_module.modules.items():
            child = target.get_child(key)
            if child is None:
                _logger.warning(
                    "trying to add a new module '%s' on hot reloading, manual reload is needed",
                    "/".join([*path, key]),
                )
                return
            self._update([*path, key], child, raw_child)

    def register(
        self,
        path: Sequence[str],
        raw_module: ModuleOptions | Mapping[str, Any],
        *,
        runtime: bool = True,
    ) -> Module:
        raw = parse_module_options(raw_module)
        module = Module(raw, runtime=runtime)
        if not path:
            self.root = module
        else:
            parent = self.get(path[:-1])
            parent.add_child(path[-1], module)

        for key, raw_child in raw.modules.items():
            self.register([*path, key], raw_child, runtime=runtime)
        return module

    def unregister(self, path: Sequence[str]) -> bool:
        """Remove the runtime module at *path*.  Returns whether it was removed."""
        parent = self.get(path[:-1])
        key = path[-1]
        child = parent.get_child(key)
        if child is None:
            _logger.warning("cannot unregister module '%s': not registered", "/".join(path))
            return False
        if not child.runtime:
            _logger.warning("cannot unregister module '%s': it was declared statically", "/".join(path))
            return False
        parent.remove_child(key)
        return True
