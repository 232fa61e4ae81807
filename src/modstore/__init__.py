"""modstore - Hierarchical, namespaced state store with cached derived values."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("modstore")
except PackageNotFoundError:
    __version__ = "0+local"
from modstore._local import ActionContext, LocalContext
from modstore._utils import MISSING
from modstore.binding import StoreConsumer, current_store, provide_store
from modstore.config import StoreConfig
from modstore.exceptions import (
    IllegalStateMutationError,
    InvalidTypeArgumentError,
    ReactiveError,
    StoreConfigError,
    StoreError,
    StoreUsageError,
)
from modstore.getters import GettersView, NamespacedGetters
from modstore.helpers import (
    create_namespaced_helpers,
    map_actions,
    map_getters,
    map_mutations,
    map_state,
)
from modstore.models import ActionOptions, ActionRecord, ModuleOptions, MutationRecord
from modstore.plugins import create_logger
from modstore.reactive import ReactiveDict, ReactiveList, ReactiveProvider, ReactiveRuntime, to_plain
from modstore.store import DiagnosticsHook, Store

__all__ = [
    "__version__",
    "MISSING",
    "ActionContext",
    "ActionOptions",
    "ActionRecord",
    "DiagnosticsHook",
    "GettersView",
    "IllegalStateMutationError",
    "InvalidTypeArgumentError",
    "LocalContext",
    "ModuleOptions",
    "MutationRecord",
    "NamespacedGetters",
    "ReactiveDict",
    "ReactiveError",
    "ReactiveList",
    "ReactiveProvider",
    "ReactiveRuntime",
    "Store",
    "StoreConfig",
    "StoreConfigError",
    "StoreConsumer",
    "StoreError",
    "StoreUsageError",
    "create_logger",
    "create_namespaced_helpers",
    "current_store",
    "map_actions",
    "map_getters",
    "map_mutations",
    "map_state",
    "provide_store",
    "to_plain",
]
