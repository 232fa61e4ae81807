"""Raw module definitions.

Application authors may pass plain dicts; they are validated into
:class:`ModuleOptions` at the store boundary so that malformed
definitions fail at construction/registration time rather than on first
commit.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modstore.exceptions import StoreConfigError


class ActionOptions(BaseModel):
    """Object-style action declaration: ``{"handler": fn, "root": True}``.

    ``root=True`` registers the action under its bare key, outside the
    declaring module's namespace.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    handler: Callable[..., Any]
    root: bool = False


class ModuleOptions(BaseModel):
    """One module of the tree: state, handlers and child modules.

    Dict ordering is preserved, which fixes handler registration order.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    state: Any = None
    namespaced: bool = False
    mutations: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    actions: dict[str, Callable[..., Any] | ActionOptions] = Field(default_factory=dict)
    getters: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    modules: dict[str, ModuleOptions] = Field(default_factory=dict)

    @field_validator("state")
    @classmethod
    def _check_state(cls, value: Any) -> Any:
        if value is None or callable(value) or isinstance(value, Mapping):
            return value
        raise ValueError(f"state must be a mapping or a zero-argument factory, got {type(value).__name__}")


def parse_module_options(raw: ModuleOptions | Mapping[str, Any]) -> ModuleOptions:
    """Validate *raw* into :class:`ModuleOptions`, raising :class:`StoreConfigError`."""
    if isinstance(raw, ModuleOptions):
        return raw
    try:
        return ModuleOptions.model_validate(raw)
    except ValidationError as exc:
        raise StoreConfigError(f"Invalid module definition: {exc}") from exc


def action_handler(action: Callable[..., Any] | ActionOptions) -> tuple[Callable[..., Any], bool]:
    """Return ``(handler, root)`` for either action declaration style."""
    if isinstance(action, ActionOptions):
        return action.handler, action.root
    return action, False
