"""Shared helpers for the store internals."""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Final

from modstore.exceptions import InvalidTypeArgumentError, StoreUsageError


class _Missing:
    """Sentinel for "no payload given", distinct from an explicit ``None``."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


def unify_object_style(
    type_: Any,
    payload: Any = MISSING,
    options: Any = None,
    *,
    checks: bool = True,
) -> tuple[str, Any, Mapping[str, Any] | None]:
    """Normalize ``commit(type, payload, options)`` and ``commit({"type": ...}, options)``.

    In object style the whole object becomes the payload and the second
    positional argument becomes the options.
    """
    object_type = None
    if isinstance(type_, Mapping):
        object_type = type_.get("type")
    elif not isinstance(type_, str):
        object_type = getattr(type_, "type", None)

    if object_type:
        options = None if payload is MISSING else payload
        payload = type_
        type_ = object_type

    if checks and not isinstance(type_, str):
        raise InvalidTypeArgumentError(f"Expects string as the type, but found {type(type_).__name__}.")

    return type_, payload, options


def payload_or_none(payload: Any) -> Any:
    return None if payload is MISSING else payload


def get_nested_state(state: Any, path: Sequence[str]) -> Any:
    """Walk *path* from *state*; the empty path yields *state* itself."""
    for key in path:
        state = state[key]
    return state


def normalize_path(path: str | Sequence[str]) -> list[str]:
    """Accept ``"a"`` or ``["a", "b"]``; anything else is a usage error."""
    if isinstance(path, str):
        return [path]
    if isinstance(path, Sequence) and all(isinstance(key, str) for key in path):
        return list(path)
    raise StoreUsageError("module path must be a string or a sequence of strings.")


def _positional_arity(fn: Callable[..., Any]) -> int | None:
    """Number of positional parameters *fn* accepts, or ``None`` if unbounded/unknown."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    count = 0
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def bind_arity(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap *fn* so that surplus trailing positional arguments are dropped.

    Lets ``lambda state: state.count * 2`` serve as a getter even though
    getters are called with four arguments.
    """
    arity = _positional_arity(fn)
    if arity is None:
        return fn

    def call(*args: Any) -> Any:
        return fn(*args[:arity])

    return call
