"""Records handed to mutation and action subscribers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class MutationRecord(BaseModel):
    """A committed mutation: its fully-qualified type and payload."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: str
    payload: Any = None


class ActionRecord(BaseModel):
    """A dispatched action, reported before any handler runs."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: str
    payload: Any = None
