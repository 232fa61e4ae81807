"""Mutation logger plugin.

Logs every committed mutation together with plain deep copies of the
state before and after it::

    store = Store(state=..., mutations=..., plugins=[create_logger()])
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from modstore.models.records import MutationRecord
from modstore.reactive import to_plain

if TYPE_CHECKING:
    from modstore.store import Store

_logger = logging.getLogger(__name__)


def _accept_all(_mutation: MutationRecord, _before: Any, _after: Any) -> bool:
    return True


def _identity(value: Any) -> Any:
    return value


def create_logger(
    *,
    filter: Callable[[MutationRecord, Any, Any], bool] = _accept_all,  # noqa: A002
    transformer: Callable[[Any], Any] = _identity,
    mutation_transformer: Callable[[MutationRecord], Any] = _identity,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
) -> Callable[[Store], None]:
    """Build a plugin that logs mutations.

    Parameters
    ----------
    filter
        ``filter(mutation, state_before, state_after)``; return ``False``
        to skip logging a mutation.
    transformer
        Applied to both state snapshots before logging (e.g. to pick a
        subtree or redact values).
    mutation_transformer
        Applied to the mutation record before logging.
    logger
        Target logger.  Defaults to ``modstore.plugins.logger``.
    level
        Log level for all three records.
    """
    target = logger or _logger

    def plugin(store: Store) -> None:
        prev_state = to_plain(store.state)

        def on_mutation(mutation: MutationRecord, state: Any) -> None:
            nonlocal prev_state
            next_state = to_plain(state)
            if filter(mutation, prev_state, next_state) and target.isEnabledFor(level):
                formatted_time = datetime.now().strftime("%H:%M:%S.%f")[:-3]
                target.log(level, "mutation %s @ %s", mutation.type, formatted_time)
                target.log(level, "prev state %r", transformer(prev_state))
                target.log(level, "mutation %r", mutation_transformer(mutation))
                target.log(level, "next state %r", transformer(next_state))
            prev_state = next_state

        store.subscribe(on_mutation)

    return plugin
