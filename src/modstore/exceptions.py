"""Custom exception hierarchy for modstore."""

from __future__ import annotations


class StoreError(Exception):
    """Base exception for all modstore errors."""


class StoreConfigError(StoreError):
    """Invalid store construction options or module definition."""


class StoreUsageError(StoreError):
    """Store API called with invalid arguments or in an invalid context.

    Covers bad module paths, attempts to (un)register the root module,
    non-callable watch getters, direct assignment to ``store.state`` and
    dispatching outside a running event loop.
    """


class InvalidTypeArgumentError(StoreUsageError, TypeError):
    """A mutation or action type was not a string."""


class IllegalStateMutationError(StoreError):
    """State changed outside a mutation handler while strict mode is on.

    Raised by the strict-mode monitor after the offending write has
    already been applied. It detects illegal writes, it does not
    prevent them.
    """


class ReactiveError(StoreError):
    """Reactive runtime failure (e.g. a watcher re-scheduling itself forever)."""
