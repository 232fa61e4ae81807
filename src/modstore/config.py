"""Store configuration for modstore."""

from __future__ import annotations

import dataclasses
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Store configuration.

    Parameters
    ----------
    strict : bool
        Install the strict-mode monitor, which flags any state change
        made outside a mutation handler.  Has a per-rebuild cost (one
        deep watcher over the whole state tree), so it is meant for
        development.  An explicit ``strict=`` passed to
        :class:`~modstore.store.Store` takes precedence.
    dev_checks : bool
        Enable development assertions: non-string mutation/action types,
        strict-mode violations and direct ``store.state`` assignment
        raise.  With checks off those conditions are ignored.  Defaults
        to ``__debug__``, i.e. off under ``python -O``.
    """

    strict: bool = False
    dev_checks: bool = __debug__

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads ``MODSTORE_STRICT`` and ``MODSTORE_DEV_CHECKS``.  Explicit
        keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "strict" not in overrides:
            config_kwargs["strict"] = _env_bool(env.get("MODSTORE_STRICT"), False)

        if "dev_checks" not in overrides:
            config_kwargs["dev_checks"] = _env_bool(env.get("MODSTORE_DEV_CHECKS"), __debug__)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
