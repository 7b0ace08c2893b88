"""Tentative apply / commit / rollback for server-confirmed mutations."""

from __future__ import annotations

from typing import Callable, TypeVar

S = TypeVar("S")
R = TypeVar("R")


def optimistic_update(
    apply: Callable[[], S],
    commit: Callable[[], R],
    rollback: Callable[[S], None],
) -> R:
    """Apply a local change, confirm it remotely and undo it if that fails.

    ``apply`` returns whatever ``rollback`` needs to restore the prior state.
    The commit error is re-raised after the rollback ran.
    """

    snapshot = apply()
    try:
        return commit()
    except Exception:
        rollback(snapshot)
        raise


__all__ = ["optimistic_update"]
