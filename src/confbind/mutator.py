"""BatchMutator — logical operations turned into per-key change rounds.

Single-key operations (set_one, remove_one) absorb a veto by leaving the old
value in place. Batch operations (clear_all, merge, update) additionally
honour batch vetoes: the batch stops at the vetoed key and the store is put
back, silently and in its original key order, to the state it had before
the batch began.

Every public operation holds the instance lock from start to finish,
observer callbacks included. Observers must not call back into a mutating
operation of the same configuration.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable, Iterable, NamedTuple, TypeVar

from confbind.broker import ChangeBroker
from confbind.events import Outcome
from confbind.lookup import to_text
from confbind.store import PropertyStore, Snapshot

logger = logging.getLogger("confbind.mutator")

F = TypeVar("F", bound=Callable[..., Any])


def exclusive(fn: F) -> F:
    """Decorator: run the method with the owner's lock held."""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        with self.lock:
            return fn(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class BatchResult(NamedTuple):
    """What a batch operation did."""

    committed: list[str]
    vetoed: list[str]
    rolled_back: bool
    properties: dict[str, str]


class BatchMutator:
    """Applies set / remove / clear / merge / update onto a store via a broker."""

    def __init__(self, store: PropertyStore, broker: ChangeBroker) -> None:
        self.store = store
        self.broker = broker
        self.lock = threading.RLock()

    # --- Single key ---

    @exclusive
    def set_one(self, key: str, value: str | None) -> str | None:
        """Set key. Returns the value in effect afterwards.

        A None value removes the key.
        """
        if value is None:
            return self.remove_one(key)
        old = self.store.get(key)
        outcome = self._attempt(key, old, value)
        return value if outcome is Outcome.COMMITTED else old

    @exclusive
    def remove_one(self, key: str) -> str | None:
        """Remove key. Returns the value in effect afterwards (None if removed)."""
        old = self.store.get(key)
        outcome = self._attempt(key, old, None)
        return None if outcome is Outcome.COMMITTED else old

    # --- Batches ---

    @exclusive
    def clear_all(self) -> dict[str, str]:
        """Remove every key. Returns the mapping left in the store."""
        changes = [(key, None) for key in self.store.keys()]
        return self._run_batch(changes, "clear").properties

    @exclusive
    def merge(self, snapshot: Snapshot) -> BatchResult:
        """Make the store equal to snapshot, changing only differing keys.

        Keys are visited in snapshot order, then keys the snapshot lacks.
        """
        current = self.store.snapshot()
        changes: list[tuple[str, str | None]] = [
            (key, value) for key, value in snapshot.items() if current.get(key) != value
        ]
        changes.extend((key, None) for key in current if key not in snapshot)
        return self._run_batch(changes, "merge")

    @exclusive
    def update(self, pairs: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> BatchResult:
        """Set several keys as one batch. Keys not mentioned are left alone."""
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        changes = [(str(key), to_text(value)) for key, value in items if value is not None]
        return self._run_batch(changes, "update")

    # --- Internals ---

    def _attempt(self, key: str, old: str | None, new: str | None) -> Outcome:
        if old == new:
            return Outcome.COMMITTED
        commit = self._delete if new is None else self._put
        return self.broker.apply(key, old, new, commit)

    def _run_batch(self, changes: list[tuple[str, str | None]], label: str) -> BatchResult:
        before = self.store.snapshot()
        applied: list[str] = []
        vetoed: list[str] = []
        rolled_back = False

        for key, new in changes:
            old = self.store.get(key)
            if old == new:
                continue
            outcome = self._attempt(key, old, new)
            if outcome is Outcome.COMMITTED:
                applied.append(key)
            elif outcome is Outcome.ROLLED_BACK_OPERATION:
                vetoed.append(key)
            else:
                vetoed.append(key)
                # Compensating write bypasses the broker.
                self.store.restore(before)
                logger.debug("%s vetoed at %r: restored %d keys", label, key, len(applied))
                applied = []
                rolled_back = True
                break

        return BatchResult(
            committed=applied,
            vetoed=vetoed,
            rolled_back=rolled_back,
            properties=dict(self.store.items()),
        )

    def _put(self, key: str, old: str | None, new: str) -> None:
        self.store.put(key, new)

    def _delete(self, key: str, old: str | None, new: None) -> None:
        self.store.delete(key)
