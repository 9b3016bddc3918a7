"""Change records and the signals observers answer with."""

from __future__ import annotations

import enum
from typing import Any, Mapping, NamedTuple


class Veto(enum.Enum):
    """An observer's refusal of a pending change.

    Return one of these from before_change, or raise the matching
    RollbackOperation / RollbackBatch.
    """

    OPERATION = "operation"
    BATCH = "batch"


class Outcome(enum.Enum):
    """Terminal state of one key-change attempt."""

    COMMITTED = "committed"
    ROLLED_BACK_OPERATION = "rolled_back_operation"
    ROLLED_BACK_BATCH = "rolled_back_batch"


class ChangeEvent(NamedTuple):
    """One key transition. None stands for an absent value."""

    source: Any
    key: str
    old_value: str | None
    new_value: str | None


class ReloadEvent(NamedTuple):
    """Delivered to reload listeners after a successful reload."""

    source: Any
    old_properties: Mapping[str, str]
    new_properties: Mapping[str, str]

    def changed_keys(self) -> list[str]:
        """Keys whose value differs between the two snapshots."""
        old, new = self.old_properties, self.new_properties
        keys = [k for k in new if old.get(k) != new[k]]
        keys.extend(k for k in old if k not in new)
        return keys
