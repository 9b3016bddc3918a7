"""Exceptions raised by confbind.

Veto signals are control flow, not failures: they are absorbed by the broker
and the mutator and never reach the caller of a public operation.
"""

from __future__ import annotations

from confbind.events import Veto


class ConfbindError(Exception):
    """Base class for confbind failures."""


class SourceLoadError(ConfbindError):
    """A source could not be read. Fatal to a single load or reload."""


class UnsupportedOperationError(ConfbindError, TypeError):
    """A call matched no capability operation and no declared property."""


class ConversionError(ConfbindError, ValueError):
    """A stored string could not be converted to the declared type."""


class VetoSignal(Exception):
    """Raised from before_change to refuse a pending change.

    Raising is equivalent to returning the matching Veto member.
    """

    kind: Veto


class RollbackOperation(VetoSignal):
    """Refuse this key only. Other keys of the same batch stand."""

    kind = Veto.OPERATION


class RollbackBatch(VetoSignal):
    """Refuse this key and undo every key already applied in the batch."""

    kind = Veto.BATCH
