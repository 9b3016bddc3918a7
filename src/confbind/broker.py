"""ChangeBroker — before/after notification with veto.

For one key the protocol is: every observer's before_change in registration
order, then the commit, then every observer's after_change in the same
order. A veto from any before_change stops the round: later observers are
not asked, the commit does not happen and no after_change fires.

Observers are duck-typed. Anything with before_change(event) and/or
after_change(event) works; a bare callable is an after-only observer.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from confbind.errors import VetoSignal
from confbind.events import ChangeEvent, Outcome, Veto

logger = logging.getLogger("confbind.broker")

Commit = Callable[[str, "str | None", "str | None"], Any]


class PropertyChangeListener:
    """Convenience base: override the hooks you need.

    before_change may return a Veto member (or raise RollbackOperation /
    RollbackBatch) to refuse the change. after_change is notify-only.
    """

    def before_change(self, event: ChangeEvent) -> Veto | None:
        return None

    def after_change(self, event: ChangeEvent) -> None:
        pass


class ChangeBroker:
    """Ordered observer registry driving the per-key notification round."""

    def __init__(self, source: Any = None) -> None:
        self.source = source
        self._registrations: list[tuple[Any, str | None]] = []

    def register(self, observer: Any, key: str | None = None) -> None:
        """Append observer. Registering twice means being notified twice.

        With key set, the observer only hears about that property.
        """
        self._registrations.append((observer, key))

    def unregister(self, observer: Any) -> None:
        """Remove the first registration of this exact object, if any."""
        for index, (registered, _) in enumerate(self._registrations):
            if registered is observer:
                del self._registrations[index]
                return

    @property
    def observers(self) -> list[Any]:
        return [observer for observer, _ in self._registrations]

    def __len__(self) -> int:
        return len(self._registrations)

    def apply(self, key: str, old_value: str | None, new_value: str | None,
              commit: Commit) -> Outcome:
        """Run one notification round for key and commit unless vetoed."""
        interested = [obs for obs, only in self._registrations if only is None or only == key]
        event = ChangeEvent(self.source, key, old_value, new_value)

        for observer in interested:
            verdict = _ask(observer, event)
            if verdict is Veto.OPERATION:
                logger.debug("Change of %r vetoed by %r", key, observer)
                return Outcome.ROLLED_BACK_OPERATION
            if verdict is Veto.BATCH:
                logger.debug("Batch vetoed at %r by %r", key, observer)
                return Outcome.ROLLED_BACK_BATCH

        commit(key, old_value, new_value)

        for observer in interested:
            _tell(observer, event)
        return Outcome.COMMITTED


def _ask(observer: Any, event: ChangeEvent) -> Veto | None:
    hook = getattr(observer, "before_change", None)
    if hook is None:
        return None
    try:
        verdict = hook(event)
    except VetoSignal as signal:
        return signal.kind
    return verdict if isinstance(verdict, Veto) else None


def _tell(observer: Any, event: ChangeEvent) -> None:
    hook = getattr(observer, "after_change", None)
    if hook is None and callable(observer):
        hook = observer
    if hook is not None:
        hook(event)
