"""ReloadCoordinator — re-read every source and merge the difference.

The fresh snapshot is built completely before anything is merged, so a
failing source leaves the store exactly as it was.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping, Sequence

from confbind.errors import SourceLoadError
from confbind.events import ReloadEvent
from confbind.mutator import BatchMutator, BatchResult, exclusive
from confbind.sources import Source
from confbind.store import Snapshot

logger = logging.getLogger("confbind.reload")


class ReloadCoordinator:
    """Builds snapshots from defaults plus sources and feeds them to merge."""

    def __init__(
        self,
        mutator: BatchMutator,
        sources: Sequence[Source] = (),
        defaults: Mapping[str, str] | None = None,
        source: Any = None,
    ) -> None:
        self.mutator = mutator
        self.sources = list(sources)
        self.defaults = dict(defaults or {})
        self.source = source
        self._listeners: list[Callable[[ReloadEvent], None]] = []

    @property
    def lock(self):
        return self.mutator.lock

    def load_snapshot(self) -> Snapshot:
        """Defaults overlaid by each source in order. Raises SourceLoadError."""
        values = dict(self.defaults)
        for src in self.sources:
            try:
                pairs = src.load()
            except SourceLoadError:
                raise
            except Exception as exc:
                raise SourceLoadError(f"{src!r} failed to load: {exc}") from exc
            for key, value in pairs:
                values[key] = value
        return MappingProxyType(values)

    @exclusive
    def reload(self) -> BatchResult:
        """Load afresh and merge. Reload listeners hear about it afterwards."""
        before = self.mutator.store.snapshot()
        try:
            snapshot = self.load_snapshot()
        except SourceLoadError as exc:
            logger.warning("Reload aborted, store unchanged: %s", exc)
            raise
        result = self.mutator.merge(snapshot)
        logger.info(
            "Reloaded: %d changed, %d vetoed%s",
            len(result.committed), len(result.vetoed),
            ", batch rolled back" if result.rolled_back else "",
        )
        event = ReloadEvent(self.source, before, self.mutator.store.snapshot())
        for listener in list(self._listeners):
            listener(event)
        return result

    def watched_paths(self) -> list[Path]:
        """Paths of the file-backed sources, in source order."""
        return [src.path for src in self.sources if isinstance(getattr(src, "path", None), Path)]

    def add_listener(self, listener: Callable[[ReloadEvent], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[ReloadEvent], None]) -> None:
        for index, registered in enumerate(self._listeners):
            if registered is listener:
                del self._listeners[index]
                return
