"""Hot reload — reload a configuration when its files change. Opt-in.

A watchdog Observer watches the directory of every file source and reloads
when one of those files is modified, created, or moved into place. A failing
reload is logged and the configuration keeps its current values; watching
goes on.
"""

from __future__ import annotations

import logging
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from confbind.config import Config
from confbind.reload import ReloadCoordinator

logger = logging.getLogger("confbind.hot_reload")


class SourceChangeHandler(FileSystemEventHandler):
    """Reloads when a watched source file changes."""

    def __init__(self, reloader: ReloadCoordinator, paths: list[Path]) -> None:
        super().__init__()
        self.reloader = reloader
        self.paths = {p.resolve() for p in paths}

    def on_modified(self, event: FileSystemEvent) -> None:
        self._maybe_reload(event.src_path, event.is_directory)

    def on_created(self, event: FileSystemEvent) -> None:
        self._maybe_reload(event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save atomically move a temp file over the original.
        self._maybe_reload(event.dest_path, event.is_directory)

    def _maybe_reload(self, path, is_directory: bool) -> None:
        if is_directory or not path:
            return
        if isinstance(path, bytes):
            path = path.decode()
        if Path(path).resolve() not in self.paths:
            return
        logger.debug("Source changed: %s", path)
        try:
            self.reloader.reload()
        except Exception:
            logger.exception("Hot reload failed, keeping current values")


class WatchHandle:
    """Disposable handle for the observer thread."""

    __slots__ = ("observer", "_disposed")

    def __init__(self, observer) -> None:
        self.observer = observer
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop watching and wait for the observer thread to exit."""
        if self._disposed:
            return
        self._disposed = True
        self.observer.stop()
        self.observer.join()


def _reloader_of(target: Config | ReloadCoordinator) -> ReloadCoordinator:
    if isinstance(target, ReloadCoordinator):
        return target
    dispatcher = target._confbind
    if dispatcher is None:
        raise TypeError(f"{target!r} is not bound to a store")
    return dispatcher.reloader


def watch_reload(target: Config | ReloadCoordinator) -> WatchHandle:
    """Watch target's file sources and reload on change. Returns WatchHandle.

    Usage:
        cfg = confbind.create(Server, "server.properties")
        handle = watch_reload(cfg)
        ...
        handle.dispose()
    """
    reloader = _reloader_of(target)
    paths = reloader.watched_paths()
    handler = SourceChangeHandler(reloader, paths)

    observer = Observer()
    for directory in sorted({p.resolve().parent for p in paths}):
        observer.schedule(handler, str(directory), recursive=False)
    observer.start()

    logger.info("Watching %d source files", len(paths))
    return WatchHandle(observer)
