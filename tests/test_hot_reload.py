"""Tests for hot reload — watchdog events on file sources."""

import logging
import os
import threading

from watchdog.events import DirModifiedEvent, FileCreatedEvent, FileModifiedEvent, FileMovedEvent

import confbind
from confbind.hot_reload import SourceChangeHandler, WatchHandle, watch_reload


class Server(confbind.Reloadable, confbind.Observable):
    port: int = 8080


def _setup(tmp_path, text="port=80\n"):
    path = tmp_path / "server.properties"
    path.write_text(text)
    cfg = confbind.create(Server, path)
    reloader = cfg._confbind.reloader
    return path, cfg, SourceChangeHandler(reloader, reloader.watched_paths())


class _FakeObserver:
    def __init__(self):
        self.calls = []

    def stop(self):
        self.calls.append("stop")

    def join(self):
        self.calls.append("join")


class TestSourceChangeHandler:
    def test_modified_file_reloads(self, tmp_path):
        path, cfg, handler = _setup(tmp_path)
        events = []
        cfg.add_listener(events.append)

        path.write_text("port=81\n")
        handler.dispatch(FileModifiedEvent(str(path)))
        assert cfg.port == 81
        assert [(e.old_value, e.new_value) for e in events] == [("80", "81")]

    def test_created_file_reloads(self, tmp_path):
        path, cfg, handler = _setup(tmp_path)
        path.write_text("port=82\n")
        handler.dispatch(FileCreatedEvent(str(path)))
        assert cfg.port == 82

    def test_file_moved_into_place_reloads(self, tmp_path):
        path, cfg, handler = _setup(tmp_path)
        temp = tmp_path / "server.properties.tmp"
        temp.write_text("port=83\n")
        os.replace(temp, path)
        handler.dispatch(FileMovedEvent(str(temp), str(path)))
        assert cfg.port == 83

    def test_other_files_ignored(self, tmp_path):
        path, cfg, handler = _setup(tmp_path)
        reloads = []
        cfg.add_reload_listener(reloads.append)
        handler.dispatch(FileModifiedEvent(str(tmp_path / "other.txt")))
        handler.dispatch(DirModifiedEvent(str(tmp_path)))
        assert reloads == []

    def test_failures_are_logged_and_values_kept(self, tmp_path, caplog):
        path, cfg, handler = _setup(tmp_path)
        path.unlink()
        with caplog.at_level(logging.ERROR, logger="confbind.hot_reload"):
            handler.dispatch(FileModifiedEvent(str(path)))
        assert "Hot reload failed" in caplog.text
        assert cfg.port == 80

        path.write_text("port=84\n")
        handler.dispatch(FileCreatedEvent(str(path)))
        assert cfg.port == 84


class TestWatchHandle:
    def test_dispose_stops_and_joins(self):
        observer = _FakeObserver()
        handle = WatchHandle(observer)
        assert not handle.disposed
        handle.dispose()
        handle.dispose()
        assert handle.disposed
        assert observer.calls == ["stop", "join"]


class TestWatchReload:
    def test_rewrite_with_same_mtime_reloads(self, tmp_path):
        path = tmp_path / "server.properties"
        path.write_text("port=80\n")
        stamp = path.stat().st_mtime
        cfg = confbind.create(Server, path)
        reloaded = threading.Event()

        def on_reload(event):
            if event.new_properties.get("port") == "81":
                reloaded.set()

        cfg.add_reload_listener(on_reload)
        handle = watch_reload(cfg)
        try:
            path.write_text("port=81\n")
            os.utime(path, (stamp, stamp))
            assert reloaded.wait(10)
            assert cfg.port == 81
        finally:
            handle.dispose()
        assert not handle.observer.is_alive()

    def test_accepts_coordinator(self, tmp_path):
        path, cfg, _ = _setup(tmp_path)
        handle = watch_reload(cfg._confbind.reloader)
        handle.dispose()
        assert handle.disposed

    def test_create_with_hot_reload(self, tmp_path):
        path = tmp_path / "server.properties"
        path.write_text("port=80\n")
        cfg = confbind.create(Server, path, hot_reload=True)
        handle = cfg._confbind.watcher
        assert isinstance(handle, WatchHandle)
        handle.dispose()
        assert not handle.observer.is_alive()

    def test_logs_start(self, tmp_path, caplog):
        path, cfg, _ = _setup(tmp_path)
        with caplog.at_level(logging.INFO, logger="confbind.hot_reload"):
            handle = watch_reload(cfg)
        handle.dispose()
        assert "Watching 1 source files" in caplog.text
