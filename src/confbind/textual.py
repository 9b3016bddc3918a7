"""Textual integration for confbind. Opt-in, requires textual.

Bridges committed property changes to widgets. Guards against firing while
the app is paused or not running, marshals calls from background threads
through call_from_thread, and ignores NoMatches from widget queries.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual.css.query import NoMatches

from confbind.events import ChangeEvent

# Keyed by id(app); an id is present only inside a pause() block.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend widget updates during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


class WidgetListener:
    """After-change observer that forwards events to a widget callback."""

    __slots__ = ("app", "effect", "_main")

    def __init__(self, app: Any, effect: Callable[[ChangeEvent], None]) -> None:
        self.app = app
        self.effect = effect
        self._main = threading.get_ident()

    def after_change(self, event: ChangeEvent) -> None:
        if not is_safe(self.app):
            return
        if threading.get_ident() != self._main:
            self.app.call_from_thread(self._safe, event)
        else:
            self._safe(event)

    def _safe(self, event: ChangeEvent) -> None:
        try:
            self.effect(event)
        except NoMatches:
            pass


def listener(app, effect: Callable[[ChangeEvent], None]) -> WidgetListener:
    """Build a widget-safe listener. Register it with config.add_listener().

    Usage:
        cfg.add_listener(
            confbind.textual.listener(app, lambda e: app.query_one("#port").update(e.new_value)),
            "port",
        )
    """
    return WidgetListener(app, effect)


def bind(app, config, effect: Callable[[ChangeEvent], None], key: str | None = None) -> WidgetListener:
    """listener() plus registration. Returns the listener for later removal."""
    observer = WidgetListener(app, effect)
    if key is None:
        config.add_listener(observer)
    else:
        config.add_listener(observer, key)
    return observer
