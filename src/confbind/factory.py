"""create() — bind a declaration to a live store."""

from __future__ import annotations

from typing import Any, TypeVar

from confbind.broker import ChangeBroker
from confbind.config import Config
from confbind.dispatch import OperationDispatcher
from confbind.lookup import TypedLookup
from confbind.mutator import BatchMutator
from confbind.reload import ReloadCoordinator
from confbind.sources import as_source
from confbind.store import PropertyStore

C = TypeVar("C", bound=Config)


def create(config_cls: type[C], *sources: Any, hot_reload: bool = False) -> C:
    """Build a configuration instance.

    sources are mappings, properties-file paths or Source objects; later ones
    win. Declared defaults sit underneath all of them. With hot_reload,
    file sources are watched and reloaded on change (needs `watchdog`).
    """
    if not (isinstance(config_cls, type) and issubclass(config_cls, Config)):
        raise TypeError(f"{config_cls!r} is not a Config subclass")

    declarations = config_cls.__confbind_properties__
    defaults = {d.key: d.default for d in declarations.values() if d.default is not None}

    instance = config_cls.__new__(config_cls)
    store = PropertyStore()
    broker = ChangeBroker(source=instance)
    mutator = BatchMutator(store, broker)
    reloader = ReloadCoordinator(
        mutator, [as_source(s) for s in sources], defaults=defaults, source=instance,
    )
    lookup = TypedLookup(declarations, lambda key: _read(mutator, key))
    instance._confbind = OperationDispatcher(instance, store, broker, mutator, reloader, lookup)

    # Nobody is listening yet, so the initial fill fires no events.
    mutator.merge(reloader.load_snapshot())

    if hot_reload:
        from confbind.hot_reload import watch_reload

        instance._confbind.watcher = watch_reload(reloader)
    return instance


def _read(mutator: BatchMutator, key: str) -> str | None:
    with mutator.lock:
        return mutator.store.get(key)
