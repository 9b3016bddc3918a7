"""OperationDispatcher — routes capability calls onto the engine.

The set of operations is closed: each Route names the capability that owns
it, the call name, the argument shape and the handler. A call matches a
route when the name and arity agree, every argument fits its slot and the
configuration declares the capability. Anything else is a typed property
read, handed to the lookup collaborator.
"""

from __future__ import annotations

import collections.abc
import enum
import os
from typing import Any, Callable, NamedTuple, Protocol, runtime_checkable

from confbind.broker import ChangeBroker
from confbind.config import Accessible, Listable, Mutable, Observable, Reloadable
from confbind.lookup import TypedLookup
from confbind.mutator import BatchMutator
from confbind.reload import ReloadCoordinator
from confbind.sources import Source, as_source
from confbind.store import PropertyStore

LIST_HEADER = "-- listing properties --"
LIST_VALUE_WIDTH = 40

_OPT_STR = (str, type(None))


@runtime_checkable
class SupportsWrite(Protocol):
    def write(self, text: str, /) -> Any: ...


class Operation(enum.Enum):
    SET = "Mutate.Set"
    REMOVE = "Mutate.Remove"
    CLEAR = "Mutate.Clear"
    RELOAD = "Mutate.Reload"
    LOAD = "Mutate.Load"
    LIST = "Enumerate.List"
    NAMES = "Enumerate.Names"
    GET = "Access.Get"
    GET_DEFAULT = "Access.GetDefault"
    ADD_LISTENER = "Observe.Add"
    ADD_KEY_LISTENER = "Observe.AddForKey"
    REMOVE_LISTENER = "Observe.Remove"
    ADD_RELOAD_LISTENER = "Observe.AddReload"
    REMOVE_RELOAD_LISTENER = "Observe.RemoveReload"


class Route(NamedTuple):
    operation: Operation
    capability: type
    name: str
    shape: tuple
    handler: Callable[..., Any]

    def matches(self, owner: Any, name: str, args: tuple) -> bool:
        return (
            name == self.name
            and len(args) == len(self.shape)
            and isinstance(owner, self.capability)
            and all(isinstance(arg, slot) for arg, slot in zip(args, self.shape))
        )


# --- Handlers ---

def _set(d: OperationDispatcher, key: str, value: str | None) -> str | None:
    with d.mutator.lock:
        previous = d.store.get(key)
        d.mutator.set_one(key, value)
    return previous


def _remove(d: OperationDispatcher, key: str) -> str | None:
    with d.mutator.lock:
        previous = d.store.get(key)
        d.mutator.remove_one(key)
    return previous


def _clear(d: OperationDispatcher) -> None:
    d.mutator.clear_all()


def _reload(d: OperationDispatcher) -> None:
    d.reloader.reload()


def _load(d: OperationDispatcher, source: Any) -> None:
    pairs = source if isinstance(source, collections.abc.Mapping) else as_source(source).load()
    d.mutator.update(pairs)


def _list(d: OperationDispatcher, sink: SupportsWrite) -> None:
    with d.mutator.lock:
        items = sorted(d.store.items())
    sink.write(LIST_HEADER + "\n")
    for key, value in items:
        if len(value) > LIST_VALUE_WIDTH:
            value = value[:LIST_VALUE_WIDTH - 3] + "..."
        sink.write(f"{key}={value}\n")


def _names(d: OperationDispatcher) -> set[str]:
    with d.mutator.lock:
        return set(d.store.keys())


def _get(d: OperationDispatcher, key: str, default: str | None = None) -> str | None:
    with d.mutator.lock:
        value = d.store.get(key)
    return default if value is None else value


def _add_listener(d: OperationDispatcher, listener: Any, key: str | None = None) -> None:
    d.broker.register(listener, key)


def _remove_listener(d: OperationDispatcher, listener: Any) -> None:
    d.broker.unregister(listener)


def _add_reload_listener(d: OperationDispatcher, listener: Callable) -> None:
    d.reloader.add_listener(listener)


def _remove_reload_listener(d: OperationDispatcher, listener: Callable) -> None:
    d.reloader.remove_listener(listener)


_LOADABLE = (collections.abc.Mapping, Source, str, os.PathLike)

ROUTES: tuple[Route, ...] = (
    Route(Operation.SET, Mutable, "set_property", (str, _OPT_STR), _set),
    Route(Operation.REMOVE, Mutable, "remove_property", (str,), _remove),
    Route(Operation.CLEAR, Mutable, "clear", (), _clear),
    Route(Operation.RELOAD, Reloadable, "reload", (), _reload),
    Route(Operation.LOAD, Mutable, "load", (_LOADABLE,), _load),
    Route(Operation.LIST, Listable, "list", (SupportsWrite,), _list),
    Route(Operation.NAMES, Listable, "property_names", (), _names),
    Route(Operation.GET, Accessible, "get_property", (str,), _get),
    Route(Operation.GET_DEFAULT, Accessible, "get_property", (str, _OPT_STR), _get),
    Route(Operation.ADD_LISTENER, Observable, "add_listener", (object,), _add_listener),
    Route(Operation.ADD_KEY_LISTENER, Observable, "add_listener", (object, str), _add_listener),
    Route(Operation.REMOVE_LISTENER, Observable, "remove_listener", (object,), _remove_listener),
    Route(Operation.ADD_RELOAD_LISTENER, Reloadable, "add_reload_listener",
          (collections.abc.Callable,), _add_reload_listener),
    Route(Operation.REMOVE_RELOAD_LISTENER, Reloadable, "remove_reload_listener",
          (collections.abc.Callable,), _remove_reload_listener),
)


class OperationDispatcher:
    """Per-configuration router over the closed operation table."""

    def __init__(
        self,
        owner: Any,
        store: PropertyStore,
        broker: ChangeBroker,
        mutator: BatchMutator,
        reloader: ReloadCoordinator,
        lookup: TypedLookup,
    ) -> None:
        self.owner = owner
        self.store = store
        self.broker = broker
        self.mutator = mutator
        self.reloader = reloader
        self.lookup = lookup
        self.watcher = None

    def resolve(self, name: str, args: tuple) -> Route | None:
        for route in ROUTES:
            if route.matches(self.owner, name, args):
                return route
        return None

    def invoke(self, name: str, *args: Any) -> Any:
        route = self.resolve(name, args)
        if route is not None:
            return route.handler(self, *args)
        return self.lookup.resolve(name, args)
