"""Declaring configurations and the capabilities they offer.

A configuration is a Config subclass whose annotated class attributes are
its properties:

    class Server(confbind.Mutable):
        hostname: str = "localhost"
        port: int = prop("server.port", default=8080)

Mixing in Mutable, Observable, Reloadable, Listable or Accessible adds the
matching operations. Every read and every operation goes through the
instance's dispatcher; confbind.create() wires one up.
"""

from __future__ import annotations

import inspect
import sys
from typing import Any, NamedTuple

from confbind.errors import ConfbindError
from confbind.lookup import to_text


class Prop:
    """Marker carrying an explicit key and/or default for one property."""

    __slots__ = ("key", "default")

    def __init__(self, key: str | None = None, default: Any = None) -> None:
        self.key = key
        self.default = default

    def __repr__(self) -> str:
        return f"prop({self.key!r}, default={self.default!r})"


def prop(key: str | None = None, *, default: Any = None) -> Any:
    """Declare a property stored under a key other than its attribute name."""
    return Prop(key, default)


class PropertyDecl(NamedTuple):
    name: str
    key: str
    type: Any
    default: str | None


class _Declared:
    """Class attribute standing in for a declared property."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return owner.__confbind_properties__[self.name]
        return instance._invoke(self.name)

    def __set__(self, instance, value):
        raise AttributeError(f"{self.name} is read-only; use set_property()")


class Config:
    """Base for configuration declarations. Offers typed reads only."""

    __confbind_properties__: dict = {}
    _confbind = None

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        declared: dict[str, PropertyDecl] = {}
        for base in reversed(cls.__mro__[1:]):
            declared.update(base.__dict__.get("__confbind_properties__", {}))

        for name, annotation in inspect.get_annotations(cls, eval_str=True).items():
            if name.startswith("_"):
                continue
            if _is_operation(cls, name):
                raise TypeError(f"{cls.__name__}.{name} clashes with a capability operation")
            value = cls.__dict__.get(name)
            if isinstance(value, Prop):
                key, default = value.key or name, value.default
            else:
                key, default = name, value
            declared[name] = PropertyDecl(name, key, annotation, to_text(default))
            setattr(cls, name, _Declared(name))

        cls.__confbind_properties__ = declared

    def _invoke(self, name: str, *args: Any) -> Any:
        dispatcher = self._confbind
        if dispatcher is None:
            raise ConfbindError(f"{type(self).__name__} is not bound; build it with confbind.create()")
        return dispatcher.invoke(name, *args)

    def __repr__(self) -> str:
        names = ", ".join(type(self).__confbind_properties__)
        return f"<{type(self).__name__} [{names}]>"


def _is_operation(cls: type, name: str) -> bool:
    return any(inspect.isfunction(base.__dict__.get(name)) for base in cls.__mro__[1:])


class Observable(Config):
    """Change listeners."""

    def add_listener(self, listener: Any, key: str | None = None) -> None:
        """Register a change observer, optionally for one key only."""
        if key is None:
            return self._invoke("add_listener", listener)
        return self._invoke("add_listener", listener, key)

    def remove_listener(self, listener: Any) -> None:
        return self._invoke("remove_listener", listener)


class Reloadable(Config):
    """Re-reading sources."""

    def reload(self) -> None:
        return self._invoke("reload")

    def add_reload_listener(self, listener) -> None:
        return self._invoke("add_reload_listener", listener)

    def remove_reload_listener(self, listener) -> None:
        return self._invoke("remove_reload_listener", listener)


class Mutable(Reloadable, Observable):
    """Changing values at runtime, with observer vetoes."""

    def set_property(self, key: str, value: str | None) -> str | None:
        """Set key and return the value it had before the call."""
        return self._invoke("set_property", key, value)

    def remove_property(self, key: str) -> str | None:
        """Remove key and return the value it had before the call."""
        return self._invoke("remove_property", key)

    def clear(self) -> None:
        return self._invoke("clear")

    def load(self, source) -> None:
        """Merge the pairs of a mapping, a properties file or a Source."""
        return self._invoke("load", source)


class Listable(Config):
    def list(self, sink=None) -> None:
        """Write every key and value to sink (stdout by default)."""
        return self._invoke("list", sys.stdout if sink is None else sink)

    def property_names(self) -> set[str]:
        return self._invoke("property_names")


class Accessible(Listable):
    def get_property(self, key: str, default: str | None = None) -> str | None:
        """Raw string value of key, or default when absent."""
        if default is None:
            return self._invoke("get_property", key)
        return self._invoke("get_property", key, default)
