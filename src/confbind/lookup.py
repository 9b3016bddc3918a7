"""Typed reads of declared properties.

Stored values are strings; a declared property converts on the way out
using its annotation. Only the simple scalar types are understood, plus any
callable annotation that accepts a string.
"""

from __future__ import annotations

import types
import typing
from typing import Any, Callable, Mapping

from confbind.errors import ConversionError, UnsupportedOperationError

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def to_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def unwrap_optional(annotation: Any) -> Any:
    """`int | None` and `Optional[int]` convert like `int`."""
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def converter_for(annotation: Any) -> Callable[[str], Any]:
    annotation = unwrap_optional(annotation)
    if annotation is bool:
        return to_bool
    if annotation in (str, Any, None) or not callable(annotation):
        return str
    return annotation


def to_text(value: Any) -> str | None:
    """Inverse direction: defaults, mapping sources and update() values."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class TypedLookup:
    """Resolves a declared property name to its converted value."""

    def __init__(self, declarations: Mapping[str, Any], read: Callable[[str], str | None]) -> None:
        self.declarations = declarations
        self._read = read

    def resolve(self, name: str, args: tuple) -> Any:
        decl = self.declarations.get(name)
        if decl is None or args:
            shape = ", ".join(type(a).__name__ for a in args)
            raise UnsupportedOperationError(f"no operation or property matches {name}({shape})")
        raw = self._read(decl.key)
        if raw is None:
            return None
        try:
            return converter_for(decl.type)(raw)
        except (TypeError, ValueError) as exc:
            raise ConversionError(f"{decl.key}={raw!r} is not a valid {decl.type!r}") from exc
