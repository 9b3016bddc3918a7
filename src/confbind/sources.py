"""Sources — where property values come from.

A source yields (key, value) string pairs on every load() call and either
succeeds completely or raises SourceLoadError. File sources expose their
path so hot reload can watch it.
"""

from __future__ import annotations

import os
from pathlib import Path
from collections.abc import Mapping
from typing import Iterator, Protocol, runtime_checkable

from confbind.errors import SourceLoadError
from confbind.lookup import to_text


@runtime_checkable
class Source(Protocol):
    def load(self) -> list[tuple[str, str]]: ...


class MappingSource:
    """Reads a caller-owned mapping afresh at every load.

    Later edits to the mapping become visible on the next reload.
    """

    def __init__(self, mapping: Mapping) -> None:
        self._mapping = mapping

    def load(self) -> list[tuple[str, str]]:
        return [(str(k), to_text(v)) for k, v in self._mapping.items() if v is not None]

    def __repr__(self) -> str:
        return f"MappingSource({len(self._mapping)} keys)"


class PropertiesFileSource:
    """A `key = value` properties file."""

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def load(self) -> list[tuple[str, str]]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceLoadError(f"cannot read {self.path}: {exc}") from exc
        return list(parse_properties(text))

    def __repr__(self) -> str:
        return f"PropertiesFileSource({str(self.path)!r})"


def parse_properties(text: str) -> Iterator[tuple[str, str]]:
    """Parse properties text.

    Blank lines and lines starting with # or ! are skipped. The first = or :
    separates key from value; a line ending in a backslash continues on the
    next line.
    """
    pending = ""
    for raw in text.splitlines():
        line = raw.strip() if not pending else raw.lstrip()
        if not pending and (not line or line[0] in "#!"):
            continue
        if line.endswith("\\"):
            pending += line[:-1]
            continue
        line, pending = pending + line, ""
        yield _split(line)
    if pending:
        yield _split(pending)


def _split(line: str) -> tuple[str, str]:
    cut = min((i for i in (line.find("="), line.find(":")) if i >= 0), default=-1)
    if cut < 0:
        return line.strip(), ""
    return line[:cut].strip(), line[cut + 1:].strip()


def as_source(obj) -> Source:
    """Coerce a mapping, a path or a Source into a Source."""
    if isinstance(obj, Source):
        return obj
    if isinstance(obj, Mapping):
        return MappingSource(obj)
    if isinstance(obj, (str, os.PathLike)):
        return PropertiesFileSource(obj)
    raise TypeError(f"not a property source: {obj!r}")
