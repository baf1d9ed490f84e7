"""Raw document tree helpers.

A raw document is what the decoder produces: scalars, lists, and mappings.
Mappings produced by the YAML backend are `RawMapping`s (ordered pairs, with
duplicate keys preserved); plain dicts are accepted wherever a mapping is.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Tuple

__all__ = ["RawMapping", "is_mapping", "items", "to_plain"]


class RawMapping(tuple):
    """Immutable ordered (key, value) pairs; duplicate keys are kept."""

    def __new__(cls, pairs: Iterable[Tuple[Any, Any]] = ()):
        return super().__new__(cls, tuple((k, v) for k, v in pairs))

    def keys(self) -> List[Any]:
        return [k for k, _ in self]

    def get(self, key: Any, default: Any = None) -> Any:
        for k, v in self:
            if k == key:
                return v
        return default

    def __repr__(self) -> str:
        return f"RawMapping({list(self)!r})"


def is_mapping(doc: Any) -> bool:
    return isinstance(doc, (RawMapping, dict))


def items(doc: Any) -> Iterator[Tuple[Any, Any]]:
    if isinstance(doc, RawMapping):
        return iter(doc)
    return iter(doc.items())


def to_plain(doc: Any) -> Any:
    """Convert a raw tree into nested dicts and lists (last duplicate wins)."""
    if is_mapping(doc):
        out: Dict[Any, Any] = {}
        for k, v in items(doc):
            out[k] = to_plain(v)
        return out
    if isinstance(doc, (list, tuple)):
        return [to_plain(x) for x in doc]
    return doc
