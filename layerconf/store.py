"""Process-wide holder of the live configuration snapshot."""
from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .document import RawMapping

__all__ = ["ConfigStore", "freeze"]


def freeze(obj: Any) -> Any:
    """Read-only copy of the container structure.

    Mappings become mappingproxies, lists become tuples. Leaves are shared
    by reference, so validators may return objects that cannot be copied.
    """
    if isinstance(obj, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in obj.items()})
    if isinstance(obj, RawMapping):
        return MappingProxyType({k: freeze(v) for k, v in obj})
    if isinstance(obj, (list, tuple)):
        return tuple(freeze(x) for x in obj)
    if isinstance(obj, (set, frozenset)):
        return frozenset(freeze(x) for x in obj)
    return obj


class ConfigStore:
    """Holds the live snapshot; replaced wholesale, never mutated in place.

    Readers call `get()` and keep whatever snapshot they received; a
    concurrent `swap()` only rebinds the reference.
    """

    def __init__(self) -> None:
        self._snapshot: Optional[Mapping[str, Any]] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def get(self) -> Optional[Mapping[str, Any]]:
        return self._snapshot

    def swap(self, new: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
        frozen = freeze(new)
        with self._lock:
            old, self._snapshot = self._snapshot, frozen
        return old

    def clear(self) -> Optional[Mapping[str, Any]]:
        with self._lock:
            old, self._snapshot = self._snapshot, None
        return old
