"""Recursive `$ref` inclusion with cycle detection and a depth bound.

A mapping whose only key is ``$ref`` is replaced by the referenced document,
fully decoded and resolved. When ``$ref`` sits next to other keys, the
referenced document must be a mapping and its entries are spliced in place of
the ``$ref`` entry. Everything else is resolved element-wise; scalars pass
through.

The ancestor chain reports cycles by name; the depth bound stops acyclic
but unbounded chains.

Inclusion failures carry no context path. Failures found later by the
validators do.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from .document import RawMapping, is_mapping, items
from .errors import DecodeError, FetchError, ReferenceFormatError, ResolveError
from .io.refs import Reference, format_ref, path_to_ref
from .reasons import (
    BadReference,
    BadReferenceValue,
    CircularReference,
    DepthLimitExceeded,
    MalformedDocument,
)

__all__ = ["INCLUDE_KEY", "DEPTH_LIMIT", "InclusionContext", "resolve"]

logger = logging.getLogger(__name__)

INCLUDE_KEY = "$ref"
DEPTH_LIMIT = 100

Fetch = Callable[[Reference], bytes]
Decode = Callable[[bytes], Any]
Normalize = Callable[[Any, Optional[Reference]], Reference]


@dataclass(frozen=True)
class InclusionContext:
    """Ancestor chain plus remaining inclusion depth; never mutated."""

    ancestors: Tuple[Reference, ...] = ()
    remaining: int = DEPTH_LIMIT
    limit: int = DEPTH_LIMIT

    @property
    def base(self) -> Optional[Reference]:
        return self.ancestors[-1] if self.ancestors else None

    @classmethod
    def start(cls, limit: int = DEPTH_LIMIT, source: Optional[Reference] = None) -> "InclusionContext":
        """Fresh context; `source` (the top-level file) seeds the chain without using depth."""
        ancestors = (source,) if source is not None else ()
        return cls(ancestors=ancestors, remaining=limit, limit=limit)

    def push(self, ref: Reference) -> "InclusionContext":
        if ref in self.ancestors:
            raise ResolveError(CircularReference(format_ref(ref)))
        if self.remaining <= 0:
            raise ResolveError(DepthLimitExceeded(self.limit))
        return InclusionContext(self.ancestors + (ref,), self.remaining - 1, self.limit)


def resolve(
    doc: Any,
    fetch: Fetch,
    decode: Decode,
    *,
    normalize: Normalize = path_to_ref,
    context: Optional[InclusionContext] = None,
) -> Any:
    """Return `doc` with every inclusion directive expanded.

    Raises ResolveError carrying the failure reason.
    """
    if context is None:
        context = InclusionContext.start()
    return _Resolver(fetch, decode, normalize).walk(doc, context)


class _Resolver:
    def __init__(self, fetch: Fetch, decode: Decode, normalize: Normalize):
        self._fetch = fetch
        self._decode = decode
        self._normalize = normalize

    def walk(self, doc: Any, ctx: InclusionContext) -> Any:
        if is_mapping(doc):
            return self._walk_mapping(doc, ctx)
        if isinstance(doc, (list, tuple)):
            return [self.walk(x, ctx) for x in doc]
        return doc

    def _walk_mapping(self, doc: Any, ctx: InclusionContext) -> Any:
        pairs = list(items(doc))
        if len(pairs) == 1 and pairs[0][0] == INCLUDE_KEY:
            return self._include(pairs[0][1], ctx)

        out = []
        for key, value in pairs:
            if key != INCLUDE_KEY:
                out.append((key, self.walk(value, ctx)))
                continue
            included = self._include(value, ctx)
            if not is_mapping(included):
                raise ResolveError(
                    BadReference(
                        str(value),
                        MalformedDocument(
                            f"cannot merge {type(included).__name__} into a mapping with other keys"
                        ),
                    )
                )
            out.extend(items(included))
        # A key collision keeps both entries so the validators report it.
        if isinstance(doc, RawMapping) or len({k for k, _ in out}) != len(out):
            return RawMapping(out)
        return dict(out)

    def _include(self, value: Any, ctx: InclusionContext) -> Any:
        if not isinstance(value, str) or not value.strip():
            raise ResolveError(BadReferenceValue(value))
        try:
            ref = self._normalize(value, ctx.base)
        except ReferenceFormatError as e:
            raise ResolveError(BadReference(value, e)) from e

        child = ctx.push(ref)
        location = format_ref(ref)
        try:
            data = self._fetch(ref)
        except (FetchError, OSError) as e:
            raise ResolveError(BadReference(location, e)) from e
        try:
            included = self._decode(data)
        except DecodeError as e:
            raise ResolveError(BadReference(location, MalformedDocument(e))) from e

        logger.debug("including %s (depth %d/%d)", location, ctx.limit - child.remaining, ctx.limit)
        return self.walk(included, child)
