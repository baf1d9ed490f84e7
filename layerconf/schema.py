"""Validator combinators for component schemas.

A validator is a callable taking a raw value and returning the typed value,
or raising `SchemaViolation`. Nested validators (`options`, `list_of`,
`map_of`) prepend the key or index to the context path of any violation that
passes through them, so the final reason points at the offending option.

Example::

    def validator():
        return options(
            {"port": integer(1, 65535), "mode": enum(["fast", "safe"])},
            required=["port"],
            defaults={"mode": "safe"},
        )
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .document import is_mapping, items
from .errors import SchemaViolation
from .reasons import (
    BadEnumValue,
    DuplicateItem,
    MissingOption,
    OutOfRange,
    Reason,
    UnknownOption,
    WrongType,
    with_ctx,
)

__all__ = [
    "Validator",
    "fail",
    "any_value",
    "string",
    "non_empty",
    "integer",
    "pos_int",
    "non_neg_int",
    "number",
    "boolean",
    "enum",
    "list_of",
    "map_of",
    "options",
    "and_then",
]

Validator = Callable[[Any], Any]

_TRUE = {"true", "yes", "on"}
_FALSE = {"false", "no", "off"}


def fail(reason: Reason) -> None:
    raise SchemaViolation(reason)


def _nested(key: Union[str, int], fn: Validator, value: Any) -> Any:
    try:
        return fn(value)
    except SchemaViolation as e:
        raise SchemaViolation(with_ctx(e.reason, (key,))) from e


def any_value() -> Validator:
    return lambda v: v


def string() -> Validator:
    def _v(v: Any) -> str:
        if not isinstance(v, str):
            fail(WrongType("string", v))
        return v
    return _v


def non_empty(inner: Validator) -> Validator:
    def _v(v: Any) -> Any:
        out = inner(v)
        if out is None or (hasattr(out, "__len__") and len(out) == 0):
            fail(WrongType("non-empty value", v))
        return out
    return _v


def _check_range(v: Any, lo: Any, hi: Any) -> None:
    if (lo is not None and v < lo) or (hi is not None and v > hi):
        fail(OutOfRange(v, lo, hi))


def integer(min: Optional[int] = None, max: Optional[int] = None) -> Validator:
    def _v(v: Any) -> int:
        if isinstance(v, bool) or not isinstance(v, int):
            fail(WrongType("integer", v))
        _check_range(v, min, max)
        return v
    return _v


def pos_int() -> Validator:
    return integer(min=1)


def non_neg_int() -> Validator:
    return integer(min=0)


def number(min: Optional[float] = None, max: Optional[float] = None) -> Validator:
    def _v(v: Any) -> float:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            fail(WrongType("number", v))
        _check_range(v, min, max)
        return float(v)
    return _v


def boolean() -> Validator:
    def _v(v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            s = v.strip().lower()
            if s in _TRUE:
                return True
            if s in _FALSE:
                return False
        fail(WrongType("boolean", v))
    return _v


def enum(values: Iterable[Any]) -> Validator:
    known = tuple(values)

    def _v(v: Any) -> Any:
        if v in known:
            return v
        if isinstance(v, str):
            for k in known:
                if str(k) == v:
                    return k
        fail(BadEnumValue(known=known, got=v))
    return _v


def list_of(inner: Validator, unique: bool = False) -> Validator:
    def _v(v: Any) -> List[Any]:
        if is_mapping(v) or not isinstance(v, (list, tuple)):
            fail(WrongType("list", v))
        out: List[Any] = []
        for i, item in enumerate(v):
            value = _nested(i, inner, item)
            if unique and value in out:
                fail(DuplicateItem(value, ctx=(i,)))
            out.append(value)
        return out
    return _v


def map_of(key: Validator, value: Validator) -> Validator:
    def _v(v: Any) -> Dict[Any, Any]:
        if not is_mapping(v):
            fail(WrongType("mapping", v))
        out: Dict[Any, Any] = {}
        for k, item in items(v):
            kk = key(k)
            if kk in out:
                fail(DuplicateItem(kk))
            out[kk] = _nested(str(kk), value, item)
        return out
    return _v


def options(
    spec: Mapping[str, Validator],
    required: Sequence[str] = (),
    defaults: Optional[Mapping[str, Any]] = None,
    allow_unknown: bool = False,
) -> Validator:
    """Validate a mapping of named options.

    Unknown keys fail with UnknownOption (unless `allow_unknown`), repeated
    keys with DuplicateItem, absent `required` keys with MissingOption.
    Absent keys listed in `defaults` are filled in as given.
    """
    known = tuple(sorted(spec))
    fill = dict(defaults or {})

    def _v(v: Any) -> Dict[str, Any]:
        if v is None:
            v = {}
        if not is_mapping(v):
            fail(WrongType("mapping", v))
        out: Dict[str, Any] = {}
        for k, item in items(v):
            name = str(k)
            if name in out:
                fail(DuplicateItem(name))
            fn = spec.get(name)
            if fn is None:
                if not allow_unknown:
                    fail(UnknownOption(known=known, got=name))
                out[name] = item
                continue
            out[name] = _nested(name, fn, item)
        for name in required:
            if name not in out:
                fail(MissingOption(name))
        for name, default in fill.items():
            out.setdefault(name, default)
        return out
    return _v


def and_then(inner: Validator, then: Callable[[Any], Any]) -> Validator:
    return lambda v: then(inner(v))
