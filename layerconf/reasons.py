"""Closed taxonomy of configuration failure reasons.

Every reason is a frozen dataclass: a `kind` tag plus a typed payload. Reasons
are plain data; `layerconf.errors.format_error` turns any of them into an
operator-facing message.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, ClassVar, Sequence, Tuple, Union

__all__ = [
    "Reason",
    "UndefinedEnvSource",
    "InvalidEnvSource",
    "BadReference",
    "BadReferenceValue",
    "CircularReference",
    "DepthLimitExceeded",
    "MalformedDocument",
    "DuplicateComponent",
    "UnsupportedComponent",
    "BadValidatorUnit",
    "BadEnumValue",
    "UnknownOption",
    "MissingOption",
    "WrongType",
    "OutOfRange",
    "DuplicateItem",
    "ComponentValidationFailed",
    "ComponentUnregistered",
    "UnitNotFound",
    "ChangeHookFailed",
    "BENIGN_CHANGE_KINDS",
    "with_ctx",
]

# Context paths: keys (str) and sequence indices (int), outermost first.
Ctx = Tuple[Union[str, int], ...]


@dataclass(frozen=True)
class Reason:
    kind: ClassVar[str] = "reason"


# ------------------------------
# Loader environment
# ------------------------------

@dataclass(frozen=True)
class UndefinedEnvSource(Reason):
    kind: ClassVar[str] = "undefined_env_source"
    name: str


@dataclass(frozen=True)
class InvalidEnvSource(Reason):
    kind: ClassVar[str] = "invalid_env_source"
    name: str
    value: Any


# ------------------------------
# Reference resolution
# ------------------------------

@dataclass(frozen=True)
class BadReference(Reason):
    """`cause` is a fetch/normalization exception or a wrapped Reason."""

    kind: ClassVar[str] = "bad_reference"
    ref: str
    cause: Any


@dataclass(frozen=True)
class BadReferenceValue(Reason):
    kind: ClassVar[str] = "bad_reference_value"
    value: Any


@dataclass(frozen=True)
class CircularReference(Reason):
    kind: ClassVar[str] = "circular_reference"
    ref: str


@dataclass(frozen=True)
class DepthLimitExceeded(Reason):
    kind: ClassVar[str] = "depth_limit_exceeded"
    limit: int


@dataclass(frozen=True)
class MalformedDocument(Reason):
    kind: ClassVar[str] = "malformed_document"
    cause: Any


# ------------------------------
# Top-level shape and dispatch
# ------------------------------

@dataclass(frozen=True)
class DuplicateComponent(Reason):
    kind: ClassVar[str] = "duplicate_component"
    name: str


@dataclass(frozen=True)
class UnsupportedComponent(Reason):
    kind: ClassVar[str] = "unsupported_component"
    name: str


@dataclass(frozen=True)
class BadValidatorUnit(Reason):
    kind: ClassVar[str] = "bad_validator_unit"
    name: str
    cause: Any


# ------------------------------
# Component payload validation
# ------------------------------

@dataclass(frozen=True)
class BadEnumValue(Reason):
    kind: ClassVar[str] = "bad_enum_value"
    known: Tuple[Any, ...]
    got: Any
    suggestion: Any = None
    ctx: Ctx = field(default=())


@dataclass(frozen=True)
class UnknownOption(Reason):
    kind: ClassVar[str] = "unknown_option"
    known: Tuple[str, ...]
    got: str
    suggestion: Any = None
    ctx: Ctx = field(default=())


@dataclass(frozen=True)
class MissingOption(Reason):
    kind: ClassVar[str] = "missing_option"
    name: str
    ctx: Ctx = field(default=())


@dataclass(frozen=True)
class WrongType(Reason):
    kind: ClassVar[str] = "wrong_type"
    expected: str
    got: Any
    ctx: Ctx = field(default=())


@dataclass(frozen=True)
class OutOfRange(Reason):
    kind: ClassVar[str] = "out_of_range"
    value: Any
    min: Any = None
    max: Any = None
    ctx: Ctx = field(default=())


@dataclass(frozen=True)
class DuplicateItem(Reason):
    kind: ClassVar[str] = "duplicate_item"
    item: Any
    ctx: Ctx = field(default=())


@dataclass(frozen=True)
class ComponentValidationFailed(Reason):
    """Component-defined failure; `cause` is opaque to the pipeline."""

    kind: ClassVar[str] = "component_validation_failed"
    name: str
    cause: Any
    ctx: Ctx = field(default=())


# ------------------------------
# Change notification (reload)
# ------------------------------

@dataclass(frozen=True)
class ComponentUnregistered(Reason):
    kind: ClassVar[str] = "component_unregistered"
    name: str


@dataclass(frozen=True)
class UnitNotFound(Reason):
    kind: ClassVar[str] = "unit_not_found"
    name: str


@dataclass(frozen=True)
class ChangeHookFailed(Reason):
    kind: ClassVar[str] = "change_hook_failed"
    name: str
    cause: Any


BENIGN_CHANGE_KINDS = frozenset({ComponentUnregistered.kind, UnitNotFound.kind})


def with_ctx(reason: Reason, prefix: Sequence[Union[str, int]]) -> Reason:
    """Return `reason` with `prefix` prepended to its context path (if it has one)."""
    if not prefix or not hasattr(reason, "ctx"):
        return reason
    return dataclasses.replace(reason, ctx=tuple(prefix) + tuple(reason.ctx))  # type: ignore[attr-defined]
