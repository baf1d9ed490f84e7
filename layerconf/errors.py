"""Typed error taxonomy and the `format_error` entry point.

Failures during loading are described by a `Reason` (see `layerconf.reasons`).
Stages raise a `ConfigError` subclass carrying that reason; the public API
catches it and hands the reason back to the caller. Collaborator errors
(reference parsing, fetching, decoding) are plain exceptions that end up as
the `cause` of a reason.
"""
from __future__ import annotations

from typing import Any, List, Sequence, Tuple, Union

from . import reasons as r
from .suggest import format_known, suggest

__all__ = [
    "LayerconfError",
    "ConfigError",
    "ResolveError",
    "ValidationError",
    "SchemaViolation",
    "ReferenceFormatError",
    "FetchError",
    "ReferenceNotFound",
    "ReferenceUnreadable",
    "UnsupportedContentType",
    "DecodeError",
    "UnitLookupError",
    "ChangeNotificationError",
    "format_error",
    "format_ctx",
]


class LayerconfError(Exception):
    """Base class for all typed, operator-facing errors in layerconf."""
    pass


class ConfigError(LayerconfError):
    """A loading failure described by a `Reason`."""

    def __init__(self, reason: r.Reason):
        self.reason = reason
        super().__init__(format_error(reason))


class ResolveError(ConfigError):
    """Reference resolution failed (`$ref` inclusion)."""
    pass


class ValidationError(ConfigError):
    """Top-level shape, dispatch, or component validation failed."""
    pass


class SchemaViolation(ConfigError):
    """Raised by component validators; the reason carries the context path."""
    pass


class ReferenceFormatError(LayerconfError):
    """A raw reference string could not be normalized."""
    pass


class FetchError(LayerconfError):
    """Reading the bytes behind a reference failed."""
    pass


class ReferenceNotFound(FetchError):
    pass


class ReferenceUnreadable(FetchError):
    pass


class UnsupportedContentType(FetchError):
    pass


class UnitLookupError(LayerconfError):
    """A validator unit could not be located."""
    pass


class DecodeError(LayerconfError):
    """Malformed YAML, or more than one document in a stream."""
    pass


class ChangeNotificationError(LayerconfError):
    """Raised by change notifiers; carries (component, reason) pairs."""

    def __init__(self, errors: Sequence[Tuple[str, r.Reason]]):
        self.errors: List[Tuple[str, r.Reason]] = list(errors)
        msg = "; ".join(f"[{name}] {format_error(reason)}" for name, reason in self.errors)
        super().__init__(f"{len(self.errors)} component(s) failed to apply changes: {msg}")


# ------------------------------
# Formatting
# ------------------------------

def format_ctx(ctx: Sequence[Union[str, int]]) -> str:
    """Render a context path like ``http->listeners[0]->port``."""
    out = ""
    for item in ctx:
        if isinstance(item, int) and not isinstance(item, bool):
            out += f"[{item}]"
        elif out:
            out += f"->{item}"
        else:
            out = str(item)
    return out


def _with_ctx(reason: Any, msg: str) -> str:
    ctx = getattr(reason, "ctx", ())
    if not ctx:
        return msg
    return f"Invalid value of option {format_ctx(ctx)}: {msg}"


def _format_cause(cause: Any) -> str:
    if isinstance(cause, r.Reason):
        return format_error(cause)
    if isinstance(cause, ConfigError):
        return format_error(cause.reason)
    if isinstance(cause, BaseException):
        msg = str(cause).strip()
        return msg or cause.__class__.__name__
    return str(cause)


def _hint(reason: Any) -> Any:
    if reason.suggestion is not None:
        return reason.suggestion
    return suggest(reason.got, reason.known)


def _join(*parts: str) -> str:
    return " ".join(p for p in parts if p)


def _format_reason(reason: r.Reason) -> str:
    if isinstance(reason, r.UndefinedEnvSource):
        return f"Environment setting '{reason.name}' is not set"
    if isinstance(reason, r.InvalidEnvSource):
        return f"Invalid value of environment setting '{reason.name}': {reason.value!r}"
    if isinstance(reason, r.BadReference):
        return f"Failed to read from {reason.ref}: {_format_cause(reason.cause)}"
    if isinstance(reason, r.BadReferenceValue):
        return f"Invalid reference: expected a non-empty string, got {reason.value!r}"
    if isinstance(reason, r.CircularReference):
        return f"Circularly defined reference: {reason.ref}"
    if isinstance(reason, r.DepthLimitExceeded):
        return f"Depth limit reached: {reason.limit}"
    if isinstance(reason, r.MalformedDocument):
        return f"Malformed YAML: {_format_cause(reason.cause)}"
    if isinstance(reason, r.DuplicateComponent):
        return f"Duplicated component: {reason.name}"
    if isinstance(reason, r.UnsupportedComponent):
        return f"Component '{reason.name}' doesn't support YAML configuration"
    if isinstance(reason, r.BadValidatorUnit):
        return f"Invalid validator unit of component '{reason.name}': {_format_cause(reason.cause)}"
    if isinstance(reason, r.BadEnumValue):
        if not reason.known:
            return _with_ctx(reason, f"Unexpected value: {reason.got}. There are no possible values")
        return _with_ctx(
            reason,
            _join(
                f"Unexpected value: {reason.got}. Did you mean '{_hint(reason)}'?",
                format_known("Possible values", reason.known),
            ),
        )
    if isinstance(reason, r.UnknownOption):
        if not reason.known:
            return _with_ctx(reason, f"Unknown parameter: {reason.got}. There are no available parameters")
        return _with_ctx(
            reason,
            _join(
                f"Unknown parameter: {reason.got}. Did you mean '{_hint(reason)}'?",
                format_known("Available parameters", reason.known),
            ),
        )
    if isinstance(reason, r.MissingOption):
        return _with_ctx(reason, f"Missing required parameter: {reason.name}")
    if isinstance(reason, r.WrongType):
        return _with_ctx(reason, f"Expected {reason.expected}, got {type(reason.got).__name__}: {reason.got!r}")
    if isinstance(reason, r.OutOfRange):
        if reason.min is not None and reason.max is not None:
            bound = f"expected {reason.min}..{reason.max}"
        elif reason.min is not None:
            bound = f"expected >= {reason.min}"
        else:
            bound = f"expected <= {reason.max}"
        return _with_ctx(reason, f"Value out of range: {reason.value} ({bound})")
    if isinstance(reason, r.DuplicateItem):
        return _with_ctx(reason, f"Duplicated value: {reason.item}")
    if isinstance(reason, r.ComponentValidationFailed):
        return _with_ctx(
            reason,
            f"Invalid configuration of component '{reason.name}': {_format_cause(reason.cause)}",
        )
    if isinstance(reason, r.ComponentUnregistered):
        return f"Component '{reason.name}' is not registered"
    if isinstance(reason, r.UnitNotFound):
        return f"Validator unit of component '{reason.name}' not found"
    if isinstance(reason, r.ChangeHookFailed):
        return f"Component '{reason.name}' failed to apply configuration change: {_format_cause(reason.cause)}"
    return repr(reason)


def format_error(e: Any) -> str:
    """Return an operator-facing message for a reason or an exception.

    Reasons (and `ConfigError`s wrapping them) are rendered per kind; nested
    causes delegate to the formatter of their own kind. Other exceptions
    render as 'ClassName: detail'.
    """
    if isinstance(e, r.Reason):
        return _format_reason(e)
    if isinstance(e, ConfigError):
        return _format_reason(e.reason)
    if isinstance(e, BaseException):
        name = e.__class__.__name__
        msg = str(e).strip()
        return f"{name}: {msg}" if msg else name
    return str(e)


# Keep star-export order deterministic for tests and tooling
__all__ = sorted(__all__)
