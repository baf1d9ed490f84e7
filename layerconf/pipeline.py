"""Validation pipeline: decode, resolve references, check the top-level shape,
dispatch per-component validators, validate each component's options.

Each stage short-circuits on failure by raising a `ConfigError` carrying the
reason. `validate_api` wraps the whole pipeline without raising.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .dispatch import ModuleProvider, ValidatorProvider, dispatch
from .document import RawMapping, is_mapping, items
from .errors import (
    ConfigError,
    DecodeError,
    FetchError,
    ReferenceFormatError,
    SchemaViolation,
    ValidationError,
)
from .io import fetch as _fetch
from .io.refs import Reference, format_ref, path_to_ref
from .io.yaml_backend import decode as yaml_decode
from .reasons import (
    BadEnumValue,
    BadReference,
    ComponentValidationFailed,
    DuplicateComponent,
    MalformedDocument,
    Reason,
    UnknownOption,
    WrongType,
    with_ctx,
)
from .resolver import DEPTH_LIMIT, InclusionContext, resolve
from .schema import Validator
from .suggest import suggest

__all__ = ["ResolvedConfig", "Pipeline", "default_fetch", "validate_api"]

logger = logging.getLogger(__name__)

ResolvedConfig = Dict[str, Any]


def default_fetch(ref: Reference) -> bytes:
    return _fetch.read(ref, _fetch.MIME_TYPES)


def _enrich(reason: Reason) -> Reason:
    if isinstance(reason, (BadEnumValue, UnknownOption)) and reason.suggestion is None:
        return dataclasses.replace(reason, suggestion=suggest(reason.got, reason.known))
    return reason


def _components(doc: Any) -> List[Tuple[str, Any]]:
    """Top-level shape: a mapping from distinct component names to anything."""
    if not is_mapping(doc):
        raise ValidationError(WrongType("mapping of components", doc))
    seen = set()
    out: List[Tuple[str, Any]] = []
    for name, opts in items(doc):
        if not isinstance(name, str) or not name:
            raise ValidationError(WrongType("component name", name))
        if name in seen:
            raise ValidationError(DuplicateComponent(name))
        seen.add(name)
        out.append((name, opts))
    return out


def _validate_component(name: str, validator: Validator, opts: Any) -> Any:
    try:
        return validator(opts)
    except SchemaViolation as e:
        reason = e.reason
        if hasattr(reason, "ctx"):
            reason = _enrich(with_ctx(reason, (name,)))
        else:
            reason = ComponentValidationFailed(name, reason)
        raise ValidationError(reason) from e
    except ConfigError as e:
        raise ValidationError(ComponentValidationFailed(name, e.reason)) from e
    except Exception as e:  # noqa: BLE001
        raise ValidationError(ComponentValidationFailed(name, e)) from e


class Pipeline:
    """Turns raw YAML (bytes, parsed trees, or files) into a ResolvedConfig.

    Collaborators are injectable: `provider` finds validator units, `fetch`
    reads referenced documents, `decode` parses bytes, `normalize` turns raw
    reference text into a Reference.
    """

    def __init__(
        self,
        provider: Optional[ValidatorProvider] = None,
        *,
        overrides: Optional[Mapping[str, Any]] = None,
        fetch: Callable[[Reference], bytes] = default_fetch,
        decode: Callable[[bytes], Any] = yaml_decode,
        normalize: Callable[..., Reference] = path_to_ref,
        depth_limit: int = DEPTH_LIMIT,
    ):
        self.provider = provider if provider is not None else ModuleProvider()
        self.overrides = dict(overrides or {})
        self.fetch = fetch
        self.decode = decode
        self.normalize = normalize
        self.depth_limit = depth_limit

    def validate(self, doc: Any, source: Optional[Reference] = None) -> ResolvedConfig:
        """Validate an already-decoded document. None (empty document) gives {}."""
        if doc is None:
            return {}
        context = InclusionContext.start(self.depth_limit, source)
        resolved = resolve(doc, self.fetch, self.decode, normalize=self.normalize, context=context)
        if resolved is None:
            return {}
        components = _components(resolved)
        registry = dispatch(RawMapping(components), self.provider, self.overrides)
        config: ResolvedConfig = {}
        for name, opts in components:
            config[name] = _validate_component(name, registry[name], opts)
        return config

    def load_bytes(self, raw: bytes, source: Optional[Reference] = None) -> ResolvedConfig:
        try:
            doc = self.decode(raw)
        except DecodeError as e:
            raise ConfigError(MalformedDocument(e)) from e
        return self.validate(doc, source)

    def read_ref(self, path: Any) -> Tuple[Reference, bytes]:
        """Normalize a top-level path and read its bytes."""
        try:
            ref = self.normalize(path, None)
        except ReferenceFormatError as e:
            raise ConfigError(BadReference(str(path), e)) from e
        try:
            return ref, self.fetch(ref)
        except (FetchError, OSError) as e:
            raise ConfigError(BadReference(format_ref(ref), e)) from e

    def load_file(self, path: Any) -> Tuple[Reference, ResolvedConfig]:
        ref, raw = self.read_ref(path)
        logger.debug("loading configuration from %s", format_ref(ref))
        return ref, self.load_bytes(raw, source=ref)


def validate_api(doc: Any, pipeline: Optional[Pipeline] = None) -> Tuple[bool, Optional[Reason], Optional[ResolvedConfig]]:
    """Stable non-raising API.

    Returns (True, None, config) on success and (False, reason, None) on any
    loading failure.
    """
    pipeline = pipeline or Pipeline()
    try:
        return True, None, pipeline.validate(doc)
    except ConfigError as e:
        return False, e.reason, None
