"""YAML decoder producing raw document trees (PyYAML safe loader)."""
from __future__ import annotations

from typing import Any, Union

import yaml

from ..document import RawMapping
from ..errors import DecodeError

__all__ = ["decode", "RawLoader"]


class RawLoader(yaml.SafeLoader):
    """SafeLoader whose mappings keep order and duplicate keys."""


def _construct_mapping(loader: RawLoader, node: yaml.MappingNode) -> RawMapping:
    loader.flatten_mapping(node)
    pairs = []
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=True)
        value = loader.construct_object(value_node, deep=True)
        pairs.append((key, value))
    return RawMapping(pairs)


RawLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_mapping)


def decode(data: Union[bytes, str]) -> Any:
    """Decode a single YAML document.

    Empty input (no document at all) returns None. Streams with more than
    one document are rejected.
    """
    try:
        docs = list(yaml.load_all(data, Loader=RawLoader))
    except yaml.YAMLError as e:
        raise DecodeError(str(e).strip() or e.__class__.__name__) from e
    if not docs:
        return None
    if len(docs) > 1:
        raise DecodeError(f"expected a single document, found {len(docs)}")
    return docs[0]
