"""Reference normalization for `$ref` inclusion targets.

A reference is either a local file (absolute, resolved path) or an http(s)
URL. Path segments starting with ``$`` are replaced by the environment
variable of that name; unset variables are left verbatim.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import unquote, urljoin, urlparse

from ..errors import ReferenceFormatError

__all__ = ["Reference", "ENV_MARKER", "path_to_ref", "format_ref"]

ENV_MARKER = "$"
_URL_SCHEMES = {"http", "https"}


@dataclass(frozen=True)
class Reference:
    scheme: str
    location: str

    @property
    def is_file(self) -> bool:
        return self.scheme == "file"

    def __str__(self) -> str:
        return format_ref(self)


def format_ref(ref: Reference) -> str:
    return ref.location


def _substitute_env(raw: str, env: Mapping[str, str]) -> str:
    parts = raw.split("/")
    out = []
    for part in parts:
        if part.startswith(ENV_MARKER) and len(part) > 1:
            out.append(env.get(part[1:], part))
        else:
            out.append(part)
    return "/".join(out)


def _as_text(raw: Any) -> str:
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ReferenceFormatError(f"reference is not valid UTF-8: {raw!r}") from e
    if isinstance(raw, os.PathLike):
        return os.fspath(raw)
    if isinstance(raw, str):
        return raw
    raise ReferenceFormatError(f"reference must be a string, got {type(raw).__name__}")


def path_to_ref(
    raw: Any,
    base: Optional[Reference] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Reference:
    """Normalize `raw` into a Reference.

    Relative paths resolve against the directory of `base` (the including
    document) when given, else the current working directory.
    """
    text = _as_text(raw).strip()
    if not text:
        raise ReferenceFormatError("empty reference")
    text = _substitute_env(text, os.environ if env is None else env)

    parsed = urlparse(text)
    scheme = parsed.scheme.lower()
    # Windows drive letters parse as one-letter schemes
    if len(scheme) == 1:
        scheme = ""

    if scheme in _URL_SCHEMES:
        if not parsed.netloc:
            raise ReferenceFormatError(f"missing host in URL: {text}")
        return Reference(scheme, text)
    if scheme == "file":
        if parsed.netloc not in ("", "localhost"):
            raise ReferenceFormatError(f"remote file URIs are not supported: {text}")
        text = unquote(parsed.path)
    elif scheme:
        raise ReferenceFormatError(f"unsupported reference scheme '{scheme}': {text}")
    elif base is not None and not base.is_file:
        # relative reference inside a document fetched over http(s)
        return Reference(urlparse(base.location).scheme, urljoin(base.location, text))

    path = Path(text).expanduser()
    if not path.is_absolute():
        root = Path(base.location).parent if base is not None else Path.cwd()
        path = root / path
    return Reference("file", str(path.resolve()))
