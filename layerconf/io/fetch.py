"""Read the raw bytes behind a Reference (local file or http(s) URL)."""
from __future__ import annotations

import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional, Sequence

from ..errors import (
    FetchError,
    ReferenceNotFound,
    ReferenceUnreadable,
    UnsupportedContentType,
)
from .refs import Reference

__all__ = ["MIME_TYPES", "read"]

logger = logging.getLogger(__name__)

# Content types accepted for configuration documents, in preference order.
MIME_TYPES = (
    "application/json",
    "application/yaml",
    "application/x-yaml",
    "application/octet-stream",
    "text/x-yaml",
    "text/plain",
)


def _read_file(ref: Reference) -> bytes:
    path = Path(ref.location)
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise ReferenceNotFound(f"No such file: {ref.location}") from e
    except IsADirectoryError as e:
        raise ReferenceUnreadable(f"Is a directory: {ref.location}") from e
    except PermissionError as e:
        raise ReferenceUnreadable(f"Permission denied: {ref.location}") from e
    except OSError as e:
        raise ReferenceUnreadable(f"{e.strerror or e}: {ref.location}") from e


def _read_url(ref: Reference, mime_types: Sequence[str], timeout: Optional[float]) -> bytes:
    req = urllib.request.Request(
        ref.location,
        headers={"accept": ", ".join(mime_types)},
        method="GET",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            ctype = (resp.headers.get_content_type() or "").lower()
            if mime_types and ctype not in mime_types:
                raise UnsupportedContentType(
                    f"Unexpected content type '{ctype}' (accepted: {', '.join(mime_types)})"
                )
            return resp.read()
    except urllib.error.HTTPError as e:
        if e.code == 404:
            raise ReferenceNotFound(f"HTTP 404 Not Found: {ref.location}") from e
        raise ReferenceUnreadable(f"HTTP {e.code} {e.reason}: {ref.location}") from e
    except urllib.error.URLError as e:
        raise ReferenceUnreadable(f"{e.reason}: {ref.location}") from e
    except OSError as e:
        raise ReferenceUnreadable(f"{e}: {ref.location}") from e


def read(
    ref: Reference,
    mime_types: Sequence[str] = MIME_TYPES,
    timeout: Optional[float] = None,
) -> bytes:
    """Return the bytes behind `ref` or raise a FetchError subclass.

    No timeout is applied unless the caller provides one.
    """
    logger.debug("reading %s", ref.location)
    if ref.is_file:
        return _read_file(ref)
    if ref.scheme in ("http", "https"):
        return _read_url(ref, mime_types, timeout)
    raise FetchError(f"Unsupported reference scheme: {ref.scheme}")
