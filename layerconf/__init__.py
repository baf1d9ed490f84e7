"""layerconf: layered YAML configuration with validation and hot reload.

The module-level functions drive one process-wide `ConfigManager`, created on
first use from the LAYERCONF_* environment settings. Each returns None on
success or the failure reason; `format_error` turns a reason into text.
This module also resolves `__version__` deterministically across installs.
"""
from __future__ import annotations

import threading
from typing import Any, Mapping, Optional

from . import errors as errors  # re-export for star-import; noqa: F401
from .errors import format_error
from .manager import ConfigManager
from .reasons import Reason
from .settings import Settings

try:
    from importlib.metadata import version as _pkg_version, PackageNotFoundError
except ImportError:  # pragma: no cover
    from importlib_metadata import version as _pkg_version, PackageNotFoundError  # type: ignore


def _version_from_metadata() -> Optional[str]:
    try:
        return _pkg_version("layerconf")
    except PackageNotFoundError:
        return None


__version__ = _version_from_metadata() or "0+unknown"

# ---------------------------------------------------------------------------
# Process-wide manager
# ---------------------------------------------------------------------------

_manager: Optional[ConfigManager] = None
_manager_lock = threading.Lock()


def default_manager() -> ConfigManager:
    global _manager
    with _manager_lock:
        if _manager is None:
            _manager = ConfigManager(settings=Settings.from_env())
        return _manager


def set_default_manager(manager: Optional[ConfigManager]) -> Optional[ConfigManager]:
    """Replace the process-wide manager (None resets to lazy creation)."""
    global _manager
    with _manager_lock:
        old, _manager = _manager, manager
    return old


def start() -> Optional[Reason]:
    return default_manager().start()


def stop() -> None:
    default_manager().stop()


def load_file(path: Any) -> Optional[Reason]:
    return default_manager().load_file(path)


def reload_file(path: Any = None) -> Optional[Reason]:
    return default_manager().reload_file(path)


def load(doc: Any) -> Optional[Reason]:
    return default_manager().load(doc)


def reload(doc: Any) -> Optional[Reason]:
    return default_manager().reload(doc)


def get_path() -> Optional[str]:
    return default_manager().get_current_source_path()


def get() -> Optional[Mapping[str, Any]]:
    return default_manager().get()


# Star-export surface (deterministic ordering). Tests require __all__ to be lexicographically sorted.
__all__ = [
    "ConfigManager",
    "Settings",
    "__version__",
    "default_manager",
    "errors",
    "format_error",
    "get",
    "get_path",
    "load",
    "load_file",
    "reload",
    "reload_file",
    "set_default_manager",
    "start",
    "stop",
]
