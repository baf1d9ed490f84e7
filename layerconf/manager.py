"""Apply validated configuration to the live snapshot; load/reload lifecycle.

Two states: unloaded (no snapshot) and loaded. A first load installs the
configuration directly. A reload swaps the snapshot first and then notifies
every component; notification failures are logged and never roll the swap
back. A failed validation never touches the snapshot.

Lifecycle entry points return None on success and the failure `Reason`
otherwise.
"""
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .dispatch import ModuleProvider, ValidatorProvider, unit_name_for
from .errors import (
    ChangeNotificationError,
    ConfigError,
    UnitLookupError,
    ValidationError,
    format_error,
)
from .io.refs import Reference, format_ref
from .pipeline import Pipeline, ResolvedConfig
from .reasons import (
    BENIGN_CHANGE_KINDS,
    ChangeHookFailed,
    Reason,
    UndefinedEnvSource,
    UnitNotFound,
)
from .settings import ON_FAIL_CRASH, ON_FAIL_STOP, Settings
from .store import ConfigStore

__all__ = [
    "ComponentNotifier",
    "ConfigManager",
    "diff",
    "flush_logging",
    "report_change_errors",
]

logger = logging.getLogger(__name__)

ChangeErrors = Sequence[Tuple[str, Reason]]
Changes = Dict[str, Tuple[Any, Any]]
Notifier = Callable[[Changes, List[str], List[str]], Optional[Iterable[Tuple[str, Reason]]]]


def flush_logging() -> None:
    """Flush every handler of every known logger (before crash/halt)."""
    loggers = [logging.getLogger()]
    loggers += [lg for lg in logging.Logger.manager.loggerDict.values() if isinstance(lg, logging.Logger)]
    for lg in loggers:
        for handler in lg.handlers:
            handler.flush()


def report_change_errors(errors: ChangeErrors) -> List[Tuple[str, Reason]]:
    """Drop benign notification errors, log the rest; return what was logged."""
    kept = [(name, reason) for name, reason in errors if reason.kind not in BENIGN_CHANGE_KINDS]
    for name, reason in kept:
        logger.warning("Failed to change configuration of component '%s': %s", name, format_error(reason))
    return kept


class ComponentNotifier:
    """Calls each affected component's optional ``config_change(old, new)`` hook.

    Components new to the snapshot get ``old=None``, removed ones get
    ``new=None``. A hook may return a Reason to report a failure, or raise.
    """

    def __init__(self, provider: ValidatorProvider, overrides: Optional[Mapping[str, Any]] = None):
        self.provider = provider
        self.overrides = dict(overrides or {})

    def _notify_one(self, name: str, old: Any, new: Any) -> Optional[Reason]:
        try:
            unit = self.provider.lookup(unit_name_for(name, self.overrides))
        except (UnitLookupError, ValidationError):
            return UnitNotFound(name)
        except Exception as e:  # noqa: BLE001
            return ChangeHookFailed(name, e)
        hook = getattr(unit, "config_change", None)
        if not callable(hook):
            return None
        try:
            result = hook(old, new)
        except Exception as e:  # noqa: BLE001
            return ChangeHookFailed(name, e)
        return result if isinstance(result, Reason) else None

    def __call__(self, changed: Changes, new: List[str], removed: List[str]) -> List[Tuple[str, Reason]]:
        errors: List[Tuple[str, Reason]] = []
        for name, (old_value, new_value) in changed.items():
            reason = self._notify_one(name, old_value, new_value)
            if reason is not None:
                errors.append((name, reason))
        return errors


def diff(old: Mapping[str, Any], new: Mapping[str, Any]) -> Tuple[Changes, List[str], List[str]]:
    """Split a snapshot change into (changed, new, removed).

    ``changed`` maps every affected component to ``(old, new)``, with None
    standing in for the missing side of added and removed components.
    """
    changed: Changes = {}
    added: List[str] = []
    for name, value in new.items():
        if name not in old:
            added.append(name)
            changed[name] = (None, value)
        elif old[name] != value:
            changed[name] = (old[name], value)
    removed = [name for name in old if name not in new]
    for name in removed:
        changed[name] = (old[name], None)
    return changed, added, removed


def _prep_path(path: Any) -> str:
    if isinstance(path, bytes):
        path = path.decode("utf-8")
    elif isinstance(path, os.PathLike):
        path = os.fspath(path)
    if not isinstance(path, str) or not path:
        raise TypeError(f"expected a non-empty path, got {path!r}")
    return path


def _default_halt(status: int) -> None:
    os._exit(status)


class ConfigManager:
    """Owns the live snapshot and the load/reload lifecycle.

    One lock serializes apply/load/reload; readers use `get()` without it.
    """

    def __init__(
        self,
        store: Optional[ConfigStore] = None,
        pipeline: Optional[Pipeline] = None,
        *,
        settings: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
        halt: Callable[[int], None] = _default_halt,
    ):
        self.settings = settings if settings is not None else Settings()
        self.store = store if store is not None else ConfigStore()
        self.pipeline = pipeline if pipeline is not None else Pipeline(
            ModuleProvider(self.settings.unit_package),
            overrides=self.settings.validators,
        )
        self.notifier: Notifier = notifier if notifier is not None else ComponentNotifier(
            self.pipeline.provider, self.pipeline.overrides
        )
        self._halt = halt
        self._lock = threading.RLock()
        self._source: Optional[Reference] = None
        self.started = False

    # ---- apply ------------------------------------------------------------

    def apply(self, config: ResolvedConfig, is_reload: bool) -> List[Tuple[str, Reason]]:
        """Install `config`; on reload, notify components afterwards.

        Returns the notification errors that were reported (empty on first
        load). Raises RuntimeError when reloading with nothing loaded.
        """
        with self._lock:
            if not is_reload:
                self.store.swap(config)
                return []
            if not self.store.loaded:
                raise RuntimeError("reload requested before any configuration was loaded")
            old = self.store.swap(config) or {}
            new = self.store.get() or {}
            changed, added, removed = diff(old, new)
            if not changed:
                return []
            try:
                errors = list(self.notifier(changed, added, removed) or ())
            except ChangeNotificationError as e:
                errors = e.errors
            except Exception as e:  # noqa: BLE001
                logger.warning("Failed to change configuration of components: %s", format_error(e))
                return []
            return report_change_errors(errors)

    # ---- lifecycle --------------------------------------------------------

    def get(self) -> Optional[Mapping[str, Any]]:
        return self.store.get()

    def load(self, doc: Any) -> Optional[Reason]:
        return self._run(lambda: self._apply_doc(doc, False))

    def reload(self, doc: Any) -> Optional[Reason]:
        return self._run(lambda: self._apply_doc(doc, True))

    def load_file(self, path: Any) -> Optional[Reason]:
        path = _prep_path(path)
        return self._run(lambda: self._apply_file(path, False))

    def reload_file(self, path: Any = None) -> Optional[Reason]:
        if path is not None:
            path = _prep_path(path)
        return self._run(lambda: self._apply_file(path, True))

    def get_current_source_path(self) -> Optional[str]:
        """Path of the last successfully loaded file, else the configured one."""
        if self._source is not None:
            return format_ref(self._source)
        try:
            return self.settings.source_file()
        except ConfigError:
            return None

    def start(self) -> Optional[Reason]:
        """Load the configured file, if any. Failures follow `settings.on_fail`."""
        with self._lock:
            try:
                path = self.settings.source_file()
            except ConfigError as e:
                if isinstance(e.reason, UndefinedEnvSource):
                    logger.debug("no configuration file set; starting empty")
                    self.started = True
                    return None
                logger.critical("%s", format_error(e.reason))
                return self._startup_failed(e.reason)
            reason = self.load_file(path)
            if reason is not None:
                logger.critical("Failed to load configuration from %s: %s", path, format_error(reason))
                return self._startup_failed(reason)
            self.started = True
            return None

    def stop(self) -> None:
        with self._lock:
            self.store.clear()
            self._source = None
            self.started = False

    # ---- internals --------------------------------------------------------

    def _run(self, fn: Callable[[], None]) -> Optional[Reason]:
        try:
            with self._lock:
                fn()
        except ConfigError as e:
            return e.reason
        return None

    def _apply_doc(self, doc: Any, is_reload: bool) -> None:
        config = self.pipeline.validate(doc)
        self.apply(config, is_reload)
        logger.info("configuration %s: %d component(s)", "reloaded" if is_reload else "loaded", len(config))

    def _apply_file(self, path: Optional[str], is_reload: bool) -> None:
        if path is None:
            path = self.get_current_source_path() or self.settings.source_file()
        ref, config = self.pipeline.load_file(path)
        self.apply(config, is_reload)
        self._source = ref
        logger.info(
            "configuration %s from %s: %d component(s)",
            "reloaded" if is_reload else "loaded",
            format_ref(ref),
            len(config),
        )

    def _startup_failed(self, reason: Reason) -> Optional[Reason]:
        policy = self.settings.on_fail
        if policy == ON_FAIL_STOP:
            return reason
        flush_logging()
        if policy == ON_FAIL_CRASH:
            raise SystemExit(format_error(reason))
        self._halt(1)
        return reason
