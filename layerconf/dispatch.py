"""Per-component validator lookup.

Each top-level component names a validator unit: either an explicit override
(environment-style setting) or, by convention, the component name plus
``_yaml``. A unit is any object exposing a zero-argument ``validator()``
returning the component's validator; it may also expose
``config_change(old, new)`` to react to reloads.
"""
from __future__ import annotations

import importlib
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

from .document import items
from .errors import UnitLookupError, ValidationError
from .reasons import BadValidatorUnit, InvalidEnvSource, UnsupportedComponent
from .schema import Validator

__all__ = [
    "UNIT_SUFFIX",
    "ValidatorProvider",
    "RegistryProvider",
    "ModuleProvider",
    "unit_name_for",
    "dispatch",
]

logger = logging.getLogger(__name__)

UNIT_SUFFIX = "_yaml"


class ValidatorProvider(Protocol):
    def lookup(self, unit_name: str) -> Any:
        """Return the unit called `unit_name` or raise UnitLookupError."""
        ...


class RegistryProvider:
    """Static unit registry; no reflection involved."""

    def __init__(self, units: Optional[Mapping[str, Any]] = None):
        self._units: Dict[str, Any] = dict(units or {})

    def register(self, unit_name: str, unit: Any) -> None:
        self._units[unit_name] = unit

    def unregister(self, unit_name: str) -> None:
        self._units.pop(unit_name, None)

    def lookup(self, unit_name: str) -> Any:
        try:
            return self._units[unit_name]
        except KeyError:
            raise UnitLookupError(f"unit '{unit_name}' is not registered") from None


class ModuleProvider:
    """Import units as Python modules, optionally under a package."""

    def __init__(self, package: Optional[str] = None):
        self.package = package

    def lookup(self, unit_name: str) -> Any:
        module_name = f"{self.package}.{unit_name}" if self.package else unit_name
        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only a missing unit counts as "not found"; a missing dependency
            # of an existing unit is a broken unit.
            if e.name == module_name or module_name.startswith(f"{e.name}."):
                raise UnitLookupError(f"no module named '{module_name}'") from e
            raise


def unit_name_for(component: str, overrides: Optional[Mapping[str, Any]] = None) -> str:
    if overrides and component in overrides:
        unit_name = overrides[component]
        if not isinstance(unit_name, str) or not unit_name.strip():
            raise ValidationError(InvalidEnvSource(f"validator:{component}", unit_name))
        return unit_name.strip()
    return f"{component}{UNIT_SUFFIX}"


def _validator_for(component: str, provider: ValidatorProvider, overrides: Optional[Mapping[str, Any]]) -> Validator:
    unit_name = unit_name_for(component, overrides)
    try:
        unit = provider.lookup(unit_name)
    except UnitLookupError:
        raise ValidationError(UnsupportedComponent(component)) from None
    except Exception as e:  # noqa: BLE001
        raise ValidationError(BadValidatorUnit(component, e)) from e

    factory = getattr(unit, "validator", None)
    if not callable(factory):
        raise ValidationError(BadValidatorUnit(component, f"unit '{unit_name}' does not define validator()"))
    try:
        validator = factory()
    except Exception as e:  # noqa: BLE001
        raise ValidationError(BadValidatorUnit(component, e)) from e
    if not callable(validator):
        raise ValidationError(
            BadValidatorUnit(component, f"validator() of unit '{unit_name}' returned {type(validator).__name__}")
        )
    logger.debug("component %s validated by unit %s", component, unit_name)
    return validator


def dispatch(
    component_options: Any,
    provider: ValidatorProvider,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Validator]:
    """Build the validator registry for every component, in document order.

    Fails fast: the first component without a usable validator aborts the
    whole dispatch, before any component's options are validated.
    """
    registry: Dict[str, Validator] = {}
    for component, _opts in items(component_options):
        registry[component] = _validator_for(component, provider, overrides)
    return registry
