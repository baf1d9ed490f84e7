# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable

import pytest

import layerconf
from layerconf.dispatch import RegistryProvider
from layerconf.pipeline import Pipeline
from layerconf.schema import enum, integer, list_of, options, pos_int, string


def http_validator():
    listener = options({"host": string(), "port": pos_int()}, required=["port"])
    return options(
        {
            "port": integer(1, 65535),
            "mode": enum(["fast", "safe"]),
            "listeners": list_of(listener),
        },
        defaults={"mode": "safe"},
    )


def logger_validator():
    return options({"level": enum(["debug", "info", "warning", "error"])}, defaults={"level": "info"})


class RecordingUnit(SimpleNamespace):
    """Validator unit that remembers every config_change call."""

    def __init__(self, make_validator: Callable[[], Any]):
        super().__init__(validator=make_validator, calls=[])

    def config_change(self, old, new):
        self.calls.append((old, new))


@pytest.fixture
def http_unit() -> RecordingUnit:
    return RecordingUnit(http_validator)


@pytest.fixture
def logger_unit() -> RecordingUnit:
    return RecordingUnit(logger_validator)


@pytest.fixture
def provider(http_unit, logger_unit) -> RegistryProvider:
    return RegistryProvider({"http_yaml": http_unit, "logger_yaml": logger_unit})


@pytest.fixture
def pipeline(provider) -> Pipeline:
    return Pipeline(provider)


@pytest.fixture
def write(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a text file under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p

    return _write


@pytest.fixture(autouse=True)
def _reset_default_manager():
    old = layerconf.set_default_manager(None)
    yield
    layerconf.set_default_manager(old)
