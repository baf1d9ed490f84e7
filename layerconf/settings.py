"""Settings of the loader itself, read from the process environment.

    LAYERCONF_FILE                 configuration file loaded by start()
    LAYERCONF_ON_FAIL              stop | crash | halt (startup failure policy)
    LAYERCONF_UNIT_PACKAGE         package searched for validator units
    LAYERCONF_VALIDATOR_<NAME>     validator unit override for component <name>
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError
from .reasons import InvalidEnvSource, UndefinedEnvSource

__all__ = [
    "ENV_FILE",
    "ENV_ON_FAIL",
    "ENV_UNIT_PACKAGE",
    "ENV_VALIDATOR_PREFIX",
    "ON_FAIL_STOP",
    "ON_FAIL_CRASH",
    "ON_FAIL_HALT",
    "Settings",
]

ENV_FILE = "LAYERCONF_FILE"
ENV_ON_FAIL = "LAYERCONF_ON_FAIL"
ENV_UNIT_PACKAGE = "LAYERCONF_UNIT_PACKAGE"
ENV_VALIDATOR_PREFIX = "LAYERCONF_VALIDATOR_"

ON_FAIL_STOP = "stop"
ON_FAIL_CRASH = "crash"
# Any other value halts the process.
ON_FAIL_HALT = "halt"


@dataclass(frozen=True)
class Settings:
    file: Any = None
    on_fail: str = ON_FAIL_STOP
    unit_package: Optional[str] = None
    validators: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        validators: Dict[str, str] = {}
        for key, value in env.items():
            if key.startswith(ENV_VALIDATOR_PREFIX) and len(key) > len(ENV_VALIDATOR_PREFIX):
                validators[key[len(ENV_VALIDATOR_PREFIX):].lower()] = value
        return cls(
            file=env.get(ENV_FILE),
            on_fail=(env.get(ENV_ON_FAIL) or ON_FAIL_STOP).strip().lower(),
            unit_package=env.get(ENV_UNIT_PACKAGE) or None,
            validators=validators,
        )

    def source_file(self) -> str:
        """The configured file path; raises ConfigError when unset or invalid."""
        if self.file is None:
            raise ConfigError(UndefinedEnvSource("file"))
        if isinstance(self.file, bytes):
            try:
                path = self.file.decode("utf-8")
            except UnicodeDecodeError:
                raise ConfigError(InvalidEnvSource("file", self.file)) from None
        elif isinstance(self.file, (str, os.PathLike)):
            path = os.fspath(self.file)
        else:
            raise ConfigError(InvalidEnvSource("file", self.file))
        if not path.strip():
            raise ConfigError(InvalidEnvSource("file", self.file))
        return path
