"""CLI subcommand `validate`: load a configuration file without installing it.

Exit codes:
  0 = OK
  1 = Validation errors (any loading failure of the document)
  2 = Bad usage
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List

from ..dispatch import ModuleProvider
from ..document import is_mapping, items
from ..errors import ConfigError, format_error
from ..pipeline import Pipeline
from ..settings import Settings

OK = 0
INVALID = 1
USER_ERR = 2

_HELP = "Validate a configuration file"


def register(subparsers: argparse._SubParsersAction) -> None:
    sp = subparsers.add_parser("validate", help=_HELP, description=_HELP)
    sp.add_argument("path", help="Configuration file or http(s) URL.")
    sp.add_argument("--json", action="store_true", help="Print the resolved configuration as JSON.")
    sp.add_argument(
        "--component-package",
        dest="component_package",
        default=None,
        help="Package holding the <component>_yaml validator units.",
    )
    sp.add_argument(
        "--validator",
        action="append",
        default=[],
        metavar="COMPONENT=UNIT",
        help="Validator unit override (repeatable).",
    )
    sp.set_defaults(command="validate", func=_run)


def _eprint(*args: Any) -> None:
    print(*args, file=sys.stderr)


def _overrides(specs: List[str], base: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for item in specs:
        name, sep, unit = item.partition("=")
        if not sep or not name:
            raise ValueError(f"expected COMPONENT=UNIT, got {item!r}")
        out[name] = unit
    return out


def _to_json(obj: Any) -> Any:
    if is_mapping(obj):
        return {str(k): _to_json(v) for k, v in items(obj)}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [_to_json(x) for x in obj]
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)


def _run(ns: argparse.Namespace) -> int:
    settings = Settings.from_env(os.environ)
    try:
        overrides = _overrides(ns.validator, settings.validators)
    except ValueError as ex:
        _eprint(f"error: {ex}")
        return USER_ERR
    package = ns.component_package or settings.unit_package
    pipeline = Pipeline(ModuleProvider(package), overrides=overrides)

    try:
        _ref, config = pipeline.load_file(ns.path)
    except ConfigError as e:
        _eprint("CONFIG INVALID\n" + format_error(e.reason))
        return INVALID

    if ns.json:
        sys.stdout.write(json.dumps(_to_json(config), ensure_ascii=False, sort_keys=True))
        sys.stdout.write("\n")
        sys.stdout.flush()
        return OK
    print("OK")
    for name in config:
        print(f"{name}: {len(config[name]) if isinstance(config[name], dict) else 1} option(s)")
    return OK
