# layerconf/cli/main.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from . import validate


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="layerconf",
        description="layerconf configuration tools",
        allow_abbrev=False,
    )
    try:
        from layerconf import __version__ as _VER  # lazy import to avoid side effects
    except ImportError:
        _VER = "unknown"
    parser.add_argument(
        "--version",
        action="version",
        version=f"layerconf {_VER}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log resolver and dispatch trace to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command")

    validate.register(subparsers)

    return parser


def main(argv: List[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    ns = parser.parse_args(argv)
    if not hasattr(ns, "func"):
        parser.print_help(sys.stderr)
        return 2
    if ns.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )
    return ns.func(ns)


if __name__ == "__main__":
    raise SystemExit(main())
