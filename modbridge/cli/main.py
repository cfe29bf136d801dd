"""
CLI entry point for modbridge — developer tools for looking at a host
through the bridge.

Usage
─────
  # Dump the member table of an importable class or object
  modbridge inspect collections:OrderedDict
  modbridge inspect mygame.world:Building --json --no-private

  # Run a fallback chain against an object and show what happened
  modbridge probe mygame.world:default_building displayName localizedName title
  modbridge probe mygame.world:default_building count --field --expect int
  modbridge probe mygame.world:Registry Instance instance Get --static

  # Same against a binding-table dump instead of Python objects
  modbridge inspect Game.Building --table dump.json
  modbridge probe Building number --table dump.json --expect int

Commands are standalone functions (cmd_inspect, cmd_probe) so they can be
unit-tested without argparse.
"""

import argparse
import importlib
import json as _json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from modbridge.bridge import FallbackChain, InvocationResult, MemorySink, SafeInvoker
from modbridge.config import BridgeConfig
from modbridge.host import PythonHost, TableHost, TypeShape, describe_type

__all__ = ["build_parser", "cmd_inspect", "cmd_probe", "main"]

logger = logging.getLogger(__name__)

_EXPECT = {
    "any":   Any,
    "int":   int,
    "float": float,
    "str":   str,
    "bool":  bool,
    "list":  list,
}


# ── Argument parser ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    """
    Build and return the top-level argument parser.

    Subcommands: inspect | probe
    """
    parser = argparse.ArgumentParser(
        prog="modbridge",
        description="Inspect and probe opaque host objects through the modbridge facade",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable verbose debug logging",
    )

    sub = parser.add_subparsers(dest="subcommand")

    # ── inspect ───────────────────────────────────────────────────────────
    ins = sub.add_parser("inspect", help="Dump the member table of a host type")
    ins.add_argument(
        "target",
        metavar="MODULE:ATTR",
        help="Importable object or class (or a type name with --table)",
    )
    ins.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the type shape as JSON",
    )
    ins.add_argument(
        "--no-private",
        action="store_true",
        default=False,
        dest="no_private",
        help="Hide _private members",
    )
    ins.add_argument(
        "--declared",
        action="store_true",
        default=False,
        help="Only members declared on the type itself (text output)",
    )
    ins.add_argument(
        "--table",
        default=None,
        metavar="PATH",
        help="Binding-table JSON dump to use instead of Python reflection",
    )

    # ── probe ─────────────────────────────────────────────────────────────
    prb = sub.add_parser("probe", help="Try candidate member names in order")
    prb.add_argument(
        "target",
        metavar="MODULE:ATTR",
        help="Importable object (or a type name with --table)",
    )
    prb.add_argument(
        "names",
        nargs="+",
        metavar="NAME",
        help="Candidate member names, most preferred first",
    )
    prb.add_argument(
        "--field",
        action="store_true",
        default=False,
        help="Only read fields/properties, never call methods",
    )
    prb.add_argument(
        "--arg",
        action="append",
        default=[],
        dest="args",
        metavar="VALUE",
        help="Call argument (JSON literal, else a string); repeatable",
    )
    prb.add_argument(
        "--expect",
        choices=sorted(_EXPECT),
        default="any",
        help="Caller type to coerce the result to (default: any)",
    )
    prb.add_argument(
        "--static",
        action="store_true",
        default=False,
        help="Probe static members of the target type",
    )
    prb.add_argument(
        "--table",
        default=None,
        metavar="PATH",
        help="Binding-table JSON dump to use instead of Python reflection",
    )

    return parser


# ── Helpers ───────────────────────────────────────────────────────────────────


def _load_target(target: str) -> Any:
    """Import `module:attr.path` (or `module`); raises ValueError if it cannot."""
    module_name, _, attr_path = target.partition(":")
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"cannot import {module_name!r}: {exc}") from None
    for part in filter(None, attr_path.split(".")):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ValueError(f"{target!r}: no attribute {part!r}") from None
    return obj


def _load_table(path: str) -> TableHost:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"cannot read table {path!r}: {exc}") from None
    try:
        return TableHost.from_json(text)
    except (ValueError, KeyError) as exc:
        raise ValueError(f"malformed table {path!r}: {exc}") from None


def _parse_arg(text: str) -> Any:
    try:
        return _json.loads(text)
    except ValueError:
        return text


# ── Command implementations ───────────────────────────────────────────────────


def cmd_inspect(
    target: str,
    as_json: bool = False,
    include_private: bool = True,
    inherited: bool = True,
    table_path: Optional[str] = None,
) -> TypeShape:
    """
    Print the member table of `target`'s type.

    A class target is described itself; any other object is described by
    its runtime type. With `table_path`, `target` names a table type.

    Raises:
        ValueError if the target or table cannot be loaded.
    """
    if table_path:
        host = _load_table(table_path)
        type_token = host.find_type(target)
        if type_token is None:
            raise ValueError(f"no type {target!r} in {table_path}")
    else:
        host = PythonHost(include_private=include_private)
        obj = _load_target(target)
        type_token = obj if isinstance(obj, type) else host.type_of(obj)

    shape = describe_type(host, type_token)
    logger.debug("Inspected %s: %d members", shape.name, len(shape.members))
    print(shape.to_json() if as_json else shape.to_text(inherited=inherited))
    return shape


def cmd_probe(
    target: str,
    names: Sequence[str],
    field_only: bool = False,
    args: Sequence[Any] = (),
    expect: str = "any",
    static: bool = False,
    table_path: Optional[str] = None,
) -> InvocationResult:
    """
    Run the candidates in `names` as one fallback chain against `target`
    and print the winning value and every diagnostic the bridge emitted.

    Raises:
        ValueError if the target or table cannot be loaded.
    """
    expected = _EXPECT[expect]
    sink = MemorySink()

    if table_path:
        host = _load_table(table_path)
        if host.find_type(target) is None:
            raise ValueError(f"no type {target!r} in {table_path}")
        bridge = SafeInvoker(host, sink=sink)
        handle = target if static else host.new(target)
    else:
        bridge = SafeInvoker(PythonHost(), sink=sink, config=BridgeConfig.from_env())
        handle = _load_target(target)

    if static:
        chain = FallbackChain(names)
        result = chain.run(
            lambda c: bridge.try_invoke_static(handle, c.name, *args, expected=expected, report=False)
        )
        if not result.ok:
            bridge.report(result, "invoke_static")
    elif field_only:
        result = bridge.try_get_first_field(handle, names, expected=expected)
    else:
        result = bridge.try_invoke_first(handle, names, *args, expected=expected)

    if result.ok:
        print(f"{result.member} = {result.value!r}")
    else:
        print(f"{'|'.join(names)}: {result.kind.value}")
    for record in sink.records:
        print(f"  ! {record}")
    return result


# ── Entry point ───────────────────────────────────────────────────────────────


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)

    level = logging.DEBUG if ns.debug else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")

    if ns.subcommand is None:
        parser.print_help()
        return 0

    if ns.subcommand == "inspect":
        try:
            cmd_inspect(
                target=ns.target,
                as_json=ns.json,
                include_private=not ns.no_private,
                inherited=not ns.declared,
                table_path=ns.table,
            )
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        return 0

    if ns.subcommand == "probe":
        try:
            result = cmd_probe(
                target=ns.target,
                names=ns.names,
                field_only=ns.field,
                args=[_parse_arg(a) for a in ns.args],
                expect=ns.expect,
                static=ns.static,
                table_path=ns.table,
            )
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        return 0 if result.ok else 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
