"""wpcalc CLI: weakest preconditions from the command line.

Commands:
  wpcalc wp "<program>" --post "<expr>"     # derive wp(program, expr)
  wpcalc wp prog.txt --file --post "<expr>"  # read the program from a file
  wpcalc parse "<program>" [--expression]    # parse and print rendered form
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional

from wpcalc import __version__
from wpcalc.calculator import calculate
from wpcalc.config import load_config
from wpcalc.errors import WPError
from wpcalc.parser import parse_expression, parse_statement

logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_wp(args: argparse.Namespace) -> int:
    """Compute the weakest precondition of a program."""
    try:
        config = load_config(args.config)
    except WPError as e:
        print(e.to_json())
        return 1

    _configure_logging("DEBUG" if args.verbose else config.log_level)
    output_format = args.format or config.format
    show_steps = config.show_steps and not args.no_steps

    program = args.program
    if args.file:
        if not os.path.exists(program):
            print(json.dumps({"error": f"File not found: {program}"}))
            return 1
        try:
            with open(program, "r", encoding="utf-8") as f:
                program = f.read()
        except (OSError, UnicodeDecodeError) as e:
            print(json.dumps({"error": f"Cannot read {program}: {e}"}))
            return 1

    try:
        result = calculate(program, args.post)
    except WPError as e:
        logger.debug("calculation failed: %s", e)
        print(e.to_json())
        return 1

    if output_format == "json":
        report = result.to_dict()
        if not show_steps:
            report.pop("steps")
        print(json.dumps(report, indent=2))
        return 0

    if show_steps:
        print("Steps:")
        for step in result.steps:
            print(f"  {step}")
    print(f"wp = {result.precondition}")
    return 0


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a program or expression and print its rendered form."""
    try:
        if args.expression:
            node = parse_expression(args.text)
        else:
            node = parse_statement(args.text)
    except WPError as e:
        print(e.to_json())
        return 1
    print(node)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wpcalc",
        description="Weakest-precondition calculator for a small imperative language",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # wp
    p_wp = subparsers.add_parser("wp", help="Derive the weakest precondition of a program")
    p_wp.add_argument("program", help="Program text (or a path with --file)")
    p_wp.add_argument("--post", required=True, help="Postcondition expression")
    p_wp.add_argument("--file", action="store_true", help="Treat PROGRAM as a file path")
    p_wp.add_argument("--format", choices=["text", "json"], default=None,
                      help="Output format (default: from config, else text)")
    p_wp.add_argument("--no-steps", action="store_true", dest="no_steps",
                      help="Do not print the derivation steps")
    p_wp.add_argument("--config", default=None, help="Path to a .wpcalcrc file")
    p_wp.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    p_wp.set_defaults(func=cmd_wp)

    # parse
    p_parse = subparsers.add_parser(
        "parse",
        help="Parse and print rendered form",
        description="Parse a program or expression and print its rendered form.",
    )
    p_parse.add_argument("text", help="Program or expression text")
    p_parse.add_argument("--expression", action="store_true",
                         help="Parse TEXT as an expression instead of a program")
    p_parse.set_defaults(func=cmd_parse)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
