"""
rath CLI Entrypoint.

Feeds rath source through the frontend and prints the result.

Features:
    - Read source from `.rath` files or inline strings.
    - Print the token stream, the bracketed tree dump or a JSON tree.
    - Optionally skip constant folding.

Example usage:
    rath program.rath
    rath -s "hi(5, 6);"
    rath -s "let x = 2 + 3" --json
    rath program.rath --tokens --verbose

Functions:
    run_rath(source, is_string=False, ...) -> int:
        Runs the pipeline (lex → parse → fold → output) and returns an exit code.

    main(argv=None) -> int:
        Parses CLI arguments and invokes `run_rath`.
"""

import argparse
import json
import logging
import sys

from rath.rath_compiler import Compiler
from rath.rath_constants import DEFAULT_MAX_DEPTH
from rath.rath_dump import dump
from rath.rath_errors import RathError
from rath.rath_lexer import tokenize

logger = logging.getLogger(__name__)


def run_rath(
    source: str,
    is_string: bool = False,
    tokens: bool = False,
    no_fold: bool = False,
    as_json: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> int:
    """
    Run the rath frontend and print its output.

    Args:
        source (str): The rath source code or path to a `.rath` file.
        is_string (bool): If True, treats `source` as raw code instead of a file path.
        tokens (bool): If True, prints the token stream instead of the tree.
        no_fold (bool): If True, skips constant folding.
        as_json (bool): If True, prints the tree as JSON instead of the bracketed dump.
        max_depth (int): Parser nesting ceiling.

    Returns:
        int: 0 on success, 1 when the source has an error.

    Raises:
        ValueError: If `is_string` is False and the source does not end with '.rath'.
    """
    if not is_string and not source.endswith(".rath"):
        raise ValueError("Only .rath files are supported.")

    filename = "<string>"
    if not is_string:
        filename = source
        with open(source, encoding="utf-8") as f:
            source = f.read()

    try:
        if tokens:
            for tok in tokenize(source, filename):
                print(f"{tok.line}:{tok.offset} {tok.kind} {tok.text!r}")
            return 0

        compiler = Compiler(fold=not no_fold, max_depth=max_depth)
        tree = compiler.compile(filename, source)
    except RathError as e:
        print(e, file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(tree.to_dict() if tree is not None else None, indent=2))
    elif tree is not None:
        print(dump(tree))
    else:
        logger.info("No expressions in %s", filename)
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Entry point for the rath CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as a raw string instead of a file path.
        - `--tokens`: Print the token stream and stop.
        - `--no-fold`: Skip constant folding.
        - `--json`: Print the tree as JSON.
        - `--max-depth`: Parser nesting ceiling.
        - `--verbose`: Enable debug logging.
    """
    parser = argparse.ArgumentParser(prog="rath")
    parser.add_argument("source", help="Filename or raw source (with -s)")
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as literal string"
    )
    parser.add_argument(
        "--tokens", action="store_true", help="Print the token stream and exit"
    )
    parser.add_argument(
        "--no-fold", action="store_true", help="Skip constant folding"
    )
    parser.add_argument(
        "--json", dest="as_json", action="store_true", help="Print the tree as JSON"
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum nesting depth (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    return run_rath(
        source=args.source,
        is_string=args.string,
        tokens=args.tokens,
        no_fold=args.no_fold,
        as_json=args.as_json,
        max_depth=args.max_depth,
    )


if __name__ == "__main__":
    sys.exit(main())
