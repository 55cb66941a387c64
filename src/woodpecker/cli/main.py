# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command line entry point for converting question sets.

Examples:
  # Decode a TOON document to JSON
  woodpecker-toon decode sets/arrays.toon

  # Export a JSON list of questions as a pipe table
  woodpecker-toon encode questions.json > questions.toon

  # Read an exported pipe table back into JSON
  cat questions.toon | woodpecker-toon flat -
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ..config import settings
from ..formatters.flat_table import parse_flat_table
from ..formatters.toon import ToonParseError, to_toon
from ..services.question_service import QuestionSetService

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def read_source(source: str) -> str:
    """Read a file path, or stdin when ``source`` is ``-``."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="woodpecker-toon",
        description="Convert Woodpecker question sets between TOON and JSON",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: WOODPECKER_LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    decode_parser = subparsers.add_parser("decode", help="Decode a TOON document to JSON")
    decode_parser.add_argument("source", help="Input file, or - for stdin")

    encode_parser = subparsers.add_parser("encode", help="Encode a JSON list of records as a pipe table")
    encode_parser.add_argument("source", help="Input file, or - for stdin")

    flat_parser = subparsers.add_parser("flat", help="Decode a legacy pipe/comma table to JSON")
    flat_parser.add_argument("source", help="Input file, or - for stdin")

    return parser


def run(args: argparse.Namespace) -> str:
    """Execute a parsed command and return the text to print."""
    text = read_source(args.source)

    if args.command == "decode":
        result = QuestionSetService().decode(text)
        return json.dumps(result, indent=2, ensure_ascii=False)

    if args.command == "encode":
        try:
            records = json.loads(text)
        except json.JSONDecodeError as e:
            raise ToonParseError(f"Invalid JSON syntax: {e.msg} (line {e.lineno}, column {e.colno})") from e
        return to_toon(records)

    if args.command == "flat":
        return json.dumps(parse_flat_table(text), indent=2, ensure_ascii=False)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        level = (args.log_level or settings.log.log_level).upper()
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
        output = run(args)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
