"""Command-line extraction: python -m mdrdf page.html --base http://example.org/page

Reads an HTML file (or stdin with "-"), extracts its microdata and prints
the graph. Settings come from MDRDF_* environment variables (a .env file
is honoured) and are overridden by flags.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from dotenv import load_dotenv

from .processor import extract_html
from .sinks import GraphSink
from .types import ParseOptions


logger = logging.getLogger("mdrdf")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdrdf",
        description="Extract HTML microdata as RDF.",
    )
    parser.add_argument("file", help="HTML file to read, or - for stdin")
    parser.add_argument("--base", default=None, help="base URI of the document")
    parser.add_argument("--format", default="turtle", help="rdflib serialization format")
    parser.add_argument("--strict-ids", action="store_true",
                        help="fail on relative itemid values")
    parser.add_argument("--strict-types", action="store_true",
                        help="fail on relative itemtype tokens")
    parser.add_argument("--registry", default=None, help="path to a registry JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()

    options = ParseOptions.from_env()
    options = replace(
        options,
        fail_on_relative_item_ids=options.fail_on_relative_item_ids or args.strict_ids,
        fail_on_relative_item_types=options.fail_on_relative_item_types or args.strict_types,
        registry=args.registry or options.registry,
    )

    if args.file == "-":
        markup = sys.stdin.buffer.read()
    else:
        with open(args.file, "rb") as fh:
            markup = fh.read()

    sink = GraphSink()
    result = extract_html(markup, args.base, sink=sink, options=options)
    if not result.success:
        logger.error("%s", result.summary())
        return 1

    sys.stdout.write(sink.graph.serialize(format=args.format))
    logger.info("%d triples, %d warnings", result.triple_count, len(result.warnings))
    return 0


if __name__ == "__main__":
    sys.exit(main())
