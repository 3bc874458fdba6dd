"""rdflib parser plugin — Graph.parse(..., format="microdata").

Once registered (register_plugin(), or the rdf.plugins.parser entry point
of an installed package), any rdflib Graph can read microdata directly:

    g = Graph()
    g.parse("page.html", format="microdata", publicID="http://example.org/page")

Fatal conditions raise MicrodataParseError; warnings are logged.
"""

from __future__ import annotations

import logging
from typing import Any

from rdflib import Graph
from rdflib.parser import InputSource, Parser
from rdflib.plugin import register

from .predicates import is_absolute_uri
from .processor import extract_html
from .sinks import GraphSink
from .types import MicrodataParseError, ParseOptions


logger = logging.getLogger(__name__)

FORMAT_NAMES = ("microdata", "html-microdata")


def _base_uri(source: InputSource) -> str | None:
    for candidate in (source.getPublicId(), source.getSystemId()):
        if candidate and is_absolute_uri(str(candidate)):
            return str(candidate)
    return None


def _read(source: InputSource) -> str | bytes:
    stream = source.getByteStream()
    if stream is None:
        stream = source.getCharacterStream()
    if stream is None:
        raise MicrodataParseError("input source has no readable stream")
    return stream.read()


class MicrodataParser(Parser):
    """Reads HTML microdata into the sink graph."""

    def parse(
        self,
        source: InputSource,
        sink: Graph,
        options: ParseOptions | None = None,
        features: str = "html.parser",
        **kwargs: Any,
    ) -> None:
        if options is None:
            options = ParseOptions(
                fail_on_relative_item_ids=bool(kwargs.get("fail_on_relative_item_ids", False)),
                fail_on_relative_item_types=bool(kwargs.get("fail_on_relative_item_types", False)),
                registry=kwargs.get("registry"),
            )

        result = extract_html(
            _read(source),
            _base_uri(source),
            sink=GraphSink(sink),
            options=options,
            features=features,
        )
        if result.fatal is not None:
            raise MicrodataParseError(result.fatal.message, result.fatal.element)
        logger.debug("parsed %d microdata triples (%d warnings)",
                     result.triple_count, len(result.warnings))


def register_plugin() -> None:
    """Register MicrodataParser with rdflib under every FORMAT_NAMES entry."""
    for name in FORMAT_NAMES:
        register(name, Parser, "mdrdf.plugin", "MicrodataParser")
