"""Triple sinks — where extracted statements go.

A sink receives start(), one triple() call per statement as soon as it is
produced, and end() once the document is finished. A fatal error stops
the stream without end(). Statements are never retracted.
"""

from __future__ import annotations

from typing import Protocol

from rdflib import Graph, URIRef

from .types import Subject, Value


Triple = tuple[Subject, URIRef, Value]


class TripleSink(Protocol):
    def start(self) -> None: ...

    def triple(self, triple: Triple) -> None: ...

    def end(self) -> None: ...


class GraphSink:
    """Adds every statement to an rdflib Graph."""

    def __init__(self, graph: Graph | None = None) -> None:
        self.graph = graph if graph is not None else Graph()

    def start(self) -> None:
        pass

    def triple(self, triple: Triple) -> None:
        self.graph.add(triple)

    def end(self) -> None:
        pass


class ListSink:
    """Keeps statements in emission order, duplicates included."""

    def __init__(self) -> None:
        self.triples: list[Triple] = []
        self.started = False
        self.ended = False

    def start(self) -> None:
        self.started = True

    def triple(self, triple: Triple) -> None:
        self.triples.append(triple)

    def end(self) -> None:
        self.ended = True

    def __len__(self) -> int:
        return len(self.triples)
