"""End-to-end tests for item processing and extraction."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from bs4 import BeautifulSoup
from rdflib import BNode, Graph, Literal, Namespace, RDF, URIRef, XSD

from mdrdf.processor import extract, extract_html
from mdrdf.registry import EQUIVALENT_PROPERTY, MicrodataRegistry
from mdrdf.sinks import GraphSink, ListSink
from mdrdf.types import ParseOptions, Severity


SCHEMA = Namespace("http://schema.org/")
BASE = "http://example.org/page"
PAGE = Namespace(BASE + "#")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _run(html: str, base: str | None = BASE, **option_kwargs):
    """Extract `html` into a ListSink with deterministic blank nodes."""
    option_kwargs.setdefault("blank_node_prefix", "t")
    sink = ListSink()
    result = extract_html(html, base, sink=sink, options=ParseOptions(**option_kwargs))
    return result, sink.triples


def _b(n: int) -> BNode:
    return BNode(f"tb{n}")


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_person_with_name(self):
        html = """
        <div itemscope itemtype="http://schema.org/Person">
          <span itemprop="name">Alice</span>
        </div>
        """
        result, triples = _run(html)
        assert result.success
        assert triples == [
            (_b(1), RDF.type, SCHEMA.Person),
            (_b(1), SCHEMA.name, Literal("Alice")),
        ]

    def test_meter_integer(self):
        html = '<div itemscope><meter itemprop="rating" value="42"></meter></div>'
        _, triples = _run(html)
        assert len(triples) == 1
        subject, predicate, obj = triples[0]
        assert predicate == PAGE.rating
        assert str(obj) == "42"
        assert obj.datatype == XSD.integer

    def test_relative_itemid_warns(self):
        html = '<div itemscope itemid="people/alice"><span itemprop="name">Alice</span></div>'
        result, triples = _run(html, base=None)
        assert result.success
        assert isinstance(triples[0][0], BNode)
        assert len(result.warnings) == 1
        assert "people/alice" in result.warnings[0].message

    def test_relative_itemid_fatal_when_configured(self):
        html = '<div itemscope itemid="people/alice"><span itemprop="name">Alice</span></div>'
        result, triples = _run(html, base=None, fail_on_relative_item_ids=True)
        assert not result.success
        assert result.fatal.severity == Severity.ERROR
        assert triples == []


# ---------------------------------------------------------------------------
# Subjects and types
# ---------------------------------------------------------------------------

class TestSubjectsAndTypes:
    def test_absolute_itemid_is_subject(self):
        html = '<div itemscope itemid="http://example.org/alice" itemtype="http://schema.org/Person"></div>'
        _, triples = _run(html)
        assert triples == [(URIRef("http://example.org/alice"), RDF.type, SCHEMA.Person)]

    def test_relative_itemid_resolved_against_base(self):
        html = '<div itemscope itemid="/people/alice"><span itemprop="name">Alice</span></div>'
        result, triples = _run(html, fail_on_relative_item_ids=True)
        assert result.success
        assert result.warnings == []
        assert triples == [(URIRef("http://example.org/people/alice"), PAGE.name, Literal("Alice"))]

    def test_first_absolute_type_is_primary(self):
        html = """
        <div itemscope itemtype="Thing http://schema.org/Book http://example.org/v#Work">
          <span itemprop="title">Dune</span>
        </div>
        """
        result, triples = _run(html)
        assert triples == [
            (_b(1), RDF.type, SCHEMA.Book),
            (_b(1), RDF.type, URIRef("http://example.org/v#Work")),
            (_b(1), SCHEMA.title, Literal("Dune")),
        ]
        assert len(result.warnings) == 1
        assert "Thing" in result.warnings[0].message

    def test_relative_itemtype_fatal_when_configured(self):
        html = '<div itemscope itemtype="Thing"></div>'
        result, _ = _run(html, fail_on_relative_item_types=True)
        assert not result.success
        assert "Thing" in result.fatal.message

    def test_untyped_item_uses_document_base(self):
        html = '<div itemscope><span itemprop="title">x</span></div>'
        _, triples = _run(html)
        assert triples == [(_b(1), PAGE.title, Literal("x"))]

    def test_hash_vocabulary_from_type(self):
        html = '<div itemscope itemtype="http://example.org/v#Work"><span itemprop="title">x</span></div>'
        _, triples = _run(html)
        assert triples[1] == (_b(1), URIRef("http://example.org/v#title"), Literal("x"))


# ---------------------------------------------------------------------------
# Nesting, sharing and cycles
# ---------------------------------------------------------------------------

class TestNesting:
    def test_nested_item_inherits_type_and_vocabulary(self):
        html = """
        <div itemscope itemtype="http://schema.org/Person">
          <div itemprop="address" itemscope>
            <span itemprop="streetAddress">Main St</span>
          </div>
          <span itemprop="name">Alice</span>
        </div>
        """
        _, triples = _run(html)
        assert triples == [
            (_b(1), RDF.type, SCHEMA.Person),
            (_b(2), SCHEMA.streetAddress, Literal("Main St")),
            (_b(1), SCHEMA.address, _b(2)),
            (_b(1), SCHEMA.name, Literal("Alice")),
        ]

    def test_nested_item_own_type_wins(self):
        html = """
        <div itemscope itemtype="http://schema.org/Person">
          <div itemprop="knows" itemscope itemtype="http://example.org/v#Agent">
            <span itemprop="label">Bob</span>
          </div>
        </div>
        """
        _, triples = _run(html)
        assert (_b(2), URIRef("http://example.org/v#label"), Literal("Bob")) in triples

    def test_shared_item_has_one_subject(self):
        html = """
        <div itemscope itemref="shared"></div>
        <div itemscope itemref="shared"></div>
        <div id="shared" itemprop="knows" itemscope><span itemprop="name">Bob</span></div>
        """
        _, triples = _run(html)
        knows = [t for t in triples if t[1] == PAGE.knows]
        names = [t for t in triples if t[1] == PAGE.name]
        assert len(knows) == 2
        assert knows[0][2] == knows[1][2]
        assert knows[0][0] != knows[1][0]
        assert names == [(knows[0][2], PAGE.name, Literal("Bob"))]

    def test_itemref_cycle_terminates(self):
        html = """
        <div itemscope itemref="x"></div>
        <div id="x" itemprop="knows" itemscope itemref="y"></div>
        <div id="y" itemprop="knows" itemscope itemref="x"></div>
        """
        _, triples = _run(html)
        assert triples == [
            (_b(3), PAGE.knows, _b(2)),
            (_b(2), PAGE.knows, _b(3)),
            (_b(1), PAGE.knows, _b(2)),
        ]


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

class TestProperties:
    def test_multiple_names_on_one_element(self):
        html = '<div itemscope itemtype="http://schema.org/Thing"><span itemprop="name alternateName">X</span></div>'
        _, triples = _run(html)
        assert triples[1:] == [
            (_b(1), SCHEMA.name, Literal("X")),
            (_b(1), SCHEMA.alternateName, Literal("X")),
        ]

    def test_absolute_property_name(self):
        html = '<div itemscope><span itemprop="http://purl.org/dc/terms/title">X</span></div>'
        _, triples = _run(html)
        assert triples == [(_b(1), URIRef("http://purl.org/dc/terms/title"), Literal("X"))]

    def test_document_order_with_itemref(self):
        html = """
        <p id="early" itemprop="a">1</p>
        <div itemscope itemref="early late"><span itemprop="b">2</span></div>
        <p id="late" itemprop="c">3</p>
        """
        _, triples = _run(html)
        assert [t[1] for t in triples] == [PAGE.a, PAGE.b, PAGE.c]

    def test_reverse_property(self):
        html = """
        <div itemscope itemtype="http://schema.org/Person">
          <div itemprop-reverse="author" itemscope itemtype="http://schema.org/Book">
            <span itemprop="name">Dune</span>
          </div>
        </div>
        """
        _, triples = _run(html)
        assert triples == [
            (_b(1), RDF.type, SCHEMA.Person),
            (_b(2), RDF.type, SCHEMA.Book),
            (_b(2), SCHEMA.name, Literal("Dune")),
            (_b(2), SCHEMA.author, _b(1)),
        ]

    def test_reverse_property_onto_literal_dropped(self):
        html = '<div itemscope><span itemprop-reverse="mentions">text</span></div>'
        result, triples = _run(html)
        assert result.success
        assert triples == []
        assert result.diagnostics == []

    def test_reverse_property_onto_link(self):
        html = '<div itemscope><a itemprop-reverse="cites" href="/other">o</a></div>'
        _, triples = _run(html)
        assert triples == [(URIRef("http://example.org/other"), PAGE.cites, _b(1))]

    def test_registry_subproperty(self):
        html = """
        <div itemscope itemtype="http://schema.org/Product">
          <link itemprop="additionalType" href="http://example.org/Gadget">
        </div>
        """
        _, triples = _run(html)
        gadget = URIRef("http://example.org/Gadget")
        assert triples == [
            (_b(1), RDF.type, SCHEMA.Product),
            (_b(1), SCHEMA.additionalType, gadget),
            (_b(1), RDF.type, gadget),
        ]

    def test_registry_equivalent_property(self):
        registry = MicrodataRegistry.from_mapping({
            "http://example.org/vocab/": {
                "properties": {
                    "title": {EQUIVALENT_PROPERTY: ["http://purl.org/dc/terms/title"]},
                },
            },
        })
        html = '<div itemscope itemtype="http://example.org/vocab/Doc"><h1 itemprop="title">T</h1></div>'
        _, triples = _run(html, registry=registry)
        assert triples[1:] == [
            (_b(1), URIRef("http://example.org/vocab/title"), Literal("T")),
            (_b(1), URIRef("http://purl.org/dc/terms/title"), Literal("T")),
        ]

    def test_no_equivalents_without_registry_entry(self):
        html = """
        <div itemscope itemtype="http://example.org/v/Thing">
          <link itemprop="additionalType" href="http://example.org/Gadget">
        </div>
        """
        _, triples = _run(html)
        assert len(triples) == 2


# ---------------------------------------------------------------------------
# Stream behaviour
# ---------------------------------------------------------------------------

class TestStream:
    HTML = """
    <div itemscope itemtype="http://schema.org/Person">
      <span itemprop="name">Alice</span>
      <div itemprop="knows" itemscope><span itemprop="name">Bob</span></div>
      <a itemprop="url" href="/alice">home</a>
    </div>
    <div itemscope itemtype="http://schema.org/Place"><span itemprop="name">Here</span></div>
    """

    def test_deterministic(self):
        _, first = _run(self.HTML)
        _, second = _run(self.HTML)
        assert first == second
        assert [str(part) for t in first for part in t] == [str(part) for t in second for part in t]

    def test_start_and_end_called(self):
        sink = ListSink()
        result = extract_html(self.HTML, BASE, sink=sink)
        assert result.success
        assert sink.started and sink.ended
        assert result.triple_count == len(sink) == 7

    def test_fatal_stops_stream(self):
        html = """
        <div itemscope itemtype="http://schema.org/Person">
          <a itemprop="url">no href</a>
        </div>
        <div itemscope itemtype="http://schema.org/Place"></div>
        """
        sink = ListSink()
        result = extract_html(html, BASE, sink=sink)
        assert not result.success
        assert "missing href" in result.fatal.message
        assert sink.started and not sink.ended
        # The type triple emitted before the failure is kept.
        assert sink.triples == [(sink.triples[0][0], RDF.type, SCHEMA.Person)]

    def test_default_graph_sink(self):
        result = extract_html(self.HTML, BASE)
        assert isinstance(result.graph, Graph)
        assert (None, SCHEMA.url, URIRef("http://example.org/alice")) in result.graph

    def test_existing_graph(self):
        graph = Graph()
        soup = BeautifulSoup(self.HTML, "html.parser")
        result = extract(soup, BASE, sink=GraphSink(graph))
        assert result.graph is None
        assert len(graph) == 7

    def test_item_element_as_root(self):
        soup = BeautifulSoup(
            '<div itemscope itemtype="http://schema.org/Thing"><span itemprop="name">A</span></div>',
            "html.parser",
        )
        sink = ListSink()
        result = extract(soup.find("div"), BASE, sink=sink, options=ParseOptions(blank_node_prefix="t"))
        assert result.success
        assert sink.triples == [
            (_b(1), RDF.type, SCHEMA.Thing),
            (_b(1), SCHEMA.name, Literal("A")),
        ]

    def test_random_blank_nodes_differ_between_parses(self):
        first = extract_html(self.HTML, BASE).graph
        second = extract_html(self.HTML, BASE).graph
        assert not set(first.subjects()) & set(second.subjects())

    def test_base_element(self):
        html = """
        <head><base href="/docs/"></head>
        <div itemscope><a itemprop="next" href="page2">next</a></div>
        """
        _, triples = _run(html)
        assert triples[0][2] == URIRef("http://example.org/docs/page2")
