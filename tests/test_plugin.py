"""Tests for the rdflib parser plugin."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from rdflib import Graph, Literal, Namespace, RDF, URIRef

from mdrdf.plugin import register_plugin
from mdrdf.types import MicrodataParseError


SCHEMA = Namespace("http://schema.org/")

HTML = """
<html><body>
  <div itemscope itemtype="http://schema.org/Person" itemid="people/alice">
    <span itemprop="name">Alice</span>
    <a itemprop="url" href="/alice">home</a>
  </div>
</body></html>
"""


@pytest.fixture(autouse=True)
def _registered():
    register_plugin()


class TestGraphParse:
    def test_parse_data(self):
        g = Graph()
        g.parse(data=HTML, format="microdata", publicID="http://example.org/page")
        person = next(g.subjects(RDF.type, SCHEMA.Person))
        assert person == URIRef("http://example.org/people/alice")
        assert g.value(person, SCHEMA.name) == Literal("Alice")
        assert g.value(person, SCHEMA.url) == URIRef("http://example.org/alice")

    def test_alias_format_name(self):
        g = Graph()
        g.parse(data=HTML, format="html-microdata", publicID="http://example.org/page")
        assert len(g) == 3

    def test_parse_file(self, tmp_path):
        path = tmp_path / "page.html"
        path.write_text(HTML, encoding="utf-8")
        g = Graph()
        g.parse(str(path), format="microdata", publicID="http://example.org/page")
        assert (None, SCHEMA.name, Literal("Alice")) in g

    def test_fatal_raises(self):
        g = Graph()
        html = '<div itemscope><a itemprop="url">home</a></div>'
        with pytest.raises(MicrodataParseError, match="missing href"):
            g.parse(data=html, format="microdata", publicID="http://example.org/page")
