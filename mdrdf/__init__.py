"""mdrdf — HTML Microdata to RDF.

Extracts the microdata items of an HTML document (itemscope, itemtype,
itemid, itemprop, itemprop-reverse, itemref) as RDF triples, following the
W3C Microdata to RDF algorithm. The package is organised leaves first:

- Registry (registry): vocabulary prefixes and property equivalences
- Predicates (predicates): vocabulary derivation and predicate URIs
- Values (values): element-kind dispatch and literal datatypes
- Properties (properties): breadth-first property discovery with itemref
- Processor (processor): item subjects, type triples, recursion, memory

Triples stream into a sink (sinks) as they are produced; an rdflib Graph
is the default. The rdflib plugin (plugin) makes the extractor available
as Graph.parse(..., format="microdata"). Requires rdflib and beautifulsoup4.
"""

from .processor import extract, extract_html
from .registry import MicrodataRegistry, RegistryEntry, load_registry
from .sinks import GraphSink, ListSink
from .types import (
    Diagnostic,
    EvaluationContext,
    ExtractionResult,
    MicrodataParseError,
    ParseOptions,
    Severity,
)

__all__ = [
    "Diagnostic",
    "EvaluationContext",
    "ExtractionResult",
    "GraphSink",
    "ListSink",
    "MicrodataParseError",
    "MicrodataRegistry",
    "ParseOptions",
    "RegistryEntry",
    "Severity",
    "extract",
    "extract_html",
    "load_registry",
]
