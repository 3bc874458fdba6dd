"""Item processing — generating the triples of microdata items.

W3C reference: Microdata to RDF, Section 4.1 (generate the triples)

All mutable state of a parse lives on a ParseState created by extract()
and passed explicitly to every recursive call:

  - the document index (tree order, first element per id)
  - the registry and the caller's ParseOptions
  - memory: element identity → subject, shared by the whole parse
  - diagnostics collected so far
  - the sink receiving triples

Each item's triples are generated once per parse. Reaching an element that
is already in memory (a shared item, or an itemref cycle back to an item
still being processed) returns its subject without regenerating anything.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag
from rdflib import BNode, Literal, RDF, URIRef

from .predicates import derive_vocabulary, is_absolute_uri, resolve_predicate, resolve_reference
from .properties import DocumentIndex, find_properties, find_top_level_items, is_item
from .registry import EQUIVALENCE_RELATIONS, MicrodataRegistry, RegistryEntry, load_registry
from .sinks import GraphSink, Triple, TripleSink
from .types import (
    Diagnostic,
    EvaluationContext,
    ExtractionResult,
    MicrodataParseError,
    ParseOptions,
    Severity,
    Subject,
    Value,
)
from .values import attr_value, coerce, describe_element


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-parse state
# ---------------------------------------------------------------------------

@dataclass
class ParseState:
    """Everything one extraction reads and writes."""
    index: DocumentIndex
    base_uri: str | None
    registry: MicrodataRegistry
    options: ParseOptions
    sink: TripleSink
    memory: dict[int, Subject] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    triple_count: int = 0
    blank_node_prefix: str = ""
    _blank_nodes: int = 0

    def emit(self, subject: Subject, predicate: URIRef, obj: Value) -> None:
        triple: Triple = (subject, predicate, obj)
        self.sink.triple(triple)
        self.triple_count += 1

    def warn(self, message: str, element: Tag) -> None:
        diagnostic = Diagnostic(Severity.WARNING, message, describe_element(element))
        self.diagnostics.append(diagnostic)
        logger.warning("%s at %s", message, diagnostic.element)

    def mint_blank_node(self) -> BNode:
        self._blank_nodes += 1
        return BNode(f"{self.blank_node_prefix}b{self._blank_nodes}")


# ---------------------------------------------------------------------------
# Item processing
# ---------------------------------------------------------------------------

def _resolve_subject(state: ParseState, element: Tag) -> Subject:
    """Steps 1-2: subject from itemid resolved against the base, else a fresh blank node."""
    if element.has_attr("itemid"):
        item_id = attr_value(element, "itemid").strip()
        resolved = resolve_reference(item_id, state.base_uri)
        if resolved is not None:
            return URIRef(resolved)
        message = f"relative itemid '{item_id}'"
        if state.options.fail_on_relative_item_ids:
            raise MicrodataParseError(message, describe_element(element))
        state.warn(f"{message}; using a blank node", element)
    return state.mint_blank_node()


def _emit_types(state: ParseState, element: Tag, subject: Subject) -> str | None:
    """Step 3: rdf:type triples. Returns the first absolute type, if any."""
    primary_type: str | None = None
    for token in attr_value(element, "itemtype").split():
        if not is_absolute_uri(token):
            message = f"relative itemtype '{token}'"
            if state.options.fail_on_relative_item_types:
                raise MicrodataParseError(message, describe_element(element))
            state.warn(f"{message}; skipped", element)
            continue
        state.emit(subject, RDF.type, URIRef(token))
        if primary_type is None:
            primary_type = token
    return primary_type


def _property_value(state: ParseState, element: Tag, context: EvaluationContext) -> Value:
    if is_item(element):
        return process_item(state, element, context)
    return coerce(element, state.base_uri, on_warning=state.warn)


def process_item(state: ParseState, element: Tag, context: EvaluationContext) -> Subject:
    """Generate the triples for the item rooted at `element`.

    Returns the item's subject. Nested items are processed inline, at the
    point their value is needed, with this item's type and vocabulary as
    their context.
    """
    remembered = state.memory.get(id(element))
    if remembered is not None:
        return remembered

    subject = _resolve_subject(state, element)
    state.memory[id(element)] = subject
    logger.debug("processing item %s as %s", describe_element(element), subject)

    # Only when no own type token is absolute does the inherited type apply.
    primary_type = _emit_types(state, element, subject)
    if primary_type is None:
        primary_type = context.current_type

    vocabulary, entry = derive_vocabulary(primary_type, state.registry)
    item_context = context.derive(primary_type, vocabulary)

    for prop in find_properties(element, state.index):
        _process_property(state, prop, subject, item_context, entry)

    return subject


def _process_property(
    state: ParseState,
    element: Tag,
    subject: Subject,
    context: EvaluationContext,
    entry: RegistryEntry | None,
) -> None:
    """Steps 9-10: forward then reverse property triples for one element."""
    names = attr_value(element, "itemprop").split()
    reverse_names = attr_value(element, "itemprop-reverse").split()

    value: Value | None = None
    if names or reverse_names:
        value = _property_value(state, element, context)

    for name in names:
        predicate = URIRef(resolve_predicate(name, context, state.base_uri))
        state.emit(subject, predicate, value)
        if entry is None:
            continue
        for relation in EQUIVALENCE_RELATIONS:
            for equivalent in entry.equivalents(name, relation):
                state.emit(subject, URIRef(equivalent), value)

    if isinstance(value, Literal):
        # Literals cannot be subjects; reverse properties onto them are dropped.
        return
    for name in reverse_names:
        predicate = URIRef(resolve_predicate(name, context, state.base_uri))
        state.emit(value, predicate, subject)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def extract(
    document: BeautifulSoup | Tag,
    base_uri: str | None = None,
    sink: TripleSink | None = None,
    options: ParseOptions | None = None,
) -> ExtractionResult:
    """Extract the microdata of `document` into `sink`.

    Without a sink, triples go to a new rdflib Graph returned on the
    result. A fatal error stops the stream (no end() call) and yields an
    aborted result; statements already delivered stay delivered.
    """
    options = options or ParseOptions()
    registry = load_registry(options.registry)

    graph_sink: GraphSink | None = None
    if sink is None:
        graph_sink = GraphSink()
        sink = graph_sink
    graph = graph_sink.graph if graph_sink is not None else None

    state = ParseState(
        index=DocumentIndex.build(document),
        base_uri=base_uri,
        registry=registry,
        options=options,
        sink=sink,
        blank_node_prefix=options.blank_node_prefix
        if options.blank_node_prefix is not None
        else f"md{uuid.uuid4().hex[:12]}",
    )

    sink.start()
    try:
        for item in find_top_level_items(document):
            process_item(state, item, EvaluationContext())
    except MicrodataParseError as exc:
        fatal = exc.to_diagnostic()
        logger.error("microdata extraction aborted: %r", fatal)
        return ExtractionResult.aborted(fatal, state.diagnostics, state.triple_count, graph)
    sink.end()

    logger.debug("extracted %d triples", state.triple_count)
    return ExtractionResult.completed(state.diagnostics, state.triple_count, graph)


def extract_html(
    markup: str | bytes,
    base_uri: str | None = None,
    sink: TripleSink | None = None,
    options: ParseOptions | None = None,
    features: str = "html.parser",
) -> ExtractionResult:
    """Parse `markup` with BeautifulSoup and extract its microdata.

    A <base href> in the document, resolved against `base_uri`, becomes
    the base for relative references.
    """
    soup = BeautifulSoup(markup, features)
    return extract(soup, document_base_uri(soup, base_uri), sink=sink, options=options)


def document_base_uri(document: BeautifulSoup | Tag, base_uri: str | None) -> str | None:
    base = document.find("base", href=True)
    if base is None:
        return base_uri
    return resolve_reference(attr_value(base, "href"), base_uri) or base_uri
