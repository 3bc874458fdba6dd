"""Core types for microdata extraction.

W3C reference: Microdata to RDF, Section 4 (evaluation context) and the
extraction result surfaced to callers.

A parse threads three kinds of values through the algorithm:
  - EvaluationContext: (current type, current vocabulary), immutable
  - ParseOptions: the caller's policy for relative ids/types and the registry
  - Diagnostic / ExtractionResult: what the caller gets back
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Union

from rdflib import BNode, Graph, Literal, URIRef


Subject = Union[URIRef, BNode]
Value = Union[URIRef, BNode, Literal]


# ---------------------------------------------------------------------------
# Evaluation context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EvaluationContext:
    """The (current type, current vocabulary) pair.

    W3C reference: Microdata to RDF, Section 4.1 — "current type" and
    "current vocabulary" of the evaluation context. The memory component
    lives on the per-parse state instead.
    """
    current_type: str | None = None
    current_vocabulary: str | None = None

    def derive(self, current_type: str | None, current_vocabulary: str | None) -> EvaluationContext:
        """Return a copy for a nested item; the receiver is left untouched."""
        return replace(self, current_type=current_type, current_vocabulary=current_vocabulary)

    def __repr__(self) -> str:
        return f"Context(type={self.current_type}, vocab={self.current_vocabulary})"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in _TRUTHY


@dataclass(frozen=True)
class ParseOptions:
    """Caller policy for one extraction.

    fail_on_relative_item_ids / fail_on_relative_item_types turn the
    corresponding warnings into fatal errors. registry is anything
    accepted by registry.load_registry (None selects the bundled default).
    blank_node_prefix makes blank node labels deterministic.
    """
    fail_on_relative_item_ids: bool = False
    fail_on_relative_item_types: bool = False
    registry: Any = None
    blank_node_prefix: str | None = None

    @classmethod
    def from_env(cls) -> ParseOptions:
        """Build options from MDRDF_* environment variables."""
        return cls(
            fail_on_relative_item_ids=_env_flag("MDRDF_FAIL_ON_RELATIVE_ITEMIDS"),
            fail_on_relative_item_types=_env_flag("MDRDF_FAIL_ON_RELATIVE_ITEMTYPES"),
            registry=os.getenv("MDRDF_REGISTRY") or None,
        )


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

class Severity(Enum):
    ERROR = "error"      # fatal, aborts the parse
    WARNING = "warning"  # recoverable, traversal continues


@dataclass(frozen=True)
class Diagnostic:
    """A single finding reported during extraction."""
    severity: Severity
    message: str
    element: str = ""  # short description of the offending element

    def __repr__(self) -> str:
        where = f" at {self.element}" if self.element else ""
        return f"[{self.severity.value.upper()}] {self.message}{where}"


class MicrodataParseError(Exception):
    """Unrecoverable extraction error; unwinds the whole parse."""

    def __init__(self, message: str, element: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.element = element

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(Severity.ERROR, self.message, self.element)


# ---------------------------------------------------------------------------
# Extraction result
# ---------------------------------------------------------------------------

@dataclass
class ExtractionResult:
    """Outcome of one extraction: completed, or aborted by a fatal error.

    Warnings are collected in both cases. When the caller did not supply a
    sink, graph holds the rdflib Graph the triples were written to.
    """
    success: bool
    diagnostics: list[Diagnostic] = field(default_factory=list)
    triple_count: int = 0
    graph: Graph | None = None
    fatal: Diagnostic | None = None

    @staticmethod
    def completed(
        diagnostics: list[Diagnostic],
        triple_count: int,
        graph: Graph | None = None,
    ) -> ExtractionResult:
        return ExtractionResult(
            success=True,
            diagnostics=list(diagnostics),
            triple_count=triple_count,
            graph=graph,
        )

    @staticmethod
    def aborted(
        fatal: Diagnostic,
        diagnostics: list[Diagnostic],
        triple_count: int,
        graph: Graph | None = None,
    ) -> ExtractionResult:
        return ExtractionResult(
            success=False,
            diagnostics=list(diagnostics) + [fatal],
            triple_count=triple_count,
            graph=graph,
            fatal=fatal,
        )

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def summary(self) -> str:
        lines = []
        status = "COMPLETED" if self.success else "ABORTED"
        lines.append(f"Microdata extraction: {status} ({self.triple_count} triples)")
        lines.append("-" * 50)
        if self.diagnostics:
            for d in self.diagnostics:
                lines.append(f"  - {d!r}")
        else:
            lines.append("  No diagnostics.")
        return "\n".join(lines)
