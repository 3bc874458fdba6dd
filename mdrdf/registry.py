"""Microdata registry — vocabulary prefixes and property equivalences.

W3C reference: Microdata to RDF, Section 2 (Microdata Registry)

The registry maps URI prefixes of known item types to a vocabulary and,
per property name, lists the URIs the property is a sub-property of or
equivalent to. Its JSON form is the one the W3C publishes:

    {
      "http://schema.org/": {
        "properties": {
          "additionalType": {"subPropertyOf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"}
        }
      }
    }

Relation values may be a single URI string or a list of URIs.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rdflib import RDF


SUBPROPERTY_OF = "subPropertyOf"
EQUIVALENT_PROPERTY = "equivalentProperty"

# Order matters: equivalent triples are emitted in this order.
EQUIVALENCE_RELATIONS = (SUBPROPERTY_OF, EQUIVALENT_PROPERTY)


# ---------------------------------------------------------------------------
# Bundled default registry
# ---------------------------------------------------------------------------

DEFAULT_REGISTRY: dict[str, Any] = {
    "http://schema.org/": {
        "properties": {
            "additionalType": {SUBPROPERTY_OF: str(RDF.type)},
        },
    },
    "https://schema.org/": {
        "properties": {
            "additionalType": {SUBPROPERTY_OF: str(RDF.type)},
        },
    },
    "http://microformats.org/profile/hcard": {},
    "http://microformats.org/profile/hcalendar#": {},
    "http://data-vocabulary.org/": {},
}


# ---------------------------------------------------------------------------
# Registry entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegistryEntry:
    """One vocabulary: its prefix URI and declared property equivalences."""
    prefix: str
    properties: Mapping[str, Mapping[str, tuple[str, ...]]] = field(
        default_factory=dict, hash=False, compare=False
    )

    def equivalents(self, name: str, relation: str) -> list[str]:
        """Return the URIs declared for `name` under `relation`, in order."""
        return list(self.properties.get(name, {}).get(relation, ()))

    def __repr__(self) -> str:
        return f"RegistryEntry({self.prefix})"


def _as_uri_list(value: Any, prefix: str, name: str, relation: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ValueError(
        f"Registry entry '{prefix}' property '{name}': "
        f"'{relation}' must be a URI or a list of URIs"
    )


def _build_entry(prefix: str, body: Any) -> RegistryEntry:
    if not isinstance(body, Mapping):
        raise ValueError(f"Registry entry '{prefix}' must be an object")
    raw_props = body.get("properties", {})
    if not isinstance(raw_props, Mapping):
        raise ValueError(f"Registry entry '{prefix}': 'properties' must be an object")

    properties: dict[str, dict[str, tuple[str, ...]]] = {}
    for name, decl in raw_props.items():
        if not isinstance(decl, Mapping):
            raise ValueError(f"Registry entry '{prefix}' property '{name}' must be an object")
        # Other keys (propertyURI, multipleValues) belong to older registry
        # revisions and carry no meaning for extraction.
        properties[name] = {
            relation: _as_uri_list(decl[relation], prefix, name, relation)
            for relation in EQUIVALENCE_RELATIONS
            if relation in decl
        }
    return RegistryEntry(prefix=prefix, properties=properties)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass
class MicrodataRegistry:
    """Read-only lookup table of registered vocabularies."""

    entries: dict[str, RegistryEntry] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MicrodataRegistry:
        if not isinstance(data, Mapping):
            raise ValueError("Registry document must be a JSON object")
        return cls({prefix: _build_entry(prefix, body) for prefix, body in data.items()})

    @classmethod
    def from_file(cls, path: str | Path) -> MicrodataRegistry:
        with open(path, encoding="utf-8") as fh:
            return cls.from_mapping(json.load(fh))

    def match(self, type_uri: str) -> RegistryEntry | None:
        """Longest registered prefix that `type_uri` starts with."""
        best: RegistryEntry | None = None
        for prefix, entry in self.entries.items():
            if type_uri.startswith(prefix) and (best is None or len(prefix) > len(best.prefix)):
                best = entry
        return best

    def __contains__(self, prefix: object) -> bool:
        return prefix in self.entries

    def __repr__(self) -> str:
        return f"MicrodataRegistry({len(self.entries)} vocabularies)"


def load_registry(source: Any = None) -> MicrodataRegistry:
    """Resolve a registry source into a MicrodataRegistry.

    Accepts None (bundled default), a MicrodataRegistry (returned as is),
    a mapping in registry JSON form, or a path to a registry JSON file.
    """
    if source is None:
        return MicrodataRegistry.from_mapping(DEFAULT_REGISTRY)
    if isinstance(source, MicrodataRegistry):
        return source
    if isinstance(source, Mapping):
        return MicrodataRegistry.from_mapping(source)
    if isinstance(source, (str, Path)):
        return MicrodataRegistry.from_file(source)
    raise TypeError(f"Unsupported registry source: {type(source).__name__}")
