"""Predicate URI construction and vocabulary derivation.

W3C reference: Microdata to RDF, Section 4.2 (generate predicate URI) and
steps 6-7 of Section 4.1 (vocabulary from the registry or the type).
"""

from __future__ import annotations

import re
from urllib.parse import urldefrag, urljoin

from .registry import MicrodataRegistry, RegistryEntry
from .types import EvaluationContext


_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


def is_absolute_uri(value: str) -> bool:
    """True when `value` carries a URI scheme."""
    return bool(_SCHEME.match(value))


def resolve_reference(reference: str, base_uri: str | None) -> str | None:
    """Resolve `reference` against `base_uri`; None when no absolute URI results."""
    reference = reference.strip()
    if is_absolute_uri(reference):
        return reference
    if not base_uri:
        return None
    resolved = urljoin(base_uri, reference)
    return resolved if is_absolute_uri(resolved) else None


def derive_vocabulary(
    primary_type: str | None,
    registry: MicrodataRegistry,
) -> tuple[str | None, RegistryEntry | None]:
    """Return (vocabulary, registry entry) for an item's primary type.

    A registry match wins. Otherwise the type is cut after its last '#',
    or failing that its last '/'. Neither present means no vocabulary.
    """
    if not primary_type:
        return None, None

    entry = registry.match(primary_type)
    if entry is not None:
        return entry.prefix, entry

    for separator in ("#", "/"):
        index = primary_type.rfind(separator)
        if index != -1:
            return primary_type[: index + 1], None
    return None, None


def resolve_predicate(name: str, context: EvaluationContext, base_uri: str | None) -> str:
    """Expand a property name into an absolute predicate URI.

    Never fails: a type with no derivable vocabulary is treated like a
    missing type, and a missing base yields a bare fragment reference.
    """
    if is_absolute_uri(name):
        return name

    vocabulary = context.current_vocabulary
    if context.current_type is None or not vocabulary:
        document, _ = urldefrag(base_uri or "")
        return f"{document}#{name}"

    if vocabulary.endswith(("#", "/")):
        return vocabulary + name
    return f"{vocabulary}#{name}"
