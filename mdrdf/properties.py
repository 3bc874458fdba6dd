"""Property discovery — which elements carry an item's properties.

W3C reference: HTML Microdata, "crawl the properties" algorithm, as used by
Microdata to RDF Section 4.1 step 8.

Discovery is breadth-first from the item's root, extended with the
elements named by its itemref tokens, and stops at nested item
boundaries. Because itemref can pull in elements from anywhere in the
document, results are re-sorted into document order at the end.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from .values import attr_value


def child_elements(element: Tag) -> list[Tag]:
    return [child for child in element.children if isinstance(child, Tag)]


def is_item(element: Tag) -> bool:
    return element.has_attr("itemscope")


def has_property_names(element: Tag) -> bool:
    """True when itemprop or itemprop-reverse holds at least one name."""
    return bool(attr_value(element, "itemprop").split()) or bool(
        attr_value(element, "itemprop-reverse").split()
    )


# ---------------------------------------------------------------------------
# Document index
# ---------------------------------------------------------------------------

@dataclass
class DocumentIndex:
    """Per-parse lookups over one document, keyed by element identity.

    bs4 compares tags structurally, so two identical <span> elements are
    equal; id() is used wherever element identity matters.
    """
    document: Tag
    order: dict[int, int] = field(default_factory=dict)
    by_id: dict[str, Tag] = field(default_factory=dict)

    @classmethod
    def build(cls, document: Tag) -> DocumentIndex:
        index = cls(document=document)
        index.order[id(document)] = 0
        for position, element in enumerate(document.find_all(True), start=1):
            index.order[id(element)] = position
            element_id = attr_value(element, "id")
            if element_id and element_id not in index.by_id:
                index.by_id[element_id] = element
        return index

    def position(self, element: Tag) -> int:
        return self.order[id(element)]

    def element_by_id(self, element_id: str) -> Tag | None:
        """First element in document order whose id is `element_id`."""
        return self.by_id.get(element_id)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

def find_top_level_items(document: BeautifulSoup | Tag) -> list[Tag]:
    """Items that are not themselves properties, in document order.

    The document argument counts too, so a single item Tag can be extracted.
    """
    return [
        element
        for element in [document, *document.find_all(True)]
        if is_item(element)
        and not element.has_attr("itemprop")
        and not element.has_attr("itemprop-reverse")
    ]


def find_properties(root: Tag, index: DocumentIndex) -> list[Tag]:
    """Return the property elements of the item rooted at `root`.

    Revisiting an element (an itemref cycle, or an itemref pointing into
    the root's own subtree) is not an error; the repeat is ignored.
    """
    results: list[Tag] = []
    seen: set[int] = {id(root)}
    pending: deque[Tag] = deque(child_elements(root))

    for token in attr_value(root, "itemref").split():
        referenced = index.element_by_id(token)
        if referenced is not None:
            pending.append(referenced)

    while pending:
        current = pending.popleft()
        if id(current) in seen:
            continue
        seen.add(id(current))

        if not is_item(current):
            pending.extend(child_elements(current))

        if has_property_names(current):
            results.append(current)

    results.sort(key=index.position)
    return results
