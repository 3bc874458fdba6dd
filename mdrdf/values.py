"""Value coercion — turning a property element into an RDF value.

W3C reference: Microdata to RDF, Section 4.3 (property value)

Dispatch is over a closed set of element kinds. Each kind names the
attribute it reads and how the string becomes an RDF term:

  HYPERLINK        a, area, link          @href    → URI reference
  MEDIA            audio, embed, ...      @src     → URI reference
  EMBEDDED_OBJECT  object                 @data    → URI reference
  DATA_VALUE       meter, data            @value   → xsd:integer | xsd:double | plain
  META             meta                   @content → plain or language-tagged
  TIME             time                   @datetime or text → first matching xsd type
  GENERIC          anything else          text     → plain or language-tagged
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Callable

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString, Script, Stylesheet, TemplateString
from rdflib import Literal, URIRef, XSD

from .predicates import resolve_reference
from .types import MicrodataParseError, Value


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Element kinds
# ---------------------------------------------------------------------------

class ElementKind(Enum):
    HYPERLINK = "hyperlink"
    MEDIA = "media"
    EMBEDDED_OBJECT = "embedded_object"
    DATA_VALUE = "data_value"
    META = "meta"
    TIME = "time"
    GENERIC = "generic"


_KIND_BY_TAG: dict[str, ElementKind] = {
    "a": ElementKind.HYPERLINK,
    "area": ElementKind.HYPERLINK,
    "link": ElementKind.HYPERLINK,
    "audio": ElementKind.MEDIA,
    "embed": ElementKind.MEDIA,
    "iframe": ElementKind.MEDIA,
    "img": ElementKind.MEDIA,
    "source": ElementKind.MEDIA,
    "track": ElementKind.MEDIA,
    "video": ElementKind.MEDIA,
    "object": ElementKind.EMBEDDED_OBJECT,
    "meter": ElementKind.DATA_VALUE,
    "data": ElementKind.DATA_VALUE,
    "meta": ElementKind.META,
    "time": ElementKind.TIME,
}

# Attribute holding the value for each URI-valued kind
_URI_ATTRIBUTE: dict[ElementKind, str] = {
    ElementKind.HYPERLINK: "href",
    ElementKind.MEDIA: "src",
    ElementKind.EMBEDDED_OBJECT: "data",
}


def element_kind(element: Tag) -> ElementKind:
    return _KIND_BY_TAG.get((element.name or "").lower(), ElementKind.GENERIC)


def describe_element(element: Tag) -> str:
    """Short human-readable form used in diagnostics, e.g. <a itemprop="url">."""
    attrs = " ".join(
        f'{key}="{attr_value(element, key)}"'
        for key in ("id", "itemprop", "itemprop-reverse", "itemtype", "itemid")
        if element.has_attr(key)
    )
    return f"<{element.name} {attrs}>" if attrs else f"<{element.name}>"


def attr_value(element: Tag, name: str) -> str:
    """Attribute value as a string; bs4 returns multi-valued attributes as lists."""
    value = element.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


# ---------------------------------------------------------------------------
# XML Schema lexical forms
# ---------------------------------------------------------------------------

_TZ = r"(?:Z|[+-](?:(?:0[0-9]|1[0-3]):[0-5][0-9]|14:00))?"
_YEAR = r"-?(?:[1-9][0-9]{4,}|[0-9]{4})"
_MONTH = r"(?:0[1-9]|1[0-2])"
_DAY = r"(?:0[1-9]|[12][0-9]|3[01])"
_TIME = r"(?:(?:[01][0-9]|2[0-3]):[0-5][0-9]:[0-5][0-9](?:\.[0-9]+)?|24:00:00(?:\.0+)?)"

_INTEGER = re.compile(r"[+-]?[0-9]+")
_DOUBLE = re.compile(
    r"(?:[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|[+-]?INF|NaN)"
)
_DATE = re.compile(f"{_YEAR}-{_MONTH}-{_DAY}{_TZ}")
_XSD_TIME = re.compile(f"{_TIME}{_TZ}")
_DATETIME = re.compile(f"{_YEAR}-{_MONTH}-{_DAY}T{_TIME}{_TZ}")
_GYEARMONTH = re.compile(f"{_YEAR}-{_MONTH}{_TZ}")
_GYEAR = re.compile(f"{_YEAR}{_TZ}")
_DURATION = re.compile(
    r"-?P(?=.)(?:[0-9]+Y)?(?:[0-9]+M)?(?:[0-9]+D)?"
    r"(?:T(?=.)(?:[0-9]+H)?(?:[0-9]+M)?(?:[0-9]+(?:\.[0-9]+)?S)?)?"
)

# Strict priority: the first datatype whose lexical form matches wins.
TIME_DATATYPES = (
    (_DATE, XSD.date),
    (_XSD_TIME, XSD.time),
    (_DATETIME, XSD.dateTime),
    (_GYEARMONTH, XSD.gYearMonth),
    (_GYEAR, XSD.gYear),
    (_DURATION, XSD.duration),
)

# BCP 47 shape rdflib accepts for language tags
_LANG_TAG = re.compile(r"[a-zA-Z]+(?:-[a-zA-Z0-9]+)*")


def is_valid_integer(value: str) -> bool:
    return bool(_INTEGER.fullmatch(value))


def is_valid_double(value: str) -> bool:
    return bool(_DOUBLE.fullmatch(value))


def time_datatype(value: str) -> URIRef | None:
    """Return the xsd datatype for a time element value, or None."""
    for pattern, datatype in TIME_DATATYPES:
        if pattern.fullmatch(value):
            return datatype
    return None


# ---------------------------------------------------------------------------
# Text and language
# ---------------------------------------------------------------------------

_NON_TEXT_STRINGS = (PreformattedString, Script, Stylesheet, TemplateString)


def text_content(element: Tag) -> str:
    """Concatenate descendant text nodes in document order.

    Comments, CDATA sections, processing instructions and doctypes are
    not text and are skipped, as are script, style and template bodies.
    """
    return "".join(
        str(node)
        for node in element.descendants
        if isinstance(node, NavigableString) and not isinstance(node, _NON_TEXT_STRINGS)
    )


def language_of(element: Tag) -> str | None:
    """Nearest non-empty lang attribute on the element or its ancestors."""
    node: Tag | None = element
    while node is not None:
        if isinstance(node, Tag):
            lang = attr_value(node, "lang").strip()
            if lang:
                return lang
        node = node.parent
    return None


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

WarningHook = Callable[[str, Tag], None]


def _require(element: Tag, name: str) -> str:
    if not element.has_attr(name):
        raise MicrodataParseError(f"missing {name}", describe_element(element))
    return attr_value(element, name)


def _uri_value(element: Tag, attribute: str, base_uri: str | None) -> URIRef:
    reference = _require(element, attribute)
    resolved = resolve_reference(reference, base_uri)
    if resolved is None:
        raise MicrodataParseError(
            f"cannot resolve {attribute} '{reference}' without a base URI",
            describe_element(element),
        )
    return URIRef(resolved)


def _text_literal(
    text: str,
    element: Tag,
    on_warning: WarningHook | None,
) -> Literal:
    lang = language_of(element)
    if lang is None:
        return Literal(text)
    if not _LANG_TAG.fullmatch(lang):
        message = f"ignoring malformed language tag '{lang}'"
        if on_warning is not None:
            on_warning(message, element)
        else:
            logger.warning("%s at %s", message, describe_element(element))
        return Literal(text)
    return Literal(text, lang=lang)


def coerce(
    element: Tag,
    base_uri: str | None,
    on_warning: WarningHook | None = None,
) -> Value:
    """Compute the RDF value of a (non-item) property element.

    Raises MicrodataParseError when the attribute the element kind
    requires is absent, or a URI attribute cannot be made absolute.
    """
    kind = element_kind(element)

    if kind in _URI_ATTRIBUTE:
        return _uri_value(element, _URI_ATTRIBUTE[kind], base_uri)

    if kind == ElementKind.DATA_VALUE:
        value = _require(element, "value")
        if is_valid_integer(value):
            return Literal(value, datatype=XSD.integer, normalize=False)
        if is_valid_double(value):
            return Literal(value, datatype=XSD.double, normalize=False)
        return Literal(value)

    if kind == ElementKind.META:
        return _text_literal(_require(element, "content"), element, on_warning)

    if kind == ElementKind.TIME:
        if element.has_attr("datetime"):
            value = attr_value(element, "datetime")
        else:
            value = text_content(element)
        datatype = time_datatype(value)
        if datatype is not None:
            return Literal(value, datatype=datatype, normalize=False)
        # The HTML yearless date resembles xsd:gMonthDay but its lexical form
        # differs, so it stays a plain literal.
        return _text_literal(value, element, on_warning)

    return _text_literal(text_content(element), element, on_warning)
