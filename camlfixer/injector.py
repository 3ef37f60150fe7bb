#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Write a matched metadata row into the fixed description fields of a CAML document.

Every field is attempted even when an earlier one fails; the failures are
raised together as one MetadataInjectionError so a single report line block
lists everything wrong with the document.
"""

from __future__ import annotations

import re
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .base import DocumentType
from .constants import DIGEST_TEXT, HOUSE_ASSEMBLY, HOUSE_SENATE, MEASURE_STATE, SPECIAL_CAPS_PREFIXES
from .exceptions import FieldDuplicate, FieldEmpty, FieldError, FieldMissing, MetadataInjectionError
from .metadata import MetadataRow

DECLARATION_RX = re.compile(r"^\s*(<\?xml[^>]*\?>)")
PROLOG_PI_RX = re.compile(r"<\?(?!xml[\s?])[^>]*\?>")
ROOT_START_RX = re.compile(r"<[A-Za-z_]")
NAMESPACE_DECL_RX = re.compile(r'xmlns:([A-Za-z_][\w.\-]*)="([^"]*)"')
DEFAULT_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

# ElementTree keeps its prefix map at module level; registration and
# serialization happen together under this lock.
_SERIALIZE_LOCK = threading.Lock()


# ----------------------------
# Name formatting
# ----------------------------
def apply_special_caps(name: str) -> str:
    """Capitalize the letter after every 'Mac', 'Mc' and apostrophe ("Mcconnell Mccorquodale")."""
    for prefix in SPECIAL_CAPS_PREFIXES:
        chars = list(name)
        for match in re.finditer(re.escape(prefix), name, re.IGNORECASE):
            if match.end() < len(chars):
                chars[match.end()] = chars[match.end()].upper()
        name = "".join(chars)
    return name


def format_author_name(raw: str) -> str:
    return apply_special_caps(raw.strip().lower().title())


# ----------------------------
# Field lookups
# ----------------------------
@dataclass(frozen=True)
class FieldLookup:
    """Result of walking one step of a schema path: an element or the reason there is none."""

    element: Optional[ET.Element] = None
    error: Optional[FieldError] = None
    namespace: str = ""

    @property
    def ok(self) -> bool:
        return self.element is not None

    def child(self, name: str) -> "FieldLookup":
        if self.element is None:
            return self
        qname = f"{{{self.namespace}}}{name}" if self.namespace else name
        matches = self.element.findall(qname)
        if len(matches) > 1:
            return FieldLookup(error=FieldDuplicate(name), namespace=self.namespace)
        if not matches:
            return FieldLookup(error=FieldMissing(name), namespace=self.namespace)
        return FieldLookup(matches[0], namespace=self.namespace)


def _split_tag(tag: str) -> Tuple[str, str]:
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return "", tag


def measure_doc(root: ET.Element) -> FieldLookup:
    namespace, local = _split_tag(root.tag)
    if local != "MeasureDoc":
        return FieldLookup(error=FieldMissing("MeasureDoc"), namespace=namespace)
    return FieldLookup(root, namespace=namespace)


def _row_value(value: str, field: str) -> str:
    text = value.strip()
    if not text:
        raise FieldEmpty(field)
    return text


def _set_value(element: ET.Element, value: str) -> None:
    for child in list(element):
        element.remove(child)
    element.text = value


# ----------------------------
# Parse / render
# ----------------------------
@dataclass
class ParsedDocument:
    root: ET.Element
    declaration: str
    prolog: List[str]
    namespaces: List[Tuple[str, str]]


def parse_document(text: str) -> ParsedDocument:
    """Parse repaired text; raises xml.etree.ElementTree.ParseError when it is still malformed."""
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_pis=True))
    root = ET.fromstring(text, parser=parser)
    match = DECLARATION_RX.match(text)
    declaration = match.group(1) if match else DEFAULT_DECLARATION
    body_start = match.end() if match else 0
    root_start = ROOT_START_RX.search(text, body_start)
    prolog_text = text[body_start:root_start.start()] if root_start else ""
    namespaces = [
        (prefix, uri)
        for prefix, uri in NAMESPACE_DECL_RX.findall(text)
        if not prefix.lower().startswith("xml") and not re.match(r"ns\d+$", prefix)
    ]
    return ParsedDocument(root, declaration, PROLOG_PI_RX.findall(prolog_text), namespaces)


def render_document(doc: ParsedDocument) -> str:
    with _SERIALIZE_LOCK:
        for prefix, uri in doc.namespaces:
            ET.register_namespace(prefix, uri)
        body = ET.tostring(doc.root, encoding="unicode")
    return "\n".join([doc.declaration, *doc.prolog, body])


# ----------------------------
# Injection
# ----------------------------
class MetadataInjector:
    """Overwrite the LegislativeInfo, author and digest fields of one document type."""

    def __init__(self, doc_type: DocumentType) -> None:
        self.doc_type = doc_type

    def _house(self, row: MetadataRow) -> str:
        measure_type = row.measure_type.strip()
        if not measure_type:
            raise FieldEmpty("MeasureType")
        return HOUSE_ASSEMBLY if measure_type[0].upper() == "A" else HOUSE_SENATE

    def _fields(
        self, root: ET.Element, row: MetadataRow
    ) -> List[Tuple[str, FieldLookup, Callable[[], str]]]:
        doc = measure_doc(root)
        description = doc.child("Description")
        legislative_info = description.child("LegislativeInfo")
        authors = description.child("Authors")
        author = authors.child("Legislator")
        if not author.ok:
            # Some CAML files list a committee instead of a legislator.
            author = authors.child("Committee")

        return [
            ("MeasureType", legislative_info, lambda: _row_value(row.measure_type, "MeasureType")),
            ("MeasureNum", legislative_info, lambda: _row_value(row.measure_num, "MeasureNum")),
            ("MeasureState", legislative_info, lambda: MEASURE_STATE),
            ("ChapterType", legislative_info, lambda: self.doc_type.chapter_type),
            ("ChapterNum", legislative_info, lambda: _row_value(row.chapter_num, "ChapterNum")),
            ("Name", author, lambda: format_author_name(_row_value(row.name, "Name"))),
            ("AuthorText", description, lambda: _row_value(row.author_text, "AuthorText")),
            ("DigestText", description, lambda: DIGEST_TEXT),
            ("House", author, lambda: self._house(row)),
        ]

    def inject(self, root: ET.Element, row: MetadataRow) -> None:
        """Write every field; raise MetadataInjectionError listing all that failed."""
        errors: List[FieldError] = []
        for name, parent, value in self._fields(root, row):
            lookup = parent.child(name)
            if lookup.error is not None:
                errors.append(lookup.error)
                continue
            try:
                _set_value(lookup.element, value())
            except FieldError as exc:
                errors.append(exc)
        if errors:
            unique: List[FieldError] = []
            seen = set()
            for err in errors:
                if str(err) not in seen:
                    seen.add(str(err))
                    unique.append(err)
            raise MetadataInjectionError(unique)

    def merge(self, text: str, row: MetadataRow) -> str:
        """Parse repaired text, inject the row and serialize it again."""
        doc = parse_document(text)
        self.inject(doc.root, row)
        return render_document(doc)


__all__ = [
    "FieldLookup",
    "MetadataInjector",
    "ParsedDocument",
    "apply_special_caps",
    "format_author_name",
    "parse_document",
    "render_document",
]
