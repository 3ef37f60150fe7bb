#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Text-level repair passes applied to every CAML document before it is parsed.

The passes are heuristic string rewrites, not a grammar: they fix the damage
OCR and hand editing leave behind (junk before the declaration, stray angle
brackets, broken end tags, mis-spelled field names) so the document can be
parsed as XML afterwards. Order matters; later rewrites assume earlier ones ran.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from .base import DocumentType, IdFactory, new_element_id
from .constants import ALLOWED_NON_ASCII, XML_DECLARATION_MARKER
from .exceptions import MissingDeclaration
from .registry import get_repairer

COMMENT_RX = re.compile(r"<!.*?>", re.DOTALL)
TAG_INNER_RX = re.compile(r"(?<=<).*?(?=>)")
INVALID_START_TAG_RX = re.compile(r"<\s*[^a-zA-Z/?]")
END_TAG_MISSING_LT_RX = re.compile(r"(?<!<)/[a-zA-Z:]+( id=\"id_\S*?\")?>")
END_TAG_MISSING_GT_RX = re.compile(r"</[a-zA-Z:]+(?=\s)")
NON_ASCII_RUN_RX = re.compile(r"[^\x00-\x7f" + re.escape(ALLOWED_NON_ASCII) + r"]+\s*")
ACTION_DATE_RX = re.compile("Actiondate", re.IGNORECASE)

LITERAL_FIXES: tuple[tuple[str, str], ...] = (
    ("utf-8", "UTF-8"),
    ("DatePassed", "ActionDate"),
    ("PassedDate", "ActionDate"),
    ("<caml:Subject>NOT AVAILABLE.</caml:Subject>", "<caml:Subject></caml:Subject>"),
    ("Oalifornia", "California"),
    ("<P>", "<p>"),
    ("</P>", "</p>"),
)

LEGISLATOR_START = "<caml:Legislator"
LEGISLATOR_END = "</caml:Legislator>"
AUTHORS_END = "</caml:Authors>"


def trim_before_declaration(text: str) -> str:
    """Drop anything (BOM remnants, scanner junk) in front of the XML declaration."""
    index = text.find(XML_DECLARATION_MARKER)
    if index < 0:
        raise MissingDeclaration()
    return text[index:]


def strip_comments(text: str) -> str:
    if "<!" not in text:
        return text
    return COMMENT_RX.sub("", text)


def trim_tag_whitespace(text: str) -> str:
    """'< caml:Name >' -> '<caml:Name>' for tags that sit on one line."""
    return TAG_INNER_RX.sub(lambda m: m.group(0).strip(), text)


def remove_invalid_start_tags(text: str) -> str:
    """Delete stray '<' characters that cannot open a tag, with the character after them."""
    return INVALID_START_TAG_RX.sub("", text)


def fix_end_tags(text: str) -> str:
    """Restore the '<' or '>' an end tag lost."""
    text = END_TAG_MISSING_LT_RX.sub(lambda m: "<" + m.group(0), text)
    return END_TAG_MISSING_GT_RX.sub(lambda m: m.group(0) + ">", text)


def remove_extra_legislators(text: str) -> str:
    """Keep the first caml:Legislator entry of the authors list and drop the rest."""
    first = text.find(LEGISLATOR_START)
    if first < 0:
        return text
    second = text.find(LEGISLATOR_START, first + len(LEGISLATOR_START))
    if second < 0:
        return text
    authors_end = text.find(AUTHORS_END, second + len(LEGISLATOR_START))
    if authors_end < 0:
        return text
    last_end = text.rfind(LEGISLATOR_END, second, authors_end)
    if last_end < 0:
        return text
    return text[:second] + text[last_end + len(LEGISLATOR_END):]


def remove_non_ascii(text: str) -> str:
    """Delete runs of non-ASCII characters (and trailing whitespace) outside the allow-list."""
    return NON_ASCII_RUN_RX.sub("", text)


def apply_literal_fixes(text: str) -> str:
    text = ACTION_DATE_RX.sub("ActionDate", text)
    for old, new in LITERAL_FIXES:
        text = text.replace(old, new)
    return text


def common_repair(text: str) -> str:
    """Repairs shared by resolutions and statutes; raises MissingDeclaration."""
    text = trim_before_declaration(text)
    text = strip_comments(text)
    text = trim_tag_whitespace(text)
    text = remove_invalid_start_tags(text)
    text = fix_end_tags(text)
    text = remove_extra_legislators(text)
    text = remove_non_ascii(text)
    return apply_literal_fixes(text)


def post_structural_fixup(text: str) -> str:
    """Serialization escapes leftover stray '>' characters as '&gt;'; drop them."""
    return text.replace("&gt;", "")


@dataclass
class TextRepairPipeline:
    """Ordered text passes for one document: common, then type-specific.

    ``id_factory`` is handed to every pass that mints element identifiers so
    callers can make the output deterministic.
    """

    id_factory: IdFactory = field(default=new_element_id)

    def common(self, text: str) -> str:
        return common_repair(text)

    def type_specific(self, text: str, doc_type: DocumentType) -> str:
        return get_repairer(doc_type, self.id_factory).repair(text)

    def pre_structural(self, text: str, doc_type: DocumentType) -> str:
        return self.type_specific(self.common(text), doc_type)

    def post_structural(self, text: str) -> str:
        return post_structural_fixup(text)


def build_pipeline(id_factory: Optional[IdFactory] = None) -> TextRepairPipeline:
    return TextRepairPipeline(id_factory or new_element_id)


__all__ = [
    "TextRepairPipeline",
    "apply_literal_fixes",
    "build_pipeline",
    "common_repair",
    "fix_end_tags",
    "post_structural_fixup",
    "remove_extra_legislators",
    "remove_invalid_start_tags",
    "remove_non_ascii",
    "strip_comments",
    "trim_before_declaration",
    "trim_tag_whitespace",
]
