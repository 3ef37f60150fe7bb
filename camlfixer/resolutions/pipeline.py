#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Repair pass for resolutions: Bill markup becomes Whereas/Resolved markup."""

from __future__ import annotations

import re

from ..base import BaseRepairer, DocumentType
from ..registry import register_repairer

RESOLUTION_ROOT = '<caml:Resolution id="resolution">'
CONTENT_START = "<caml:Content>"

RESOLUTION_ID_RX = re.compile(r'<caml:Resolution id="id_\S*?"')
PREAMBLE_RX = re.compile(r"<caml:Preamble>.*?</caml:Preamble>")
NUM_RX = re.compile(r"<caml:Num>.*?</caml:Num>")

# <caml:BillSection> / </caml:Content> / <p>Whereas  ->  <caml:Whereas id=".."> / <caml:Content> / <p>Whereas
WHEREAS_SECTION_RX = re.compile(
    r"<caml:BillSection>(\s*)</?caml:Content>(\s*<p>\s*.{0,10}(?:whe|eas))", re.IGNORECASE
)
RESOLVED_SECTION_RX = re.compile(r"<caml:BillSection>(\s*)</?caml:Content>", re.IGNORECASE)
BARE_WHEREAS_RX = re.compile(r"<caml:Whereas>")
LEADING_SECTION_RX = re.compile(re.escape(RESOLUTION_ROOT) + r"(\s*)<caml:BillSection>")

# The lazy spans below are only attempted when their closing marker exists;
# without it the scan degenerates badly on large documents.
WHEREAS_THEN_SECTION_RX = re.compile(r"</caml:Whereas>\s*<caml:BillSection>.*?</caml:Resolved>", re.DOTALL)
RESOLVED_SPAN_RX = re.compile(r"<caml:Resolved.*?>.*?</caml:BillSection>", re.DOTALL)
WHEREAS_SPAN_RX = re.compile(r"<caml:Whereas.*?>.*?</caml:BillSection>", re.DOTALL)
VALID_BILL_SECTION_RX = re.compile(r'<caml:BillSection id="id_\S*?">')

RESOLVED_KEYWORD_RX = re.compile(r"(<p>\s*.{0,10})(Resolved)", re.IGNORECASE)
CONTENT_BLOCK_RX = re.compile(r"(<caml:Content>)(.*?)(</caml:Content>)", re.DOTALL)
PARAGRAPH_RX = re.compile(r"(<p>)(.*?)(</p>)", re.DOTALL)
NEWLINE_AFTER_TEXT_RX = re.compile(r"(?<=\S)(\r?\n)")


def italicize_resolved(text: str) -> str:
    """<p>Resolved  ->  <p><i>Resolved</i>"""

    def _italicize(match: re.Match[str]) -> str:
        lead, keyword = match.group(1), match.group(2)
        if "<i>" in lead:
            return match.group(0)
        return f"{lead}<i>{keyword}</i>"

    return RESOLVED_KEYWORD_RX.sub(_italicize, text)


def add_space_before_content_newlines(text: str) -> str:
    """Inside every caml:Content paragraph, put a space before line breaks that follow text."""

    def _paragraph(match: re.Match[str]) -> str:
        body = NEWLINE_AFTER_TEXT_RX.sub(r" \1", match.group(2))
        return match.group(1) + body + match.group(3)

    def _content(match: re.Match[str]) -> str:
        return match.group(1) + PARAGRAPH_RX.sub(_paragraph, match.group(2)) + match.group(3)

    return CONTENT_BLOCK_RX.sub(_content, text)


@register_repairer
class ResolutionRepairer(BaseRepairer):
    """Turn generic bill sections into preamble (Whereas) and operative (Resolved) sections."""

    doc_type = DocumentType.RESOLUTION
    display_name = "Resolution"
    description = (
        "Renames the bill root to a resolution root, drops preamble/numbering, "
        "classifies sections by their opening words and italicizes 'Resolved'."
    )

    def _tag(self, name: str) -> str:
        return f'<caml:{name} id="{self.id_factory()}">'

    def normalize_root(self, text: str) -> str:
        text = text.replace("id_Resolution", "Resolution")
        text = text.replace('id="Resolution"', 'id="resolution"')
        text = RESOLUTION_ID_RX.sub('<caml:Resolution id="resolution"', text)
        text = text.replace('<caml:Bill id="bill">', RESOLUTION_ROOT)
        text = text.replace("</caml:Bill>", "</caml:Resolution>")
        text = PREAMBLE_RX.sub("", text)
        return NUM_RX.sub("", text)

    def classify_sections(self, text: str) -> str:
        text = WHEREAS_SECTION_RX.sub(
            lambda m: self._tag("Whereas") + m.group(1) + CONTENT_START + m.group(2), text
        )
        text = RESOLVED_SECTION_RX.sub(lambda m: self._tag("Resolved") + m.group(1) + CONTENT_START, text)
        text = BARE_WHEREAS_RX.sub(lambda m: self._tag("Whereas"), text)
        return LEADING_SECTION_RX.sub(lambda m: RESOLUTION_ROOT + m.group(1) + self._tag("Whereas"), text)

    def close_sections(self, text: str) -> str:
        """Give reclassified sections matching start and end markers."""
        if "</caml:Resolved>" in text:
            text = WHEREAS_THEN_SECTION_RX.sub(
                lambda m: m.group(0).replace("<caml:BillSection>", self._tag("Resolved"), 1), text
            )
        if "</caml:BillSection>" in text:
            text = RESOLVED_SPAN_RX.sub(lambda m: _retype_end(m, "Resolved"), text)
        if "</caml:BillSection>" in text:
            text = WHEREAS_SPAN_RX.sub(lambda m: _retype_end(m, "Whereas"), text)
        return text

    def repair(self, text: str) -> str:
        text = self.normalize_root(text)
        text = self.classify_sections(text)
        text = self.close_sections(text)
        text = italicize_resolved(text)
        return add_space_before_content_newlines(text)


def _retype_end(match: re.Match[str], name: str) -> str:
    span = match.group(0)
    # Don't trample a valid caml:BillSection.
    if VALID_BILL_SECTION_RX.search(span):
        return span
    return span.replace("</caml:BillSection>", f"</caml:{name}>")


__all__ = ["ResolutionRepairer", "add_space_before_content_newlines", "italicize_resolved"]
