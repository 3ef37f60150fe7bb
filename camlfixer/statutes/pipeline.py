#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Repair pass for statutes: label typos, split amendments, fresh ids, closed content blocks."""

from __future__ import annotations

import re

from ..base import BaseRepairer, DocumentType
from ..registry import register_repairer

CONTENT_START = "<caml:Content>"
CONTENT_END = "</caml:Content>"
BILL_SECTION_END = "</caml:BillSection>"

TO_READ_RX = re.compile(r"<p>.*?to read:(?= )")
ELEMENT_ID_RX = re.compile(r'id="id_\S*?"')
UNLABELED_ELEMENT_RXS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (name, re.compile(f"<caml:{name}>")) for name in ("BillSection", "LawSection", "LawSectionVersion")
)


def split_to_read(text: str) -> str:
    """'...amended to read: "Section 1..."' starts a new paragraph after 'to read:'."""
    return TO_READ_RX.sub(lambda m: m.group(0) + "</p><p>", text)


def add_missing_content_end_tags(text: str) -> str:
    """Close each caml:Content block that runs past the end of its caml:BillSection."""
    position = 0
    while True:
        start = text.find(CONTENT_START, position)
        if start < 0:
            break
        start += len(CONTENT_START)
        section_end = text.find(BILL_SECTION_END, start)
        if section_end < 0:
            break
        content_end = text.find(CONTENT_END, start)
        if 0 <= content_end < section_end:
            position = content_end
            continue
        text = text[:section_end] + CONTENT_END + text[section_end:]
        position = section_end
    return text


@register_repairer
class StatuteRepairer(BaseRepairer):
    """Fix section labels, split amending paragraphs and regenerate element ids."""

    doc_type = DocumentType.STATUTE
    display_name = "Statute"
    description = (
        "Fixes 'SEO.' labels, splits paragraphs after 'to read:', refreshes every "
        "element id and closes unterminated content blocks."
    )

    def refresh_ids(self, text: str) -> str:
        # Some statutes reuse one id across several elements; every id is replaced.
        text = ELEMENT_ID_RX.sub(lambda m: f'id="{self.id_factory()}"', text)
        for name, pattern in UNLABELED_ELEMENT_RXS:
            text = pattern.sub(lambda m: f'<caml:{name} id="{self.id_factory()}">', text)
        return text

    def repair(self, text: str) -> str:
        text = text.replace("SEO.", "SEC.")
        text = split_to_read(text)
        text = self.refresh_ids(text)
        return add_missing_content_end_tags(text)


__all__ = ["StatuteRepairer", "add_missing_content_end_tags", "split_to_read"]
