#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Utility helpers shared across the coordinator, index and error reports."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .base import CamlIdentity, DocumentType
from .constants import CAML_EXTENSION, TIMESTAMP_FORMAT

CAML_NAME_RX = re.compile(
    r"^CH(?P<tag>[PR])(?P<year>\d{4})(?P<session>\d)(?P<chapter>\d{4})" + re.escape(CAML_EXTENSION) + "$"
)


def timestamp(now: Optional[datetime] = None) -> str:
    """Wall-clock prefix used on every report line."""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def guess_document_type(file_name: str) -> DocumentType:
    """Category used to file errors about a document, even one with a malformed name."""
    return DocumentType.RESOLUTION if "CHR" in file_name else DocumentType.STATUTE


def parse_caml_filename(file_name: str, year: Optional[str] = None) -> Optional[CamlIdentity]:
    """Return the identity encoded in a CAML filename, or None when the shape is wrong.

    When ``year`` is given the filename must also belong to that year.
    """
    match = CAML_NAME_RX.match(file_name)
    if match is None:
        return None
    if year is not None and match.group("year") != str(year):
        return None
    return CamlIdentity(
        doc_type=DocumentType.from_tag(match.group("tag")),
        year=match.group("year"),
        session=int(match.group("session")),
        chapter=int(match.group("chapter")),
    )


def caml_name(doc_type: DocumentType, year: str, session: int, chapter: str) -> str:
    """Build the expected CAML stem, e.g. ``CHP19300007``."""
    return f"{doc_type.chapter_type}{year}{session}{chapter.strip().zfill(4)}"


def dir_names_containing(root: Path, marker: str) -> List[str]:
    """Names of the sub-directories of root whose name contains marker (case-insensitive)."""
    if not marker or not root.is_dir():
        return []
    needle = marker.lower()
    return sorted(p.name for p in root.iterdir() if p.is_dir() and needle in p.name.lower())


__all__ = [
    "CAML_NAME_RX",
    "caml_name",
    "dir_names_containing",
    "guess_document_type",
    "parse_caml_filename",
    "timestamp",
]
