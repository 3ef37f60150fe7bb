#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Metadata sheets and the per-session index that assigns each CAML file exactly one row."""

from __future__ import annotations

import re
import threading
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Type

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from .base import DocumentType
from .constants import METADATA_COLUMNS, METADATA_EXTENSIONS, METADATA_ROW_XPATH
from .errors import ErrorAggregator
from .exceptions import DuplicateMetadata, MissingMetadata
from .utils import caml_name

EXTRA_SESSION_RX = re.compile(r"(\d)?XS", re.IGNORECASE)

# Raised by pandas or its Excel/XML backends for a sheet that exists but cannot be read.
SHEET_READ_ERRORS: Tuple[Type[BaseException], ...] = (
    OSError,
    ValueError,
    SyntaxError,
    KeyError,
    ImportError,
    zipfile.BadZipFile,
    InvalidFileException,
)


@dataclass(eq=False)
class MetadataRow:
    """One authoritative row of a metadata sheet.

    ``consumed`` is the only field that changes after loading, and only under
    the owning session's lock inside :class:`MetadataIndex`.
    """

    doc_type: DocumentType
    session: int
    chapter_num: str = ""
    measure_type: str = ""
    measure_num: str = ""
    name: str = ""
    author_text: str = ""
    consumed: bool = False

    @property
    def has_chapter(self) -> bool:
        return bool(self.chapter_num.strip())

    @property
    def chapter_value(self) -> Optional[int]:
        text = self.chapter_num.strip()
        if text.isascii() and text.isdigit():
            return int(text)
        return None

    def caml_name(self, year: str) -> str:
        return caml_name(self.doc_type, year, self.session, self.chapter_num)


class _SessionTable:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.rows: List[MetadataRow] = []


class MetadataIndex:
    """Rows grouped by (document type, session) with exactly-once matching."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: Dict[Tuple[DocumentType, int], _SessionTable] = {}

    @classmethod
    def from_rows(cls, rows: Iterable[MetadataRow]) -> "MetadataIndex":
        index = cls()
        index.load(rows)
        return index

    def load(self, rows: Iterable[MetadataRow]) -> None:
        with self._lock:
            for row in rows:
                table = self._tables.setdefault((row.doc_type, row.session), _SessionTable())
                with table.lock:
                    table.rows.append(row)

    def _table(self, doc_type: DocumentType, session: int) -> Optional[_SessionTable]:
        with self._lock:
            return self._tables.get((doc_type, session))

    def match(self, doc_type: DocumentType, session: int, chapter: int) -> MetadataRow:
        """Claim the single unconsumed row for a chapter.

        Raises DuplicateMetadata (nothing consumed) when several rows qualify and
        MissingMetadata when none does.
        """
        table = self._table(doc_type, session)
        if table is None:
            raise MissingMetadata("Metadata info missing from metadata sheet.")
        with table.lock:
            candidates = [row for row in table.rows if not row.consumed and row.chapter_value == chapter]
            if len(candidates) > 1:
                raise DuplicateMetadata(len(candidates) - 1)
            if not candidates:
                raise MissingMetadata("Metadata info missing from metadata sheet.")
            row = candidates[0]
            row.consumed = True
            return row

    def unmatched_rows(self, doc_type: DocumentType) -> List[MetadataRow]:
        """Rows with a chapter number that no document claimed, ordered by session."""
        with self._lock:
            keys = sorted(key for key in self._tables if key[0] is doc_type)
            tables = [self._tables[key] for key in keys]
        unmatched: List[MetadataRow] = []
        for table in tables:
            with table.lock:
                unmatched.extend(row for row in table.rows if row.has_chapter and not row.consumed)
        return unmatched

    def rows(self, doc_type: DocumentType) -> List[MetadataRow]:
        with self._lock:
            keys = sorted(key for key in self._tables if key[0] is doc_type)
            tables = [self._tables[key] for key in keys]
        result: List[MetadataRow] = []
        for table in tables:
            with table.lock:
                result.extend(table.rows)
        return result

    def __len__(self) -> int:
        return sum(len(self.rows(doc_type)) for doc_type in DocumentType)


# ----------------------------
# Metadata sheets
# ----------------------------
def parse_metadata_filename(file_name: str) -> Tuple[DocumentType, int]:
    """Document type and session number encoded in a metadata sheet's name.

    "RES" anywhere in the name marks a resolution sheet. Extra sessions carry
    their number right before an "XS" marker ("1931 3XS Statutes.xml").
    """
    upper = file_name.upper()
    doc_type = DocumentType.RESOLUTION if "RES" in upper else DocumentType.STATUTE
    match = EXTRA_SESSION_RX.search(file_name)
    session = int(match.group(1)) if match and match.group(1) else 0
    return doc_type, session


def _read_sheet(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".xml":
        return pd.read_xml(path, xpath=METADATA_ROW_XPATH, dtype=str)
    if suffix == ".xlsx":
        return pd.read_excel(path, dtype=str, engine="openpyxl")
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    raise ValueError(f"Unsupported metadata sheet format: {path.name}")


def read_metadata_file(path: Path, doc_type: DocumentType, session: int) -> List[MetadataRow]:
    """Load one metadata sheet into rows; every value is read as text."""
    df = _read_sheet(path)
    df = df.reindex(columns=list(METADATA_COLUMNS)).fillna("").astype(str)
    return [
        MetadataRow(
            doc_type=doc_type,
            session=session,
            chapter_num=record["ChapterNum"],
            measure_type=record["MeasureType"],
            measure_num=record["MeasureNum"],
            name=record["Name"],
            author_text=record["AuthorText"],
        )
        for record in df.to_dict("records")
    ]


def load_metadata_dir(directory: Path, errors: ErrorAggregator) -> List[MetadataRow]:
    """Read every supported sheet in a year's metadata folder.

    A sheet that cannot be read is recorded as a setup error and skipped so the
    rest of the year can still be matched.
    """
    rows: List[MetadataRow] = []
    for path in sorted(p for p in directory.iterdir() if p.is_file()):
        if path.suffix.lower() not in METADATA_EXTENSIONS:
            continue
        doc_type, session = parse_metadata_filename(path.name)
        try:
            rows.extend(read_metadata_file(path, doc_type, session))
        except SHEET_READ_ERRORS as exc:
            errors.record_setup_error(f"ERROR: Couldn't read metadata sheet '{path.name}': {exc}")
    return rows


__all__ = [
    "MetadataIndex",
    "MetadataRow",
    "load_metadata_dir",
    "parse_metadata_filename",
    "read_metadata_file",
]
