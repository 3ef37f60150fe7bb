#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for metadata sheet loading and exactly-once row matching."""

from __future__ import annotations

import threading

import pytest

from camlfixer.base import DocumentType
from camlfixer.errors import ErrorAggregator
from camlfixer.exceptions import DuplicateMetadata, MissingMetadata
from camlfixer.metadata import (
    MetadataIndex,
    MetadataRow,
    load_metadata_dir,
    parse_metadata_filename,
    read_metadata_file,
)
from camlfixer.utils import parse_caml_filename

STATUTE = DocumentType.STATUTE
RESOLUTION = DocumentType.RESOLUTION


def _row(chapter: str, session: int = 0, doc_type: DocumentType = STATUTE, **values: str) -> MetadataRow:
    return MetadataRow(doc_type=doc_type, session=session, chapter_num=chapter, **values)


def test_match_consumes_the_single_candidate() -> None:
    row = _row("7", measure_type="AB")
    index = MetadataIndex.from_rows([row, _row("8")])

    assert index.match(STATUTE, 0, 7) is row
    assert row.consumed
    with pytest.raises(MissingMetadata):
        index.match(STATUTE, 0, 7)


def test_zero_padded_chapter_numbers_match() -> None:
    index = MetadataIndex.from_rows([_row("0042")])
    assert index.match(STATUTE, 0, 42).chapter_num == "0042"


def test_duplicates_consume_nothing_and_keep_failing() -> None:
    first, second = _row("5"), _row("0005")
    index = MetadataIndex.from_rows([first, second])

    with pytest.raises(DuplicateMetadata) as excinfo:
        index.match(STATUTE, 0, 5)
    assert str(excinfo.value) == "1 duplicate entry present in metadata sheet."
    assert not first.consumed and not second.consumed

    with pytest.raises(DuplicateMetadata):
        index.match(STATUTE, 0, 5)
    assert index.unmatched_rows(STATUTE) == [first, second]


def test_duplicate_message_pluralizes() -> None:
    index = MetadataIndex.from_rows([_row("5"), _row("5"), _row("5")])
    with pytest.raises(DuplicateMetadata, match="2 duplicate entries present in metadata sheet."):
        index.match(STATUTE, 0, 5)


def test_missing_session_or_type_is_missing_metadata() -> None:
    index = MetadataIndex.from_rows([_row("1", session=0)])
    with pytest.raises(MissingMetadata, match="Metadata info missing from metadata sheet."):
        index.match(STATUTE, 2, 1)
    with pytest.raises(MissingMetadata):
        index.match(RESOLUTION, 0, 1)


def test_unmatched_rows_skip_blank_chapters_and_keep_non_numeric() -> None:
    blank, odd, used = _row("  "), _row("12a"), _row("3")
    extra = _row("4", session=1)
    index = MetadataIndex.from_rows([extra, blank, odd, used])
    index.match(STATUTE, 0, 3)

    assert index.unmatched_rows(STATUTE) == [odd, extra]
    assert index.unmatched_rows(RESOLUTION) == []
    assert len(index) == 4


def test_missing_file_name_for_unmatched_row() -> None:
    assert _row("0007").caml_name("1930") == "CHP193000007"
    assert _row("12", session=2, doc_type=RESOLUTION).caml_name("1931") == "CHR193120012"


def test_concurrent_matches_assign_each_row_once() -> None:
    rows = [_row(str(chapter)) for chapter in range(1, 51)]
    index = MetadataIndex.from_rows(rows)
    claimed = []
    lock = threading.Lock()

    def worker() -> None:
        for chapter in range(1, 51):
            try:
                row = index.match(STATUTE, 0, chapter)
            except MissingMetadata:
                continue
            with lock:
                claimed.append(row)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(claimed) == 50
    assert len({id(row) for row in claimed}) == 50
    assert index.unmatched_rows(STATUTE) == []


@pytest.mark.parametrize(
    "name, expected",
    [
        ("1930 Statutes.xml", (STATUTE, 0)),
        ("1930 Resolutions.xml", (RESOLUTION, 0)),
        ("1931 2XS Statutes.xlsx", (STATUTE, 2)),
        ("1931 1xs res.csv", (RESOLUTION, 1)),
        ("1931 XS Statutes.csv", (STATUTE, 0)),
    ],
)
def test_parse_metadata_filename(name: str, expected: tuple) -> None:
    assert parse_metadata_filename(name) == expected


def test_parse_caml_filename() -> None:
    identity = parse_caml_filename("CHR193012345.caml")
    assert identity is not None
    assert (identity.doc_type, identity.year, identity.session, identity.chapter) == (RESOLUTION, "1930", 1, 2345)
    assert parse_caml_filename("CHR193012345.caml", year="1931") is None
    assert parse_caml_filename("CHX193012345.caml") is None
    assert parse_caml_filename("CHP19301234.caml") is None


def test_read_xml_sheet(tmp_path) -> None:
    sheet = tmp_path / "1930 Statutes.xml"
    sheet.write_text(
        """<?xml version="1.0" encoding="UTF-8"?>
<Measure-data>
  <row>
    <MeasureType>AB</MeasureType>
    <MeasureNum>12</MeasureNum>
    <ChapterNum>0007</ChapterNum>
    <Name>o'connell</Name>
    <AuthorText>Assembly Member O'Connell</AuthorText>
  </row>
  <row>
    <MeasureType>SB</MeasureType>
    <MeasureNum>40</MeasureNum>
    <ChapterNum>9</ChapterNum>
    <Name>smith</Name>
  </row>
</Measure-data>
""",
        encoding="utf-8",
    )

    rows = read_metadata_file(sheet, STATUTE, 0)

    assert [row.chapter_num for row in rows] == ["0007", "9"]
    assert rows[0].measure_num == "12"
    assert rows[0].name == "o'connell"
    assert rows[1].author_text == ""


def test_read_csv_sheet_fills_missing_columns(tmp_path) -> None:
    sheet = tmp_path / "1930 Resolutions.csv"
    sheet.write_text("MeasureType,ChapterNum,Name\nACR,3,\n", encoding="utf-8")

    rows = read_metadata_file(sheet, RESOLUTION, 0)

    assert len(rows) == 1
    assert rows[0].measure_type == "ACR"
    assert rows[0].chapter_num == "3"
    assert rows[0].name == ""
    assert rows[0].measure_num == ""


def test_load_metadata_dir_records_unreadable_sheets(tmp_path) -> None:
    (tmp_path / "1930 Statutes.csv").write_text("MeasureType,ChapterNum\nAB,1\n", encoding="utf-8")
    (tmp_path / "1930 2XS Resolutions.csv").write_text("MeasureType,ChapterNum\nSCR,4\n", encoding="utf-8")
    (tmp_path / "1930 Broken.csv").write_text("", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    errors = ErrorAggregator(echo_setup_errors=False)

    rows = load_metadata_dir(tmp_path, errors)

    assert sorted((row.doc_type.label, row.session, row.chapter_num) for row in rows) == [
        ("Resolution", 2, "4"),
        ("Statute", 0, "1"),
    ]
    assert errors.setup_error_count == 1
    assert "1930 Broken.csv" in errors.setup_errors[0]


def test_corrupt_workbook_is_a_setup_error_not_a_crash(tmp_path) -> None:
    (tmp_path / "1930 Resolutions.xlsx").write_bytes(b"PK\x03\x04garbage")
    (tmp_path / "1930 Statutes.csv").write_text("MeasureType,ChapterNum\nAB,1\n", encoding="utf-8")
    (tmp_path / "1930 Old Statutes.xls").write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1legacy")
    errors = ErrorAggregator(echo_setup_errors=False)

    rows = load_metadata_dir(tmp_path, errors)

    assert [(row.doc_type, row.chapter_num) for row in rows] == [(STATUTE, "1")]
    assert errors.setup_error_count == 1
    assert errors.setup_errors[0].startswith("ERROR: Couldn't read metadata sheet '1930 Resolutions.xlsx'")
