#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tests for writing metadata rows into CAML description fields."""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from camlfixer.base import DocumentType
from camlfixer.constants import DIGEST_TEXT
from camlfixer.exceptions import FieldDuplicate, FieldEmpty, FieldMissing, MetadataInjectionError
from camlfixer.injector import MetadataInjector, apply_special_caps, format_author_name
from camlfixer.metadata import MetadataRow

CAML_URI = "http://lc.ca.gov/legalservices/schemas/caml.1#"
NS = {"caml": CAML_URI}

LEGISLATIVE_INFO = """<caml:LegislativeInfo>
<caml:MeasureType>XX</caml:MeasureType>
<caml:MeasureNum>0</caml:MeasureNum>
<caml:MeasureState>XX</caml:MeasureState>
<caml:ChapterType>XX</caml:ChapterType>
<caml:ChapterNum>0</caml:ChapterNum>
</caml:LegislativeInfo>"""

AUTHORS = """<caml:Authors>
<caml:Legislator>
<caml:Name>Unknown</caml:Name>
<caml:House>Unknown</caml:House>
</caml:Legislator>
</caml:Authors>"""


def _document(legislative_info: str = LEGISLATIVE_INFO, authors: str = AUTHORS, digest: bool = True) -> str:
    digest_text = "<caml:DigestText>Unknown</caml:DigestText>" if digest else ""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<caml:MeasureDoc xmlns:caml="{CAML_URI}" version="1.0">
<caml:Description>
{legislative_info}
<caml:AuthorText>Unknown</caml:AuthorText>
{authors}
{digest_text}
</caml:Description>
<caml:Bill id="bill"><caml:BillSection id="id_1"><caml:Content><p>SEC. 1.</p></caml:Content></caml:BillSection></caml:Bill>
</caml:MeasureDoc>"""


def _row(**overrides: str) -> MetadataRow:
    values = dict(
        measure_type="AB",
        measure_num=" 12 ",
        chapter_num="7",
        name="o'connell",
        author_text="Assembly Member O'Connell",
    )
    values.update(overrides)
    return MetadataRow(doc_type=DocumentType.STATUTE, session=0, **values)


def _field(root: ET.Element, path: str) -> str:
    element = root.find(path, NS)
    assert element is not None, path
    return element.text or ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("o'connell", "O'Connell"),
        ("macdonald john", "MacDonald John"),
        ("  MCCARTHY ", "McCarthy"),
        ("smith", "Smith"),
    ],
)
def test_format_author_name(raw: str, expected: str) -> None:
    assert format_author_name(raw) == expected


def test_special_caps_ignore_trailing_prefix() -> None:
    assert apply_special_caps("Mc") == "Mc"


def test_merge_sets_every_field_for_a_statute() -> None:
    output = MetadataInjector(DocumentType.STATUTE).merge(_document(), _row())

    assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<caml:MeasureDoc')
    root = ET.fromstring(output)
    info = "caml:Description/caml:LegislativeInfo/"
    assert _field(root, info + "caml:MeasureType") == "AB"
    assert _field(root, info + "caml:MeasureNum") == "12"
    assert _field(root, info + "caml:MeasureState") == "CHP"
    assert _field(root, info + "caml:ChapterType") == "CHP"
    assert _field(root, info + "caml:ChapterNum") == "7"
    assert _field(root, "caml:Description/caml:Authors/caml:Legislator/caml:Name") == "O'Connell"
    assert _field(root, "caml:Description/caml:Authors/caml:Legislator/caml:House") == "ASSEMBLY"
    assert _field(root, "caml:Description/caml:AuthorText") == "Assembly Member O'Connell"
    assert _field(root, "caml:Description/caml:DigestText") == DIGEST_TEXT


def test_resolution_chapter_type_and_senate_house() -> None:
    row = _row(measure_type="sjr")
    output = MetadataInjector(DocumentType.RESOLUTION).merge(_document(), row)
    root = ET.fromstring(output)
    assert _field(root, "caml:Description/caml:LegislativeInfo/caml:ChapterType") == "CHR"
    assert _field(root, "caml:Description/caml:Authors/caml:Legislator/caml:House") == "SENATE"


def test_committee_is_used_when_there_is_no_legislator() -> None:
    authors = """<caml:Authors>
<caml:Committee><caml:Name>Unknown</caml:Name><caml:House>Unknown</caml:House></caml:Committee>
</caml:Authors>"""
    output = MetadataInjector(DocumentType.STATUTE).merge(_document(authors=authors), _row(name="ways and means"))
    root = ET.fromstring(output)
    assert _field(root, "caml:Description/caml:Authors/caml:Committee/caml:Name") == "Ways And Means"
    assert _field(root, "caml:Description/caml:Authors/caml:Committee/caml:House") == "ASSEMBLY"


def test_all_field_failures_are_reported_together() -> None:
    info = LEGISLATIVE_INFO.replace(
        "<caml:MeasureNum>0</caml:MeasureNum>",
        "<caml:MeasureNum>0</caml:MeasureNum><caml:MeasureNum>1</caml:MeasureNum>",
    )
    root = ET.fromstring(_document(legislative_info=info, digest=False).split("\n", 1)[1])

    with pytest.raises(MetadataInjectionError) as excinfo:
        MetadataInjector(DocumentType.STATUTE).inject(root, _row(author_text="  "))

    errors = excinfo.value.errors
    assert [type(err) for err in errors] == [FieldDuplicate, FieldEmpty, FieldMissing]
    assert str(excinfo.value).splitlines() == [
        "'caml:MeasureNum' metadata tag is present more than once.",
        "'AuthorText' field is empty in metadata sheet.",
        "'caml:DigestText' metadata tag is missing or not in the correct place.",
    ]
    # Fields that could be written still were.
    assert _field(root, "caml:Description/caml:LegislativeInfo/caml:MeasureType") == "AB"


def test_missing_container_is_reported_once() -> None:
    root = ET.fromstring(_document(legislative_info="").split("\n", 1)[1])
    with pytest.raises(MetadataInjectionError) as excinfo:
        MetadataInjector(DocumentType.STATUTE).inject(root, _row())
    assert str(excinfo.value) == "'caml:LegislativeInfo' metadata tag is missing or not in the correct place."


def test_wrong_root_element() -> None:
    root = ET.fromstring("<caml:Other xmlns:caml='urn:x'/>")
    with pytest.raises(MetadataInjectionError, match="'caml:MeasureDoc' metadata tag is missing"):
        MetadataInjector(DocumentType.STATUTE).inject(root, _row())


def test_blank_measure_type_empties_house_too() -> None:
    root = ET.fromstring(_document().split("\n", 1)[1])
    with pytest.raises(MetadataInjectionError) as excinfo:
        MetadataInjector(DocumentType.STATUTE).inject(root, _row(measure_type=""))
    assert [err.field for err in excinfo.value.errors] == ["MeasureType"]


def test_malformed_text_raises_parse_error() -> None:
    with pytest.raises(ET.ParseError):
        MetadataInjector(DocumentType.STATUTE).merge('<?xml version="1.0"?>\n<a><b></a>', _row())
