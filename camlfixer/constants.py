#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Shared constants for the CAML repair pipeline."""

from __future__ import annotations

CAML_EXTENSION: str = ".caml"
CAML_DIR_MARKER: str = "CAML"
METADATA_DIR_MARKER: str = "Metadata"

# Opt-in override for the per-year worker pool size (0 or negative pins it to 1).
MAX_WORKERS_ENV: str = "CAML_MAX_WORKERS"

XML_DECLARATION_MARKER: str = "<?xml version"

MEASURE_STATE: str = "CHP"
HOUSE_ASSEMBLY: str = "ASSEMBLY"
HOUSE_SENATE: str = "SENATE"
DIGEST_TEXT: str = (
    "Please be advised that the statutes in this database for years prior to 1989 "
    "were scanned from a hard copy original, and therefore may contain inaccuracies."
)

# Non-ASCII characters that XMetaL uses and that survive the non-ASCII sweep.
ALLOWED_NON_ASCII: str = "¡¿¢£¤¥€¶§©®™ªº«»‘’“”…–—µƒ°·×÷±¹²³¼½¾¦"

# Name fragments whose following letter is capitalized ("McConnell", "O'Connell").
SPECIAL_CAPS_PREFIXES: tuple[str, ...] = ("Mac", "Mc", "'")

METADATA_COLUMNS: tuple[str, ...] = ("MeasureType", "MeasureNum", "ChapterNum", "Name", "AuthorText")
METADATA_ROW_XPATH: str = "//row"
# Legacy .xls workbooks need xlrd, which is not installed; resave them as .xlsx.
METADATA_EXTENSIONS: tuple[str, ...] = (".xml", ".xlsx", ".csv")

ERROR_REPORT_NAME: str = "{year} {label} Error List.txt"
NO_ERRORS_SENTINEL: str = "No errors found in {label}s for this year."
TIMESTAMP_FORMAT: str = "%H:%M:%S"

__all__ = [
    "ALLOWED_NON_ASCII",
    "CAML_DIR_MARKER",
    "CAML_EXTENSION",
    "DIGEST_TEXT",
    "ERROR_REPORT_NAME",
    "HOUSE_ASSEMBLY",
    "HOUSE_SENATE",
    "MAX_WORKERS_ENV",
    "MEASURE_STATE",
    "METADATA_COLUMNS",
    "METADATA_DIR_MARKER",
    "METADATA_EXTENSIONS",
    "METADATA_ROW_XPATH",
    "NO_ERRORS_SENTINEL",
    "SPECIAL_CAPS_PREFIXES",
    "TIMESTAMP_FORMAT",
    "XML_DECLARATION_MARKER",
]
