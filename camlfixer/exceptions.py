#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Exception taxonomy raised by the repair, matching and injection stages."""

from __future__ import annotations

from typing import Sequence


class CamlFixerError(Exception):
    """Base class for every expected, per-document or per-year failure."""


class SetupError(CamlFixerError):
    """A year cannot be processed (missing folders, unreadable configuration)."""


class FilenameFormatError(CamlFixerError):
    """A document filename does not follow the CH<tag><year><session><chapter>.caml shape."""


class MetadataMatchError(CamlFixerError):
    """No single metadata row could be assigned to a document."""


class MissingMetadata(MetadataMatchError):
    pass


class DuplicateMetadata(MetadataMatchError):
    def __init__(self, extra: int) -> None:
        self.extra = extra
        noun = "entries" if extra > 1 else "entry"
        super().__init__(f"{extra} duplicate {noun} present in metadata sheet.")


class RepairError(CamlFixerError):
    """A text-level repair pass could not run on the document."""


class MissingDeclaration(RepairError):
    def __init__(self) -> None:
        super().__init__("XML declaration is missing.")


class FieldError(CamlFixerError):
    """A single schema field could not be written during metadata injection."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class FieldMissing(FieldError):
    def __init__(self, field: str) -> None:
        super().__init__(field, f"'caml:{field}' metadata tag is missing or not in the correct place.")


class FieldDuplicate(FieldError):
    def __init__(self, field: str) -> None:
        super().__init__(field, f"'caml:{field}' metadata tag is present more than once.")


class FieldEmpty(FieldError):
    def __init__(self, field: str) -> None:
        super().__init__(field, f"'{field}' field is empty in metadata sheet.")


class WriteError(CamlFixerError):
    """A repaired or passed-through document could not be written to its destination."""


class MetadataInjectionError(CamlFixerError):
    """Every field failure from one injection attempt, raised together."""

    def __init__(self, errors: Sequence[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__("\n".join(str(err) for err in self.errors))


__all__ = [
    "CamlFixerError",
    "DuplicateMetadata",
    "FieldDuplicate",
    "FieldEmpty",
    "FieldError",
    "FieldMissing",
    "FilenameFormatError",
    "MetadataInjectionError",
    "MetadataMatchError",
    "MissingDeclaration",
    "MissingMetadata",
    "RepairError",
    "SetupError",
    "WriteError",
]
