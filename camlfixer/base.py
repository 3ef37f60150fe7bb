#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Common dataclasses and base class used by the type-specific repairers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Union

IdFactory = Callable[[], str]


def new_element_id() -> str:
    """Mint a fresh CAML element identifier ("id_<uuid>")."""
    return f"id_{uuid.uuid4()}"


class DocumentType(Enum):
    """The two CAML variants, with their filename tag, chapter type and report label."""

    RESOLUTION = ("R", "CHR", "Resolution")
    STATUTE = ("P", "CHP", "Statute")

    def __init__(self, tag: str, chapter_type: str, label: str) -> None:
        self.tag = tag
        self.chapter_type = chapter_type
        self.label = label

    @classmethod
    def from_tag(cls, tag: str) -> "DocumentType":
        for member in cls:
            if member.tag == tag:
                return member
        raise ValueError(f"Unknown CAML type tag {tag!r}.")


@dataclass(frozen=True)
class FixerRunParams:
    """Directory-level inputs supplied to a run."""

    source_dir: Path
    dest_dir: Path
    years: Sequence[str] = ()


@dataclass(frozen=True)
class FixerContext:
    """Resolved per-year paths the workers rely on."""

    year: str
    year_dir_name: str
    caml_dir: Path
    metadata_dir: Path
    dest_year_dir: Path
    dest_caml_dir: Path


@dataclass
class FixerOptions:
    """Optional switches controlling a run."""

    max_workers: Optional[int] = None
    show_spinner: bool = False
    extra: Dict[str, object] = field(default_factory=dict)

    def flag(self, key: str, default: bool = False) -> bool:
        """Helper to fetch boolean extras with a default."""
        value = self.extra.get(key, default)
        return bool(value)


@dataclass(frozen=True)
class CamlIdentity:
    """Type, year, session and chapter parsed from a CAML filename."""

    doc_type: DocumentType
    year: str
    session: int
    chapter: int


@dataclass(frozen=True)
class RepairedDocument:
    """Unit of work handed from a worker to the writer.

    ``content`` is text for repaired documents and raw bytes for documents that
    are passed through unmodified.
    """

    destination: Path
    content: Union[str, bytes]


class BaseRepairer:
    """Contract for the type-specific repair pass of one document type."""

    doc_type: Optional[DocumentType] = None
    display_name: str = ""
    description: str = ""

    def __init__(self, id_factory: Optional[IdFactory] = None) -> None:
        self.id_factory: IdFactory = id_factory or new_element_id

    def repair(self, text: str) -> str:
        """Apply the type-specific text rewrites to already commonly-repaired text."""
        raise NotImplementedError


__all__ = [
    "BaseRepairer",
    "CamlIdentity",
    "DocumentType",
    "FixerContext",
    "FixerOptions",
    "FixerRunParams",
    "IdFactory",
    "RepairedDocument",
    "new_element_id",
]
