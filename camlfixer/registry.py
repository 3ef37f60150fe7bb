#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Maps each DocumentType to the class that runs its type-specific repair pass."""

from __future__ import annotations

from typing import Dict, Optional, Type

from .base import BaseRepairer, DocumentType, IdFactory


REPAIRER_REGISTRY: Dict[DocumentType, Type[BaseRepairer]] = {}


def register_repairer(cls: Type[BaseRepairer]) -> Type[BaseRepairer]:
    """Class decorator; each document type has exactly one repairer."""
    doc_type = getattr(cls, "doc_type", None)
    if not isinstance(doc_type, DocumentType):
        raise ValueError(f"Repairer {cls.__name__} must define doc_type.")
    current = REPAIRER_REGISTRY.get(doc_type)
    if current is not None and current is not cls:
        raise ValueError(
            f"{doc_type.label} documents are already repaired by {current.__name__}; "
            f"can't also register {cls.__name__}."
        )
    REPAIRER_REGISTRY[doc_type] = cls
    return cls


def get_repairer(doc_type: DocumentType, id_factory: Optional[IdFactory] = None) -> BaseRepairer:
    try:
        cls = REPAIRER_REGISTRY[doc_type]
    except KeyError as exc:
        raise KeyError(f"No repairer registered for {doc_type.label} documents.") from exc
    return cls(id_factory)


# Importing the implementations registers them.
from .resolutions.pipeline import ResolutionRepairer  # noqa: E402,F401
from .statutes.pipeline import StatuteRepairer  # noqa: E402,F401


__all__ = ["REPAIRER_REGISTRY", "get_repairer", "register_repairer"]
