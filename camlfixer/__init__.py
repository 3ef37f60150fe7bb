#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""CAML repair and metadata-merge pipeline for scanned session laws."""

from .base import (
    BaseRepairer,
    CamlIdentity,
    DocumentType,
    FixerContext,
    FixerOptions,
    FixerRunParams,
    RepairedDocument,
    new_element_id,
)
from .coordinator import WorkCoordinator, YearResult, run_years
from .errors import ErrorAggregator
from .injector import MetadataInjector
from .metadata import MetadataIndex, MetadataRow, load_metadata_dir
from .registry import REPAIRER_REGISTRY, get_repairer
from .text_repair import TextRepairPipeline, build_pipeline

__all__ = [
    "BaseRepairer",
    "CamlIdentity",
    "DocumentType",
    "ErrorAggregator",
    "FixerContext",
    "FixerOptions",
    "FixerRunParams",
    "MetadataIndex",
    "MetadataInjector",
    "MetadataRow",
    "REPAIRER_REGISTRY",
    "RepairedDocument",
    "TextRepairPipeline",
    "WorkCoordinator",
    "YearResult",
    "build_pipeline",
    "get_repairer",
    "load_metadata_dir",
    "new_element_id",
    "run_years",
]
