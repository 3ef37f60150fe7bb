#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Year-by-year orchestration: setup, metadata load, dispatch, drain, reconcile, flush."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .base import (
    CamlIdentity,
    DocumentType,
    FixerContext,
    FixerOptions,
    FixerRunParams,
    IdFactory,
    RepairedDocument,
    new_element_id,
)
from .concurrency import DocumentWriter, partition, resolve_worker_count
from .constants import CAML_DIR_MARKER, METADATA_DIR_MARKER
from .errors import ErrorAggregator
from .exceptions import CamlFixerError, FilenameFormatError, MetadataMatchError, SetupError
from .injector import MetadataInjector
from .metadata import MetadataIndex, MetadataRow, load_metadata_dir
from .spinner import YearProgress, run_with_spinner
from .text_repair import TextRepairPipeline
from .utils import dir_names_containing, guess_document_type, parse_caml_filename


@dataclass
class YearResult:
    """What happened to one year, for callers and tests."""

    year: str
    context: Optional[FixerContext] = None
    documents: int = 0
    reports: Dict[DocumentType, Path] = field(default_factory=dict)
    skipped: bool = False


def identify(file_name: str, year: str) -> CamlIdentity:
    """Parse a document filename for the year being processed; raise FilenameFormatError otherwise."""
    identity = parse_caml_filename(file_name, year)
    if identity is None:
        raise FilenameFormatError(f"Unexpected file '{file_name}' in CAML directory.")
    return identity


class WorkCoordinator:
    """Runs every requested year through the repair-and-merge pipeline.

    One ErrorAggregator and one DocumentWriter serve the whole run; each year
    gets its own MetadataIndex and worker pool.
    """

    def __init__(
        self,
        params: FixerRunParams,
        options: Optional[FixerOptions] = None,
        *,
        errors: Optional[ErrorAggregator] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> None:
        self.params = params
        self.options = options or FixerOptions()
        self.errors = errors or ErrorAggregator()
        self.pipeline = TextRepairPipeline(id_factory or new_element_id)

    # ----------------------------
    # Run
    # ----------------------------
    def run(self) -> List[YearResult]:
        source = Path(self.params.source_dir)
        if not source.is_dir():
            raise FileNotFoundError(f"Source directory not found: {source}")
        writer = DocumentWriter(self.errors).start()
        results: List[YearResult] = []
        try:
            for year in self.params.years:
                results.append(self.run_year(str(year), writer))
        finally:
            # The end-of-work signal is raised once, after the last year's dispatch.
            writer.close()
            writer.join()
        return results

    def run_year(self, year: str, writer: DocumentWriter) -> YearResult:
        try:
            context = self.setup_year(year)
        except SetupError as exc:
            self.errors.record_setup_error(str(exc))
            return YearResult(year=year, skipped=True)

        index = MetadataIndex.from_rows(load_metadata_dir(context.metadata_dir, self.errors))
        files = sorted(p for p in context.caml_dir.iterdir() if p.is_file())
        progress = YearProgress(year, len(files))

        def _dispatch() -> None:
            self.dispatch(context, index, files, writer, progress)

        if self.options.show_spinner:
            run_with_spinner(progress, _dispatch)
        else:
            if not self.options.flag("quiet"):
                print(f"Running for year {year}...")
            _dispatch()

        self.reconcile(context, index)
        reports = self.errors.flush_year(year, context.dest_year_dir)
        return YearResult(year=year, context=context, documents=len(files), reports=reports)

    # ----------------------------
    # Stages
    # ----------------------------
    def _pick_dir(self, root: Path, marker: str, year: str) -> Optional[str]:
        names = dir_names_containing(root, marker)
        if not names:
            return None
        if len(names) > 1:
            self.errors.record_setup_error(
                f"ERROR: {year}: More than one folder named '{marker}'! Using '{names[0]}'."
            )
        return names[0]

    def setup_year(self, year: str) -> FixerContext:
        source = Path(self.params.source_dir)
        year_dir_name = self._pick_dir(source, year, year)
        if year_dir_name is None:
            raise SetupError(f"ERROR: Couldn't find '{year}' year folder!")
        year_dir = source / year_dir_name
        caml_dir_name = self._pick_dir(year_dir, CAML_DIR_MARKER, year)
        metadata_dir_name = self._pick_dir(year_dir, METADATA_DIR_MARKER, year)
        if caml_dir_name is None or metadata_dir_name is None:
            raise SetupError(f"ERROR: {year}: Couldn't find CAML dir or Metadata dir!")

        dest_year_dir = Path(self.params.dest_dir) / year_dir_name
        dest_caml_dir = dest_year_dir / caml_dir_name
        dest_caml_dir.mkdir(parents=True, exist_ok=True)
        return FixerContext(
            year=year,
            year_dir_name=year_dir_name,
            caml_dir=year_dir / caml_dir_name,
            metadata_dir=year_dir / metadata_dir_name,
            dest_year_dir=dest_year_dir,
            dest_caml_dir=dest_caml_dir,
        )

    def dispatch(
        self,
        context: FixerContext,
        index: MetadataIndex,
        files: Sequence[Path],
        writer: DocumentWriter,
        progress: Optional[YearProgress] = None,
    ) -> None:
        """Fan the year's files out over the pool and wait for every worker."""
        chunks = partition(files, resolve_worker_count(self.options.max_workers, writer_active=True))
        if not chunks:
            return
        with ThreadPoolExecutor(max_workers=len(chunks), thread_name_prefix=f"caml-{context.year}") as executor:
            futures = [
                executor.submit(self._process_chunk, context, index, chunk, writer, progress) for chunk in chunks
            ]
            for future in futures:
                future.result()

    def reconcile(self, context: FixerContext, index: MetadataIndex) -> None:
        """Report every metadata row no document claimed."""
        for doc_type in DocumentType:
            for row in index.unmatched_rows(doc_type):
                self.errors.log(doc_type, f"{row.caml_name(context.year)}: CAML file is missing or named incorrectly.")

    # ----------------------------
    # Per-document work
    # ----------------------------
    def _process_chunk(
        self,
        context: FixerContext,
        index: MetadataIndex,
        paths: Sequence[Path],
        writer: DocumentWriter,
        progress: Optional[YearProgress],
    ) -> None:
        for path in paths:
            self.process_document(context, index, path, writer)
            if progress is not None:
                progress.advance()

    def _pass_through(self, path: Path, doc_type: DocumentType, destination: Path, writer: DocumentWriter) -> None:
        try:
            writer.put(RepairedDocument(destination, path.read_bytes()))
        except OSError as exc:
            self.errors.log(doc_type, f"Couldn't copy file: {exc}", subject=path.stem)

    def process_document(
        self, context: FixerContext, index: MetadataIndex, path: Path, writer: DocumentWriter
    ) -> None:
        destination = context.dest_caml_dir / path.name
        try:
            identity = identify(path.name, context.year)
        except FilenameFormatError as exc:
            doc_type = guess_document_type(path.name)
            self.errors.log(doc_type, str(exc))
            self._pass_through(path, doc_type, destination, writer)
            return

        try:
            row = index.match(identity.doc_type, identity.session, identity.chapter)
        except MetadataMatchError as exc:
            self.errors.log(identity.doc_type, str(exc), subject=path.stem)
            self._pass_through(path, identity.doc_type, destination, writer)
            return

        try:
            raw = path.read_bytes()
        except OSError as exc:
            self.errors.log(identity.doc_type, f"Couldn't read file: {exc}", subject=path.stem)
            return

        text = self.repair_text(raw.decode("utf-8-sig", errors="replace"), identity.doc_type, row, path.stem)
        writer.put(RepairedDocument(destination, text))

    def repair_text(self, text: str, doc_type: DocumentType, row: MetadataRow, subject: str) -> str:
        """Run repair and injection; on failure return the best text produced before it.

        A missing declaration leaves the decoded original; a failed injection
        leaves the type-repaired text. Either way the failure is logged.
        """
        try:
            text = self.pipeline.common(text)
            text = self.pipeline.type_specific(text, doc_type)
            merged = MetadataInjector(doc_type).merge(text, row)
            text = self.pipeline.post_structural(merged)
        except (CamlFixerError, ET.ParseError) as exc:
            self.errors.log(doc_type, str(exc), subject=subject)
        return text


def run_years(
    source_dir: Path,
    dest_dir: Path,
    years: Sequence[str],
    options: Optional[FixerOptions] = None,
    *,
    errors: Optional[ErrorAggregator] = None,
) -> List[YearResult]:
    """Convenience wrapper used by the CLI."""
    params = FixerRunParams(source_dir=Path(source_dir), dest_dir=Path(dest_dir), years=tuple(years))
    return WorkCoordinator(params, options, errors=errors).run()


__all__ = ["WorkCoordinator", "YearResult", "identify", "run_years"]
