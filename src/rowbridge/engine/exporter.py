"""Paginated CSV export with file bundling."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import IO, Any, Optional

from ..mapping.models import MappingConfig
from ..store.base import Document, DocumentStore
from .archive import ArchiveError, ArchiveWriter
from .assembler import RowAssembler, call_hook
from .formatting import format_line
from .models import ExportJob, ExportResult, ExportState

logger = logging.getLogger(__name__)


class ExportPipeline:
    """
    Exports the documents matching a query to CSV and bundles the CSV with
    the documents' connected files into a zip archive.

    Pages are fetched one after another; documents within a page are
    converted concurrently, bounded by ``workers``. The pipeline itself is
    the only writer of the CSV file and of the archive.
    """

    def __init__(
        self,
        assembler: RowAssembler,
        store: DocumentStore,
        config: MappingConfig,
        export_dir: Path,
        page_size: int = 100,
        workers: int = 5,
        col_separator: str = ";",
        line_separator: str = "\n",
        archive_csv_name: str = "export.csv",
        archive_entry_pattern: str = "files/{name}",
    ):
        self.assembler = assembler
        self.model = assembler.model
        self.store = store
        self.config = config
        self.export_dir = Path(export_dir)
        self.page_size = max(1, page_size)
        self.workers = max(1, workers)
        self.col_separator = col_separator
        self.line_separator = line_separator
        self.archive_csv_name = archive_csv_name
        self.archive_entry_pattern = archive_entry_pattern

        self.state = ExportState.INITIALIZING
        self._semaphore = asyncio.Semaphore(self.workers)

    def _transition(self, state: ExportState):
        logger.info(f"Export '{self.config.name or self.config.model}': {self.state.value} -> {state.value}")
        self.state = state

    async def run(self, query: Optional[dict] = None) -> ExportResult:
        """
        Run the export.

        Args:
            query: Equality query selecting the documents to export

        Returns:
            ExportResult locating the working directory and the archive

        Raises:
            ArchiveError: If the archive cannot be created or finalized
        """
        job = await self._initialize(dict(query or {}))

        try:
            with open(job.csv_path, "w", encoding="utf-8", newline="") as sink:
                self._write(sink, job, self.config.labels(export=True))

                self._transition(ExportState.PAGINATING)
                for page in range(job.pages + 1):
                    job.page = page
                    await self._export_page(job, sink)

            self._transition(ExportState.FINALIZING)
            job.archive.add_file(job.csv_path, self.archive_csv_name)
            job.archive.close()
        except BaseException:
            self._discard_archive(job)
            raise

        self._transition(ExportState.DONE)
        logger.info(
            f"Export finished: {job.total} documents, {job.line} lines, "
            f"{len(job.files)} files, {len(job.skipped_files)} skipped"
        )
        return ExportResult(
            config_name=self.config.name,
            working_dir=job.working_dir,
            archive_path=job.archive_path,
            csv_path=job.csv_path,
            total=job.total,
            lines=job.line,
            pages_fetched=job.pages_fetched,
            files=job.files,
            skipped_files=job.skipped_files,
        )

    async def _initialize(self, query: dict) -> ExportJob:
        total = await self.model.count(query)

        self.export_dir.mkdir(parents=True, exist_ok=True)
        working_dir = Path(tempfile.mkdtemp(prefix=f"{self.model.name}-", dir=self.export_dir))
        archive_path = working_dir / f"{self.config.name or self.model.name}.zip"

        job = ExportJob(
            working_dir=working_dir,
            csv_path=working_dir / self.archive_csv_name,
            archive_path=archive_path,
            archive=ArchiveWriter(archive_path).open(),
            query=query,
            entity=self.model.name,
            pages=total // self.page_size,
            total=total,
        )
        logger.info(
            f"Exporting {total} {self.model.name} documents in pages of {self.page_size} "
            f"to {working_dir}"
        )
        return job

    def _write(self, sink: IO[str], job: ExportJob, cells: list[Any]):
        sink.write(format_line(cells, self.col_separator, self.line_separator))
        job.line += 1

    async def _export_page(self, job: ExportJob, sink: IO[str]):
        documents = await self.model.find(
            job.query,
            skip=job.page * self.page_size,
            limit=self.page_size,
            populate=list(self.config.populate),
        )
        job.pages_fetched += 1
        logger.info(f"Page {job.page + 1}/{job.pages + 1}: {len(documents)} documents")

        results = await asyncio.gather(*(self._export_document(doc) for doc in documents))

        for document, (row, manifest) in zip(documents, results):
            self._write(sink, job, row)
            for name, path in manifest.items():
                await self._stage_file(job, document, name, path)

    async def _export_document(self, document: Document) -> tuple[list[Any], dict[str, Any]]:
        async with self._semaphore:
            row = await self.assembler.export_row(document)
            manifest = await self._collect_files(document)
            return row, manifest

    async def _collect_files(self, document: Document) -> dict[str, Any]:
        """Connected files of a document, keyed by destination name."""
        if not self.config.files:
            return {}

        connected = [
            f for f in await self.store.connected_files(document) if f.category in self.config.files
        ]
        if self.config.files_hook:
            manifest = await call_hook(self.config.files_hook, document, connected)
            return dict(manifest or {})
        return {f"{document.id}/{f.name}": f.path for f in connected}

    async def _stage_file(self, job: ExportJob, document: Document, name: str, path: Any):
        if not isinstance(path, (str, os.PathLike)):
            logger.warning(f"Skipping file {path!r} of {document.id}: not a path")
            job.skipped_files.append(str(path))
            return

        source = Path(path)
        if not await asyncio.to_thread(source.is_file):
            logger.warning(f"Skipping file {source} of {document.id}: not a regular file")
            job.skipped_files.append(str(source))
            return

        entry = self.archive_entry_pattern.format(name=name, id=document.id)
        try:
            await asyncio.to_thread(job.archive.add_file, source, entry)
        except ArchiveError as e:
            logger.warning(f"Skipping file {source} of {document.id}: {e}")
            job.skipped_files.append(str(source))
            return
        job.files.append(entry)

    def _discard_archive(self, job: ExportJob):
        try:
            job.archive.close()
        except ArchiveError as e:
            logger.error(f"Archive cleanup failed after export error: {e}")
