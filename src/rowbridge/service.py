"""Entry point wiring mapping configurations, the document store and the pipelines."""

import logging
from pathlib import Path
from typing import AsyncIterable, Optional

from .config import Settings, settings as default_settings
from .engine import (
    ExportPipeline,
    ExportResult,
    ImportPipeline,
    ImportReport,
    RowAssembler,
    generate_dummy,
    iter_file_lines,
    iter_text_lines,
)
from .mapping import MappingConfig, MappingLoader
from .store import DocumentStore, SQLiteDocumentStore

logger = logging.getLogger(__name__)


class RowBridge:
    """
    Imports and exports entities as CSV.

    Every call loads its mapping configuration, builds the pipeline for it
    and discards both when done.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[DocumentStore] = None,
        loader: Optional[MappingLoader] = None,
    ):
        self.settings = settings or default_settings
        self.store = store or SQLiteDocumentStore(self.settings.database_path)
        self.loader = loader or MappingLoader(self.settings.mapping_config_path)
        self._imports: set[ImportPipeline] = set()
        self._initialized = False

    async def initialize(self):
        """Open the store and register the entity schemas of the config directory."""
        if self._initialized:
            return
        await self.store.initialize()
        for schema in self.loader.load_schemas():
            self.store.register_schema(schema)
            logger.info(f"Registered schema '{schema.name}' ({len(schema.fields)} fields)")
        self._initialized = True

    async def shutdown(self):
        await self.store.close()
        self._initialized = False

    def _assembler(self, config: MappingConfig) -> RowAssembler:
        return RowAssembler(
            self.store,
            config,
            boolean_map=self.settings.boolean_map,
            list_separator=self.settings.list_separator,
        )

    async def import_lines(self, config_name: str, lines: AsyncIterable[str]) -> ImportReport:
        """
        Import a stream of CSV lines (header first).

        Raises:
            ConfigurationError: If the mapping configuration cannot be loaded
            StreamInterruptError: If the import is interrupted
        """
        config = self.loader.load(config_name)
        pipeline = ImportPipeline(
            self._assembler(config),
            config,
            col_separator=self.settings.col_separator,
            workers=self.settings.import_workers,
            poll_interval=self.settings.drain_poll_interval,
        )
        self._imports.add(pipeline)
        try:
            return await pipeline.run(lines)
        finally:
            self._imports.discard(pipeline)

    async def import_file(self, config_name: str, path: Path) -> ImportReport:
        logger.info(f"Importing {path} with '{config_name}'")
        return await self.import_lines(config_name, iter_file_lines(Path(path)))

    async def import_text(self, config_name: str, text: str) -> ImportReport:
        return await self.import_lines(
            config_name, iter_text_lines(text, self.settings.line_separator)
        )

    def interrupt_imports(self) -> int:
        """Interrupt every running import. Returns how many were signalled."""
        for pipeline in self._imports:
            pipeline.interrupt()
        return len(self._imports)

    async def export(self, config_name: str, query: Optional[dict] = None) -> ExportResult:
        """
        Export the documents matching a query to a zip archive.

        Raises:
            ConfigurationError: If the mapping configuration cannot be loaded
            ArchiveError: If the archive cannot be written
        """
        config = self.loader.load(config_name)
        pipeline = ExportPipeline(
            self._assembler(config),
            self.store,
            config,
            export_dir=self.settings.export_dir,
            page_size=self.settings.export_page_size,
            workers=self.settings.export_workers,
            col_separator=self.settings.col_separator,
            line_separator=self.settings.line_separator,
            archive_csv_name=self.settings.archive_csv_name,
            archive_entry_pattern=self.settings.archive_entry_pattern,
        )
        return await pipeline.run(query)

    def generate_dummy(self, config_name: str) -> str:
        """CSV template (header and enum sample line) for a mapping configuration."""
        config = self.loader.load(config_name)
        return generate_dummy(
            self.store,
            config,
            col_separator=self.settings.col_separator,
            line_separator=self.settings.line_separator,
        )
