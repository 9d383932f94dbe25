"""Mapping and streaming engine."""

from .archive import ArchiveError, ArchiveWriter
from .assembler import RowAssembler
from .dummy import generate_dummy
from .exporter import ExportPipeline
from .importer import ImportPipeline
from .models import (
    ExportResult,
    ExportState,
    ImportReport,
    ImportState,
    PersistenceError,
    RequiredFieldError,
    RowError,
    RowErrorEntry,
    RowOutcome,
    StreamInterruptError,
)
from .sources import iter_file_lines, iter_text_lines

__all__ = [
    "ArchiveError",
    "ArchiveWriter",
    "RowAssembler",
    "generate_dummy",
    "ExportPipeline",
    "ImportPipeline",
    "ExportResult",
    "ExportState",
    "ImportReport",
    "ImportState",
    "PersistenceError",
    "RequiredFieldError",
    "RowError",
    "RowErrorEntry",
    "RowOutcome",
    "StreamInterruptError",
    "iter_file_lines",
    "iter_text_lines",
]
