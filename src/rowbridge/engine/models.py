"""Data models and errors for the import and export pipelines."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from .archive import ArchiveError, ArchiveWriter


class ImportState(str, Enum):
    """Import pipeline states."""

    AWAITING_HEADER = "awaiting_header"
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"
    ABORTED = "aborted"


class ExportState(str, Enum):
    """Export pipeline states."""

    INITIALIZING = "initializing"
    PAGINATING = "paginating"
    FINALIZING = "finalizing"
    DONE = "done"


class RowOutcome(str, Enum):
    """Outcome of one imported line."""

    PERSISTED = "persisted"
    DUPLICATE = "duplicate"
    ERROR = "error"


class RowError(Exception):
    """Row-level failure, recorded against its line instead of aborting the import."""

    def __init__(self, line: int, message: str):
        self.line = line
        self.message = message
        super().__init__(f"Line {line}: {message}")


class RequiredFieldError(RowError):
    """A required field resolved to no value."""

    def __init__(self, line: int, label: str, path: str):
        self.label = label
        self.path = path
        super().__init__(line, f"Required field '{label}' ({path}) is missing")


class PersistenceError(RowError):
    """Saving the document (or one of its sub-entities) failed."""

    def __init__(self, line: int, cause: Exception, document: Optional[dict] = None):
        self.cause = cause
        self.document = document
        super().__init__(line, f"Could not save document: {cause}")


class StreamInterruptError(Exception):
    """The line source was interrupted; the import is aborted without a report."""

    pass


class RowErrorEntry(BaseModel):
    """An error recorded against one data line."""

    line: int
    message: str


class ImportReport(BaseModel):
    """Result of a completed import."""

    config_name: Optional[str] = None
    total: int = 0
    persisted: list[int] = Field(default_factory=list)
    duplicates: list[int] = Field(default_factory=list)
    errors: list[RowErrorEntry] = Field(default_factory=list)
    max_in_flight: int = 0

    def record(self, line: int, outcome: RowOutcome, message: str = ""):
        if outcome == RowOutcome.PERSISTED:
            self.persisted.append(line)
        elif outcome == RowOutcome.DUPLICATE:
            self.duplicates.append(line)
        else:
            self.errors.append(RowErrorEntry(line=line, message=message))

    def finalize(self):
        """Order every list by line number."""
        self.persisted.sort()
        self.duplicates.sort()
        self.errors.sort(key=lambda e: e.line)


class ExportResult(BaseModel):
    """Result of a completed export."""

    config_name: Optional[str] = None
    working_dir: Path
    archive_path: Path
    csv_path: Path
    total: int
    lines: int
    pages_fetched: int
    files: list[str] = Field(default_factory=list)
    skipped_files: list[str] = Field(default_factory=list)


@dataclass
class ExportJob:
    """Mutable state of one export run."""

    working_dir: Path
    csv_path: Path
    archive_path: Path
    archive: ArchiveWriter
    query: dict[str, Any]
    entity: str
    page: int = 0
    pages: int = 0
    total: int = 0
    line: int = 0
    pages_fetched: int = 0
    files: list[str] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
