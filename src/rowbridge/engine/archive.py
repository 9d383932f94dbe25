"""Zip archive container for export bundles."""

import logging
import zipfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """The export archive could not be written or finalized."""

    pass


class ArchiveWriter:
    """Accumulates named file entries into a zip archive."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._zip: Optional[zipfile.ZipFile] = None
        self.entries: list[str] = []

    def open(self):
        try:
            self._zip = zipfile.ZipFile(self.path, "w", compression=zipfile.ZIP_DEFLATED)
        except OSError as e:
            raise ArchiveError(f"Cannot create archive {self.path}: {e}") from e
        return self

    def add_file(self, source: Path, name: str):
        """Add a file under an entry name. Entries are independent of each other."""
        if self._zip is None:
            raise ArchiveError("Archive is not open")
        try:
            self._zip.write(source, arcname=name)
        except (OSError, zipfile.BadZipFile, ValueError) as e:
            raise ArchiveError(f"Cannot add {source} as {name}: {e}") from e
        self.entries.append(name)

    def close(self):
        if self._zip is None:
            return
        try:
            self._zip.close()
        except (OSError, zipfile.BadZipFile, ValueError) as e:
            raise ArchiveError(f"Cannot finalize archive {self.path}: {e}") from e
        finally:
            self._zip = None
        logger.info(f"Archive finalized: {self.path} ({len(self.entries)} entries)")
