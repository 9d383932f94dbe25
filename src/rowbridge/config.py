"""Configuration management for rowbridge."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_BOOLEAN_MAP = {"Ja": True, "Nein": False}

_ESCAPES = {"\\n": "\n", "\\r": "\r", "\\t": "\t"}


def _parse_separator(value: Optional[str], default: str) -> str:
    """Parse a separator from the environment, accepting escape sequences like \\r\\n."""
    if not value:
        return default
    for escaped, actual in _ESCAPES.items():
        value = value.replace(escaped, actual)
    return value


def _parse_boolean_map() -> dict[str, bool]:
    """Parse the boolean word map from environment variable.

    Format: ``Yes:true,No:false``. Entries that do not name a boolean are ignored.
    """
    raw = os.getenv("BOOLEAN_MAP")
    if not raw:
        return dict(DEFAULT_BOOLEAN_MAP)

    result: dict[str, bool] = {}
    for entry in raw.split(","):
        word, sep, flag = entry.partition(":")
        if not sep or not word.strip():
            continue
        flag = flag.strip().lower()
        if flag in ("true", "1"):
            result[word.strip()] = True
        elif flag in ("false", "0"):
            result[word.strip()] = False
    return result or dict(DEFAULT_BOOLEAN_MAP)


class Settings(BaseModel):
    """Application settings."""

    # Directory holding one mapping module per entity (<name>.py)
    mapping_config_path: Path = Path(os.getenv("MAPPING_CONFIG_PATH", "config/importexportcsv"))

    # Database path for the document store
    database_path: Path = Path(os.getenv("DATABASE_PATH", "data/rowbridge.db"))

    # CSV format
    col_separator: str = _parse_separator(os.getenv("COL_SEPARATOR"), ";")
    line_separator: str = _parse_separator(os.getenv("LINE_SEPARATOR"), "\n")
    list_separator: str = _parse_separator(os.getenv("LIST_SEPARATOR"), ",")
    boolean_map: dict[str, bool] = _parse_boolean_map()

    # Import
    import_workers: int = int(os.getenv("IMPORT_WORKERS", "1"))  # 1 keeps imports strictly sequential
    drain_poll_interval: float = float(os.getenv("DRAIN_POLL_INTERVAL", "0.05"))

    # Export
    export_page_size: int = int(os.getenv("EXPORT_PAGE_SIZE", "100"))
    export_workers: int = int(os.getenv("EXPORT_WORKERS", "5"))
    export_dir: Path = Path(os.getenv("EXPORT_DIR", "data/exports"))
    archive_csv_name: str = os.getenv("ARCHIVE_CSV_NAME", "export.csv")
    archive_entry_pattern: str = os.getenv("ARCHIVE_ENTRY_PATTERN", "files/{name}")

    # Server settings
    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = int(os.getenv("PORT", "8000"))
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"

    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
