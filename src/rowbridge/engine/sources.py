"""Line sources feeding the import pipeline."""

import asyncio
from pathlib import Path
from typing import AsyncIterator


async def iter_file_lines(path: Path, encoding: str = "utf-8") -> AsyncIterator[str]:
    """Yield the lines of a text file, reading off the event loop."""
    with open(path, "r", encoding=encoding, newline="") as handle:
        while True:
            line = await asyncio.to_thread(handle.readline)
            if not line:
                break
            yield line.rstrip("\r\n")


async def iter_text_lines(text: str, line_separator: str = "\n") -> AsyncIterator[str]:
    """Yield the lines of an in-memory payload."""
    lines = text.split(line_separator)
    if lines and lines[-1] == "":
        lines.pop()
    for line in lines:
        yield line.rstrip("\r")
