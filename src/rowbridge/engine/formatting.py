"""Delimited row formatting."""

from typing import Any, Sequence


def escape_cell(value: Any) -> str:
    """Quote text values; numbers, booleans and None pass through unquoted."""
    if isinstance(value, str):
        return f'"{value}"'
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_row(cells: Sequence[Any], col_separator: str = ";") -> str:
    return col_separator.join(escape_cell(cell) for cell in cells)


def format_line(cells: Sequence[Any], col_separator: str = ";", line_separator: str = "\n") -> str:
    """Format a row followed by the line terminator."""
    return format_row(cells, col_separator) + line_separator


def split_row(line: str, col_separator: str = ";") -> list[str]:
    """Split a line into raw cells. Quoting is left to ``clean_cell``."""
    return line.rstrip("\r\n").split(col_separator)
