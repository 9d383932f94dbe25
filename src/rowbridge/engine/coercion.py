"""Conversion between raw CSV cell text and typed document values."""

from typing import Any, Iterable, Mapping, Optional

from ..store.base import FieldKind, FieldType

DEFAULT_LIST_SEPARATOR = ","


def clean_cell(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a raw cell.

    Trims whitespace, strips one matching pair of surrounding double quotes
    and trims again. Empty text becomes None (absent), so required checks
    fire and defaults are not overwritten with "".
    """
    if raw is None:
        return None
    text = raw.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1].strip()
    return text or None


def import_boolean(text: Optional[str], boolean_map: Mapping[str, bool]) -> Optional[bool]:
    """Map a word to a boolean, case-insensitively. Unknown words yield None."""
    if text is None:
        return None
    wanted = text.strip().lower()
    for word, flag in boolean_map.items():
        if word.lower() == wanted:
            return flag
    return None


def export_boolean(value: Any, boolean_map: Mapping[str, bool]) -> str:
    """Return the first word mapping to the value, or an empty cell."""
    for word, flag in boolean_map.items():
        # type check keeps 1 and 0 from matching True and False
        if type(flag) is type(value) and flag == value:
            return word
    return ""


def split_list(text: Optional[str], separator: Optional[str] = None) -> Optional[list[str]]:
    """Split a delimited cell, dropping empty elements."""
    if text is None:
        return None
    return [part for part in text.split(separator or DEFAULT_LIST_SEPARATOR) if part != ""]


def join_list(values: Iterable[Any], separator: Optional[str] = None) -> str:
    return (separator or DEFAULT_LIST_SEPARATOR).join(
        str(v) for v in values if v is not None and v != ""
    )


def coerce_import(
    text: Optional[str],
    field_type: Optional[FieldType],
    boolean_map: Mapping[str, bool],
    separator: Optional[str] = None,
) -> Any:
    """Convert cleaned cell text to the value written on a document."""
    if text is None or field_type is None:
        return text
    if field_type.kind == FieldKind.BOOLEAN:
        return import_boolean(text, boolean_map)
    if field_type.kind == FieldKind.LIST:
        return split_list(text, separator)
    return text


def coerce_export(
    value: Any,
    field_type: Optional[FieldType],
    boolean_map: Mapping[str, bool],
    separator: Optional[str] = None,
) -> Any:
    """Convert a document value to the value written in a cell."""
    if field_type is None:
        return value
    if field_type.kind == FieldKind.BOOLEAN:
        return export_boolean(value, boolean_map)
    if field_type.kind == FieldKind.LIST and isinstance(value, (list, tuple)):
        return join_list(value, separator)
    return value
