"""Import template generation."""

from ..mapping.models import FieldMapping, MappingConfig
from ..store.base import DocumentStore
from .formatting import format_line


def _sample_cell(store: DocumentStore, config: MappingConfig, field: FieldMapping) -> str:
    model = store.get_model(field.ref or config.model)
    field_type = model.field_type(field.path)
    if field_type and field_type.enum:
        return ",".join(str(v) for v in field_type.enum if v)
    return ""


def generate_dummy(
    store: DocumentStore,
    config: MappingConfig,
    col_separator: str = ";",
    line_separator: str = "\n",
) -> str:
    """
    Build a two-line CSV template for a mapping configuration.

    The first line holds the labels of all columns, the second one the
    allowed values of every enumerated field (empty for the others).
    """
    header = format_line(config.labels(), col_separator, line_separator)
    sample = format_line(
        [_sample_cell(store, config, field) for field in config.columns()],
        col_separator,
        line_separator,
    )
    return header + sample
