"""Document store collaborators for rowbridge."""

from .base import (
    ConnectedFile,
    Document,
    DocumentStore,
    DocumentValidationError,
    EntityModel,
    EntitySchema,
    FieldKind,
    FieldType,
)
from .sqlite import SQLiteDocumentStore

__all__ = [
    "ConnectedFile",
    "Document",
    "DocumentStore",
    "DocumentValidationError",
    "EntityModel",
    "EntitySchema",
    "FieldKind",
    "FieldType",
    "SQLiteDocumentStore",
]
