"""Document store interface used by the mapping engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

_MISSING = object()


class FieldKind(str, Enum):
    """Kind of a schema field, selects the coercion rule."""

    BOOLEAN = "boolean"
    LIST = "list"
    SCALAR = "scalar"
    ENUM_SCALAR = "enum_scalar"


@dataclass(frozen=True)
class FieldType:
    """Type descriptor of one field path."""

    kind: FieldKind = FieldKind.SCALAR
    enum: tuple[Any, ...] = ()
    required: bool = False
    ref: Optional[str] = None  # Target entity for relationship expansion


@dataclass
class EntitySchema:
    """Static field-type table of one entity."""

    name: str
    fields: dict[str, FieldType] = field(default_factory=dict)

    def field_type(self, path: str) -> Optional[FieldType]:
        return self.fields.get(path)


@dataclass
class ConnectedFile:
    """A file associated with a document."""

    name: str
    path: Path
    category: str = "default"


class DocumentValidationError(Exception):
    """Raised when a document fails schema validation on save."""

    def __init__(self, entity: str, errors: list[str]):
        self.entity = entity
        self.errors = errors
        super().__init__(f"{entity} validation failed: {'; '.join(errors)}")


def get_path(data: dict, path: str, default: Any = None) -> Any:
    """Read a value from nested dicts by dotted path."""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def set_path(data: dict, path: str, value: Any) -> None:
    """Write a value into nested dicts by dotted path, creating parents."""
    parts = path.split(".")
    current = data
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


class Document:
    """A document of one entity, addressed by dotted paths."""

    def __init__(self, entity: str, data: Optional[dict] = None, id: Optional[str] = None):
        self.entity = entity
        self.data: dict = data if data is not None else {}
        self.id = id

    def get(self, path: str, default: Any = None) -> Any:
        return get_path(self.data, path, default)

    def set(self, path: str, value: Any) -> None:
        set_path(self.data, path, value)

    def has(self, path: str) -> bool:
        return get_path(self.data, path, _MISSING) is not _MISSING

    def to_dict(self) -> dict:
        return {"_id": self.id, **self.data}

    def __repr__(self) -> str:
        return f"Document({self.entity!r}, id={self.id!r}, data={self.data!r})"


class EntityModel(ABC):
    """Handle on one entity of a document store."""

    def __init__(self, name: str, schema: EntitySchema):
        self.name = name
        self.schema = schema

    def new(self) -> Document:
        """Construct a new, unsaved document."""
        return Document(self.name)

    def field_type(self, path: str) -> Optional[FieldType]:
        """Type descriptor for a field path, None when the schema has none."""
        return self.schema.field_type(path)

    def validate(self, document: Document) -> list[str]:
        """Check required and enum constraints of the schema."""
        errors = []
        for path, field_type in self.schema.fields.items():
            value = document.get(path)
            if field_type.required and value in (None, "", []):
                errors.append(f"'{path}' is required")
            elif field_type.enum and value is not None and value not in field_type.enum:
                errors.append(f"'{path}' must be one of {list(field_type.enum)}, got {value!r}")
        return errors

    @abstractmethod
    async def save(self, document: Document, **options: Any) -> Document:
        """Persist a document, assigning an id if it has none."""
        pass

    @abstractmethod
    async def count(self, query: Optional[dict] = None) -> int:
        """Count documents matching an equality query on dotted paths."""
        pass

    @abstractmethod
    async def find(
        self,
        query: Optional[dict] = None,
        skip: int = 0,
        limit: Optional[int] = None,
        populate: Optional[list[str]] = None,
    ) -> list[Document]:
        """Find documents in insertion order."""
        pass

    @abstractmethod
    async def find_one(self, query: dict) -> Optional[Document]:
        """Find the first document matching a query."""
        pass


class DocumentStore(ABC):
    """Abstract base class for document stores."""

    @abstractmethod
    async def initialize(self):
        pass

    @abstractmethod
    async def close(self):
        pass

    @abstractmethod
    def register_schema(self, schema: EntitySchema) -> None:
        pass

    @abstractmethod
    def get_model(self, name: str) -> EntityModel:
        """Get the model handle of an entity.

        Raises:
            ConfigurationError: If no schema is registered under that name
        """
        pass

    @abstractmethod
    async def connected_files(self, document: Document) -> list[ConnectedFile]:
        """Files associated with a document."""
        pass
