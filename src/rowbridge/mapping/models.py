"""Data models for mapping configurations."""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union


class ConfigurationError(Exception):
    """Exception raised when a mapping configuration is missing or unusable."""

    pass


@dataclass(frozen=True)
class NoTransform:
    """Field uses the generic coercion path."""


@dataclass(frozen=True)
class CustomGetter:
    """Export hook: ``fn(document) -> value``, sync or async."""

    fn: Callable[..., Any]


@dataclass(frozen=True)
class CustomSetter:
    """Import hook: ``fn(document, value)``, sync or async."""

    fn: Callable[..., Any]


NO_TRANSFORM = NoTransform()

Getter = Union[NoTransform, CustomGetter]
Setter = Union[NoTransform, CustomSetter]


@dataclass(frozen=True)
class FieldMapping:
    """Correspondence between one CSV column and one document path."""

    path: str
    label: str
    ref: Optional[str] = None  # Sub-entity name
    ref_path: Optional[str] = None  # Parent field holding the sub-entity id
    separator: Optional[str] = None
    is_ref_identifier: bool = False
    required: bool = False
    import_enabled: bool = True
    export_enabled: bool = True
    getter: Getter = NO_TRANSFORM
    setter: Setter = NO_TRANSFORM

    @property
    def is_reference(self) -> bool:
        return bool(self.ref and self.ref_path)

    @property
    def export_path(self) -> str:
        """Path of the value on a (populated) primary document."""
        if self.is_reference:
            return f"{self.ref_path}.{self.path}"
        return self.path

    @classmethod
    def from_dict(cls, data: dict) -> "FieldMapping":
        """Build a field mapping from a plain dict (camelCase keys accepted)."""
        if "path" not in data:
            raise ConfigurationError(f"Field mapping without path: {data!r}")

        getter = data.get("get")
        setter = data.get("set")
        return cls(
            path=data["path"],
            label=data.get("label", data["path"]),
            ref=data.get("ref"),
            ref_path=data.get("ref_path", data.get("refPath")),
            separator=data.get("separator"),
            is_ref_identifier=bool(data.get("is_ref_identifier", data.get("isRefIdentifier", False))),
            required=bool(data.get("required", False)),
            import_enabled=data.get("import_enabled", data.get("import", True)) is not False,
            export_enabled=data.get("export_enabled", data.get("export", True)) is not False,
            getter=CustomGetter(getter) if callable(getter) else NO_TRANSFORM,
            setter=CustomSetter(setter) if callable(setter) else NO_TRANSFORM,
        )


@dataclass(frozen=True)
class MappingConfig:
    """Per-entity mapping configuration, immutable for the duration of an operation."""

    model: str
    fields: tuple[FieldMapping, ...]
    name: Optional[str] = None
    files: tuple[str, ...] = ()  # Connected file categories exported with each document
    files_hook: Optional[Callable[..., Any]] = None  # (document, files) -> {dest_name: path}
    duplicate_hook: Optional[Callable[..., Any]] = None  # (document) -> bool
    save_options: dict[str, Any] = field(default_factory=dict)
    populate: tuple[str, ...] = ()

    def columns(self) -> list[FieldMapping]:
        """Fields that occupy a CSV column; fields disabled both ways are left out."""
        return [f for f in self.fields if f.import_enabled or f.export_enabled]

    def import_fields(self) -> list[FieldMapping]:
        return [f for f in self.fields if f.import_enabled]

    def export_fields(self) -> list[FieldMapping]:
        return [f for f in self.fields if f.export_enabled]

    def labels(self, export: bool = False) -> list[str]:
        fields = self.export_fields() if export else self.columns()
        return [f.label for f in fields]

    @classmethod
    def from_dict(cls, data: dict, name: Optional[str] = None) -> "MappingConfig":
        if not data.get("model"):
            raise ConfigurationError(f"Mapping configuration '{name}' declares no model")
        if not data.get("fields"):
            raise ConfigurationError(f"Mapping configuration '{name}' declares no fields")

        return cls(
            model=data["model"],
            fields=tuple(
                f if isinstance(f, FieldMapping) else FieldMapping.from_dict(f)
                for f in data["fields"]
            ),
            name=name,
            files=tuple(data.get("files") or ()),
            files_hook=data.get("files_hook", data.get("getFiles")),
            duplicate_hook=data.get("duplicate_hook", data.get("isDuplicate")),
            save_options=dict(data.get("save_options", data.get("saveOptions")) or {}),
            populate=tuple(data.get("populate") or ()),
        )
