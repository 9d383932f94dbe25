"""Row assembly: CSV cells to documents and back."""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from ..mapping.models import CustomGetter, CustomSetter, FieldMapping, MappingConfig
from ..store.base import Document, DocumentStore, EntityModel, FieldType
from .coercion import clean_cell, coerce_export, coerce_import
from .models import PersistenceError, RequiredFieldError, RowError

logger = logging.getLogger(__name__)


async def call_hook(fn, *args) -> Any:
    """Call a configuration hook that may be sync or async."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class RefEntry:
    """One value collected for a sub-entity while assembling a row."""

    sub_path: str
    value: Any
    field: FieldMapping


class RowAssembler:
    """
    Turns raw rows into documents of the configured entity and documents
    back into rows.

    Reference fields (``ref`` and ``ref_path`` set) are grouped per
    ``ref_path`` into a sub-entity that is looked up or saved before the
    parent field is set to its id.
    """

    def __init__(
        self,
        store: DocumentStore,
        config: MappingConfig,
        boolean_map: Mapping[str, bool],
        list_separator: str = ",",
    ):
        self.store = store
        self.config = config
        self.model = store.get_model(config.model)
        self.boolean_map = boolean_map
        self.list_separator = list_separator
        self._ref_locks: dict[str, asyncio.Lock] = {}
        self._unresolved: set[tuple[str, str]] = set()

    def _owning_model(self, field: FieldMapping) -> EntityModel:
        if field.ref:
            return self.store.get_model(field.ref)
        return self.model

    def field_type(self, field: FieldMapping) -> Optional[FieldType]:
        """Type descriptor of a field on its owning entity."""
        model = self._owning_model(field)
        field_type = model.field_type(field.path)
        if field_type is None and (model.name, field.path) not in self._unresolved:
            self._unresolved.add((model.name, field.path))
            logger.warning(
                f"No type descriptor for {model.name}.{field.path}, value is used as-is"
            )
        return field_type

    # Import direction

    async def assemble(self, cells: Sequence[Optional[str]], line: int) -> Document:
        """
        Build one document from a row.

        Args:
            cells: Raw cells, positionally aligned with the configured columns
            line: 1-based data line number, used in errors

        Returns:
            The assembled document, with sub-entities already resolved

        Raises:
            RowError: If a required field is missing, a setter fails or a
                sub-entity cannot be saved
        """
        document = self.model.new()

        tasks = [
            self._apply_field(document, field, cells[i] if i < len(cells) else None, line)
            for i, field in enumerate(self.config.columns())
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        groups: dict[str, list[RefEntry]] = {}
        for result in results:
            if isinstance(result, BaseException):
                raise result
            if isinstance(result, RefEntry):
                groups.setdefault(result.field.ref_path, []).append(result)

        if groups:
            resolved = await asyncio.gather(
                *(self._resolve_group(ref_path, entries, line) for ref_path, entries in groups.items()),
                return_exceptions=True,
            )
            for ref_path, result in zip(groups, resolved):
                if isinstance(result, BaseException):
                    raise result
                if result is not None:
                    document.set(ref_path, result)

        return document

    async def _apply_field(
        self, document: Document, field: FieldMapping, raw: Optional[str], line: int
    ) -> Optional[RefEntry]:
        if not field.import_enabled:
            return None

        value = coerce_import(
            clean_cell(raw),
            self.field_type(field),
            self.boolean_map,
            field.separator or self.list_separator,
        )

        if field.required and value is None:
            raise RequiredFieldError(line, field.label, field.path)

        if isinstance(field.setter, CustomSetter):
            try:
                await call_hook(field.setter.fn, document, value)
            except RowError:
                raise
            except Exception as e:
                raise RowError(line, f"Setter for '{field.label}' failed: {e}") from e
            return None

        if field.is_reference:
            return RefEntry(field.path, value, field)

        if value is not None:
            document.set(field.path, value)
        return None

    async def _resolve_group(
        self, ref_path: str, entries: list[RefEntry], line: int
    ) -> Optional[str]:
        """Find or create the sub-entity of a group and return its id."""
        if all(entry.value is None for entry in entries):
            return None

        ref_name = entries[0].field.ref
        model = self.store.get_model(ref_name)

        sub = model.new()
        for entry in entries:
            if entry.value is not None:
                sub.set(entry.sub_path, entry.value)

        identifiers = {
            entry.sub_path: entry.value
            for entry in entries
            if entry.field.is_ref_identifier and entry.value is not None
        }

        # lookup and save must not interleave for the same sub-entity type
        lock = self._ref_locks.setdefault(ref_name, asyncio.Lock())
        async with lock:
            if identifiers:
                existing = await model.find_one(identifiers)
                if existing is not None:
                    logger.debug(f"Line {line}: reusing {ref_name} {existing.id} for {ref_path}")
                    return existing.id

            try:
                await model.save(sub)
            except Exception as e:
                raise PersistenceError(line, e, sub.to_dict()) from e

        return sub.id

    # Export direction

    async def export_row(self, document: Document) -> list[Any]:
        """Cell values of a document for every export-enabled field, in order."""
        row = []
        for field in self.config.export_fields():
            if isinstance(field.getter, CustomGetter):
                row.append(await call_hook(field.getter.fn, document))
                continue
            row.append(
                coerce_export(
                    document.get(field.export_path),
                    self.field_type(field),
                    self.boolean_map,
                    field.separator or self.list_separator,
                )
            )
        return row
