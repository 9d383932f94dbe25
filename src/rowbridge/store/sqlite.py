"""SQLite-backed document store."""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import aiosqlite

from ..config import settings
from ..mapping.models import ConfigurationError
from .base import (
    ConnectedFile,
    Document,
    DocumentStore,
    DocumentValidationError,
    EntityModel,
    EntitySchema,
)

logger = logging.getLogger(__name__)


def _compile_query(query: Optional[dict]) -> tuple[str, list[Any]]:
    """Compile an equality query on dotted paths into a SQL condition."""
    clauses: list[str] = []
    params: list[Any] = []
    for path, value in (query or {}).items():
        if path == "_id":
            clauses.append("id = ?")
            params.append(value)
            continue

        json_path = "$." + path
        if value is None:
            clauses.append("json_extract(data, ?) IS NULL")
            params.append(json_path)
        elif isinstance(value, (list, dict)):
            clauses.append("json_extract(data, ?) = json(?)")
            params.extend([json_path, json.dumps(value)])
        else:
            clauses.append("json_extract(data, ?) = ?")
            params.extend([json_path, int(value) if isinstance(value, bool) else value])

    return " AND ".join(clauses), params


class SQLiteModel(EntityModel):
    """Entity handle backed by the shared documents table."""

    def __init__(self, store: "SQLiteDocumentStore", name: str, schema: EntitySchema):
        super().__init__(name, schema)
        self.store = store

    async def save(self, document: Document, **options: Any) -> Document:
        if options.get("validate", True):
            errors = self.validate(document)
            if errors:
                raise DocumentValidationError(self.name, errors)

        if not document.id:
            document.id = str(uuid.uuid4())

        now = datetime.now(timezone.utc).isoformat()
        conn = self.store.connection
        await conn.execute(
            """
            INSERT INTO documents (id, entity, data, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET data = excluded.data, updated_at = excluded.updated_at
            """,
            (
                document.id,
                self.name,
                json.dumps(document.data),
                now,
                now,
            ),
        )
        await conn.commit()
        logger.debug(f"Saved {self.name} {document.id}")
        return document

    async def count(self, query: Optional[dict] = None) -> int:
        condition, params = _compile_query(query)
        sql = "SELECT COUNT(*) FROM documents WHERE entity = ?"
        if condition:
            sql += " AND " + condition
        async with self.store.connection.execute(sql, [self.name, *params]) as cursor:
            row = await cursor.fetchone()
            return row[0]

    async def find(
        self,
        query: Optional[dict] = None,
        skip: int = 0,
        limit: Optional[int] = None,
        populate: Optional[list[str]] = None,
    ) -> list[Document]:
        condition, params = _compile_query(query)
        sql = "SELECT id, data FROM documents WHERE entity = ?"
        if condition:
            sql += " AND " + condition
        sql += " ORDER BY rowid LIMIT ? OFFSET ?"
        params = [self.name, *params, -1 if limit is None else limit, skip]

        async with self.store.connection.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
            documents = [Document(self.name, json.loads(row[1]), id=row[0]) for row in rows]

        for path in populate or []:
            await self._populate(documents, path)
        return documents

    async def find_one(self, query: dict) -> Optional[Document]:
        documents = await self.find(query, limit=1)
        return documents[0] if documents else None

    async def _populate(self, documents: list[Document], path: str):
        """Replace reference ids at a path with the referenced document's data."""
        field_type = self.field_type(path)
        if field_type is None or not field_type.ref:
            logger.warning(f"Cannot populate '{path}' on {self.name}: no reference declared")
            return

        for document in documents:
            value = document.get(path)
            if isinstance(value, list):
                resolved = [await self.store.load(ref_id) or ref_id for ref_id in value]
                document.set(path, [r.to_dict() if isinstance(r, Document) else r for r in resolved])
            elif isinstance(value, str):
                referenced = await self.store.load(value)
                if referenced is not None:
                    document.set(path, referenced.to_dict())


class SQLiteDocumentStore(DocumentStore):
    """Document store keeping JSON documents in SQLite."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or settings.database_path)
        self._connection: Optional[aiosqlite.Connection] = None
        self._schemas: dict[str, EntitySchema] = {}
        self._models: dict[str, SQLiteModel] = {}

    @property
    def connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("Document store is not initialized")
        return self._connection

    async def initialize(self):
        """Initialize the database and create tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(str(self.db_path))

        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                entity TEXT NOT NULL,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS files (
                id TEXT PRIMARY KEY,
                document_id TEXT NOT NULL,
                category TEXT NOT NULL,
                name TEXT NOT NULL,
                path TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_documents_entity ON documents(entity);
            CREATE INDEX IF NOT EXISTS idx_files_document ON files(document_id);
            """
        )
        await self._connection.commit()
        logger.info(f"SQLiteDocumentStore initialized at {self.db_path}")

    async def close(self):
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def register_schema(self, schema: EntitySchema) -> None:
        self._schemas[schema.name] = schema
        self._models.pop(schema.name, None)

    def get_model(self, name: str) -> SQLiteModel:
        if name not in self._schemas:
            raise ConfigurationError(f"No schema registered for entity '{name}'")
        if name not in self._models:
            self._models[name] = SQLiteModel(self, name, self._schemas[name])
        return self._models[name]

    async def load(self, document_id: str) -> Optional[Document]:
        """Load any document by id."""
        async with self.connection.execute(
            "SELECT entity, data FROM documents WHERE id = ?", (document_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return Document(row[0], json.loads(row[1]), id=document_id)
        return None

    # File operations

    async def attach_file(
        self,
        document: Document,
        path: Path,
        name: Optional[str] = None,
        category: str = "default",
    ) -> ConnectedFile:
        """Associate a file with a saved document."""
        if not document.id:
            raise ValueError("Document must be saved before attaching files")

        connected = ConnectedFile(name=name or Path(path).name, path=Path(path), category=category)
        await self.connection.execute(
            "INSERT INTO files (id, document_id, category, name, path) VALUES (?, ?, ?, ?, ?)",
            (str(uuid.uuid4()), document.id, category, connected.name, str(connected.path)),
        )
        await self.connection.commit()
        return connected

    async def connected_files(self, document: Document) -> list[ConnectedFile]:
        async with self.connection.execute(
            "SELECT name, path, category FROM files WHERE document_id = ? ORDER BY rowid",
            (document.id,),
        ) as cursor:
            rows = await cursor.fetchall()
            return [ConnectedFile(name=row[0], path=Path(row[1]), category=row[2]) for row in rows]
