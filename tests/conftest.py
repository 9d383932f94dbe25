"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from rowbridge.config import Settings
from rowbridge.engine import RowAssembler
from rowbridge.mapping import FieldMapping, MappingConfig
from rowbridge.store import EntitySchema, FieldKind, FieldType, SQLiteDocumentStore

BOOLEAN_MAP = {"Yes": True, "No": False}

PERSON_SCHEMA = EntitySchema(
    "person",
    {
        "name": FieldType(),
        "active": FieldType(FieldKind.BOOLEAN),
        "tags": FieldType(FieldKind.LIST),
        "role": FieldType(FieldKind.ENUM_SCALAR, enum=("admin", "user")),
        "address": FieldType(ref="address"),
    },
)

ADDRESS_SCHEMA = EntitySchema(
    "address",
    {
        "street": FieldType(),
        "zip": FieldType(),
        "city": FieldType(),
    },
)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create settings with test values."""
    return Settings(
        mapping_config_path=tmp_path / "mappings",
        database_path=tmp_path / "test.db",
        col_separator=";",
        line_separator="\n",
        list_separator=",",
        boolean_map=dict(BOOLEAN_MAP),
        import_workers=1,
        drain_poll_interval=0.01,
        export_page_size=10,
        export_workers=3,
        export_dir=tmp_path / "exports",
        archive_csv_name="export.csv",
        archive_entry_pattern="files/{name}",
    )


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> AsyncGenerator[SQLiteDocumentStore, None]:
    """Create a document store with the person and address schemas."""
    store = SQLiteDocumentStore(tmp_path / "store.db")
    await store.initialize()
    store.register_schema(PERSON_SCHEMA)
    store.register_schema(ADDRESS_SCHEMA)
    yield store
    await store.close()


@pytest.fixture
def simple_config() -> MappingConfig:
    """Name and Active columns."""
    return MappingConfig(
        model="person",
        name="person",
        fields=(
            FieldMapping(path="name", label="Name"),
            FieldMapping(path="active", label="Active"),
        ),
    )


@pytest.fixture
def address_config() -> MappingConfig:
    """Person with an address deduplicated by street and zip."""
    return MappingConfig(
        model="person",
        name="person_address",
        fields=(
            FieldMapping(path="name", label="Name", required=True),
            FieldMapping(path="street", label="Street", ref="address", ref_path="address", is_ref_identifier=True),
            FieldMapping(path="zip", label="Zip", ref="address", ref_path="address", is_ref_identifier=True),
            FieldMapping(path="city", label="City", ref="address", ref_path="address"),
        ),
        populate=("address",),
    )


@pytest.fixture
def make_assembler(store):
    """Build a row assembler for a config on the test store."""

    def _make(config: MappingConfig) -> RowAssembler:
        return RowAssembler(store, config, boolean_map=BOOLEAN_MAP, list_separator=",")

    return _make
