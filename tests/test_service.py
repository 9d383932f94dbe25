"""Tests for the RowBridge facade."""

import zipfile
from pathlib import Path

import pytest
import pytest_asyncio

from rowbridge.mapping import ConfigurationError
from rowbridge.service import RowBridge

SCHEMAS = '''
from rowbridge.store import EntitySchema, FieldKind, FieldType

SCHEMAS = [
    EntitySchema("customer", {
        "name": FieldType(required=True),
        "active": FieldType(FieldKind.BOOLEAN),
        "segment": FieldType(FieldKind.ENUM_SCALAR, enum=("retail", "wholesale")),
        "address": FieldType(ref="address"),
    }),
    EntitySchema("address", {"street": FieldType(), "city": FieldType()}),
]
'''

CUSTOMER = '''
CONFIG = {
    "model": "customer",
    "fields": [
        {"path": "name", "label": "Name", "required": True},
        {"path": "active", "label": "Active"},
        {"path": "segment", "label": "Segment"},
        {"path": "street", "label": "Street", "ref": "address", "refPath": "address", "isRefIdentifier": True},
        {"path": "city", "label": "City", "ref": "address", "refPath": "address"},
    ],
    "populate": ["address"],
}
'''


@pytest_asyncio.fixture
async def bridge(test_settings):
    """Create a bridge over a config directory with a customer mapping."""
    config_dir = Path(test_settings.mapping_config_path)
    config_dir.mkdir(parents=True)
    (config_dir / "schemas.py").write_text(SCHEMAS)
    (config_dir / "customer.py").write_text(CUSTOMER)

    bridge = RowBridge(settings=test_settings)
    await bridge.initialize()
    yield bridge
    await bridge.shutdown()


class TestRowBridge:
    """Test the import, export and template entry points."""

    async def test_initialize_registers_schemas(self, bridge):
        assert bridge.store.get_model("customer").field_type("active") is not None
        assert bridge.store.get_model("address") is not None

    async def test_import_text(self, bridge):
        report = await bridge.import_text(
            "customer",
            '"Name";"Active";"Segment";"Street";"City"\n'
            '"Acme";"Yes";"retail";"Main St 1";"Berlin"\n'
            '"Beta";"No";"retail";"Main St 1";"Berlin"\n'
            '"";"No";"retail";"";""\n'
            '"Gamma";"No";"unknown";"";""\n',
        )

        assert report.config_name == "customer"
        assert report.total == 4
        assert report.persisted == [1, 2]
        assert [e.line for e in report.errors] == [3, 4]
        assert await bridge.store.get_model("address").count() == 1

    async def test_import_file(self, bridge, tmp_path):
        path = tmp_path / "customers.csv"
        path.write_text('"Name";"Active"\n"Acme";"Yes"\n', encoding="utf-8")

        report = await bridge.import_file("customer", path)

        assert report.persisted == [1]

    async def test_export(self, bridge):
        await bridge.import_text(
            "customer",
            '"Name";"Active";"Segment";"Street";"City"\n"Acme";"Yes";"retail";"Main St 1";"Berlin"\n',
        )

        result = await bridge.export("customer", {"name": "Acme"})

        assert result.total == 1
        assert result.working_dir.parent == bridge.settings.export_dir
        with zipfile.ZipFile(result.archive_path) as archive:
            lines = archive.read("export.csv").decode("utf-8").splitlines()
        assert lines == [
            '"Name";"Active";"Segment";"Street";"City"',
            '"Acme";"Yes";"retail";"Main St 1";"Berlin"',
        ]

    async def test_generate_dummy(self, bridge):
        content = bridge.generate_dummy("customer")
        assert content.splitlines() == [
            '"Name";"Active";"Segment";"Street";"City"',
            '"";"";"retail,wholesale";"";""',
        ]

    async def test_missing_config(self, bridge):
        with pytest.raises(ConfigurationError):
            await bridge.import_text("nothing", '"Name"\n')
        with pytest.raises(ConfigurationError):
            await bridge.export("nothing")
        with pytest.raises(ConfigurationError):
            bridge.generate_dummy("nothing")

    async def test_interrupt_without_running_imports(self, bridge):
        assert bridge.interrupt_imports() == 0
