"""Entity schemas registered with the document store."""

from rowbridge.store import EntitySchema, FieldKind, FieldType

SCHEMAS = [
    EntitySchema(
        "customer",
        {
            "name": FieldType(required=True),
            "email": FieldType(),
            "active": FieldType(FieldKind.BOOLEAN),
            "tags": FieldType(FieldKind.LIST),
            "segment": FieldType(FieldKind.ENUM_SCALAR, enum=("retail", "wholesale", "")),
            "address": FieldType(ref="address"),
        },
    ),
    EntitySchema(
        "address",
        {
            "street": FieldType(),
            "zip": FieldType(),
            "city": FieldType(),
        },
    ),
]
