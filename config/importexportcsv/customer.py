"""Customer mapping: one row per customer, addresses deduplicated by street and zip."""

from rowbridge.mapping import CustomGetter, FieldMapping, MappingConfig


def _display_name(document):
    return (document.get("name") or "").upper()


CONFIG = MappingConfig(
    model="customer",
    fields=(
        FieldMapping(path="name", label="Name", required=True),
        FieldMapping(path="email", label="E-Mail"),
        FieldMapping(path="active", label="Active"),
        FieldMapping(path="tags", label="Tags", separator="|"),
        FieldMapping(path="segment", label="Segment"),
        FieldMapping(path="street", label="Street", ref="address", ref_path="address", is_ref_identifier=True),
        FieldMapping(path="zip", label="Zip", ref="address", ref_path="address", is_ref_identifier=True),
        FieldMapping(path="city", label="City", ref="address", ref_path="address"),
        FieldMapping(
            path="display_name",
            label="Display name",
            import_enabled=False,
            getter=CustomGetter(_display_name),
        ),
    ),
    files=("attachment",),
    populate=("address",),
)
