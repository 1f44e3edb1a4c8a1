import pytest

from registry.app.exceptions import SchemaComplianceError
from registry.app.schema.compiler import SchemaCompiler
from registry.app.schema.document import SchemaDocument
from registry.tests.fakes import make_settings, registry_schema


def _compiler(**overrides) -> SchemaCompiler:
    return SchemaCompiler(make_settings(**overrides))


# ----------------------------------------------------------------------
# Happy path
# ----------------------------------------------------------------------

def test_compliant_schema_compiles():
    schema = registry_schema(
        commodityCode={"type": "string"},
        weight={"type": "number"},
        pieces={"type": "integer"},
        recyclable={"type": "boolean"},
        dataCarrierTypes={"type": "array", "items": {"type": "string"}},
        note={"type": ["string", "null"]},
    )

    document = _compiler().compile(schema)

    assert isinstance(document, SchemaDocument)
    assert document.property_type("upi") == "string"
    assert document.property_type("weight") == "number"
    assert document.property_type("note") == "string"
    assert document.property_type("dataCarrierTypes") is None
    assert document.declared_type("dataCarrierTypes") == "array"
    assert document.property_type("unknown") is None


def test_compiled_document_does_not_share_raw_state():
    schema = registry_schema()
    document = _compiler().compile(schema)

    schema["properties"]["upi"]["type"] = "integer"
    exposed = document.raw
    exposed["properties"].clear()

    assert document.property_type("upi") == "string"
    assert "upi" in document.raw["properties"]


# ----------------------------------------------------------------------
# Property type rule
# ----------------------------------------------------------------------

@pytest.mark.parametrize(
    "prop",
    [
        {"type": "object"},
        {"type": "array", "items": {"type": "object"}},
        {"type": "array", "items": {"type": ["string", "integer"]}},
        {"type": "array", "prefixItems": [{"type": "string"}, {"type": "number"}]},
        {"type": ["string", "object"]},
        {"description": "no type at all"},
    ],
)
def test_non_primitive_property_is_reported(prop):
    compiler = _compiler()

    messages = compiler.check_compliance(registry_schema(score=prop))

    assert len(messages) == 1
    assert messages[0].startswith("Invalid property types found")
    assert "score" in messages[0]


def test_all_invalid_properties_listed_in_one_message():
    schema = registry_schema(
        score={"type": "object"},
        tags={"type": "array", "items": {"type": "object"}},
    )

    messages = _compiler().check_compliance(schema)

    assert messages == ["Invalid property types found: score, tags"]


@pytest.mark.parametrize(
    "prop",
    [
        {"type": "array"},
        {"type": "array", "items": {"type": ["integer", "null"]}},
        {"type": "array", "prefixItems": [{"type": "string"}, {"type": "string"}]},
        {"type": "null"},
    ],
)
def test_primitive_arrays_and_null_are_accepted(prop):
    assert _compiler().check_compliance(registry_schema(values=prop)) == []


# ----------------------------------------------------------------------
# Configured field rules
# ----------------------------------------------------------------------

def test_missing_autocomplete_fields_are_reported():
    compiler = _compiler(autocompletion_enabled_for=["commodityCode", "origin"])

    messages = compiler.check_compliance(registry_schema(commodityCode={"type": "string"}))

    assert messages == ["Missing autocomplete properties in schema: origin"]


def test_missing_upi_is_reported_by_configured_name():
    compiler = _compiler(upi_field_name="gtin")

    messages = compiler.check_compliance(registry_schema())

    assert messages == ["UPI property with name gtin missing from json schema"]


def test_missing_reo_id_is_reported_by_configured_name():
    schema = registry_schema()
    del schema["properties"]["reoId"]

    messages = _compiler().check_compliance(schema)

    assert messages == ["Reo ID property with name reoId missing from json schema"]


def test_identifier_declared_with_non_string_type_is_reported():
    schema = registry_schema(upi={"type": "integer"}, reoId={"type": "number"})

    messages = _compiler().check_compliance(schema)

    assert (
        "UPI property with name upi should be of type string "
        "but is defined as type integer"
    ) in messages
    assert (
        "Reo ID property with name reoId should be of type string "
        "but is defined as type number"
    ) in messages


def test_identifier_without_declared_type_only_fails_type_rule():
    schema = registry_schema(upi={"description": "untyped"})

    messages = _compiler().check_compliance(schema)

    assert messages == ["Invalid property types found: upi"]


def test_nullable_string_identifier_is_accepted():
    schema = registry_schema(upi={"type": ["string", "null"]})

    assert _compiler().check_compliance(schema) == []


def test_all_rules_are_aggregated():
    compiler = _compiler(autocompletion_enabled_for=["commodityCode"])
    schema = {
        "type": "object",
        "properties": {"score": {"type": "object"}},
    }

    messages = compiler.check_compliance(schema)

    assert len(messages) == 4


# ----------------------------------------------------------------------
# compile() failures
# ----------------------------------------------------------------------

def test_compile_raises_with_all_violations():
    schema = registry_schema(score={"type": "object"})
    del schema["properties"]["upi"]

    with pytest.raises(SchemaComplianceError) as info:
        _compiler().compile(schema)

    assert info.value.violations == [
        "Invalid property types found: score",
        "UPI property with name upi missing from json schema",
    ]
    assert str(info.value) == ". ".join(info.value.violations)


def test_structurally_invalid_schema_is_rejected():
    schema = registry_schema()
    schema["properties"]["upi"]["type"] = 12

    with pytest.raises(SchemaComplianceError) as info:
        _compiler().compile(schema)

    assert info.value.violations[0].startswith("Invalid JSON schema")


def test_non_object_schema_is_rejected():
    with pytest.raises(SchemaComplianceError):
        _compiler().compile(["not", "a", "schema"])
