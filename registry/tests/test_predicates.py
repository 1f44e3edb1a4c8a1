import pytest

from registry.app.exceptions import UnsupportedFilterType
from registry.app.metadata.predicates import (
    ALWAYS_TRUE,
    Condition,
    DynamicPredicateBuilder,
    Predicate,
)
from registry.app.schema.cache import SchemaCache
from registry.app.schema.compiler import SchemaCompiler
from registry.app.schema.document import SchemaDocument
from registry.app.schema.sources import SchemaSourceChain
from registry.tests.fakes import (
    RecordingSource,
    StaticSchemaCache,
    make_settings,
    registry_schema,
)

pytestmark = pytest.mark.anyio


def _builder(**extra_properties) -> DynamicPredicateBuilder:
    source = RecordingSource(registry_schema(**extra_properties))
    cache = SchemaCache(SchemaSourceChain([source]), SchemaCompiler(make_settings()))
    return DynamicPredicateBuilder(cache)


async def test_single_string_filter():
    predicate = await _builder().build([("upi", "00001")])

    assert predicate.sql == "(metadata ->> 'upi')::text = $1"
    assert predicate.params == ("00001",)


async def test_conditions_keep_input_order_and_numbering():
    builder = _builder(
        weight={"type": "number"},
        pieces={"type": "integer"},
        recyclable={"type": "boolean"},
    )

    predicate = await builder.build(
        [("recyclable", True), ("upi", "00001"), ("weight", 1.5), ("pieces", 3)]
    )

    assert predicate.sql == (
        "(metadata ->> 'recyclable')::boolean = $1"
        " AND (metadata ->> 'upi')::text = $2"
        " AND (metadata ->> 'weight')::numeric = $3"
        " AND (metadata ->> 'pieces')::numeric = $4"
    )
    assert predicate.params == (True, "00001", 1.5, 3)


async def test_no_filters_is_always_true():
    predicate = await _builder().build([])

    assert predicate.sql == ALWAYS_TRUE
    assert predicate.params == ()
    assert predicate.matches({"anything": 1})


async def test_object_property_is_not_filterable():
    # the compiler refuses object properties, so bypass it
    document = SchemaDocument(registry_schema(score={"type": "object"}))
    builder = DynamicPredicateBuilder(StaticSchemaCache(document))

    with pytest.raises(UnsupportedFilterType) as info:
        await builder.build([("upi", "00001"), ("score", 5)])

    assert info.value.property == "score"
    assert info.value.declared_type == "object"


async def test_array_property_is_not_filterable():
    builder = _builder(tags={"type": "array", "items": {"type": "string"}})

    with pytest.raises(UnsupportedFilterType) as info:
        await builder.build([("upi", "00001"), ("tags", "a")])

    assert info.value.property == "tags"
    assert info.value.declared_type == "array"


async def test_undeclared_property_is_not_filterable():
    with pytest.raises(UnsupportedFilterType) as info:
        await _builder().build([("colour", "red")])

    assert info.value.property == "colour"
    assert info.value.declared_type is None


def test_property_name_quotes_are_escaped():
    condition = Condition("owner's", "text", "x")

    assert condition.to_sql(2) == "(metadata ->> 'owner''s')::text = $2"


# ----------------------------------------------------------------------
# In-memory evaluation
# ----------------------------------------------------------------------

def test_predicate_matches_with_type_coercion():
    predicate = Predicate(
        (
            Condition("upi", "text", "00001"),
            Condition("weight", "numeric", 1.5),
            Condition("recyclable", "boolean", True),
        )
    )

    assert predicate.matches({"upi": "00001", "weight": 1.50, "recyclable": True})
    assert predicate.matches({"upi": "00001", "weight": "1.5", "recyclable": "true"})
    assert not predicate.matches({"upi": "00002", "weight": 1.5, "recyclable": True})
    assert not predicate.matches({"upi": "00001", "weight": 2, "recyclable": True})
    assert not predicate.matches({"upi": "00001", "recyclable": True})


def test_text_condition_compares_json_text():
    condition = Condition("pieces", "text", "3")

    assert condition.matches({"pieces": 3})
    assert not condition.matches({"pieces": None})


def test_booleans_are_not_numbers():
    assert not Condition("pieces", "numeric", 1).matches({"pieces": True})
