"""
Schema-typed query predicates.

Filters arrive as ordered (property, value) pairs naming metadata fields.
The comparison type of each condition is taken from the current schema,
so the registry can query records without knowing their shape in
advance. Only primitive properties are filterable.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from registry.app.exceptions import UnsupportedFilterType
from registry.app.schema.cache import SchemaCache

logger = logging.getLogger(__name__)

TEXT = "text"
BOOLEAN = "boolean"
NUMERIC = "numeric"

COMPARISON_TYPES = {
    "string": TEXT,
    "boolean": BOOLEAN,
    "number": NUMERIC,
    "integer": NUMERIC,
}

ALWAYS_TRUE = "TRUE"


# ----------------------------------------------------------------------
# Predicate model
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Condition:
    property: str
    comparison: str
    value: Any

    def to_sql(self, param_index: int) -> str:
        name = self.property.replace("'", "''")
        return f"(metadata ->> '{name}')::{self.comparison} = ${param_index}"

    def matches(self, payload: Mapping[str, Any]) -> bool:
        if self.property not in payload:
            return False
        actual = payload[self.property]
        if actual is None or self.value is None:
            return False
        if self.comparison == TEXT:
            return _as_text(actual) == _as_text(self.value)
        if self.comparison == NUMERIC:
            left, right = _as_decimal(actual), _as_decimal(self.value)
            return left is not None and right is not None and left == right
        if self.comparison == BOOLEAN:
            left, right = _as_bool(actual), _as_bool(self.value)
            return left is not None and left is right
        return False


@dataclass(frozen=True)
class Predicate:
    """
    Conjunction of equality conditions over metadata fields.

    sql renders the conditions with positional parameters numbered from 1
    in input order; params holds the bound values in the same order.
    """

    conditions: Tuple[Condition, ...] = ()

    @property
    def sql(self) -> str:
        if not self.conditions:
            return ALWAYS_TRUE
        return " AND ".join(
            c.to_sql(i) for i, c in enumerate(self.conditions, start=1)
        )

    @property
    def params(self) -> Tuple[Any, ...]:
        return tuple(c.value for c in self.conditions)

    def matches(self, payload: Mapping[str, Any]) -> bool:
        return all(c.matches(payload) for c in self.conditions)


# ----------------------------------------------------------------------
# Builder
# ----------------------------------------------------------------------

class DynamicPredicateBuilder:
    def __init__(self, schema_cache: SchemaCache) -> None:
        self._schema_cache = schema_cache

    async def build(self, filters: Iterable[Sequence[Any]]) -> Predicate:
        """
        Translate (property, value) pairs into a typed predicate.

        Raises:
            UnsupportedFilterType: a property is undeclared or not of a
                string, boolean, number or integer type.
        """
        pairs = [(name, value) for name, value in filters]
        schema = await self._schema_cache.get()

        conditions = []
        for name, value in pairs:
            declared = schema.property_type(name)
            comparison = COMPARISON_TYPES.get(declared) if declared else None
            if comparison is None:
                raise UnsupportedFilterType(name, schema.declared_type(name))
            conditions.append(Condition(name, comparison, value))

        predicate = Predicate(tuple(conditions))
        logger.debug("Resulting query condition is %s", predicate.sql)
        return predicate


# ----------------------------------------------------------------------
# Value coercion (mirrors the text/numeric/boolean casts of ->>)
# ----------------------------------------------------------------------

def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def _as_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    return None
