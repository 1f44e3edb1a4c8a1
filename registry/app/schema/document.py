"""
Compiled, immutable view of the active metadata schema.

A SchemaDocument is produced only by the SchemaCompiler after the raw
schema has passed every compliance rule. It is never mutated; a new
schema replaces it wholesale through the SchemaCache.
"""

from __future__ import annotations

import copy
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from jsonschema import Draft202012Validator

TYPE_KEY = "type"
ITEMS_KEY = "items"
PREFIX_ITEMS_KEY = "prefixItems"
PROPERTIES_KEY = "properties"

PRIMITIVE_TYPES = frozenset({"string", "number", "integer", "boolean", "null"})


def resolve_type(property_schema: Any) -> Optional[str]:
    """
    Resolve the declared type of a property schema.

    A string type is returned as is; for a type list the first entry that
    is not "null" wins. Anything else resolves to None.
    """
    if not isinstance(property_schema, Mapping):
        return None
    declared = property_schema.get(TYPE_KEY)
    if isinstance(declared, str):
        return declared
    if isinstance(declared, list):
        for entry in declared:
            if isinstance(entry, str) and entry != "null":
                return entry
        if "null" in declared:
            return "null"
    return None


def top_level_properties(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    properties = raw.get(PROPERTIES_KEY)
    if isinstance(properties, Mapping):
        return properties
    return {}


class SchemaDocument:
    """
    The currently active data-shape contract.

    Holds the raw schema (exposed only as a copy), a lookup from property
    name to declared primitive type, and a Draft 2020-12 validator for
    structural payload checks.
    """

    __slots__ = ("_raw", "_declared_types", "_primitive_types", "_validator")

    def __init__(self, raw: Mapping[str, Any]) -> None:
        self._raw: Dict[str, Any] = copy.deepcopy(dict(raw))

        declared = {
            name: resolve_type(prop)
            for name, prop in top_level_properties(self._raw).items()
        }
        self._declared_types = MappingProxyType(declared)
        self._primitive_types = MappingProxyType(
            {
                name: (t if t in PRIMITIVE_TYPES else None)
                for name, t in declared.items()
            }
        )
        self._validator = Draft202012Validator(self._raw)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def raw(self) -> Dict[str, Any]:
        return copy.deepcopy(self._raw)

    @property
    def property_types(self) -> Mapping[str, Optional[str]]:
        """Property name to primitive type, None when non-primitive."""
        return self._primitive_types

    def has_property(self, name: str) -> bool:
        return name in self._declared_types

    def declared_type(self, name: str) -> Optional[str]:
        """Resolved declared type of a property, primitive or not."""
        return self._declared_types.get(name)

    def property_type(self, name: str) -> Optional[str]:
        """Declared primitive type of a property, or None."""
        return self._primitive_types.get(name)

    # ------------------------------------------------------------------
    # Payload validation
    # ------------------------------------------------------------------

    def validate_payload(self, payload: Any) -> List[str]:
        """
        Validate a metadata payload against the schema.

        Returns one message per violation, empty if the payload conforms.
        """
        errors = sorted(
            self._validator.iter_errors(payload),
            key=lambda e: [str(p) for p in e.absolute_path],
        )
        messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path) or "<root>"
            messages.append(f"{path}: {error.message}")
        return messages

    def __repr__(self) -> str:
        return f"SchemaDocument(properties={sorted(self._declared_types)})"
