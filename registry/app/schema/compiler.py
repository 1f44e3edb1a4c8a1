"""
Schema compilation and registry compliance rules.

Structural validity of the schema is delegated to the jsonschema library
(Draft 2020-12). On top of that the registry enforces its own rules:

- every top-level property is a primitive or an array of one primitive
- every autocomplete-enabled field is declared
- the UPI field is declared, and typed as string when typed at all
- the REO-ID field is declared, and typed as string when typed at all

All rules always run; their messages are aggregated into a single
SchemaComplianceError.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from registry.app.config import RegistrySettings
from registry.app.exceptions import SchemaComplianceError
from registry.app.schema.document import (
    ITEMS_KEY,
    PREFIX_ITEMS_KEY,
    PRIMITIVE_TYPES,
    TYPE_KEY,
    SchemaDocument,
    resolve_type,
    top_level_properties,
)

logger = logging.getLogger(__name__)


class SchemaCompiler:
    """
    Compiles raw schema documents into SchemaDocument instances.

    The compiler is stateless apart from the configured field names and
    may be shared freely.
    """

    def __init__(self, config: RegistrySettings) -> None:
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, raw: Any) -> SchemaDocument:
        if not isinstance(raw, Mapping):
            raise SchemaComplianceError(
                [f"JSON schema must be an object, got {type(raw).__name__}"]
            )

        try:
            Draft202012Validator.check_schema(raw)
        except SchemaError as exc:
            raise SchemaComplianceError(
                [f"Invalid JSON schema: {exc.message}"]
            ) from exc

        messages = self.check_compliance(raw)
        if messages:
            logger.debug("Schema rejected with %d compliance issue(s)", len(messages))
            raise SchemaComplianceError(messages)

        logger.debug("Schema is valid")
        return SchemaDocument(raw)

    def check_compliance(self, raw: Mapping[str, Any]) -> List[str]:
        """
        Run every registry compliance rule against a raw schema.

        Returns:
            Violation messages, empty if the schema is usable.
        """
        logger.debug("Validating JSON schema with registry compliance rules")
        properties = top_level_properties(raw)

        messages: List[str] = []
        self._verify_property_types(messages, properties)
        self._verify_autocomplete_fields(messages, properties)
        self._verify_identifier(
            messages, properties, "UPI", self._config.upi_field_name
        )
        self._verify_identifier(
            messages, properties, "Reo ID", self._config.reoid_field_name
        )
        return messages

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _verify_property_types(
        self, messages: List[str], properties: Mapping[str, Any]
    ) -> None:
        invalid = [
            name
            for name, prop in properties.items()
            if not _is_valid_property_type(prop)
        ]
        if invalid:
            messages.append(
                "Invalid property types found: " + ", ".join(invalid)
            )
        logger.debug("Found %d issue(s) with property types", len(invalid))

    def _verify_autocomplete_fields(
        self, messages: List[str], properties: Mapping[str, Any]
    ) -> None:
        missing = [
            name
            for name in self._config.autocompletion_enabled_for
            if name not in properties
        ]
        if missing:
            messages.append(
                "Missing autocomplete properties in schema: " + ", ".join(missing)
            )
        logger.debug("Found %d issue(s) with autocomplete properties", len(missing))

    def _verify_identifier(
        self,
        messages: List[str],
        properties: Mapping[str, Any],
        label: str,
        field_name: str,
    ) -> None:
        prop = properties.get(field_name)
        if prop is None:
            logger.debug("No property %s found", field_name)
            messages.append(
                f"{label} property with name {field_name} missing from json schema"
            )
            return

        if isinstance(prop, Mapping) and TYPE_KEY in prop:
            declared = resolve_type(prop)
            if declared != "string":
                logger.debug("Wrong type for property %s found", field_name)
                messages.append(
                    f"{label} property with name {field_name} should be of type "
                    f"string but is defined as type {declared}"
                )


# ----------------------------------------------------------------------
# Type predicates
# ----------------------------------------------------------------------

def _is_valid_property_type(prop: Any) -> bool:
    if not isinstance(prop, Mapping):
        return False
    declared = prop.get(TYPE_KEY)
    if isinstance(declared, str):
        return _is_primitive_or_primitive_array(declared, prop)
    if isinstance(declared, list) and declared:
        return all(
            isinstance(t, str) and _is_primitive_or_primitive_array(t, prop)
            for t in declared
        )
    return False


def _is_primitive_or_primitive_array(type_name: str, prop: Mapping[str, Any]) -> bool:
    if type_name in PRIMITIVE_TYPES:
        return True
    return type_name == "array" and _is_array_of_primitives(prop)


def _is_array_of_primitives(array_schema: Mapping[str, Any]) -> bool:
    items = array_schema.get(ITEMS_KEY)
    prefix_items = array_schema.get(PREFIX_ITEMS_KEY)

    if items is None and prefix_items is None:
        # unconstrained items
        return True

    if isinstance(items, Mapping):
        if not _is_single_primitive(items.get(TYPE_KEY)):
            return False
    elif isinstance(items, list):
        if not _same_primitive(items):
            return False
    elif items is not None:
        return False

    if prefix_items is not None:
        if not isinstance(prefix_items, list) or not _same_primitive(prefix_items):
            return False
        if isinstance(items, Mapping):
            item_type = resolve_type(items)
            return all(resolve_type(s) == item_type for s in prefix_items)
    return True


def _is_single_primitive(item_type: Any) -> bool:
    if isinstance(item_type, str):
        return item_type in PRIMITIVE_TYPES
    if isinstance(item_type, list) and item_type:
        if not all(isinstance(t, str) and t in PRIMITIVE_TYPES for t in item_type):
            return False
        return len({t for t in item_type if t != "null"}) <= 1
    return False


def _same_primitive(item_schemas: List[Any]) -> bool:
    if not item_schemas:
        return False
    types = set()
    for schema in item_schemas:
        if not isinstance(schema, Mapping) or not _is_single_primitive(schema.get(TYPE_KEY)):
            return False
        types.add(resolve_type(schema))
    return len(types) == 1
