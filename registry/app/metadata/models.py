"""
Registry record and validation report models.

MetadataRecord is the stored registry entry. ValidationReport is what the
remote DPP validator returns; its wire format uses camelCase names.
ValidatedMetadataRecord pairs the two by composition.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ----------------------------------------------------------------------
# Registry Record
# ----------------------------------------------------------------------

class MetadataRecord(BaseModel):
    """
    A registry entry.

    registry_id and created_at are assigned by storage on first save and
    never change afterwards; modified_at is refreshed on every update.
    """

    registry_id: Optional[str] = Field(
        None,
        description="Opaque, time-ordered registry identifier",
    )

    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Schema-conforming metadata payload",
    )

    created_at: Optional[datetime] = Field(
        None,
        description="Creation timestamp (UTC)",
    )

    modified_at: Optional[datetime] = Field(
        None,
        description="Last modification timestamp (UTC)",
    )

    model_config = ConfigDict(
        extra="forbid",
    )


# ----------------------------------------------------------------------
# Remote Validation Report
# ----------------------------------------------------------------------

class InvalidProperty(BaseModel):
    property: str
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ValidationReport(BaseModel):
    """
    Result of remote DPP validation. Immutable once returned.
    """

    valid: bool

    message: Optional[str] = Field(
        None,
        description="Human-readable validation summary",
    )

    validated_with: Optional[str] = Field(
        None,
        description="Identifier of the validator that processed the DPP",
    )

    validation_type: Optional[str] = Field(
        None,
        description="Identifier of the validation scheme applied",
    )

    invalid_properties: List[InvalidProperty] = Field(
        default_factory=list,
        description="Ordered list of offending properties",
    )

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ----------------------------------------------------------------------
# Decorated Record
# ----------------------------------------------------------------------

class ValidatedMetadataRecord(BaseModel):
    """
    A registry record together with its DPP validation report.

    Read-only composition; it adds no lifecycle of its own.
    """

    record: MetadataRecord
    validation: ValidationReport

    model_config = ConfigDict(frozen=True)

    @property
    def registry_id(self) -> Optional[str]:
        return self.record.registry_id

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.record.metadata
