"""
Centralized configuration for the Registry microservice.

Pydantic v2 settings management. Values are read from the environment
(prefix REGISTRY_) or an optional .env file, validated once at startup,
and treated as immutable for the lifetime of the process.
"""

import logging
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import AnyHttpUrl, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# -------------------------------------------------------------------------
# Reusable Type Aliases
# -------------------------------------------------------------------------

FieldName = Annotated[
    str,
    Field(min_length=1, description="Name of a top-level metadata property"),
]


# -------------------------------------------------------------------------
# Settings Model
# -------------------------------------------------------------------------

class RegistrySettings(BaseSettings):
    """
    Application settings parsed from the environment.

    Fails fast at startup if field names are blank or if external DPP
    validation is enabled without a validator endpoint.
    """

    # ---------------------------------------------------------------------
    # Schema sources
    # ---------------------------------------------------------------------

    schema_location: Annotated[
        Optional[str],
        Field(
            default=None,
            description=(
                "Optional file path, file: URI or http(s) URL of a JSON "
                "schema used when no schema has been stored."
            ),
        ),
    ]

    # ---------------------------------------------------------------------
    # Metadata field mapping
    # ---------------------------------------------------------------------

    upi_field_name: Annotated[
        FieldName,
        Field(default="upi", description="Unique product identifier field"),
    ]

    reoid_field_name: Annotated[
        FieldName,
        Field(default="reoId", description="Regulatory entry identifier field"),
    ]

    live_url_field_name: Annotated[
        FieldName,
        Field(
            default="liveURL",
            description="Field holding the URL of the externally hosted DPP",
        ),
    ]

    autocompletion_enabled_for: Annotated[
        List[str],
        Field(
            default_factory=list,
            description=(
                "Fields carried forward from a previous record when "
                "missing from a submitted one."
            ),
        ),
    ]

    # ---------------------------------------------------------------------
    # External DPP validation
    # ---------------------------------------------------------------------

    dpp_validation_enabled: Annotated[
        bool,
        Field(
            default=False,
            description="Validate the DPP behind the live URL before saving",
        ),
    ]

    validator_url: Annotated[
        Optional[AnyHttpUrl],
        Field(
            default=None,
            description="Base URL of the remote DPP validation service",
        ),
    ]

    http_timeout_seconds: Annotated[
        float,
        Field(
            default=10.0,
            gt=0,
            le=120,
            description="Timeout applied by the shared outbound HTTP client",
        ),
    ]

    # ---------------------------------------------------------------------
    # Logging
    # ---------------------------------------------------------------------

    log_level: Annotated[
        str,
        Field(default="INFO", description="Root logging level"),
    ]

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    # ---------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ---------------------------------------------------------------------

    @field_validator("upi_field_name", "reoid_field_name", "live_url_field_name")
    @classmethod
    def field_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field names must not be blank.")
        return v

    @field_validator("autocompletion_enabled_for")
    @classmethod
    def strip_autocomplete_fields(cls, v: List[str]) -> List[str]:
        return [name.strip() for name in v if name and name.strip()]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(
                f"Unsupported log_level '{v}'. "
                f"Allowed values: {sorted(allowed)}"
            )
        return level

    @model_validator(mode="after")
    def validator_url_required_if_enabled(self) -> "RegistrySettings":
        if self.dpp_validation_enabled and self.validator_url is None:
            raise ValueError(
                "dpp_validation_enabled is true but validator_url "
                "is not configured."
            )
        return self

    # ---------------------------------------------------------------------
    # Derived values
    # ---------------------------------------------------------------------

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelName(self.log_level)


# -------------------------------------------------------------------------
# Settings Dependency Provider
# -------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> RegistrySettings:
    """
    Dependency injection provider for application settings.

    Uses an explicit singleton pattern within the FastAPI lifecycle.
    """
    return RegistrySettings()
