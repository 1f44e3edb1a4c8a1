"""
Registry error taxonomy.

Every failure short-circuits the coroutine chain that raised it and
reaches the caller untranslated. Only the HTTP layer maps these to
status codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from registry.app.metadata.models import ValidationReport


class RegistryError(Exception):
    """Base class for all registry failures."""


# ----------------------------------------------------------------------
# Schema lifecycle
# ----------------------------------------------------------------------

class SchemaUnavailable(RegistryError):
    """No configured schema source produced a document."""


class SchemaSourceError(RegistryError):
    """An applicable schema source failed while loading."""

    def __init__(self, location: str, reason: str) -> None:
        super().__init__(f"Error while loading schema from {location}: {reason}")
        self.location = location
        self.reason = reason


class SchemaComplianceError(RegistryError):
    """The schema failed structural checks or registry compliance rules."""

    def __init__(self, violations: Sequence[str]) -> None:
        self.violations: List[str] = list(violations)
        super().__init__(". ".join(self.violations))


# ----------------------------------------------------------------------
# Record validation
# ----------------------------------------------------------------------

class SchemaValidationException(RegistryError):
    """A submitted record does not satisfy the current schema."""

    def __init__(self, messages: Sequence[str] | str) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        super().__init__("; ".join(self.messages))


class InvalidExternalResource(RegistryError):
    """The remote validator reported the DPP as invalid."""

    def __init__(self, report: "ValidationReport") -> None:
        super().__init__(report.message or "DPP failed remote validation")
        self.report = report


class RemoteFetchError(RegistryError):
    """The DPP could not be retrieved from its live URL."""

    def __init__(
        self,
        url: str,
        status_code: Optional[int],
        body_excerpt: str = "",
    ) -> None:
        if status_code is None:
            detail = f"transport failure: {body_excerpt}"
        else:
            detail = f"server replied with status {status_code} and message {body_excerpt!r}"
        super().__init__(f"Error while retrieving DPP from {url}: {detail}")
        self.url = url
        self.status_code = status_code
        self.body_excerpt = body_excerpt


# ----------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------

class UnsupportedFilterType(RegistryError):
    """A filter names a property whose declared type is not primitive."""

    def __init__(self, property_name: str, declared_type: Optional[str]) -> None:
        super().__init__(
            f"Unsupported type {declared_type!r} for filter property {property_name!r}"
        )
        self.property = property_name
        self.declared_type = declared_type
