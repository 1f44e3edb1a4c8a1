"""
Carry-forward of metadata field values.

When a record is submitted without some autocomplete-enabled fields, the
values from a previous record fill the gaps. Values already present in
the submitted record always win.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Collection, Dict, Mapping

logger = logging.getLogger(__name__)


def autocomplete(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
    enabled_fields: Collection[str],
) -> Dict[str, Any]:
    """
    Return a copy of base completed with enabled fields from overlay.

    A field is copied when it is present in overlay, enabled, and absent
    or null in base. Neither argument is modified.
    """
    result = dict(base)
    enabled = set(enabled_fields)

    for name, value in overlay.items():
        if name not in enabled:
            continue
        if result.get(name) is None:
            logger.debug("Autocompleting field %s", name)
            result[name] = copy.deepcopy(value)

    return result


class MetadataAutocompleter:
    """Autocompletion bound to the configured set of enabled fields."""

    def __init__(self, enabled_fields: Collection[str]) -> None:
        self._enabled_fields = frozenset(enabled_fields)

    @property
    def enabled_fields(self) -> frozenset:
        return self._enabled_fields

    def autocomplete(
        self, base: Mapping[str, Any], overlay: Mapping[str, Any]
    ) -> Dict[str, Any]:
        return autocomplete(base, overlay, self._enabled_fields)
