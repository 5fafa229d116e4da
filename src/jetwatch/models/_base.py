"""Base model for flight API payloads.

Every response model inherits from :class:`JetwatchBaseModel` which
provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``null`` and blank
  string values so the field default is used. Keys listed in
  ``verbatim_keys`` keep blank strings as sent.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class JetwatchBaseModel(BaseModel):
    """Base for flight API response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    verbatim_keys: ClassVar[frozenset[str]] = frozenset()

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API payload."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Drop empty values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip() and key not in cls.verbatim_keys:
                continue
            cleaned[key] = value

        # Only auto-stash raw when validating an API dict.  When constructing
        # with kwargs that include raw=, keep the caller's value.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned

    def to_wire(self) -> dict[str, Any]:
        """Dump the typed fields back to their camelCase wire form."""
        return self.model_dump(by_alias=True, mode="json", exclude={"raw"})


class JetwatchRequest(BaseModel):
    """Base for request bodies sent to the flight API."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
        validate_default=True,
        str_strip_whitespace=True,
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
