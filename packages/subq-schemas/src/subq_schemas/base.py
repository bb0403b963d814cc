"""Base schema configuration for subq Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with strict validation defaults.

    Note: extra="ignore" lets settings files written by newer releases load
    without failing validation. Required fields are still validated.
    """

    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
        validate_default=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        strict=True,
    )
