"""Pydantic base schema utilities for agent core models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base Pydantic model for configuration and domain schemas.

    Configures common Pydantic behaviors:
    - ``populate_by_name=True``: Allow initialization by alias or field name.
    - ``extra="forbid"``: Prevent unknown fields from slipping into the model, ensuring strict validation.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
    )


class WireSchema(BaseModel):
    """
    Base Pydantic model for payloads exchanged with the chat completions API.

    Providers routinely add fields (``refusal``, ``finish_reason``,
    ``annotations`` ...), so unknown keys are ignored instead of rejected.
    Wire models are immutable once parsed.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )
