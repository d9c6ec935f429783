"""Base Pydantic models for document elements.

This module defines the foundational model classes used by all parsed
document structures and runtime settings. Parsed documents are
immutable: once a request has been read from a file it cannot change
while the runner reads it.
"""

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for all document elements.

    This class serves as the root for all Pydantic models representing
    parsed values, details, requests and groups.

    Design principles enforced by this model:
        - Immutability: elements cannot be modified after parsing.
        - Strict schema: unknown or extra fields are rejected.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Settings are resolved from keyword arguments first and from the
    environment second. Unknown environment variables are ignored so
    that the surrounding environment never breaks configuration.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
