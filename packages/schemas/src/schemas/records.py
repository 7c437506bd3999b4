"""Stored record models."""

from typing import Any
from pydantic import BaseModel, Field, ConfigDict


class HashRecord(BaseModel):
    """One blocklisted hash in the domain or URL collection."""

    hash: str = Field(..., min_length=1, description="SHA-256 hex digest (primary key)")
    type: int = Field(..., description="Threat category code")
    level: int = Field(..., description="Severity / confidence tier")

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "hash": "0c2f3d2b8c4b3a1e9f8e7d6c5b4a39281706f5e4d3c2b1a09f8e7d6c5b4a3928",
                "type": 3,
                "level": 2,
            }
        },
    )


class MetadataEntry(BaseModel):
    """Key/value pair in the metadata collection."""

    key: str = Field(..., min_length=1, description="Metadata key (e.g., lastUpdate)")
    value: Any = Field(None, description="JSON-serializable value")

    model_config = ConfigDict(frozen=True)
