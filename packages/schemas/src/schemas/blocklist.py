"""Remote blocklist document models."""

from typing import Any, List
from pydantic import BaseModel, Field, ConfigDict


class BlocklistEntry(BaseModel):
    """One group of hashes from the remote blocklist document.

    Validation is strict: booleans and floats are not accepted as integers and
    ``hashes`` must be a JSON array. Elements of ``hashes`` are not checked
    here; non-string items are skipped later during ingestion.
    """

    hashes: List[Any] = Field(..., description="Digests or plaintext domains/URLs")
    type: int = Field(..., description="Threat category code")
    match: int = Field(..., description="1 = domain-level, 2 = URL-level")
    level: int = Field(..., description="Severity / confidence tier")

    model_config = ConfigDict(
        strict=True,
        extra="ignore",
        json_schema_extra={
            "example": {
                "hashes": ["www.evil.example", "http://phish.example/login"],
                "type": 3,
                "match": 1,
                "level": 2,
            }
        },
    )
