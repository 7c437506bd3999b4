"""Lookup verdict model."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from common.constants import MATCH_NONE

from schemas.records import HashRecord


class Verdict(BaseModel):
    """Tri-state result of a URL lookup.

    ``secure`` is False for a blocklist hit, True for the trusted gateway rule
    and None when nothing is known about the URL.
    """

    secure: Optional[bool] = Field(None, description="False=known bad, True=trusted, None=unknown")
    type: int = Field(0, description="Threat category code of the matched record")
    level: int = Field(0, description="Severity tier of the matched record")
    match: int = Field(MATCH_NONE, description="1 = domain hit, 2 = URL hit, 0 = no hit")
    error: Optional[str] = Field(None, description="Set only when the lookup failed")

    @classmethod
    def blocked(cls, record: HashRecord, match: int) -> "Verdict":
        return cls(secure=False, type=record.type, level=record.level, match=match)

    @classmethod
    def trusted(cls) -> "Verdict":
        return cls(secure=True)

    @classmethod
    def unknown(cls, error: Optional[str] = None) -> "Verdict":
        return cls(secure=None, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for the host; ``error`` is present only when set."""
        data = self.model_dump()
        if data["error"] is None:
            del data["error"]
        return data
