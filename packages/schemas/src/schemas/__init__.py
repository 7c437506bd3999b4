"""Schemas package."""

from schemas.records import HashRecord, MetadataEntry
from schemas.blocklist import BlocklistEntry
from schemas.verdict import Verdict
from schemas.normalization import (
    NormalizedUrl,
    ParsedUrl,
    parse_url,
    normalize_url,
    normalize_domain_entry,
    normalize_url_entry,
    looks_like_domain,
    looks_like_url,
    calculate_hash,
    is_hex_digest,
)

__all__ = [
    "HashRecord",
    "MetadataEntry",
    "BlocklistEntry",
    "Verdict",
    "NormalizedUrl",
    "ParsedUrl",
    "parse_url",
    "normalize_url",
    "normalize_domain_entry",
    "normalize_url_entry",
    "looks_like_domain",
    "looks_like_url",
    "calculate_hash",
    "is_hex_digest",
]
