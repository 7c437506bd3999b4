"""URL reputation lookups against the local hash store."""

from typing import Optional

import structlog
from common import ParseError
from common.constants import (
    MATCH_DOMAIN,
    MATCH_URL,
    TRUSTED_GATEWAY_SCHEME,
    TRUSTED_GATEWAY_SUFFIX,
)
from schemas import Verdict, NormalizedUrl, calculate_hash, normalize_url, parse_url
from storage import HashStore, Collection

logger = structlog.get_logger()


def is_trusted_gateway(url: str, normalized: NormalizedUrl) -> bool:
    """Payment gateways under the trusted zone, reached over https only."""
    try:
        parsed = parse_url(url)
    except ParseError:
        return False
    return (
        normalized.domain.endswith(TRUSTED_GATEWAY_SUFFIX)
        and parsed.scheme == TRUSTED_GATEWAY_SCHEME
    )


class UrlChecker:
    """Answers "is this URL known bad?" from the cached blocklist.

    Probe order is fixed: domain digest, then full URL digest, then the
    digest of the original URL. The first hit wins.
    """

    def __init__(self, store: HashStore):
        self.store = store

    async def _probe(self, collection: Collection, digest: str, match: int) -> Optional[Verdict]:
        record = await self.store.get(collection, digest)
        if record is None:
            return None
        return Verdict.blocked(record, match)

    async def check_url_security(self, url: str) -> Verdict:
        """
        Check one URL.

        Never raises: any failure yields the unknown verdict with ``error`` set.

        Args:
            url: URL as seen by the host

        Returns:
            Verdict with secure=False (blocklisted), True (trusted gateway)
            or None (unknown)
        """
        try:
            normalized = normalize_url(url)

            probes = (
                (Collection.DOMAIN_HASHES, calculate_hash(normalized.domain), MATCH_DOMAIN),
                (Collection.URL_HASHES, calculate_hash(normalized.full_url), MATCH_URL),
                (Collection.URL_HASHES, calculate_hash(normalized.original_url), MATCH_URL),
            )

            for collection, digest, match in probes:
                verdict = await self._probe(collection, digest, match)
                if verdict is not None:
                    logger.debug(
                        "Blocklist match",
                        domain=normalized.domain,
                        collection=collection.value,
                        type=verdict.type,
                        level=verdict.level,
                    )
                    return verdict

            if is_trusted_gateway(url, normalized):
                return Verdict.trusted()

            return Verdict.unknown()

        except Exception as e:  # noqa: BLE001
            logger.warning(
                "URL check failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Verdict.unknown(error=str(e))
