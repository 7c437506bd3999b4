"""HTTP fetcher for the JSON blocklist document."""

import asyncio
import json
from typing import Dict, Any, Optional

import aiohttp
import structlog
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from common import FetchError, DataFormatError
from common.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_HTTP_RETRIES,
    DEFAULT_HTTP_BACKOFF,
)
from .base_fetcher import BaseFetcher

logger = structlog.get_logger()

TRANSIENT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


class HTTPFetcher(BaseFetcher):
    """HTTP fetcher for the remote blocklist.

    A single request is made by default. Setting ``retries`` above one
    enables exponential backoff between attempts for transport errors and
    non-2xx responses.
    """

    def __init__(
        self,
        url: str,
        source_name: str = "blocklist",
        timeout: int = DEFAULT_HTTP_TIMEOUT,
        retries: int = DEFAULT_HTTP_RETRIES,
        backoff: float = DEFAULT_HTTP_BACKOFF,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize HTTP fetcher.

        Args:
            url: URL to fetch from
            source_name: Name of the data source
            timeout: Request timeout in seconds
            retries: Total number of attempts (1 = no retry)
            backoff: Initial backoff time for retries
            session: Shared client session; a private one is opened per fetch if None
        """
        super().__init__(url, source_name)
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self.session = session

    async def _get(self, session: aiohttp.ClientSession) -> Dict[str, Any]:
        async with session.get(
            self.url,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            response.raise_for_status()
            # Unfollowed redirects (300, 304, ...) are not errors to aiohttp
            if not 200 <= response.status < 300:
                raise aiohttp.ClientResponseError(
                    request_info=response.request_info,
                    history=response.history,
                    status=response.status,
                    message=f"Unexpected status {response.status}",
                )
            body = await response.text()

            return {
                "body": body,
                "metadata": {
                    "http_status": response.status,
                    "content_length": len(body),
                    "content_type": response.headers.get("Content-Type", ""),
                    "source_url": self.url,
                },
            }

    async def _request(self) -> Dict[str, Any]:
        if self.session is not None:
            return await self._get(self.session)
        async with aiohttp.ClientSession() as session:
            return await self._get(session)

    async def fetch(self) -> Dict[str, Any]:
        """
        Fetch the blocklist document and decode it as JSON.

        Returns:
            Dictionary containing:
                - content: The decoded JSON document
                - metadata: Metadata (http_status, content_length, etc.)

        Raises:
            FetchError: If fetching fails after all attempts
            DataFormatError: If the body is not valid JSON
        """
        logger.info(
            "Starting HTTP fetch",
            source=self.source_name,
            url=self.url,
            timeout=self.timeout,
        )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retries),
                wait=wait_exponential(multiplier=self.backoff, min=self.backoff),
                retry=retry_if_exception_type(TRANSIENT_ERRORS),
                reraise=True,
            ):
                with attempt:
                    result = await self._request()

        except TRANSIENT_ERRORS as e:
            status_code = getattr(e, "status", None)
            logger.error(
                "HTTP fetch failed",
                source=self.source_name,
                url=self.url,
                attempts=self.retries,
                status_code=status_code,
                error=str(e),
            )
            context = {
                "url": self.url,
                "attempts": self.retries,
                "timeout": self.timeout,
            }
            if status_code is not None:
                context["status_code"] = status_code
            raise FetchError(
                message=f"Failed to fetch {self.url}",
                context=context,
                original_error=e,
            )

        metadata = result["metadata"]

        try:
            content = json.loads(result["body"])
        except ValueError as e:
            logger.error(
                "Blocklist body is not valid JSON",
                source=self.source_name,
                url=self.url,
                content_length=metadata["content_length"],
            )
            raise DataFormatError(
                message="Response body is not valid JSON",
                context={"url": self.url},
                original_error=e,
            )

        logger.info(
            "HTTP fetch successful",
            source=self.source_name,
            status=metadata["http_status"],
            content_length=metadata["content_length"],
        )

        return {"content": content, "metadata": metadata}
