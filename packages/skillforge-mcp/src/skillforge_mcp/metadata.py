"""Content-addressed metadata fetching over redundant IPFS gateways."""
from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Any

import httpx
from skillforge_core.config import DEFAULT_GATEWAYS
from skillforge_core.logging import get_logger

logger = get_logger("mcp.metadata")

_URI_PREFIX = "ipfs://"
_PATH_MARKER = "/ipfs/"


def normalize_pointer(pointer: str) -> str:
    """Reduce a metadata pointer to its bare content hash.

    ``ipfs://<hash>`` and ``https://host/ipfs/<hash>`` are both
    accepted; anything else is assumed to already be a hash.
    """
    pointer = pointer.strip()
    if pointer.startswith(_URI_PREFIX):
        return pointer[len(_URI_PREFIX):]
    if _PATH_MARKER in pointer:
        return pointer.split(_PATH_MARKER)[1]
    return pointer


class MetadataFetcher:
    """Resolves a metadata pointer to its JSON document.

    Gateways are tried strictly in order with a short per-attempt
    timeout; the first one that answers 2xx with a JSON object wins.
    """

    def __init__(
        self,
        gateways: Sequence[str] = DEFAULT_GATEWAYS,
        timeout_seconds: float = 2.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not gateways:
            msg = "At least one metadata gateway is required"
            raise ValueError(msg)
        self._gateways = tuple(gateways)
        self._timeout = timeout_seconds
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )
        self._owns_client = client is None

    def candidate_urls(self, pointer: str) -> list[str]:
        content_hash = normalize_pointer(pointer)
        return [
            f"{base.rstrip('/')}/{content_hash}" for base in self._gateways
        ]

    async def fetch(self, pointer: str) -> dict[str, Any] | None:
        """Return the parsed metadata document, or None if no gateway served it.

        Never raises: every failure degrades to the next gateway and
        finally to None.
        """
        try:
            urls = self.candidate_urls(pointer)
        except Exception as exc:
            logger.error("[Metadata] Unexpected error processing %s: %s", pointer, exc)
            return None

        for url in urls:
            document = await self._try_gateway(url)
            if document is not None:
                return document

        logger.error("[Metadata] All gateways failed for %s", normalize_pointer(pointer))
        return None

    async def _try_gateway(self, url: str) -> dict[str, Any] | None:
        logger.debug("[Metadata] Fetching from: %s", url)
        start = time.monotonic()
        # httpx timeouts apply per phase; the deadline bounds the whole attempt.
        try:
            async with asyncio.timeout(self._timeout):
                response = await self._client.get(url, timeout=self._timeout)
        except TimeoutError:
            logger.debug("[Metadata] Timed out after %.1fs: %s", self._timeout, url)
            return None
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("[Metadata] Error fetching %s: %s", url, exc)
            return None

        if not response.is_success:
            logger.warning("[Metadata] Failed %s: %s", url, response.status_code)
            return None

        try:
            document = response.json()
        except ValueError as exc:
            logger.debug("[Metadata] JSON parse error from %s: %s", url, exc)
            return None

        if not isinstance(document, dict):
            logger.debug("[Metadata] Non-object JSON from %s", url)
            return None

        duration_ms = (time.monotonic() - start) * 1000
        logger.debug("[Metadata] Success from %s (%.0fms)", url, duration_ms)
        return document

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
