"""
FactionWatch Bot - Torn API Client
==================================

Thin aiohttp wrapper around the faction members endpoint.

Only fetches and classifies failures; it never touches tracker state. The
session is opened lazily and closed by the shutdown handler.
"""

import asyncio
from types import TracebackType
from typing import Any, Optional, Type

import aiohttp

from src.core.config import FACTION_ID, NETWORK_TIMEOUT, TORN_API_BASE, TORN_API_KEY
from src.core.logger import logger
from src.services.torn.errors import UpstreamReportedError, UpstreamUnavailable


HIDDEN_KEY = "API_KEY_HIDDEN"


class TornClient:
    """Fetches the faction members payload from the Torn v2 API."""

    def __init__(
        self,
        api_key: str = TORN_API_KEY,
        faction_id: str = FACTION_ID,
        base_url: str = TORN_API_BASE,
        timeout: float = NETWORK_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.api_key: str = api_key
        self.faction_id: str = faction_id
        self.base_url: str = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.session: Optional[aiohttp.ClientSession] = session
        self._owns_session: bool = session is None

    async def __aenter__(self) -> "TornClient":
        self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()

    # -------------------------------------------------------------------------
    # URLs
    # -------------------------------------------------------------------------

    @property
    def members_url(self) -> str:
        return f"{self.base_url}/faction/{self.faction_id}?selections=members&key={self.api_key}"

    def redact(self, text: str) -> str:
        """Replace the API key wherever it appears."""
        if not self.api_key:
            return text
        return text.replace(self.api_key, HIDDEN_KEY)

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def fetch_members(self) -> dict[str, Any]:
        """
        GET the faction members payload.

        Returns:
            The decoded JSON object

        Raises:
            UpstreamUnavailable: network failure, timeout, non-2xx status, non-JSON body
            UpstreamReportedError: the payload carries an `error` object
        """
        session = self._ensure_session()
        url = self.members_url
        logger.debug("Calling Torn API", [
            ("URL", self.redact(url)),
        ])

        try:
            async with session.get(url) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    raise UpstreamUnavailable(
                        f"HTTP {response.status} {response.reason or ''}: {self.redact(body[:200])}".strip(),
                        status=response.status,
                    )
                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise UpstreamUnavailable(f"Undecodable response body: {e}", status=response.status) from e
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailable("Request timed out") from e
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(self.redact(f"{type(e).__name__}: {e}")) from e

        if not isinstance(data, dict):
            raise UpstreamUnavailable(f"Expected a JSON object, got {type(data).__name__}")

        if data.get("error"):
            raise UpstreamReportedError(data["error"])

        return data


__all__ = ["TornClient", "HIDDEN_KEY"]
