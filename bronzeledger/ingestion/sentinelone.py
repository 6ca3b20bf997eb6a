"""SentinelOne agents fetcher (cursor pagination)."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import httpx

from bronzeledger.core.config import settings
from bronzeledger.core.errors import FetchError
from bronzeledger.core.logging import get_logger
from bronzeledger.engine.kinds import ResourceKind
from .base import SnapshotFetcher

log = get_logger("ingestion.sentinelone")

AGENTS_ENDPOINT = "/web/api/v2.1/agents"


class SentinelOneAgentFetcher(SnapshotFetcher):
    """Fetches agents from the SentinelOne management API, one cursor page at a time."""

    name = "sentinelone"

    def __init__(
        self,
        kind: ResourceKind,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        page_size: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
        strict: Optional[bool] = None,
    ):
        super().__init__(kind, strict=strict)
        self.base_url = (base_url or settings.SENTINELONE_BASE_URL or "").rstrip("/")
        self.api_token = api_token or settings.SENTINELONE_API_TOKEN
        self.page_size = page_size or settings.SENTINELONE_PAGE_SIZE
        self.client = client
        if not self.base_url:
            raise ValueError("SentinelOne base URL is not configured")

        self._cursor: Optional[str] = None
        self._exhausted = False

    def has_more(self) -> bool:
        return not self._exhausted

    async def fetch_page(self) -> List[Mapping[str, Any]]:
        params: Dict[str, Any] = {"limit": self.page_size}
        if self._cursor:
            params["cursor"] = self._cursor

        body = await self._get(AGENTS_ENDPOINT, params)

        data = body.get("data") or []
        next_cursor = (body.get("pagination") or {}).get("nextCursor")
        self._cursor = next_cursor
        self._exhausted = not next_cursor

        log.debug(f"Fetched {len(data)} SentinelOne agents (more={not self._exhausted})")
        return data

    async def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"ApiToken {self.api_token}"
        url = f"{self.base_url}{endpoint}"

        try:
            if self.client is not None:
                resp = await self.client.get(url, params=params, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
                    resp = await client.get(url, params=params, headers=headers)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as exc:
            raise FetchError(self.name, f"get agents: {exc}") from exc
        except ValueError as exc:
            raise FetchError(self.name, f"parse agents response: {exc}") from exc

        if not isinstance(body, dict):
            raise FetchError(self.name, "parse agents response: expected a JSON object")
        return body
