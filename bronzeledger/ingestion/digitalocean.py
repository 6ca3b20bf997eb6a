"""DigitalOcean managed database fetchers.

Clusters are listed with page-number pagination; firewall rules are listed one
cluster at a time.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import httpx

from bronzeledger.core.config import settings
from bronzeledger.core.errors import FetchError
from bronzeledger.core.logging import get_logger
from bronzeledger.engine.kinds import ResourceKind
from bronzeledger.engine.types import Snapshot
from .base import SnapshotFetcher

log = get_logger("ingestion.digitalocean")


class DigitalOceanFetcher(SnapshotFetcher):
    """Shared auth and request handling for the DigitalOcean v2 API."""

    name = "digitalocean"

    def __init__(
        self,
        kind: ResourceKind,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        strict: Optional[bool] = None,
    ):
        super().__init__(kind, strict=strict)
        self.token = token or settings.DIGITALOCEAN_TOKEN
        self.base_url = (base_url or settings.DIGITALOCEAN_BASE_URL).rstrip("/")
        self.client = client

    async def _get(self, endpoint: str, params: Dict[str, Any], what: str) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
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
            raise FetchError(self.name, f"{what}: {exc}") from exc
        except ValueError as exc:
            raise FetchError(self.name, f"parse {what} response: {exc}") from exc

        if not isinstance(body, dict):
            raise FetchError(self.name, f"parse {what} response: expected a JSON object")
        return body


class DigitalOceanDatabaseFetcher(DigitalOceanFetcher):
    def __init__(
        self,
        kind: ResourceKind,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        page_size: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
        strict: Optional[bool] = None,
    ):
        super().__init__(kind, token=token, base_url=base_url, client=client, strict=strict)
        self.page_size = page_size or settings.DIGITALOCEAN_PAGE_SIZE

        self._page = 1
        self._exhausted = False

    def has_more(self) -> bool:
        return not self._exhausted

    async def fetch_page(self) -> List[Mapping[str, Any]]:
        params = {"page": self._page, "per_page": self.page_size}
        body = await self._get("/v2/databases", params, f"list databases (page {params['page']})")

        databases = body.get("databases") or []
        next_link = ((body.get("links") or {}).get("pages") or {}).get("next")
        if next_link:
            self._page += 1
        else:
            self._exhausted = True

        log.debug(f"Fetched {len(databases)} DigitalOcean databases (page {params['page']})")
        return databases


class DigitalOceanFirewallRuleFetcher(DigitalOceanFetcher):
    """Lists the firewall rules of each given cluster, one cluster per page.

    A cluster whose rules cannot be listed is skipped and recorded in
    ``failed_scopes`` so its stored rules survive retirement; in strict mode
    the failure aborts the run instead.
    """

    def __init__(
        self,
        kind: ResourceKind,
        cluster_ids: Iterable[str],
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        strict: Optional[bool] = None,
    ):
        super().__init__(kind, token=token, base_url=base_url, client=client, strict=strict)
        self._pending: List[str] = list(cluster_ids)

    @property
    def failed_clusters(self) -> List[str]:
        return [scope["cluster_id"] for scope in self.failed_scopes]

    def has_more(self) -> bool:
        return bool(self._pending)

    async def fetch_page(self) -> List[Mapping[str, Any]]:
        cluster_id = self._pending.pop(0)
        self.context = {"cluster_id": cluster_id}
        body = await self._get(f"/v2/databases/{cluster_id}/firewall", {}, f"get firewall rules for cluster {cluster_id}")

        rules = body.get("rules") or []
        log.debug(f"Fetched {len(rules)} firewall rules for cluster {cluster_id}")
        return rules

    async def next_page(self, collected_at: datetime) -> List[Snapshot]:
        try:
            return await super().next_page(collected_at)
        except FetchError as exc:
            if self.strict:
                raise
            self.failed_scopes.append(dict(self.context))
            log.warning(f"Skipping cluster {self.context['cluster_id']}; its rules are kept as they were: {exc}")
            return []
