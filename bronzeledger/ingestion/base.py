"""Abstract fetcher interface for ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from bronzeledger.core.config import settings
from bronzeledger.core.errors import ConversionError
from bronzeledger.core.logging import get_logger
from bronzeledger.engine.kinds import ResourceKind
from bronzeledger.engine.types import Snapshot

log = get_logger("ingestion.base")


class SnapshotFetcher(ABC):
    """Pages through one provider listing and yields converted snapshots.

    Subclasses implement ``has_more`` and ``fetch_page``; conversion and the
    skip-or-abort policy for unconvertible payloads live here so every kind
    applies the same policy.

    Fetchers that list several scopes (e.g. one cluster at a time) record the
    scopes they could not list in ``failed_scopes``; retirement leaves the
    records under those scopes alone.
    """

    name: str

    def __init__(
        self,
        kind: ResourceKind,
        context: Optional[Mapping[str, Any]] = None,
        strict: Optional[bool] = None,
    ):
        self.kind = kind
        self.context: Dict[str, Any] = dict(context or {})
        self.strict = settings.STRICT_CONVERSION if strict is None else strict
        self.skipped_count = 0
        self.failed_scopes: List[Dict[str, Any]] = []

    @abstractmethod
    def has_more(self) -> bool:
        """True until the provider has signalled the last page."""

    @abstractmethod
    async def fetch_page(self) -> List[Mapping[str, Any]]:
        """Fetch the next page of raw payloads (raises FetchError)."""

    async def next_page(self, collected_at: datetime) -> List[Snapshot]:
        raw = await self.fetch_page()
        return self.convert_page(raw, collected_at)

    def convert_page(self, items: Iterable[Mapping[str, Any]], collected_at: datetime) -> List[Snapshot]:
        snapshots: List[Snapshot] = []
        for item in items:
            try:
                snapshots.append(self.kind.convert(item, collected_at, **self.context))
            except ConversionError as exc:
                if self.strict:
                    raise
                self.skipped_count += 1
                log.warning(f"Skipping unconvertible {self.kind.name} payload: {exc}")
        return snapshots
