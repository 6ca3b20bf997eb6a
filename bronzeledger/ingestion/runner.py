"""Drive a fetcher to exhaustion for one run."""

from __future__ import annotations

import inspect
from datetime import datetime
from typing import Any, Callable, List, Optional

from bronzeledger.core.logging import get_logger
from bronzeledger.engine.types import Snapshot
from .base import SnapshotFetcher

log = get_logger("ingestion.runner")

Heartbeat = Callable[[], Any]


class IngestionRunner:
    """Collects every page of a fetcher, signalling liveness after each page."""

    def __init__(self, fetcher: SnapshotFetcher):
        self.fetcher = fetcher

    async def run(self, collected_at: datetime, heartbeat: Optional[Heartbeat] = None) -> List[Snapshot]:
        snapshots: List[Snapshot] = []
        pages = 0

        while self.fetcher.has_more():
            page = await self.fetcher.next_page(collected_at)
            snapshots.extend(page)
            pages += 1

            if heartbeat is not None:
                signal = heartbeat()
                if inspect.isawaitable(signal):
                    await signal

        log.info(
            f"Fetcher={self.fetcher.name} kind={self.fetcher.kind.name} pages={pages} "
            f"snapshots={len(snapshots)} skipped={self.fetcher.skipped_count}"
        )
        return snapshots
