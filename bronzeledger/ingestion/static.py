"""Fetcher over payload pages that an external client already retrieved."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence

from bronzeledger.engine.kinds import ResourceKind
from .base import SnapshotFetcher


class StaticFetcher(SnapshotFetcher):
    """Serves pre-fetched raw payload pages, e.g. from a boto3 paginator."""

    name = "static"

    def __init__(
        self,
        kind: ResourceKind,
        pages: Iterable[Sequence[Mapping[str, Any]]],
        context: Optional[Mapping[str, Any]] = None,
        strict: Optional[bool] = None,
    ):
        super().__init__(kind, context=context, strict=strict)
        self._pages: List[Sequence[Mapping[str, Any]]] = list(pages)
        self._cursor = 0

    def has_more(self) -> bool:
        return self._cursor < len(self._pages)

    async def fetch_page(self) -> List[Mapping[str, Any]]:
        page = self._pages[self._cursor]
        self._cursor += 1
        return list(page)
