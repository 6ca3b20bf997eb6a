"""Error hierarchy for ingestion runs.

Fetch, conversion (in strict mode), persistence, consistency and watermark
errors abort a run and surface to the caller. Sweep errors are reported by the
sweeper and downgraded to a warning by the ingestion service.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional


class IngestionError(Exception):
    """Base class for every error raised by an ingestion run."""


class FetchError(IngestionError):
    """A fetcher failed to retrieve a page from the provider."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class ConversionError(IngestionError):
    """A raw provider payload could not be normalized into a snapshot."""

    def __init__(self, kind: str, message: str, resource_id: Optional[str] = None):
        self.kind = kind
        self.resource_id = resource_id
        target = f"{kind} {resource_id}" if resource_id else kind
        super().__init__(f"convert {target}: {message}")


class PersistenceError(IngestionError):
    """A store write failed; the whole batch was rolled back."""

    def __init__(self, kind: str, resource_id: Optional[str], message: str):
        self.kind = kind
        self.resource_id = resource_id
        target = f"{kind} {resource_id}" if resource_id else kind
        super().__init__(f"persist {target}: {message}")


class ConsistencyError(IngestionError):
    """The history ledger does not hold exactly one open version where one is required.

    Re-running the same batch cannot fix this; the ledger needs manual repair.
    """

    def __init__(self, kind: str, resource_id: str, open_versions: int):
        self.kind = kind
        self.resource_id = resource_id
        self.open_versions = open_versions
        super().__init__(
            f"history for {kind} {resource_id}: expected exactly one open version, found {open_versions}"
        )


class SweepError(IngestionError):
    """Retiring stale resources failed; the committed ingestion result stands."""

    def __init__(self, kind: str, message: str, resource_id: Optional[str] = None):
        self.kind = kind
        self.resource_id = resource_id
        target = f"{kind} {resource_id}" if resource_id else kind
        super().__init__(f"retire {target}: {message}")


class WatermarkError(IngestionError):
    """The run watermark is inconsistent with the snapshots or with the previous run."""

    def __init__(self, kind: str, watermark: datetime, message: str):
        self.kind = kind
        self.watermark = watermark
        super().__init__(f"watermark {watermark.isoformat()} for {kind}: {message}")
