"""End-to-end ingestion of one resource kind: fetch, commit, retire."""

from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.orm import Session, sessionmaker

from bronzeledger.core.errors import SweepError, WatermarkError
from bronzeledger.core.logging import get_logger
from bronzeledger.engine.committer import BatchCommitter
from bronzeledger.engine.kinds import ResourceKind
from bronzeledger.engine.sweeper import StaleSweeper
from bronzeledger.engine.types import IngestResult, as_utc, utcnow
from bronzeledger.ingestion.base import SnapshotFetcher
from bronzeledger.ingestion.runner import Heartbeat, IngestionRunner
from bronzeledger.models.runs import IngestionRun
from bronzeledger.models.watermarks import IngestionWatermark

log = get_logger("ingestion_service")


class IngestionService:
    """Runs one ingestion of a resource kind and keeps the run ledger.

    Responsibilities:
    - Fix the run watermark before anything is fetched
    - Refuse watermarks that do not move forward
    - Commit every snapshot of the run as one batch
    - Retire records the run did not observe, except under scopes it failed to list
    - Record each run with its outcome and counts
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.clock = clock

    async def run(
        self,
        kind: ResourceKind,
        fetcher: SnapshotFetcher,
        scope: Optional[Mapping[str, Any]] = None,
        heartbeat: Optional[Heartbeat] = None,
    ) -> IngestResult:
        started = time.monotonic()
        collected_at = as_utc(self.clock())
        scope_key = kind.scope_key(scope)

        self._check_watermark(kind, scope_key, collected_at)
        run_id = self._start_run(kind, scope_key, collected_at)
        log.info(f"Starting ingestion for {kind.name} | scope={scope_key or '-'} collected_at={collected_at.isoformat()}")

        try:
            snapshots = await IngestionRunner(fetcher).run(collected_at, heartbeat)
            batch = BatchCommitter(kind, self.session_factory, clock=self.clock).run_batch(
                snapshots, collected_at, scope_key=scope_key
            )
        except asyncio.CancelledError:
            self._finish_run(run_id, status="cancelled", error_message="cancelled")
            log.warning(f"Ingestion for {kind.name} cancelled; nothing was committed")
            raise
        except Exception as exc:  # noqa: BLE001
            self._finish_run(
                run_id,
                status="failure",
                error_message=str(exc),
                records_skipped=fetcher.skipped_count,
            )
            log.error(f"Ingestion failed for {kind.name}: {exc}")
            raise

        retired_count = 0
        try:
            retired = StaleSweeper(kind, self.session_factory, clock=self.clock).retire(
                collected_at, scope, keep=fetcher.failed_scopes
            )
            retired_count = retired.retired_count
        except SweepError as exc:
            log.warning(f"Stale retirement for {kind.name} failed; ingestion result stands: {exc}")

        duration_millis = int((time.monotonic() - started) * 1000)
        self._finish_run(
            run_id,
            status="success",
            records_processed=batch.processed_count,
            records_skipped=fetcher.skipped_count,
            records_retired=retired_count,
            meta={
                "created": batch.created_count,
                "changed": batch.changed_count,
                "unchanged": batch.unchanged_count,
                "failed_scopes": [kind.scope_key(failed) for failed in fetcher.failed_scopes],
                "duration_millis": duration_millis,
            },
        )

        result = IngestResult(
            kind=kind.name,
            item_count=batch.processed_count,
            collected_at=collected_at,
            duration_millis=duration_millis,
            skipped_count=fetcher.skipped_count,
            retired_count=retired_count,
            failed_scope_count=len(fetcher.failed_scopes),
            run_id=str(run_id),
        )
        log.info(
            f"Ingestion finished for {kind.name} | items={result.item_count} "
            f"skipped={result.skipped_count} failed_scopes={result.failed_scope_count} "
            f"retired={result.retired_count} took={duration_millis}ms"
        )
        return result

    # -------------------------------------------------------------------------
    # Watermark ledger
    # -------------------------------------------------------------------------
    def last_watermark(self, kind: ResourceKind, scope_key: str = "") -> Optional[datetime]:
        with self.session_factory() as session:
            mark = session.get(IngestionWatermark, (kind.name, scope_key))
            return as_utc(mark.collected_at) if mark is not None else None

    def _check_watermark(self, kind: ResourceKind, scope_key: str, collected_at: datetime) -> None:
        previous = self.last_watermark(kind, scope_key)
        if previous is not None and previous >= as_utc(collected_at):
            raise WatermarkError(
                kind.name,
                collected_at,
                f"does not advance past the last committed watermark {previous.isoformat()}",
            )

    # -------------------------------------------------------------------------
    # Run ledger
    # -------------------------------------------------------------------------
    def _start_run(self, kind: ResourceKind, scope_key: str, collected_at: datetime) -> uuid.UUID:
        run = IngestionRun(
            kind=kind.name,
            scope_key=scope_key,
            status="running",
            collected_at=collected_at,
            records_processed=0,
        )
        with self.session_factory() as session, session.begin():
            session.add(run)
        return run.run_id

    def _finish_run(self, run_id: uuid.UUID, **fields: Any) -> None:
        with self.session_factory() as session, session.begin():
            run = session.get(IngestionRun, run_id)
            if run is None:
                log.warning(f"Run {run_id} vanished from the run ledger")
                return
            for name, value in fields.items():
                setattr(run, name, value)
            run.ended_at = utcnow()
