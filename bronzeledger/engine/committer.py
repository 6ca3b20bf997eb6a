"""Apply one run's snapshots inside a single all-or-nothing transaction."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from bronzeledger.core.errors import IngestionError, PersistenceError, WatermarkError
from bronzeledger.core.logging import get_logger
from bronzeledger.engine.current_state import CurrentStateWriter
from bronzeledger.engine.differ import diff_snapshot
from bronzeledger.engine.history import HistoryWriter
from bronzeledger.engine.kinds import ResourceKind
from bronzeledger.engine.types import BatchResult, Snapshot, as_utc, utcnow
from bronzeledger.models.watermarks import IngestionWatermark

log = get_logger("engine.committer")


class BatchCommitter:
    """Runs differencer, current-state writer and history writer for every snapshot of a run.

    The whole batch shares one session and one transaction: any failure rolls
    back every write of the run, including the watermark bookkeeping.
    """

    def __init__(
        self,
        kind: ResourceKind,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.kind = kind
        self.session_factory = session_factory
        self.clock = clock
        self.current_state = CurrentStateWriter(kind)
        self.history = HistoryWriter(kind)

    def run_batch(
        self,
        snapshots: Iterable[Snapshot],
        collected_at: datetime,
        scope_key: str = "",
    ) -> BatchResult:
        collected_at = as_utc(collected_at)
        result = BatchResult(processed_count=0, collected_at=collected_at)
        resource_id: Optional[str] = None
        now = as_utc(self.clock())

        try:
            with self.session_factory() as session, session.begin():
                for snapshot in snapshots:
                    resource_id = snapshot.resource_id
                    self._check_watermark(snapshot, collected_at)
                    self._process(session, snapshot, now, result)
                    # Flush per snapshot so a failing write names the resource in progress
                    session.flush()
                    result.processed_count += 1

                resource_id = None
                self._advance_watermark(session, collected_at, scope_key)
        except IngestionError:
            raise
        except SQLAlchemyError as exc:
            log.error(f"Batch for {self.kind.name} rolled back at resource={resource_id}: {exc}")
            raise PersistenceError(self.kind.name, resource_id, str(exc)) from exc

        log.info(
            f"Committed {self.kind.name} batch | processed={result.processed_count} "
            f"created={result.created_count} changed={result.changed_count} "
            f"unchanged={result.unchanged_count} collected_at={collected_at.isoformat()}"
        )
        return result

    def load_existing(self, session: Session, resource_id: str):
        model = self.kind.model
        stmt = select(model).where(model.resource_id == resource_id)
        for child in self.kind.children:
            stmt = stmt.options(selectinload(getattr(model, child.name)))
        return session.scalars(stmt).first()

    def _process(self, session: Session, snapshot: Snapshot, now: datetime, result: BatchResult) -> None:
        existing = self.load_existing(session, snapshot.resource_id)
        diff = diff_snapshot(self.kind, existing, snapshot)

        self.current_state.apply(session, diff, existing, snapshot)

        if diff.is_new:
            result.created_count += 1
        elif diff.has_any_change:
            result.changed_count += 1
        else:
            result.unchanged_count += 1
            return

        self.history.record(session, diff, snapshot, now)

    def _check_watermark(self, snapshot: Snapshot, collected_at: datetime) -> None:
        if as_utc(snapshot.collected_at) != as_utc(collected_at):
            raise WatermarkError(
                self.kind.name,
                collected_at,
                f"snapshot {snapshot.resource_id} was stamped {snapshot.collected_at.isoformat()}",
            )

    def _advance_watermark(self, session: Session, collected_at: datetime, scope_key: str) -> None:
        mark = session.get(IngestionWatermark, (self.kind.name, scope_key))
        if mark is None:
            mark = IngestionWatermark(kind=self.kind.name, scope_key=scope_key, collected_at=collected_at)
        else:
            mark.collected_at = collected_at
        session.add(mark)
