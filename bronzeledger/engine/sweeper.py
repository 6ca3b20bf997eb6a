"""Retire current-state records that the latest committed run did not observe."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence

from sqlalchemy import and_, not_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bronzeledger.core.errors import IngestionError, SweepError
from bronzeledger.core.logging import get_logger
from bronzeledger.engine.history import HistoryWriter
from bronzeledger.engine.kinds import ResourceKind
from bronzeledger.engine.types import RetireResult, as_utc, utcnow

log = get_logger("engine.sweeper")


class StaleSweeper:
    def __init__(
        self,
        kind: ResourceKind,
        session_factory: sessionmaker[Session],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.kind = kind
        self.session_factory = session_factory
        self.clock = clock
        self.history = HistoryWriter(kind)

    def retire(
        self,
        watermark: datetime,
        scope: Optional[Mapping[str, Any]] = None,
        keep: Sequence[Mapping[str, Any]] = (),
    ) -> RetireResult:
        """Close history and delete every record stamped before ``watermark``.

        Every record touched by the committed run carries ``watermark`` exactly,
        so ``collected_at < watermark`` selects the records absent from that run.
        Records matching any scope in ``keep`` (scopes the run failed to list)
        are left alone. Runs in its own transaction; any failure is raised as
        SweepError.
        """
        self.kind.scope_key(scope)  # rejects unknown scope fields
        for kept in keep:
            if not kept:
                raise ValueError(f"kind {self.kind.name}: an empty scope cannot be kept")
            self.kind.scope_key(kept)
        result = RetireResult(retired_count=0)
        resource_id: Optional[str] = None
        now = as_utc(self.clock())

        try:
            with self.session_factory() as session, session.begin():
                for record in session.scalars(self._stale_query(watermark, scope, keep)).all():
                    resource_id = record.resource_id
                    self.history.close_history(session, resource_id, now)
                    session.delete(record)
                    session.flush()
                    result.resource_ids.append(resource_id)
                    result.retired_count += 1
        except SQLAlchemyError as exc:
            raise SweepError(self.kind.name, str(exc), resource_id) from exc
        except IngestionError as exc:
            raise SweepError(self.kind.name, str(exc), resource_id) from exc

        if result.retired_count:
            log.info(f"Retired {result.retired_count} stale {self.kind.name} records before {watermark.isoformat()}")
        return result

    def _stale_query(
        self,
        watermark: datetime,
        scope: Optional[Mapping[str, Any]],
        keep: Sequence[Mapping[str, Any]],
    ):
        model = self.kind.model
        stmt = select(model).where(model.collected_at < as_utc(watermark))
        for name, value in (scope or {}).items():
            stmt = stmt.where(getattr(model, name) == value)
        for kept in keep:
            stmt = stmt.where(not_(and_(*(getattr(model, name) == value for name, value in kept.items()))))
        return stmt.order_by(model.resource_id)
