"""Append-only, bitemporal history kept in lockstep with the current-state tables.

Versions are rows with ``[valid_from, valid_to)`` intervals. Only ``valid_to``
is ever updated, and at most one version per resource has ``valid_to IS NULL``.

Child history rows belong to one parent version. When the parent's scalars
change, every child row is closed and re-opened under the new version even if
the child set itself is unchanged, so child boundaries always line up with
parent boundaries. When only a child set changes, the parent version is kept
and only that set's rows are cycled.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bronzeledger.core.errors import ConsistencyError
from bronzeledger.engine.kinds import ChildCollection, ResourceKind
from bronzeledger.engine.types import Diff, Snapshot


class HistoryWriter:
    def __init__(self, kind: ResourceKind):
        self.kind = kind

    def record(
        self,
        session: Session,
        diff: Diff,
        incoming: Snapshot,
        now: datetime,
    ) -> Optional[Any]:
        """Record the change described by ``diff``; returns the open version afterwards."""
        if diff.is_new:
            return self._create(session, incoming, now, first_collected_at=incoming.collected_at)

        if not diff.has_any_change:
            return None

        current = self.find_open(session, incoming.resource_id)
        if current is None:
            raise ConsistencyError(self.kind.name, incoming.resource_id, 0)

        if diff.is_changed:
            current.valid_to = now
            session.flush()
            for child in self.kind.children:
                self._close_children(session, child, current.history_id, now)
            return self._create(session, incoming, now, first_collected_at=current.first_collected_at)

        for child in self.kind.children:
            if diff.child_changed.get(child.name):
                self._close_children(session, child, current.history_id, now)
                self._open_children(session, child, current.history_id, incoming, now)
        return current

    def close_history(self, session: Session, resource_id: str, now: datetime) -> bool:
        """Close the open version and its child rows; returns False if nothing was open."""
        current = self.find_open(session, resource_id)
        if current is None:
            return False

        current.valid_to = now
        session.flush()
        for child in self.kind.children:
            self._close_children(session, child, current.history_id, now)
        return True

    def find_open(self, session: Session, resource_id: str) -> Optional[Any]:
        model = self.kind.history_model
        rows = session.scalars(
            select(model).where(model.resource_id == resource_id, model.valid_to.is_(None))
        ).all()
        if len(rows) > 1:
            raise ConsistencyError(self.kind.name, resource_id, len(rows))
        return rows[0] if rows else None

    def _create(self, session: Session, incoming: Snapshot, now: datetime, first_collected_at: datetime) -> Any:
        version = self.kind.history_model(
            resource_id=incoming.resource_id,
            valid_from=now,
            valid_to=None,
            collected_at=incoming.collected_at,
            first_collected_at=first_collected_at,
            **{name: incoming.scalars.get(name) for name in self.kind.scalar_fields},
        )
        session.add(version)
        # history_id is needed to link the child rows
        session.flush()

        for child in self.kind.children:
            self._open_children(session, child, version.history_id, incoming, now)
        return version

    @staticmethod
    def _open_children(
        session: Session,
        child: ChildCollection,
        parent_history_id: int,
        incoming: Snapshot,
        now: datetime,
    ) -> None:
        session.add_all(
            [
                child.history_model(
                    parent_history_id=parent_history_id,
                    valid_from=now,
                    valid_to=None,
                    **{name: values.get(name) for name in child.fields},
                )
                for values in incoming.children.get(child.name, [])
            ]
        )

    @staticmethod
    def _close_children(session: Session, child: ChildCollection, parent_history_id: int, now: datetime) -> None:
        session.flush()
        model = child.history_model
        session.execute(
            update(model)
            .where(model.parent_history_id == parent_history_id, model.valid_to.is_(None))
            .values(valid_to=now)
            .execution_options(synchronize_session="fetch")
        )
