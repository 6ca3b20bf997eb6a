"""Minimal-write maintenance of the current-state (bronze) tables."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session

from bronzeledger.engine.kinds import ChildCollection, ResourceKind
from bronzeledger.engine.types import Diff, Snapshot


class CurrentStateWriter:
    """Creates, updates or touches one current-state record per snapshot."""

    def __init__(self, kind: ResourceKind):
        self.kind = kind

    def apply(self, session: Session, diff: Diff, existing: Optional[Any], incoming: Snapshot) -> Any:
        if existing is None:
            return self._create(session, incoming)

        if not diff.has_any_change:
            # Dominant path: only the watermark moves
            existing.collected_at = incoming.collected_at
            return existing

        if diff.is_changed:
            for name in self.kind.scalar_fields:
                setattr(existing, name, incoming.scalars.get(name))

        for child in self.kind.children:
            if diff.child_changed.get(child.name):
                self._replace_children(session, existing, child, incoming)

        existing.collected_at = incoming.collected_at
        return existing

    def _create(self, session: Session, incoming: Snapshot) -> Any:
        record = self.kind.model(
            resource_id=incoming.resource_id,
            collected_at=incoming.collected_at,
            first_collected_at=incoming.collected_at,
            **{name: incoming.scalars.get(name) for name in self.kind.scalar_fields},
        )
        for child in self.kind.children:
            getattr(record, child.name).extend(self._build_children(child, incoming))
        session.add(record)
        return record

    def _replace_children(self, session: Session, record: Any, child: ChildCollection, incoming: Snapshot) -> None:
        # Flush the delete-orphan removals before inserting so the store sees delete-then-insert
        getattr(record, child.name).clear()
        session.flush()
        getattr(record, child.name).extend(self._build_children(child, incoming))

    @staticmethod
    def _build_children(child: ChildCollection, incoming: Snapshot) -> list:
        return [
            child.model(**{name: values.get(name) for name in child.fields})
            for values in incoming.children.get(child.name, [])
        ]
