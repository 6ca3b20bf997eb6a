"""Value types passed between the fetchers, the differencer and the writers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass
class Snapshot:
    """One observation of a resource, stamped with the run watermark."""

    resource_id: str
    collected_at: datetime
    scalars: Dict[str, Any]
    children: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)


@dataclass
class Diff:
    is_new: bool = False
    is_changed: bool = False
    child_changed: Dict[str, bool] = field(default_factory=dict)

    @property
    def any_child_changed(self) -> bool:
        return any(self.child_changed.values())

    @property
    def has_any_change(self) -> bool:
        return self.is_new or self.is_changed or self.any_child_changed


@dataclass
class BatchResult:
    processed_count: int
    collected_at: datetime
    created_count: int = 0
    changed_count: int = 0
    unchanged_count: int = 0


@dataclass
class RetireResult:
    retired_count: int
    resource_ids: List[str] = field(default_factory=list)


@dataclass
class IngestResult:
    kind: str
    item_count: int
    collected_at: datetime
    duration_millis: int
    skipped_count: int = 0
    retired_count: int = 0
    failed_scope_count: int = 0
    run_id: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "item_count": self.item_count,
            "skipped_count": self.skipped_count,
            "retired_count": self.retired_count,
            "failed_scope_count": self.failed_scope_count,
            "collected_at": self.collected_at.isoformat(),
            "duration_millis": self.duration_millis,
            "run_id": self.run_id,
        }


def as_utc(value: datetime) -> datetime:
    """Stores without time-zone support hand back naive datetimes; those are UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
