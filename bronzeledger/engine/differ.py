"""Compare a fetched snapshot with the persisted current-state record."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from bronzeledger.engine.kinds import ChildCollection, ResourceKind
from bronzeledger.engine.types import Diff, Snapshot, as_utc


def values_equal(old: Any, new: Any) -> bool:
    """Exact equality; datetimes compare as instants."""
    if isinstance(old, datetime) and isinstance(new, datetime):
        return as_utc(old) == as_utc(new)
    return old == new


def scalars_changed(kind: ResourceKind, existing: Any, incoming: Snapshot) -> bool:
    return any(
        not values_equal(getattr(existing, name), incoming.scalars.get(name))
        for name in kind.scalar_fields
    )


def _fingerprint(child: ChildCollection, values: Mapping[str, Any]) -> Tuple[Any, ...]:
    return tuple(
        as_utc(value) if isinstance(value, datetime) else value
        for value in (values.get(name) for name in child.fields)
    )


def child_set_changed(child: ChildCollection, old_rows: Sequence[Any], new_rows: List[Dict[str, Any]]) -> bool:
    """Order-insensitive comparison keyed by the collection's natural key.

    When a natural key repeats on either side (interfaces reported without an
    id, for instance) rows cannot be paired by key, so both sets are compared
    as multisets of their full field values instead.
    """
    if len(old_rows) != len(new_rows):
        return True

    old_values = [child.values_of(row) for row in old_rows]
    by_key = {child.key_of(values): values for values in old_values}
    new_keys = {child.key_of(values) for values in new_rows}
    if len(by_key) != len(old_values) or len(new_keys) != len(new_rows):
        old_counts = Counter(_fingerprint(child, values) for values in old_values)
        return old_counts != Counter(_fingerprint(child, values) for values in new_rows)

    for values in new_rows:
        old = by_key.get(child.key_of(values))
        if old is None:
            return True
        if any(not values_equal(old[name], values.get(name)) for name in child.fields):
            return True
    return False


def diff_snapshot(kind: ResourceKind, existing: Optional[Any], incoming: Snapshot) -> Diff:
    if existing is None:
        return Diff(is_new=True, child_changed={name: True for name in kind.child_names})

    return Diff(
        is_new=False,
        is_changed=scalars_changed(kind, existing, incoming),
        child_changed={
            child.name: child_set_changed(child, getattr(existing, child.name), incoming.children.get(child.name, []))
            for child in kind.children
        },
    )
