"""ResourceKind descriptors.

A descriptor binds one resource kind to its ORM classes and field lists so the
generic differencer and writers can handle every kind the same way. Descriptors
are built once at import time; ``__post_init__`` checks them against the mapped
tables so a typo fails at startup rather than in the middle of a run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from sqlalchemy import inspect

from bronzeledger.engine.types import Snapshot

# (raw payload, run watermark, **context such as account_id or region) -> Snapshot
Converter = Callable[..., Snapshot]


def _column_names(model: type) -> set[str]:
    return {attr.key for attr in inspect(model).column_attrs}


@dataclass(frozen=True)
class ChildCollection:
    """A set of child rows owned by a resource, compared by natural key."""

    name: str  # relationship attribute on the current-state model
    model: type
    history_model: type
    fields: Tuple[str, ...]
    natural_key: Tuple[str, ...]

    def __post_init__(self) -> None:
        missing_key = set(self.natural_key) - set(self.fields)
        if not self.natural_key or missing_key:
            raise ValueError(f"child {self.name}: natural key {self.natural_key} must be a subset of its fields")
        for model in (self.model, self.history_model):
            missing = set(self.fields) - _column_names(model)
            if missing:
                raise ValueError(f"child {self.name}: {model.__name__} lacks columns {sorted(missing)}")
        if "resource_id" not in _column_names(self.model):
            raise ValueError(f"child {self.name}: {self.model.__name__} needs a resource_id column")
        if "parent_history_id" not in _column_names(self.history_model):
            raise ValueError(f"child {self.name}: {self.history_model.__name__} needs a parent_history_id column")

    def key_of(self, values: Mapping[str, Any]) -> Tuple[Any, ...]:
        return tuple(values.get(name) for name in self.natural_key)

    def values_of(self, row: Any) -> Dict[str, Any]:
        return {name: getattr(row, name) for name in self.fields}


@dataclass(frozen=True)
class ResourceKind:
    name: str
    model: type
    history_model: type
    scalar_fields: Tuple[str, ...]
    children: Tuple[ChildCollection, ...] = ()
    scope_fields: Tuple[str, ...] = ()
    converter: Optional[Converter] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for model in (self.model, self.history_model):
            missing = set(self.scalar_fields) - _column_names(model)
            if missing:
                raise ValueError(f"kind {self.name}: {model.__name__} lacks columns {sorted(missing)}")
        stray_scope = set(self.scope_fields) - set(self.scalar_fields)
        if stray_scope:
            raise ValueError(f"kind {self.name}: scope fields {sorted(stray_scope)} are not scalar fields")
        names = [child.name for child in self.children]
        if len(names) != len(set(names)):
            raise ValueError(f"kind {self.name}: duplicate child collection names {names}")

    @property
    def child_names(self) -> Tuple[str, ...]:
        return tuple(child.name for child in self.children)

    def convert(self, raw: Mapping[str, Any], collected_at: datetime, **context: Any) -> Snapshot:
        if self.converter is None:
            raise TypeError(f"kind {self.name} has no converter")
        return self.converter(raw, collected_at, **context)

    def scope_key(self, scope: Optional[Mapping[str, Any]]) -> str:
        """Stable string form of a scope, used to key run and watermark bookkeeping."""
        if not scope:
            return ""
        unknown = set(scope) - set(self.scope_fields)
        if unknown:
            raise ValueError(f"kind {self.name}: unknown scope fields {sorted(unknown)}")
        return ",".join(f"{name}={scope[name]}" for name in sorted(scope))


_REGISTRY: Dict[str, ResourceKind] = {}


def register_kind(kind: ResourceKind) -> ResourceKind:
    if kind.name in _REGISTRY and _REGISTRY[kind.name] is not kind:
        raise ValueError(f"resource kind {kind.name} is already registered")
    _REGISTRY[kind.name] = kind
    return kind


def get_kind(name: str) -> ResourceKind:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise KeyError(f"unknown resource kind: {name}") from None


def registered_kinds() -> Tuple[ResourceKind, ...]:
    return tuple(_REGISTRY.values())
