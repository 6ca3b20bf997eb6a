"""Shared helpers for turning provider payloads into snapshot values."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Mapping, Optional

from bronzeledger.core.errors import ConversionError
from bronzeledger.engine.types import as_utc


def canonical_json(value: Any) -> Optional[str]:
    """Key-sorted compact JSON, so equal payloads compare equal as text. Empty -> None."""
    if value is None or value == [] or value == {}:
        return None
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str):
        raise ValueError(f"expected an ISO-8601 timestamp, got {type(value).__name__}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def require_id(kind: str, raw: Mapping[str, Any], field: str) -> str:
    resource_id = raw.get(field)
    if resource_id in (None, ""):
        raise ConversionError(kind, f"payload has no {field}")
    return str(resource_id)


def text(raw: Mapping[str, Any], field: str) -> str:
    value = raw.get(field)
    return "" if value is None else str(value)


def integer(raw: Mapping[str, Any], field: str) -> int:
    value = raw.get(field)
    if value in (None, ""):
        return 0
    if isinstance(value, bool):
        raise ValueError(f"{field}: expected an integer, got a boolean")
    return int(value)


def flag(raw: Mapping[str, Any], field: str) -> bool:
    value = raw.get(field)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"{field}: expected a boolean, got {type(value).__name__}")
    return value
