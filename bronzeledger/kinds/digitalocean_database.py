"""DigitalOcean managed database clusters."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from bronzeledger.core.errors import ConversionError
from bronzeledger.engine.kinds import ResourceKind, register_kind
from bronzeledger.engine.types import Snapshot
from bronzeledger.models import BronzeDODatabase, BronzeHistoryDODatabase
from .converters import canonical_json, integer, parse_timestamp, require_id, text

KIND_NAME = "digitalocean_database"


def convert_database(raw: Mapping[str, Any], collected_at: datetime) -> Snapshot:
    resource_id = require_id(KIND_NAME, raw, "id")

    try:
        scalars = {
            "name": text(raw, "name"),
            "engine_slug": text(raw, "engine"),
            "version_slug": text(raw, "version"),
            "num_nodes": integer(raw, "num_nodes"),
            "size_slug": text(raw, "size"),
            "region_slug": text(raw, "region"),
            "status": text(raw, "status"),
            "project_id": text(raw, "project_id"),
            "storage_size_mib": integer(raw, "storage_size_mib"),
            "private_network_uuid": text(raw, "private_network_uuid"),
            "tags_json": canonical_json(raw.get("tags")),
            "maintenance_window_json": canonical_json(raw.get("maintenance_window")),
            "api_created_at": parse_timestamp(raw.get("created_at")),
        }
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConversionError(KIND_NAME, str(exc), resource_id=resource_id) from exc

    return Snapshot(resource_id=resource_id, collected_at=collected_at, scalars=scalars)


DO_DATABASE = register_kind(
    ResourceKind(
        name=KIND_NAME,
        model=BronzeDODatabase,
        history_model=BronzeHistoryDODatabase,
        scalar_fields=(
            "name",
            "engine_slug",
            "version_slug",
            "num_nodes",
            "size_slug",
            "region_slug",
            "status",
            "project_id",
            "storage_size_mib",
            "private_network_uuid",
            "tags_json",
            "maintenance_window_json",
            "api_created_at",
        ),
        converter=convert_database,
    )
)
