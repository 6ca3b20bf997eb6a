"""DigitalOcean database firewall rules (trusted sources), one resource per rule.

A rule uuid is only unique within its cluster, so the resource id joins both:
``<cluster_id>:<uuid>``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from bronzeledger.core.errors import ConversionError
from bronzeledger.engine.kinds import ResourceKind, register_kind
from bronzeledger.engine.types import Snapshot
from bronzeledger.models import BronzeDODatabaseFirewallRule, BronzeHistoryDODatabaseFirewallRule
from .converters import parse_timestamp, require_id, text

KIND_NAME = "digitalocean_database_firewall_rule"


def firewall_rule_id(cluster_id: str, uuid: str) -> str:
    return f"{cluster_id}:{uuid}"


def convert_firewall_rule(raw: Mapping[str, Any], collected_at: datetime, cluster_id: str = "") -> Snapshot:
    uuid = require_id(KIND_NAME, raw, "uuid")
    cluster_id = cluster_id or text(raw, "cluster_uuid")
    if not cluster_id:
        raise ConversionError(KIND_NAME, "rule is not attached to a cluster", resource_id=uuid)
    resource_id = firewall_rule_id(cluster_id, uuid)

    try:
        scalars = {
            "cluster_id": cluster_id,
            "uuid": uuid,
            "rule_type": text(raw, "type"),
            "value": text(raw, "value"),
            "api_created_at": parse_timestamp(raw.get("created_at")),
        }
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConversionError(KIND_NAME, str(exc), resource_id=resource_id) from exc

    return Snapshot(resource_id=resource_id, collected_at=collected_at, scalars=scalars)


DO_DATABASE_FIREWALL_RULE = register_kind(
    ResourceKind(
        name=KIND_NAME,
        model=BronzeDODatabaseFirewallRule,
        history_model=BronzeHistoryDODatabaseFirewallRule,
        scalar_fields=("cluster_id", "uuid", "rule_type", "value", "api_created_at"),
        scope_fields=("cluster_id",),
        converter=convert_firewall_rule,
    )
)
