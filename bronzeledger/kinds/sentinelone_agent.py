"""SentinelOne agents and their network interfaces."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping

from bronzeledger.core.errors import ConversionError
from bronzeledger.engine.kinds import ChildCollection, ResourceKind, register_kind
from bronzeledger.engine.types import Snapshot
from bronzeledger.models import (
    BronzeHistoryS1Agent,
    BronzeHistoryS1AgentNIC,
    BronzeS1Agent,
    BronzeS1AgentNIC,
)
from .converters import canonical_json, flag, integer, parse_timestamp, require_id, text

KIND_NAME = "sentinelone_agent"

AGENT_FIELDS = (
    "computer_name",
    "external_ip",
    "site_id",
    "site_name",
    "account_id",
    "account_name",
    "group_id",
    "group_name",
    "agent_version",
    "os_type",
    "os_name",
    "os_revision",
    "os_arch",
    "machine_type",
    "domain",
    "uuid",
    "network_status",
    "is_active",
    "is_infected",
    "is_decommissioned",
    "is_up_to_date",
    "active_threats",
    "cpu_count",
    "core_count",
    "total_memory",
    "model_name",
    "serial_number",
    "storage_encryption_status",
    "last_active_date",
    "registered_at",
    "api_updated_at",
    "active_directory_json",
    "locations_json",
)

NIC_FIELDS = (
    "interface_id",
    "name",
    "description",
    "type",
    "inet_json",
    "inet6_json",
    "physical",
    "gateway_ip",
    "gateway_mac",
)


def convert_nic(raw: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "interface_id": text(raw, "id"),
        "name": text(raw, "name"),
        "description": text(raw, "description"),
        "type": text(raw, "type"),
        "inet_json": canonical_json(raw.get("inet")),
        "inet6_json": canonical_json(raw.get("inet6")),
        "physical": text(raw, "physical"),
        "gateway_ip": text(raw, "gatewayIp"),
        "gateway_mac": text(raw, "gatewayMacAddress"),
    }


def convert_agent(raw: Mapping[str, Any], collected_at: datetime) -> Snapshot:
    resource_id = require_id(KIND_NAME, raw, "id")

    try:
        scalars = {
            "computer_name": text(raw, "computerName"),
            "external_ip": text(raw, "externalIp"),
            "site_id": text(raw, "siteId"),
            "site_name": text(raw, "siteName"),
            "account_id": text(raw, "accountId"),
            "account_name": text(raw, "accountName"),
            "group_id": text(raw, "groupId"),
            "group_name": text(raw, "groupName"),
            "agent_version": text(raw, "agentVersion"),
            "os_type": text(raw, "osType"),
            "os_name": text(raw, "osName"),
            "os_revision": text(raw, "osRevision"),
            "os_arch": text(raw, "osArch"),
            "machine_type": text(raw, "machineType"),
            "domain": text(raw, "domain"),
            "uuid": text(raw, "uuid"),
            "network_status": text(raw, "networkStatus"),
            "is_active": flag(raw, "isActive"),
            "is_infected": flag(raw, "infected"),
            "is_decommissioned": flag(raw, "isDecommissioned"),
            "is_up_to_date": flag(raw, "isUpToDate"),
            "active_threats": integer(raw, "activeThreats"),
            "cpu_count": integer(raw, "cpuCount"),
            "core_count": integer(raw, "coreCount"),
            "total_memory": integer(raw, "totalMemory"),
            "model_name": text(raw, "modelName"),
            "serial_number": text(raw, "serialNumber"),
            "storage_encryption_status": text(raw, "storageEncryptionStatus"),
            "last_active_date": parse_timestamp(raw.get("lastActiveDate")),
            "registered_at": parse_timestamp(raw.get("registeredAt")),
            "api_updated_at": parse_timestamp(raw.get("updatedAt")),
            "active_directory_json": canonical_json(raw.get("activeDirectory")),
            "locations_json": canonical_json(raw.get("locations")),
        }
        nics: List[Dict[str, Any]] = [convert_nic(nic) for nic in raw.get("networkInterfaces") or []]
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConversionError(KIND_NAME, str(exc), resource_id=resource_id) from exc

    return Snapshot(
        resource_id=resource_id,
        collected_at=collected_at,
        scalars=scalars,
        children={"nics": nics},
    )


S1_AGENT = register_kind(
    ResourceKind(
        name=KIND_NAME,
        model=BronzeS1Agent,
        history_model=BronzeHistoryS1Agent,
        scalar_fields=AGENT_FIELDS,
        children=(
            ChildCollection(
                name="nics",
                model=BronzeS1AgentNIC,
                history_model=BronzeHistoryS1AgentNIC,
                fields=NIC_FIELDS,
                natural_key=("interface_id",),
            ),
        ),
        converter=convert_agent,
    )
)
