"""AWS EC2 instances, converted from boto3 ``describe_instances`` Instance dicts."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping

from bronzeledger.core.errors import ConversionError
from bronzeledger.engine.kinds import ChildCollection, ResourceKind, register_kind
from bronzeledger.engine.types import Snapshot
from bronzeledger.models import (
    BronzeAWSEC2Instance,
    BronzeAWSEC2InstanceTag,
    BronzeHistoryAWSEC2Instance,
    BronzeHistoryAWSEC2InstanceTag,
)
from .converters import canonical_json, parse_timestamp, require_id, text

KIND_NAME = "aws_ec2_instance"


def convert_instance(
    raw: Mapping[str, Any],
    collected_at: datetime,
    account_id: str = "",
    region: str = "",
) -> Snapshot:
    resource_id = require_id(KIND_NAME, raw, "InstanceId")

    try:
        tags: List[Dict[str, str]] = []
        name = ""
        for tag in raw.get("Tags") or []:
            key = text(tag, "Key")
            value = text(tag, "Value")
            if key == "Name":
                name = value
            tags.append({"key": key, "value": value})

        groups = [
            {"GroupId": text(group, "GroupId"), "GroupName": text(group, "GroupName")}
            for group in raw.get("SecurityGroups") or []
        ]

        scalars = {
            "name": name,
            "instance_type": text(raw, "InstanceType"),
            "state": text(raw.get("State") or {}, "Name"),
            "vpc_id": text(raw, "VpcId"),
            "subnet_id": text(raw, "SubnetId"),
            "private_ip_address": text(raw, "PrivateIpAddress"),
            "public_ip_address": text(raw, "PublicIpAddress"),
            "ami_id": text(raw, "ImageId"),
            "key_name": text(raw, "KeyName"),
            "platform": text(raw, "Platform"),
            "architecture": text(raw, "Architecture"),
            "launch_time": parse_timestamp(raw.get("LaunchTime")),
            "security_groups_json": canonical_json(groups),
            "account_id": account_id,
            "region": region,
        }
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConversionError(KIND_NAME, str(exc), resource_id=resource_id) from exc

    return Snapshot(
        resource_id=resource_id,
        collected_at=collected_at,
        scalars=scalars,
        children={"tags": tags},
    )


EC2_INSTANCE = register_kind(
    ResourceKind(
        name=KIND_NAME,
        model=BronzeAWSEC2Instance,
        history_model=BronzeHistoryAWSEC2Instance,
        scalar_fields=(
            "name",
            "instance_type",
            "state",
            "vpc_id",
            "subnet_id",
            "private_ip_address",
            "public_ip_address",
            "ami_id",
            "key_name",
            "platform",
            "architecture",
            "launch_time",
            "security_groups_json",
            "account_id",
            "region",
        ),
        children=(
            ChildCollection(
                name="tags",
                model=BronzeAWSEC2InstanceTag,
                history_model=BronzeHistoryAWSEC2InstanceTag,
                fields=("key", "value"),
                natural_key=("key",),
            ),
        ),
        scope_fields=("account_id", "region"),
        converter=convert_instance,
    )
)
