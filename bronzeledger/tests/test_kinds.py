"""Resource kind converters and descriptors"""

import json
from datetime import datetime, timezone

import pytest

from bronzeledger.core.errors import ConversionError
from bronzeledger.engine.kinds import ChildCollection, ResourceKind, get_kind, register_kind, registered_kinds
from bronzeledger.kinds import DO_DATABASE, DO_DATABASE_FIREWALL_RULE, EC2_INSTANCE, S1_AGENT
from bronzeledger.kinds.converters import canonical_json, parse_timestamp
from bronzeledger.models import (
    BronzeAWSEC2Instance,
    BronzeAWSEC2InstanceTag,
    BronzeHistoryAWSEC2Instance,
    BronzeHistoryAWSEC2InstanceTag,
)

COLLECTED_AT = datetime(2026, 2, 1, tzinfo=timezone.utc)


class TestConverterHelpers:
    def test_canonical_json_sorts_keys(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'
        assert canonical_json({"a": 1, "b": 2}) == canonical_json({"b": 2, "a": 1})

    def test_canonical_json_empty_is_none(self):
        assert canonical_json(None) is None
        assert canonical_json([]) is None
        assert canonical_json({}) is None

    def test_parse_timestamp(self):
        parsed = parse_timestamp("2024-05-01T10:00:00.123456Z")
        assert parsed == datetime(2024, 5, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None

    def test_parse_timestamp_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestEC2InstanceConverter:
    """Test boto3 Instance dict conversion"""

    def test_convert(self, make_ec2_payload):
        raw = make_ec2_payload("i-1", name="web", tags={"env": "prod"})
        snapshot = EC2_INSTANCE.convert(raw, COLLECTED_AT, account_id="111111111111", region="eu-west-1")

        assert snapshot.resource_id == "i-1"
        assert snapshot.collected_at == COLLECTED_AT
        assert snapshot.scalars["name"] == "web"
        assert snapshot.scalars["state"] == "running"
        assert snapshot.scalars["ami_id"] == "ami-1"
        assert snapshot.scalars["region"] == "eu-west-1"
        assert json.loads(snapshot.scalars["security_groups_json"]) == [{"GroupId": "sg-1", "GroupName": "default"}]
        assert snapshot.children["tags"] == [{"key": "Name", "value": "web"}, {"key": "env", "value": "prod"}]

    def test_missing_instance_id(self):
        with pytest.raises(ConversionError):
            EC2_INSTANCE.convert({"InstanceType": "t3.micro"}, COLLECTED_AT)

    def test_malformed_launch_time(self, make_ec2_payload):
        raw = make_ec2_payload("i-1")
        raw["LaunchTime"] = "not-a-time"

        with pytest.raises(ConversionError) as exc_info:
            EC2_INSTANCE.convert(raw, COLLECTED_AT)

        assert exc_info.value.resource_id == "i-1"


class TestSentinelOneAgentConverter:
    """Test agent payload conversion"""

    def payload(self, **overrides):
        raw = {
            "id": "agent-1",
            "computerName": "laptop-7",
            "siteId": "site-1",
            "isActive": True,
            "infected": False,
            "activeThreats": 2,
            "totalMemory": 17179869184,
            "lastActiveDate": "2026-01-31T23:59:00.000000Z",
            "activeDirectory": {"computerDistinguishedName": "CN=laptop-7", "lastUserMemberOf": []},
            "networkInterfaces": [
                {
                    "id": "nic-1",
                    "name": "en0",
                    "inet": ["10.0.0.7"],
                    "inet6": [],
                    "physical": "aa:bb:cc:dd:ee:ff",
                    "gatewayIp": "10.0.0.1",
                    "gatewayMacAddress": "11:22:33:44:55:66",
                }
            ],
        }
        raw.update(overrides)
        return raw

    def test_convert(self):
        snapshot = S1_AGENT.convert(self.payload(), COLLECTED_AT)

        assert snapshot.resource_id == "agent-1"
        assert snapshot.scalars["computer_name"] == "laptop-7"
        assert snapshot.scalars["is_active"] is True
        assert snapshot.scalars["is_infected"] is False
        assert snapshot.scalars["total_memory"] == 17179869184
        assert snapshot.scalars["last_active_date"] == datetime(2026, 1, 31, 23, 59, tzinfo=timezone.utc)
        assert snapshot.scalars["registered_at"] is None

        (nic,) = snapshot.children["nics"]
        assert nic["interface_id"] == "nic-1"
        assert nic["inet_json"] == '["10.0.0.7"]'
        assert nic["inet6_json"] is None
        assert nic["gateway_mac"] == "11:22:33:44:55:66"

    def test_malformed_flag(self):
        with pytest.raises(ConversionError):
            S1_AGENT.convert(self.payload(isActive="yes"), COLLECTED_AT)


class TestDigitalOceanDatabaseConverter:
    def test_convert(self):
        raw = {
            "id": "db-1",
            "name": "main",
            "engine": "pg",
            "version": "16",
            "num_nodes": 2,
            "size": "db-s-1vcpu-1gb",
            "region": "ams3",
            "status": "online",
            "tags": ["prod"],
            "maintenance_window": {"day": "sunday", "hour": "03:00:00"},
            "created_at": "2025-01-01T00:00:00Z",
        }
        snapshot = DO_DATABASE.convert(raw, COLLECTED_AT)

        assert snapshot.scalars["engine_slug"] == "pg"
        assert snapshot.scalars["num_nodes"] == 2
        assert snapshot.scalars["tags_json"] == '["prod"]'
        assert snapshot.scalars["maintenance_window_json"] == '{"day":"sunday","hour":"03:00:00"}'
        assert snapshot.scalars["api_created_at"] == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert snapshot.children == {}

    def test_no_tags(self):
        snapshot = DO_DATABASE.convert({"id": "db-1", "name": "main", "tags": []}, COLLECTED_AT)
        assert snapshot.scalars["tags_json"] is None

    def test_malformed_node_count(self):
        with pytest.raises(ConversionError):
            DO_DATABASE.convert({"id": "db-1", "num_nodes": "three"}, COLLECTED_AT)


class TestDigitalOceanFirewallRuleConverter:
    """Test rules are keyed by cluster and rule uuid together"""

    RULE = {
        "uuid": "79f26d28-ea8a-41f2-8ad8-8cfcdd020095",
        "cluster_uuid": "9cc10173-e9ea-4176-9dbc-a4cee4c4ff30",
        "type": "ip_addr",
        "value": "192.168.1.1",
        "created_at": "2019-11-14T20:30:28Z",
    }

    def test_composite_resource_id(self):
        snapshot = DO_DATABASE_FIREWALL_RULE.convert(self.RULE, COLLECTED_AT, cluster_id="cluster-a")

        assert snapshot.resource_id == "cluster-a:79f26d28-ea8a-41f2-8ad8-8cfcdd020095"
        assert snapshot.scalars["cluster_id"] == "cluster-a"
        assert snapshot.scalars["uuid"] == "79f26d28-ea8a-41f2-8ad8-8cfcdd020095"
        assert snapshot.scalars["rule_type"] == "ip_addr"
        assert snapshot.scalars["value"] == "192.168.1.1"
        assert snapshot.scalars["api_created_at"] == datetime(2019, 11, 14, 20, 30, 28, tzinfo=timezone.utc)

    def test_same_uuid_on_two_clusters_are_distinct(self):
        first = DO_DATABASE_FIREWALL_RULE.convert(self.RULE, COLLECTED_AT, cluster_id="cluster-a")
        second = DO_DATABASE_FIREWALL_RULE.convert(self.RULE, COLLECTED_AT, cluster_id="cluster-b")

        assert first.resource_id != second.resource_id

    def test_cluster_taken_from_payload(self):
        snapshot = DO_DATABASE_FIREWALL_RULE.convert(self.RULE, COLLECTED_AT)

        assert snapshot.resource_id == "9cc10173-e9ea-4176-9dbc-a4cee4c4ff30:79f26d28-ea8a-41f2-8ad8-8cfcdd020095"

    def test_missing_cluster(self):
        raw = {key: value for key, value in self.RULE.items() if key != "cluster_uuid"}

        with pytest.raises(ConversionError) as exc_info:
            DO_DATABASE_FIREWALL_RULE.convert(raw, COLLECTED_AT)

        assert exc_info.value.resource_id == self.RULE["uuid"]

    def test_missing_uuid(self):
        with pytest.raises(ConversionError):
            DO_DATABASE_FIREWALL_RULE.convert({"type": "ip_addr", "value": "10.0.0.1"}, COLLECTED_AT, cluster_id="c")


class TestResourceKindDescriptor:
    """Test descriptor validation and the kind registry"""

    def test_registered(self):
        assert get_kind("aws_ec2_instance") is EC2_INSTANCE
        assert {kind.name for kind in registered_kinds()} >= {
            "aws_ec2_instance",
            "sentinelone_agent",
            "digitalocean_database",
            "digitalocean_database_firewall_rule",
        }

    def test_unknown_kind(self):
        with pytest.raises(KeyError):
            get_kind("gcp_compute_instance")

    def test_duplicate_registration(self):
        duplicate = ResourceKind(
            name="aws_ec2_instance",
            model=BronzeAWSEC2Instance,
            history_model=BronzeHistoryAWSEC2Instance,
            scalar_fields=("name",),
        )
        with pytest.raises(ValueError):
            register_kind(duplicate)

    def test_unknown_scalar_column(self):
        with pytest.raises(ValueError):
            ResourceKind(
                name="broken",
                model=BronzeAWSEC2Instance,
                history_model=BronzeHistoryAWSEC2Instance,
                scalar_fields=("name", "colour"),
            )

    def test_natural_key_must_be_a_field(self):
        with pytest.raises(ValueError):
            ChildCollection(
                name="tags",
                model=BronzeAWSEC2InstanceTag,
                history_model=BronzeHistoryAWSEC2InstanceTag,
                fields=("value",),
                natural_key=("key",),
            )

    def test_scope_key(self):
        scope = {"region": "us-east-1", "account_id": "111111111111"}

        assert EC2_INSTANCE.scope_key(scope) == "account_id=111111111111,region=us-east-1"
        assert EC2_INSTANCE.scope_key(None) == ""
        with pytest.raises(ValueError):
            S1_AGENT.scope_key({"site_id": "site-1"})
