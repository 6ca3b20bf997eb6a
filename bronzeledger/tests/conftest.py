"""Shared fixtures: an in-memory database per test and a deterministic clock."""

import os
import tempfile
from datetime import datetime, timedelta, timezone

# Must be set before bronzeledger.core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="bronzeledger-logs-")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["STRICT_CONVERSION"] = "false"

import pytest

import bronzeledger.kinds  # noqa: F401  registers every resource kind
from bronzeledger.core.db import create_db_engine, create_session_factory, init_db
from bronzeledger.engine.types import Snapshot

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Returns a strictly increasing UTC time on every call."""

    def __init__(self, start: datetime = T0, step: timedelta = timedelta(minutes=1)):
        self.current = start
        self.step = step
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        self.calls += 1
        return value


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite:///:memory:")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def watermarks():
    """Run watermarks one hour apart: T1 < T2 < T3."""
    return [T0 + timedelta(hours=hour) for hour in (1, 2, 3)]


def _ec2_scalars(**overrides):
    scalars = {
        "name": "alpha",
        "instance_type": "t3.micro",
        "state": "running",
        "vpc_id": "vpc-1",
        "subnet_id": "subnet-1",
        "private_ip_address": "10.0.0.1",
        "public_ip_address": "",
        "ami_id": "ami-1",
        "key_name": "",
        "platform": "",
        "architecture": "x86_64",
        "launch_time": None,
        "security_groups_json": None,
        "account_id": "111111111111",
        "region": "us-east-1",
    }
    scalars.update(overrides)
    return scalars


@pytest.fixture
def make_instance():
    """Build an aws_ec2_instance snapshot; tags are given as a dict."""

    def _make(resource_id, collected_at, tags=None, **overrides):
        return Snapshot(
            resource_id=resource_id,
            collected_at=collected_at,
            scalars=_ec2_scalars(**overrides),
            children={"tags": [{"key": k, "value": v} for k, v in (tags or {}).items()]},
        )

    return _make


@pytest.fixture
def make_ec2_payload():
    """Build a boto3-shaped Instance dict."""

    def _make(instance_id, name="alpha", state="running", tags=None):
        all_tags = [{"Key": "Name", "Value": name}]
        all_tags += [{"Key": k, "Value": v} for k, v in (tags or {}).items()]
        return {
            "InstanceId": instance_id,
            "InstanceType": "t3.micro",
            "State": {"Code": 16, "Name": state},
            "VpcId": "vpc-1",
            "SubnetId": "subnet-1",
            "PrivateIpAddress": "10.0.0.1",
            "ImageId": "ami-1",
            "Architecture": "x86_64",
            "LaunchTime": datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc),
            "SecurityGroups": [{"GroupId": "sg-1", "GroupName": "default"}],
            "Tags": all_tags,
        }

    return _make
