"""Stale retirement tests"""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from bronzeledger.core.errors import SweepError
from bronzeledger.engine.committer import BatchCommitter
from bronzeledger.engine.history import HistoryWriter
from bronzeledger.engine.sweeper import StaleSweeper
from bronzeledger.kinds import DO_DATABASE_FIREWALL_RULE, EC2_INSTANCE
from bronzeledger.models import (
    BronzeAWSEC2Instance,
    BronzeAWSEC2InstanceTag,
    BronzeDODatabaseFirewallRule,
    BronzeHistoryAWSEC2Instance,
    BronzeHistoryAWSEC2InstanceTag,
)

ACCOUNT_A = {"account_id": "111111111111", "region": "us-east-1"}
ACCOUNT_B = {"account_id": "222222222222", "region": "us-east-1"}


@pytest.fixture
def committer(session_factory, clock):
    return BatchCommitter(EC2_INSTANCE, session_factory, clock=clock)


@pytest.fixture
def sweeper(session_factory, clock):
    return StaleSweeper(EC2_INSTANCE, session_factory, clock=clock)


class TestRetire:
    """Test retirement of resources missing from the latest run"""

    def test_retires_unseen_resource(self, committer, sweeper, session_factory, make_instance, watermarks):
        t1, t2, _ = watermarks
        committer.run_batch([make_instance("i-1", t1), make_instance("i-2", t1, tags={"env": "prod"})], t1)
        committer.run_batch([make_instance("i-1", t2)], t2)

        result = sweeper.retire(t2)

        assert result.retired_count == 1
        assert result.resource_ids == ["i-2"]
        with session_factory() as session:
            assert session.get(BronzeAWSEC2Instance, "i-1") is not None
            assert session.get(BronzeAWSEC2Instance, "i-2") is None
            assert session.scalars(select(BronzeAWSEC2InstanceTag)).all() == []

            (closed,) = session.scalars(
                select(BronzeHistoryAWSEC2Instance).where(BronzeHistoryAWSEC2Instance.resource_id == "i-2")
            ).all()
            assert closed.valid_to is not None
            (tag,) = session.scalars(select(BronzeHistoryAWSEC2InstanceTag)).all()
            assert tag.valid_to is not None

            (still_open,) = session.scalars(
                select(BronzeHistoryAWSEC2Instance).where(BronzeHistoryAWSEC2Instance.resource_id == "i-1")
            ).all()
            assert still_open.valid_to is None

    def test_nothing_stale(self, committer, sweeper, make_instance, watermarks):
        t1 = watermarks[0]
        committer.run_batch([make_instance("i-1", t1)], t1)

        assert sweeper.retire(t1).retired_count == 0

    def test_scope_protects_other_accounts(self, committer, sweeper, session_factory, make_instance, watermarks):
        """Test a run over one account never retires another account's resources"""
        t1, t2, _ = watermarks
        committer.run_batch([make_instance("i-a", t1, **ACCOUNT_A)], t1, scope_key=EC2_INSTANCE.scope_key(ACCOUNT_A))
        committer.run_batch([make_instance("i-b", t1, **ACCOUNT_B)], t1, scope_key=EC2_INSTANCE.scope_key(ACCOUNT_B))

        committer.run_batch([make_instance("i-a", t2, **ACCOUNT_A)], t2, scope_key=EC2_INSTANCE.scope_key(ACCOUNT_A))
        result = sweeper.retire(t2, ACCOUNT_A)

        assert result.retired_count == 0
        with session_factory() as session:
            assert session.get(BronzeAWSEC2Instance, "i-b") is not None

    def test_unknown_scope_field(self, sweeper, watermarks):
        with pytest.raises(ValueError):
            sweeper.retire(watermarks[0], {"vpc_id": "vpc-1"})

    def test_retires_record_without_open_history(self, committer, sweeper, session_factory, make_instance, watermarks):
        t1, t2, _ = watermarks
        committer.run_batch([make_instance("i-1", t1)], t1)
        with session_factory() as session, session.begin():
            session.scalars(select(BronzeHistoryAWSEC2Instance)).one().valid_to = t1

        assert sweeper.retire(t2).resource_ids == ["i-1"]

    def test_store_failure_raises_sweep_error(self, committer, sweeper, session_factory, make_instance, watermarks, monkeypatch):
        t1, t2, _ = watermarks
        committer.run_batch([make_instance("i-1", t1)], t1)

        def broken_close(self, session, resource_id, now):
            raise OperationalError("UPDATE bronze_history_aws_ec2_instances", {}, Exception("disk I/O error"))

        monkeypatch.setattr(HistoryWriter, "close_history", broken_close)

        with pytest.raises(SweepError) as exc_info:
            sweeper.retire(t2)

        assert exc_info.value.resource_id == "i-1"
        with session_factory() as session:
            assert session.get(BronzeAWSEC2Instance, "i-1") is not None


class TestKeptScopes:
    """Test records under scopes a run failed to list survive retirement"""

    def rule(self, cluster_id, uuid, collected_at):
        return DO_DATABASE_FIREWALL_RULE.convert(
            {"uuid": uuid, "type": "ip_addr", "value": "10.0.0.1"}, collected_at, cluster_id=cluster_id
        )

    def test_kept_scope_is_not_retired(self, session_factory, clock, watermarks):
        t1, t2, _ = watermarks
        committer = BatchCommitter(DO_DATABASE_FIREWALL_RULE, session_factory, clock=clock)
        committer.run_batch([self.rule("c1", "r1", t1), self.rule("c2", "r1", t1), self.rule("c2", "r2", t1)], t1)
        committer.run_batch([self.rule("c2", "r1", t2)], t2)

        result = StaleSweeper(DO_DATABASE_FIREWALL_RULE, session_factory, clock=clock).retire(
            t2, keep=[{"cluster_id": "c1"}]
        )

        assert result.resource_ids == ["c2:r2"]
        with session_factory() as session:
            assert session.get(BronzeDODatabaseFirewallRule, "c1:r1") is not None
            assert session.get(BronzeDODatabaseFirewallRule, "c2:r1") is not None

    def test_empty_kept_scope_is_rejected(self, session_factory, clock, watermarks):
        with pytest.raises(ValueError):
            StaleSweeper(DO_DATABASE_FIREWALL_RULE, session_factory, clock=clock).retire(watermarks[0], keep=[{}])

    def test_unknown_kept_scope_field(self, sweeper, watermarks):
        with pytest.raises(ValueError):
            sweeper.retire(watermarks[0], keep=[{"vpc_id": "vpc-1"}])


def test_close_history_without_open_version(session_factory, clock):
    with session_factory() as session:
        assert HistoryWriter(EC2_INSTANCE).close_history(session, "i-missing", clock()) is False
