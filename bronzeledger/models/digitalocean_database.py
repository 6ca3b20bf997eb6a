"""Bronze tables for DigitalOcean managed database clusters and their firewall rules."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bronzeledger.models.base import Base, BronzeHistoryMixin, BronzeMixin


class DODatabaseColumns:
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    engine_slug: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    version_slug: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    num_nodes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    size_slug: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    region_slug: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    project_id: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    storage_size_mib: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    private_network_uuid: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    tags_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    maintenance_window_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    api_created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class BronzeDODatabase(BronzeMixin, DODatabaseColumns, Base):
    __tablename__ = "bronze_do_databases"


class BronzeHistoryDODatabase(BronzeHistoryMixin, DODatabaseColumns, Base):
    __tablename__ = "bronze_history_do_databases"


class DODatabaseFirewallRuleColumns:
    """A trusted source on a cluster; resource_id is ``<cluster_id>:<uuid>``."""

    cluster_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    uuid: Mapped[str] = mapped_column(String(100), nullable=False)
    rule_type: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    value: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    api_created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class BronzeDODatabaseFirewallRule(BronzeMixin, DODatabaseFirewallRuleColumns, Base):
    __tablename__ = "bronze_do_database_firewall_rules"


class BronzeHistoryDODatabaseFirewallRule(BronzeHistoryMixin, DODatabaseFirewallRuleColumns, Base):
    __tablename__ = "bronze_history_do_database_firewall_rules"
