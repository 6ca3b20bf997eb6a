"""Bronze tables for SentinelOne agents and their network interfaces."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bronzeledger.models.base import (
    Base,
    BigIntPK,
    BronzeChildHistoryMixin,
    BronzeChildMixin,
    BronzeHistoryMixin,
    BronzeMixin,
)


class S1AgentColumns:
    computer_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    external_ip: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    site_id: Mapped[str] = mapped_column(String(50), nullable=False, default="", index=True)
    site_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    account_id: Mapped[str] = mapped_column(String(50), nullable=False, default="", index=True)
    account_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    group_id: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    group_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    agent_version: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    os_type: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    os_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    os_revision: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    os_arch: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    machine_type: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    domain: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    uuid: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    network_status: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_infected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_decommissioned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_up_to_date: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active_threats: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cpu_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    core_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_memory: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    model_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    serial_number: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    storage_encryption_status: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    last_active_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    registered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    api_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Canonical JSON text payloads
    active_directory_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    locations_json: Mapped[str | None] = mapped_column(Text, nullable=True)


class BronzeS1Agent(BronzeMixin, S1AgentColumns, Base):
    __tablename__ = "bronze_s1_agents"

    nics: Mapped[list["BronzeS1AgentNIC"]] = relationship(
        back_populates="agent",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class S1AgentNICColumns:
    interface_id: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    inet_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    inet6_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    physical: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    gateway_ip: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    gateway_mac: Mapped[str] = mapped_column(String(50), nullable=False, default="")


class BronzeS1AgentNIC(BronzeChildMixin, S1AgentNICColumns, Base):
    __tablename__ = "bronze_s1_agent_nics"

    resource_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("bronze_s1_agents.resource_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    agent: Mapped[BronzeS1Agent] = relationship(back_populates="nics")


class BronzeHistoryS1Agent(BronzeHistoryMixin, S1AgentColumns, Base):
    __tablename__ = "bronze_history_s1_agents"


class BronzeHistoryS1AgentNIC(BronzeChildHistoryMixin, S1AgentNICColumns, Base):
    __tablename__ = "bronze_history_s1_agent_nics"

    parent_history_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("bronze_history_s1_agents.history_id"),
        nullable=False,
        index=True,
    )
