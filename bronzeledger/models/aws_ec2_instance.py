"""Bronze tables for AWS EC2 instances and their tags."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bronzeledger.models.base import (
    Base,
    BigIntPK,
    BronzeChildHistoryMixin,
    BronzeChildMixin,
    BronzeHistoryMixin,
    BronzeMixin,
)


class AWSEC2InstanceColumns:
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    instance_type: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    state: Mapped[str] = mapped_column(String(50), nullable=False, default="", index=True)
    vpc_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    subnet_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    private_ip_address: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    public_ip_address: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    ami_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    key_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    platform: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    architecture: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    launch_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # [{"GroupId": "sg-...", "GroupName": "..."}], canonical JSON text
    security_groups_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    account_id: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    region: Mapped[str] = mapped_column(String(50), nullable=False, index=True)


class BronzeAWSEC2Instance(BronzeMixin, AWSEC2InstanceColumns, Base):
    __tablename__ = "bronze_aws_ec2_instances"

    tags: Mapped[list["BronzeAWSEC2InstanceTag"]] = relationship(
        back_populates="instance",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BronzeAWSEC2InstanceTag(BronzeChildMixin, Base):
    __tablename__ = "bronze_aws_ec2_instance_tags"

    resource_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("bronze_aws_ec2_instances.resource_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")

    instance: Mapped[BronzeAWSEC2Instance] = relationship(back_populates="tags")


class BronzeHistoryAWSEC2Instance(BronzeHistoryMixin, AWSEC2InstanceColumns, Base):
    __tablename__ = "bronze_history_aws_ec2_instances"


class BronzeHistoryAWSEC2InstanceTag(BronzeChildHistoryMixin, Base):
    __tablename__ = "bronze_history_aws_ec2_instance_tags"

    parent_history_id: Mapped[int] = mapped_column(
        BigIntPK,
        ForeignKey("bronze_history_aws_ec2_instances.history_id"),
        nullable=False,
        index=True,
    )
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
