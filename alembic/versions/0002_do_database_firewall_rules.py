"""Add DigitalOcean database firewall rules

Revision ID: 0002_do_database_firewall_rules
Revises: 0001_initial_bronze
Create Date: 2026-10-18

This migration adds:
1. bronze_do_database_firewall_rules (current state, one row per <cluster_id>:<uuid>)
2. bronze_history_do_database_firewall_rules
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_do_database_firewall_rules'
down_revision = '0001_initial_bronze'
branch_labels = None
depends_on = None

BigIntPK = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')


def _rule_columns():
    return [
        sa.Column('cluster_id', sa.String(100), nullable=False),
        sa.Column('uuid', sa.String(100), nullable=False),
        sa.Column('rule_type', sa.String(50), nullable=False),
        sa.Column('value', sa.String(255), nullable=False),
        sa.Column('api_created_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'bronze_do_database_firewall_rules',
        sa.Column('resource_id', sa.String(255), primary_key=True),
        sa.Column(
            'collected_at',
            sa.DateTime(timezone=True),
            nullable=False,
            comment='Watermark of the latest run that observed this resource',
        ),
        sa.Column(
            'first_collected_at',
            sa.DateTime(timezone=True),
            nullable=False,
            comment='Watermark of the run that first observed this resource; never updated',
        ),
        *_rule_columns(),
    )
    op.create_index(
        'ix_bronze_do_database_firewall_rules_collected_at', 'bronze_do_database_firewall_rules', ['collected_at']
    )
    op.create_index(
        'ix_bronze_do_database_firewall_rules_cluster_id', 'bronze_do_database_firewall_rules', ['cluster_id']
    )

    op.create_table(
        'bronze_history_do_database_firewall_rules',
        sa.Column('history_id', BigIntPK, primary_key=True, autoincrement=True),
        sa.Column('resource_id', sa.String(255), nullable=False),
        sa.Column('valid_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('valid_to', sa.DateTime(timezone=True), nullable=True),
        sa.Column('collected_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('first_collected_at', sa.DateTime(timezone=True), nullable=False),
        *_rule_columns(),
    )
    for column in ('resource_id', 'valid_to', 'cluster_id'):
        op.create_index(
            f'ix_bronze_history_do_database_firewall_rules_{column}',
            'bronze_history_do_database_firewall_rules',
            [column],
        )


def downgrade() -> None:
    op.drop_table('bronze_history_do_database_firewall_rules')
    op.drop_table('bronze_do_database_firewall_rules')
