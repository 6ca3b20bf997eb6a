"""Initial bronze schema

Revision ID: 0001_initial_bronze
Revises:
Create Date: 2026-10-18

This migration adds:
1. ingestion_runs and ingestion_watermarks bookkeeping tables
2. current-state, child and history tables for aws_ec2_instance
3. current-state, child and history tables for sentinelone_agent
4. current-state and history tables for digitalocean_database
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_bronze'
down_revision = None
branch_labels = None
depends_on = None

BigIntPK = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')


def _str(name, length, **kw):
    kw.setdefault('nullable', False)
    return sa.Column(name, sa.String(length), **kw)


def _ts(name, nullable=True, **kw):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, **kw)


def _current_columns():
    return [
        sa.Column('resource_id', sa.String(255), primary_key=True),
        _ts('collected_at', nullable=False, comment='Watermark of the latest run that observed this resource'),
        _ts('first_collected_at', nullable=False, comment='Watermark of the run that first observed this resource; never updated'),
    ]


def _history_columns():
    return [
        sa.Column('history_id', BigIntPK, primary_key=True, autoincrement=True),
        _str('resource_id', 255),
        _ts('valid_from', nullable=False),
        _ts('valid_to'),
        _ts('collected_at', nullable=False),
        _ts('first_collected_at', nullable=False),
    ]


def _child_history_columns(parent_table):
    return [
        sa.Column('history_id', BigIntPK, primary_key=True, autoincrement=True),
        _ts('valid_from', nullable=False),
        _ts('valid_to'),
        sa.Column('parent_history_id', BigIntPK, sa.ForeignKey(f'{parent_table}.history_id'), nullable=False),
    ]


def _ec2_columns():
    return [
        _str('name', 255),
        _str('instance_type', 50),
        _str('state', 50),
        _str('vpc_id', 255),
        _str('subnet_id', 255),
        _str('private_ip_address', 50),
        _str('public_ip_address', 50),
        _str('ami_id', 255),
        _str('key_name', 255),
        _str('platform', 50),
        _str('architecture', 50),
        _ts('launch_time'),
        sa.Column('security_groups_json', sa.Text(), nullable=True),
        _str('account_id', 20),
        _str('region', 50),
    ]


def _s1_agent_columns():
    return [
        _str('computer_name', 255),
        _str('external_ip', 50),
        _str('site_id', 50),
        _str('site_name', 255),
        _str('account_id', 50),
        _str('account_name', 255),
        _str('group_id', 50),
        _str('group_name', 255),
        _str('agent_version', 50),
        _str('os_type', 50),
        _str('os_name', 255),
        _str('os_revision', 255),
        _str('os_arch', 50),
        _str('machine_type', 50),
        _str('domain', 255),
        _str('uuid', 100),
        _str('network_status', 50),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_infected', sa.Boolean(), nullable=False),
        sa.Column('is_decommissioned', sa.Boolean(), nullable=False),
        sa.Column('is_up_to_date', sa.Boolean(), nullable=False),
        sa.Column('active_threats', sa.Integer(), nullable=False),
        sa.Column('cpu_count', sa.Integer(), nullable=False),
        sa.Column('core_count', sa.Integer(), nullable=False),
        sa.Column('total_memory', sa.BigInteger(), nullable=False),
        _str('model_name', 255),
        _str('serial_number', 255),
        _str('storage_encryption_status', 50),
        _ts('last_active_date'),
        _ts('registered_at'),
        _ts('api_updated_at'),
        sa.Column('active_directory_json', sa.Text(), nullable=True),
        sa.Column('locations_json', sa.Text(), nullable=True),
    ]


def _s1_nic_columns():
    return [
        _str('interface_id', 100),
        _str('name', 255),
        sa.Column('description', sa.Text(), nullable=False),
        _str('type', 50),
        sa.Column('inet_json', sa.Text(), nullable=True),
        sa.Column('inet6_json', sa.Text(), nullable=True),
        _str('physical', 50),
        _str('gateway_ip', 50),
        _str('gateway_mac', 50),
    ]


def _do_database_columns():
    return [
        _str('name', 255),
        _str('engine_slug', 50),
        _str('version_slug', 50),
        sa.Column('num_nodes', sa.Integer(), nullable=False),
        _str('size_slug', 100),
        _str('region_slug', 50),
        _str('status', 50),
        _str('project_id', 100),
        sa.Column('storage_size_mib', sa.BigInteger(), nullable=False),
        _str('private_network_uuid', 100),
        sa.Column('tags_json', sa.Text(), nullable=True),
        sa.Column('maintenance_window_json', sa.Text(), nullable=True),
        _ts('api_created_at'),
    ]


def _index(table, *columns):
    for column in columns:
        op.create_index(f'ix_{table}_{column}', table, [column])


def upgrade() -> None:
    # Bookkeeping
    op.create_table(
        'ingestion_runs',
        sa.Column('run_id', sa.Uuid(), primary_key=True),
        _str('kind', 100),
        _str('scope_key', 255),
        _str('status', 20),
        _ts('collected_at', nullable=False),
        sa.Column('records_processed', sa.Integer(), nullable=False),
        sa.Column('records_skipped', sa.Integer(), nullable=False),
        sa.Column('records_retired', sa.Integer(), nullable=False),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        _ts('started_at', server_default=sa.func.now()),
        _ts('ended_at'),
    )
    _index('ingestion_runs', 'kind')

    op.create_table(
        'ingestion_watermarks',
        sa.Column('kind', sa.String(100), primary_key=True),
        sa.Column('scope_key', sa.String(255), primary_key=True),
        _ts('collected_at', nullable=False),
        _ts('updated_at', server_default=sa.func.now()),
    )

    # AWS EC2 instances
    op.create_table('bronze_aws_ec2_instances', *_current_columns(), *_ec2_columns())
    _index('bronze_aws_ec2_instances', 'collected_at', 'state', 'account_id', 'region')

    op.create_table(
        'bronze_aws_ec2_instance_tags',
        sa.Column('id', BigIntPK, primary_key=True, autoincrement=True),
        sa.Column(
            'resource_id',
            sa.String(255),
            sa.ForeignKey('bronze_aws_ec2_instances.resource_id', ondelete='CASCADE'),
            nullable=False,
        ),
        _str('key', 255),
        sa.Column('value', sa.Text(), nullable=False),
    )
    _index('bronze_aws_ec2_instance_tags', 'resource_id')

    op.create_table('bronze_history_aws_ec2_instances', *_history_columns(), *_ec2_columns())
    _index('bronze_history_aws_ec2_instances', 'resource_id', 'valid_to', 'state', 'account_id', 'region')

    op.create_table(
        'bronze_history_aws_ec2_instance_tags',
        *_child_history_columns('bronze_history_aws_ec2_instances'),
        _str('key', 255),
        sa.Column('value', sa.Text(), nullable=False),
    )
    _index('bronze_history_aws_ec2_instance_tags', 'parent_history_id', 'valid_to')

    # SentinelOne agents
    op.create_table('bronze_s1_agents', *_current_columns(), *_s1_agent_columns())
    _index('bronze_s1_agents', 'collected_at', 'site_id', 'account_id')

    op.create_table(
        'bronze_s1_agent_nics',
        sa.Column('id', BigIntPK, primary_key=True, autoincrement=True),
        sa.Column(
            'resource_id',
            sa.String(255),
            sa.ForeignKey('bronze_s1_agents.resource_id', ondelete='CASCADE'),
            nullable=False,
        ),
        *_s1_nic_columns(),
    )
    _index('bronze_s1_agent_nics', 'resource_id')

    op.create_table('bronze_history_s1_agents', *_history_columns(), *_s1_agent_columns())
    _index('bronze_history_s1_agents', 'resource_id', 'valid_to', 'site_id', 'account_id')

    op.create_table(
        'bronze_history_s1_agent_nics',
        *_child_history_columns('bronze_history_s1_agents'),
        *_s1_nic_columns(),
    )
    _index('bronze_history_s1_agent_nics', 'parent_history_id', 'valid_to')

    # DigitalOcean databases
    op.create_table('bronze_do_databases', *_current_columns(), *_do_database_columns())
    _index('bronze_do_databases', 'collected_at')

    op.create_table('bronze_history_do_databases', *_history_columns(), *_do_database_columns())
    _index('bronze_history_do_databases', 'resource_id', 'valid_to')


def downgrade() -> None:
    # Children before parents
    op.drop_table('bronze_history_do_databases')
    op.drop_table('bronze_do_databases')
    op.drop_table('bronze_history_s1_agent_nics')
    op.drop_table('bronze_history_s1_agents')
    op.drop_table('bronze_s1_agent_nics')
    op.drop_table('bronze_s1_agents')
    op.drop_table('bronze_history_aws_ec2_instance_tags')
    op.drop_table('bronze_history_aws_ec2_instances')
    op.drop_table('bronze_aws_ec2_instance_tags')
    op.drop_table('bronze_aws_ec2_instances')
    op.drop_table('ingestion_watermarks')
    op.drop_table('ingestion_runs')
