"""Initial ThreatRadar schema - clients, assets, logs

Revision ID: 001_initial
Revises: None
Create Date: 2025-08-29
"""
from alembic import op
import sqlalchemy as sa

revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Clients (tenants) ---
    op.create_table('clients',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False, unique=True),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('settings', sa.JSON()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- Assets ---
    op.create_table('assets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('ip_address', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('vulnerabilities', sa.JSON()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('online', 'offline', 'maintenance')", name='ck_asset_status'),
    )
    op.create_index('ix_assets_client', 'assets', ['client_id'])

    # --- Logs (security events) ---
    op.create_table('logs',
        sa.Column('event_id', sa.Text(), primary_key=True),
        sa.Column('client_id', sa.Uuid(), sa.ForeignKey('clients.id', ondelete='CASCADE')),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('event_type', sa.Text()),
        sa.Column('severity', sa.Text()),
        sa.Column('alert_name', sa.Text()),
        sa.Column('alert_category', sa.Text()),
        sa.Column('detection_engine', sa.Text()),
        sa.Column('action_taken', sa.Text()),
        sa.Column('process_name', sa.Text()),
        sa.Column('process_path', sa.Text()),
        sa.Column('process_id', sa.Integer()),
        sa.Column('parent_process_name', sa.Text()),
        sa.Column('parent_process_id', sa.Integer()),
        sa.Column('user_name', sa.Text()),
        sa.Column('host_name', sa.Text()),
        sa.Column('host_ip', sa.Text()),
        sa.Column('file_name', sa.Text()),
        sa.Column('file_path', sa.Text()),
        sa.Column('file_hash_md5', sa.Text()),
        sa.Column('file_hash_sha256', sa.Text()),
        sa.Column('network_connection', sa.Boolean()),
        sa.Column('source_ip', sa.Text()),
        sa.Column('source_port', sa.Integer()),
        sa.Column('destination_ip', sa.Text()),
        sa.Column('destination_port', sa.Integer()),
        sa.Column('protocol', sa.Text()),
        sa.Column('registry_key', sa.Text()),
        sa.Column('persistence_mechanism', sa.Text()),
        sa.Column('geo_location', sa.Text()),
        sa.Column('mitre_attack_tactic', sa.Text()),
        sa.Column('mitre_attack_technique', sa.Text()),
        sa.Column('status', sa.Text()),
        sa.Column('comments', sa.Text()),
        sa.Column('label', sa.Text()),
        sa.CheckConstraint("label IN ('TP', 'TN', 'FP', 'FN')", name='ck_logs_label'),
    )
    op.create_index('ix_logs_client_timestamp', 'logs', ['client_id', 'timestamp'])
    op.create_index('ix_logs_host', 'logs', ['host_name', 'host_ip'])


def downgrade() -> None:
    op.drop_table('logs')
    op.drop_table('assets')
    op.drop_table('clients')
