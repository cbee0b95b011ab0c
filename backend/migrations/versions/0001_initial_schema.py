"""initial service tracker schema

Revision ID: 0001_initial_schema
Revises: 
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('provider_id', sa.String(length=128), nullable=False, unique=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='EMPLOYEE'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_users_provider_id', 'users', ['provider_id'])
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table('customers',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('address', sa.String(length=255)),
        sa.Column('city', sa.String(length=80)),
        sa.Column('state', sa.String(length=80)),
        sa.Column('zip_code', sa.String(length=20)),
        sa.Column('notifications', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('preferred_contact', sa.String(length=16), nullable=False, server_default='email'),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_customers_email', 'customers', ['email'])
    op.create_index('ix_customers_updated_at', 'customers', ['updated_at'])

    op.create_table('service_tasks',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('customer_name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('item_model', sa.String(length=128)),
        sa.Column('serial_number', sa.String(length=128)),
        sa.Column('service_type', sa.String(length=40), nullable=False, server_default='OTHER'),
        sa.Column('custom_service', sa.Text()),
        sa.Column('description', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='FUTURE'),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='NORMAL'),
        sa.Column('estimated_cost_cents', sa.Integer()),
        sa.Column('actual_cost_cents', sa.Integer()),
        sa.Column('estimated_completion', sa.DateTime(timezone=True)),
        sa.Column('actual_completion', sa.DateTime(timezone=True)),
        sa.Column('created_by_id', sa.String(length=32), sa.ForeignKey('users.id')),
        sa.Column('assigned_to_id', sa.String(length=32), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )
    for col in ('email', 'service_type', 'status', 'created_by_id', 'assigned_to_id', 'created_at'):
        op.create_index(f'ix_service_tasks_{col}', 'service_tasks', [col])

    # audit tables carry task_id without a foreign key so history survives task deletion
    op.create_table('status_updates',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('task_id', sa.String(length=32), nullable=False),
        sa.Column('from_status', sa.String(length=32), nullable=False),
        sa.Column('to_status', sa.String(length=32), nullable=False),
        sa.Column('notes', sa.Text()),
        sa.Column('updated_by_id', sa.String(length=32), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(timezone=True)),
    )
    for col in ('task_id', 'updated_by_id', 'created_at'):
        op.create_index(f'ix_status_updates_{col}', 'status_updates', [col])

    op.create_table('activity_logs',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('task_id', sa.String(length=32)),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON()),
        sa.Column('performed_by_id', sa.String(length=32), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(timezone=True)),
    )
    for col in ('task_id', 'action', 'performed_by_id', 'created_at'):
        op.create_index(f'ix_activity_logs_{col}', 'activity_logs', [col])

    op.create_table('printed_labels',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('task_id', sa.String(length=32), nullable=False),
        sa.Column('label_type', sa.String(length=32), nullable=False, server_default='SERVICE_TAG'),
        sa.Column('printed_by_id', sa.String(length=32), sa.ForeignKey('users.id')),
        sa.Column('printer_name', sa.String(length=128)),
        sa.Column('success', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('error_msg', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True)),
    )
    for col in ('task_id', 'label_type', 'printed_by_id', 'success', 'created_at'):
        op.create_index(f'ix_printed_labels_{col}', 'printed_labels', [col])

    op.create_table('daily_metrics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('day', sa.Date(), nullable=False, unique=True),
        sa.Column('total_tasks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('completed_tasks', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('avg_turnaround_days', sa.Float()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_daily_metrics_day', 'daily_metrics', ['day'])


def downgrade():
    for table in ('daily_metrics', 'printed_labels', 'activity_logs', 'status_updates',
                  'service_tasks', 'customers', 'users'):
        op.drop_table(table)
