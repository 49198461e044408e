"""create sla engine tables

Revision ID: 3c1d7e9a2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1d7e9a2b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PRIORITIES = ('low', 'medium', 'high', 'urgent', 'critical')
CONTRACT_TYPES = ('support', 'maintenance', 'development', 'consulting')

ticketpriority = postgresql.ENUM(*PRIORITIES, name='ticketpriority', create_type=False)
contracttype = postgresql.ENUM(*CONTRACT_TYPES, name='contracttype', create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    postgresql.ENUM(*PRIORITIES, name='ticketpriority').create(bind, checkfirst=True)
    postgresql.ENUM(*CONTRACT_TYPES, name='contracttype').create(bind, checkfirst=True)

    op.create_table(
        'business_calendars',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='America/Sao_Paulo'),
        sa.Column('skip_weekends', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('skip_holidays', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('working_hours', postgresql.JSONB(), nullable=False),
        sa.Column('holidays', postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        *_timestamps(),
    )
    op.create_table(
        'sla_templates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('contract_type', contracttype, nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('calendar_id', sa.Integer(), sa.ForeignKey('business_calendars.id'), nullable=True),
        sa.Column('rules', postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_sla_templates_contract_type', 'sla_templates', ['contract_type'])
    op.create_table(
        'sla_template_rules',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('sla_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('priority', ticketpriority, nullable=False),
        sa.Column('response_time_minutes', sa.Integer(), nullable=False),
        sa.Column('solution_time_minutes', sa.Integer(), nullable=False),
        sa.Column('escalation_enabled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('escalation_time_minutes', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('template_id', 'priority', name='uq_sla_template_rules_priority'),
    )
    op.create_table(
        'contracts',
        sa.Column('id', sa.String(length=64), primary_key=True),
        sa.Column('type', contracttype, nullable=False),
        sa.Column('sla_template_id', sa.Integer(), sa.ForeignKey('sla_templates.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('priority', ticketpriority, nullable=False),
        sa.Column('contract_id', sa.String(length=64), sa.ForeignKey('contracts.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_table(
        'sla_calculations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id'), nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('priority', ticketpriority, nullable=False),
        sa.Column('response_due_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('solution_due_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('escalation_due_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('business_minutes_used', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('calendar_id', sa.Integer(), sa.ForeignKey('business_calendars.id'), nullable=False),
        sa.Column('sla_template_id', sa.Integer(), sa.ForeignKey('sla_templates.id'), nullable=False),
        sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('recalculated_reason', sa.Text(), nullable=True),
    )
    op.create_index('ix_sla_calculations_ticket_id', 'sla_calculations', ['ticket_id'])
    op.create_index(
        'uq_sla_calculations_current',
        'sla_calculations',
        ['ticket_id'],
        unique=True,
        postgresql_where=sa.text('is_current'),
    )


def downgrade() -> None:
    op.drop_index('uq_sla_calculations_current', table_name='sla_calculations')
    op.drop_index('ix_sla_calculations_ticket_id', table_name='sla_calculations')
    op.drop_table('sla_calculations')
    op.drop_table('tickets')
    op.drop_table('contracts')
    op.drop_table('sla_template_rules')
    op.drop_index('ix_sla_templates_contract_type', table_name='sla_templates')
    op.drop_table('sla_templates')
    op.drop_table('business_calendars')
    op.execute('DROP TYPE IF EXISTS contracttype')
    op.execute('DROP TYPE IF EXISTS ticketpriority')
