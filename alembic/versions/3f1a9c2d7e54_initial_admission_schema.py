"""Initial admission schema: organizations, members, plans, usage, warmup, claims, blacklist, runs, prospects, api keys

Revision ID: 3f1a9c2d7e54
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7e54'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('organizations',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('plan', sa.Text(), nullable=False),
        sa.Column('seats', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('members',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('role', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_members_organization_id', 'members', ['organization_id'])

    op.create_table('plan_limits',
        sa.Column('plan_name', sa.Text(), nullable=False),
        sa.Column('runs_limit', sa.Integer(), nullable=False),
        sa.Column('prospects_limit', sa.Integer(), nullable=False),
        sa.Column('messages_limit', sa.Integer(), nullable=False),
        sa.Column('price_usd', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('plan_name'),
    )
    op.bulk_insert(
        sa.table('plan_limits',
            sa.column('plan_name', sa.Text()),
            sa.column('runs_limit', sa.Integer()),
            sa.column('prospects_limit', sa.Integer()),
            sa.column('messages_limit', sa.Integer()),
            sa.column('price_usd', sa.Float()),
        ),
        [
            {'plan_name': 'pilot', 'runs_limit': 10, 'prospects_limit': 100, 'messages_limit': 500, 'price_usd': 0},
            {'plan_name': 'starter', 'runs_limit': 50, 'prospects_limit': 500, 'messages_limit': 2500, 'price_usd': 99},
            {'plan_name': 'growth', 'runs_limit': 200, 'prospects_limit': 2000, 'messages_limit': 10000, 'price_usd': 299},
            {'plan_name': 'enterprise', 'runs_limit': -1, 'prospects_limit': -1, 'messages_limit': -1, 'price_usd': None},
        ],
    )

    op.create_table('usage_counters',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('runs_used', sa.Integer(), nullable=False),
        sa.Column('prospects_used', sa.Integer(), nullable=False),
        sa.Column('messages_used', sa.Integer(), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'period_start', name='uq_usage_org_period'),
    )
    op.create_index('ix_usage_counters_organization_id', 'usage_counters', ['organization_id'])

    op.create_table('warmup_status',
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('daily_runs_created', sa.Integer(), nullable=False),
        sa.Column('daily_invites_sent', sa.Integer(), nullable=False),
        sa.Column('last_reset_date', sa.Date(), nullable=False),
        sa.Column('total_runs_created', sa.Integer(), nullable=False),
        sa.Column('total_invites_sent', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('organization_id'),
    )

    op.create_table('job_claims',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('job_url', sa.Text(), nullable=False),
        sa.Column('job_title', sa.Text(), nullable=True),
        sa.Column('company', sa.Text(), nullable=True),
        sa.Column('holder_id', sa.Text(), nullable=False),
        sa.Column('holder_name', sa.Text(), nullable=True),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'job_url', name='uq_claim_org_job_url'),
    )
    op.create_index('ix_job_claims_expires_at', 'job_claims', ['expires_at'])

    op.create_table('blacklist',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('company', sa.Text(), nullable=True),
        sa.Column('domain', sa.Text(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('added_by', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_blacklist_organization_id', 'blacklist', ['organization_id'])

    op.create_table('runs',
        sa.Column('id', sa.Text(), nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('created_by', sa.Text(), nullable=False),
        sa.Column('job_url', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('company', sa.Text(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('campaign_id', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('organization_id', 'job_url', name='uq_run_org_job_url'),
    )
    op.create_index('ix_runs_organization_id', 'runs', ['organization_id'])

    op.create_table('prospects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('run_id', sa.Text(), nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('company', sa.Text(), nullable=True),
        sa.Column('linkedin_url', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('stage', sa.Text(), nullable=True),
        sa.Column('extra_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.ForeignKeyConstraint(['run_id'], ['runs.id']),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_prospects_run_id', 'prospects', ['run_id'])

    op.create_table('api_keys',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('organization_id', sa.Text(), nullable=False),
        sa.Column('key', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('scopes', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('api_keys')
    op.drop_index('ix_prospects_run_id', table_name='prospects')
    op.drop_table('prospects')
    op.drop_index('ix_runs_organization_id', table_name='runs')
    op.drop_table('runs')
    op.drop_index('ix_blacklist_organization_id', table_name='blacklist')
    op.drop_table('blacklist')
    op.drop_index('ix_job_claims_expires_at', table_name='job_claims')
    op.drop_table('job_claims')
    op.drop_table('warmup_status')
    op.drop_index('ix_usage_counters_organization_id', table_name='usage_counters')
    op.drop_table('usage_counters')
    op.drop_table('plan_limits')
    op.drop_index('ix_members_organization_id', table_name='members')
    op.drop_table('members')
    op.drop_table('organizations')
