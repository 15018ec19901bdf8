"""tournament lifecycle schema

Revision ID: 001_tournament_lifecycle
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '001_tournament_lifecycle'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """profiles, admins, tournaments, registrations, credentials, results"""
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=True, index=True),
        sa.Column('full_name', sa.String(120), nullable=True),
        sa.Column('username', sa.String(50), nullable=True, unique=True),
        sa.Column('is_banned', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('email_verified', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'admins',
        sa.Column('user_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'tournaments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('slug', sa.String(120), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('start_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('prize_pool', sa.BigInteger, nullable=False, server_default='0'),
        sa.Column('winners_count', sa.Integer, nullable=False, server_default='3'),
        sa.Column(
            'prize_breakdown',
            postgresql.JSONB,
            nullable=True,
            comment='[{position, amount}] with positions 1..winners_count',
        ),
        sa.Column('admin_status', sa.String(20), nullable=False, server_default='UPCOMING'),
        sa.Column('type', sa.String(20), nullable=False, server_default='Daily'),
        sa.Column('entry', sa.String(20), nullable=False, server_default='FREE'),
        sa.Column('sponsor_name', sa.String(120), nullable=True),
        sa.Column('sponsor_logo_key', sa.String(60), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("admin_status IN ('UPCOMING', 'COMPLETED')", name='ck_tournament_admin_status'),
        sa.CheckConstraint('prize_pool >= 0', name='ck_tournament_prize_pool'),
        sa.CheckConstraint('winners_count >= 1', name='ck_tournament_winners_count'),
    )
    op.create_index('ix_tournaments_slug', 'tournaments', ['slug'], unique=True)
    op.create_index('ix_tournaments_start_at', 'tournaments', ['start_at'])

    op.create_table(
        'tournament_registrations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tournament_id', sa.String(36), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='joined_pending'),
        sa.Column('details_submitted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('decided_by', sa.String(36), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('joined_pending', 'pending_review', 'approved', 'rejected')",
            name='ck_registration_status',
        ),
    )
    # One registration per user per tournament
    op.create_unique_constraint(
        'uq_registration_tournament_user', 'tournament_registrations', ['tournament_id', 'user_id']
    )
    op.create_index(
        'ix_registration_tournament_status', 'tournament_registrations', ['tournament_id', 'status']
    )

    op.create_table(
        'tournament_credentials',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('tournament_id', sa.String(36), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('platform', sa.String(10), nullable=False),
        sa.Column('login', sa.String(64), nullable=False),
        sa.Column('investor_password', sa.String(128), nullable=False),
        sa.Column('server', sa.String(120), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='submitted'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('reviewed_by', sa.String(36), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_unique_constraint(
        'uq_credential_tournament_user', 'tournament_credentials', ['tournament_id', 'user_id']
    )

    op.create_table(
        'tournament_results',
        sa.Column('tournament_id', sa.String(36), sa.ForeignKey('tournaments.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('rank', sa.Integer, primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('pnl', sa.Numeric(14, 2), nullable=False),
        sa.Column('outcome', sa.String(10), nullable=False),
        sa.CheckConstraint('rank >= 1', name='ck_result_rank'),
    )


def downgrade() -> None:
    op.drop_table('tournament_results')
    op.drop_constraint('uq_credential_tournament_user', 'tournament_credentials')
    op.drop_table('tournament_credentials')
    op.drop_index('ix_registration_tournament_status')
    op.drop_constraint('uq_registration_tournament_user', 'tournament_registrations')
    op.drop_table('tournament_registrations')
    op.drop_index('ix_tournaments_start_at')
    op.drop_index('ix_tournaments_slug')
    op.drop_table('tournaments')
    op.drop_table('admins')
    op.drop_table('profiles')
