"""Initial migration - create all tables

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables for Studio Split."""

    # ==========================================
    # app_user - Creators, clients and admins
    # ==========================================
    op.create_table(
        'app_user',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(50), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('media', sa.JSON(), nullable=True),
        sa.Column('completed_bookings', sa.Integer(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=True),
        sa.Column('tier_frozen', sa.Boolean(), nullable=True),
        sa.Column('freeze_reason', sa.String(255), nullable=True),
        sa.Column('frozen_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_app_user_email', 'app_user', ['email'], unique=True)

    # ==========================================
    # studio - Bookable rooms
    # ==========================================
    op.create_table(
        'studio',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('owner_id', sa.String(36), sa.ForeignKey('app_user.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('hourly_rate', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # ==========================================
    # split_booking - Two-client shared sessions
    # ==========================================
    op.create_table(
        'split_booking',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('studio_id', sa.String(36), sa.ForeignKey('studio.id'), nullable=False),
        sa.Column('created_by', sa.String(36), nullable=False),
        sa.Column('client_a_uid', sa.String(36), nullable=False),
        sa.Column('client_b_uid', sa.String(36), nullable=False),
        sa.Column('split_ratio', sa.Numeric(5, 4), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('total_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('client_a_share', sa.Numeric(10, 2), nullable=False),
        sa.Column('client_b_share', sa.Numeric(10, 2), nullable=False),
        sa.Column('session_title', sa.String(255), nullable=True),
        sa.Column('session_description', sa.Text(), nullable=True),
        sa.Column('requested_talent', sa.JSON(), nullable=True),
        sa.Column('talent_status', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('client_a_payment_status', sa.String(50), nullable=True),
        sa.Column('client_b_payment_status', sa.String(50), nullable=True),
        sa.Column('stripe_session_ids', sa.JSON(), nullable=True),
        sa.Column('studio_name', sa.String(255), nullable=True),
        sa.Column('studio_location', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_split_booking_studio_id', 'split_booking', ['studio_id'])
    op.create_index('ix_split_booking_client_a_uid', 'split_booking', ['client_a_uid'])
    op.create_index('ix_split_booking_client_b_uid', 'split_booking', ['client_b_uid'])

    # ==========================================
    # booking - Single-client provider bookings
    # ==========================================
    op.create_table(
        'booking',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('provider_id', sa.String(36), sa.ForeignKey('app_user.id'), nullable=False),
        sa.Column('client_id', sa.String(36), sa.ForeignKey('app_user.id'), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('refunded', sa.Boolean(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_booking_provider_id', 'booking', ['provider_id'])
    op.create_index('ix_booking_created_at', 'booking', ['created_at'])

    # ==========================================
    # review - Client reviews of providers
    # ==========================================
    op.create_table(
        'review',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('target_id', sa.String(36), sa.ForeignKey('app_user.id'), nullable=False),
        sa.Column('author_id', sa.String(36), sa.ForeignKey('app_user.id'), nullable=False),
        sa.Column('booking_id', sa.String(36), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('visible', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_review_target_id', 'review', ['target_id'])

    # ==========================================
    # abuse_flag - Abuse review queue
    # ==========================================
    op.create_table(
        'abuse_flag',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('app_user.id'), nullable=False),
        sa.Column('flags', sa.JSON(), nullable=False),
        sa.Column('trigger_type', sa.String(100), nullable=False),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_by', sa.String(36), nullable=True),
        sa.Column('resolution', sa.Text(), nullable=True),
    )
    op.create_index('ix_abuse_flag_user_id', 'abuse_flag', ['user_id'])

    # ==========================================
    # notification - In-app notifications
    # ==========================================
    op.create_table(
        'notification',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('app_user.id'), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('booking_id', sa.String(36), nullable=True),
        sa.Column('sender_id', sa.String(36), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # ==========================================
    # audit_log - Moderation audit trail
    # ==========================================
    op.create_table(
        'audit_log',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('actor_user_id', sa.String(36), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('target', sa.String(255), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table('audit_log')
    op.drop_table('notification')
    op.drop_index('ix_abuse_flag_user_id', 'abuse_flag')
    op.drop_table('abuse_flag')
    op.drop_index('ix_review_target_id', 'review')
    op.drop_table('review')
    op.drop_index('ix_booking_created_at', 'booking')
    op.drop_index('ix_booking_provider_id', 'booking')
    op.drop_table('booking')
    op.drop_index('ix_split_booking_client_b_uid', 'split_booking')
    op.drop_index('ix_split_booking_client_a_uid', 'split_booking')
    op.drop_index('ix_split_booking_studio_id', 'split_booking')
    op.drop_table('split_booking')
    op.drop_table('studio')
    op.drop_index('ix_app_user_email', 'app_user')
    op.drop_table('app_user')
