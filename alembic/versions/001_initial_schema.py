"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-09-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Organizations table (subscription state inline)
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('subscription_plan', sa.String(), nullable=False, server_default='starter'),
        sa.Column('subscription_status', sa.String(), nullable=False, server_default='active'),
        sa.Column('subscription_start_date', sa.DateTime(), nullable=True),
        sa.Column('subscription_end_date', sa.DateTime(), nullable=True),
        sa.Column('next_payment_date', sa.DateTime(), nullable=True),
        sa.Column('last_payment_date', sa.DateTime(), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('paystack_customer_code', sa.String(), nullable=True),
        sa.Column('paystack_subscription_code', sa.String(), nullable=True),
        sa.Column('paystack_email_token', sa.String(), nullable=True),
        sa.Column('paystack_authorization_code', sa.String(), nullable=True),
        sa.Column('paystack_plan_code', sa.String(), nullable=True),
        sa.Column('pending_reference', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_organizations_slug', 'organizations', ['slug'], unique=True)
    op.create_index('ix_organizations_email', 'organizations', ['email'])
    op.create_index('ix_organizations_paystack_customer_code', 'organizations', ['paystack_customer_code'])

    # Organization members table
    op.create_table(
        'organization_members',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('org_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('role', sa.String(32), nullable=False, server_default='gate_staff'),
        sa.Column('invited_by', sa.String(64), nullable=True),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('org_id', 'user_id', name='uq_organization_members_org_user'),
    )
    op.create_index('ix_organization_members_org_id', 'organization_members', ['org_id'])
    op.create_index('ix_organization_members_user_id', 'organization_members', ['user_id'])

    # Invitations table
    op.create_table(
        'invitations',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('org_id', sa.String(64), nullable=False),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('invited_by', sa.String(64), nullable=False),
        sa.Column('inviter_name', sa.String(), nullable=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='pending'),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime(), nullable=True),
        sa.Column('accepted_by', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ondelete='CASCADE'),
    )
    op.create_index('ix_invitations_token', 'invitations', ['token'], unique=True)
    op.create_index('ix_invitations_email', 'invitations', ['email'])
    op.create_index('ix_invitations_org_id', 'invitations', ['org_id'])

    # Events table
    op.create_table(
        'events',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('org_id', sa.String(64), nullable=False),
        sa.Column('created_by', sa.String(64), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('date', sa.String(), nullable=True),
        sa.Column('time', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('type', sa.String(), nullable=False, server_default='free'),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('total_tickets', sa.Integer(), nullable=True),
        sa.Column('sold_tickets', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('published_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
    )
    op.create_index('ix_events_org_id', 'events', ['org_id'])
    op.create_index('ix_events_status', 'events', ['status'])

    # Bookings table (mobile registrations carrying a ticket)
    op.create_table(
        'bookings',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('event_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('ticket_type', sa.String(), nullable=False, server_default='General Admission'),
        sa.Column('status', sa.String(), nullable=False, server_default='confirmed'),
        sa.Column('ticket_id', sa.String(), nullable=True),
        sa.Column('checked_in', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('checked_in_at', sa.DateTime(), nullable=True),
        sa.Column('checked_in_by', sa.String(), nullable=True),
        sa.Column('check_in_method', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
    )
    op.create_index('ix_bookings_event_id', 'bookings', ['event_id'])
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_email', 'bookings', ['email'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])
    op.create_index('ix_bookings_ticket_id', 'bookings', ['ticket_id'])

    # RSVPs table (public web registrations)
    op.create_table(
        'rsvps',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('event_id', sa.String(64), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='confirmed'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ),
    )
    op.create_index('ix_rsvps_event_id', 'rsvps', ['event_id'])
    op.create_index('ix_rsvps_email', 'rsvps', ['email'])
    op.create_index('ix_rsvps_status', 'rsvps', ['status'])


def downgrade() -> None:
    op.drop_table('rsvps')
    op.drop_table('bookings')
    op.drop_table('events')
    op.drop_table('invitations')
    op.drop_table('organization_members')
    op.drop_table('organizations')
    op.drop_table('users')
