"""initial schema

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('location_id', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    # Create seats table
    op.create_table('seats',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('location_id', sa.String(length=64), nullable=False),
        sa.Column('number', sa.String(length=16), nullable=False),
        sa.Column('qr_code', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('pod_type', sa.String(length=8), nullable=False),
        sa.Column('dual_partner_id', sa.String(length=36), nullable=True),
        sa.Column('grid_row', sa.Integer(), nullable=True),
        sa.Column('grid_col', sa.Integer(), nullable=True),
        sa.Column('side', sa.String(length=16), nullable=True),
        sa.Column('reserved_until', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['dual_partner_id'], ['seats.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('location_id', 'number', name='uq_seat_location_number')
    )
    op.create_index(op.f('ix_seats_location_id'), 'seats', ['location_id'], unique=False)
    op.create_index(op.f('ix_seats_qr_code'), 'seats', ['qr_code'], unique=True)
    op.create_index(op.f('ix_seats_status'), 'seats', ['status'], unique=False)
    # One forward reference per partner: a seat can be claimed by at most one pair
    op.create_index(op.f('ix_seats_dual_partner_id'), 'seats', ['dual_partner_id'], unique=True)

    # Create group_orders table
    op.create_table('group_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False),
        sa.Column('location_id', sa.String(length=64), nullable=False),
        sa.Column('tenant_id', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('payment_mode', sa.String(length=16), nullable=False),
        sa.Column('host_order_id', sa.String(length=64), nullable=False),
        sa.Column('seating_option', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_group_orders_code'), 'group_orders', ['code'], unique=True)
    op.create_index(op.f('ix_group_orders_location_id'), 'group_orders', ['location_id'], unique=False)
    op.create_index(op.f('ix_group_orders_status'), 'group_orders', ['status'], unique=False)

    # Create group_order_members table
    op.create_table('group_order_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('joined_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['group_id'], ['group_orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('group_id', 'order_id', name='uq_group_member_order')
    )
    op.create_index(op.f('ix_group_order_members_group_id'), 'group_order_members', ['group_id'], unique=False)
    op.create_index(op.f('ix_group_order_members_order_id'), 'group_order_members', ['order_id'], unique=False)

    # Create group_seat_assignments table
    op.create_table('group_seat_assignments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False),
        sa.Column('seat_id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('released_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['group_id'], ['group_orders.id'], ),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_group_seat_assignments_group_id'), 'group_seat_assignments', ['group_id'], unique=False)
    op.create_index(op.f('ix_group_seat_assignments_seat_id'), 'group_seat_assignments', ['seat_id'], unique=False)

    # Create pod_confirmations table
    op.create_table('pod_confirmations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('seat_id', sa.String(length=36), nullable=False),
        sa.Column('order_id', sa.String(length=64), nullable=False),
        sa.Column('order_number', sa.String(length=64), nullable=False),
        sa.Column('seat_number', sa.String(length=16), nullable=False),
        sa.Column('location_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('seat_id', 'order_id', name='uq_pod_confirmation_seat_order')
    )
    op.create_index(op.f('ix_pod_confirmations_seat_id'), 'pod_confirmations', ['seat_id'], unique=False)
    op.create_index(op.f('ix_pod_confirmations_order_id'), 'pod_confirmations', ['order_id'], unique=False)


def downgrade() -> None:
    op.drop_table('pod_confirmations')
    op.drop_table('group_seat_assignments')
    op.drop_table('group_order_members')
    op.drop_table('group_orders')
    op.drop_table('seats')
    op.drop_table('users')
