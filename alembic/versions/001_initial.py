"""Initial migration

Revision ID: 001
Revises:
Create Date: 2025-04-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('phone', sa.String(20)),
        sa.Column('role', sa.Enum('ADMIN', 'MANAGER', 'CUSTOMER', name='userrole'), server_default='CUSTOMER'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('refresh_token', sa.String(500)),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create places table
    op.create_table(
        'places',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255)),
        sa.Column('location', sa.String(255)),
        sa.Column('description', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create restaurants table
    op.create_table(
        'restaurants',
        sa.Column('id', postgresql.UUID(as_uuid=True), sa.ForeignKey('places.id'), primary_key=True),
        sa.Column('cuisine_type', sa.String(100)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create restaurant_tables table
    op.create_table(
        'restaurant_tables',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('restaurant_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('restaurants.id')),
        sa.Column('table_name', sa.String(100)),
        sa.Column('seating_capacity', sa.Integer()),
        sa.Column('deposit', sa.Numeric(10, 2)),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_restaurant_tables_restaurant_id', 'restaurant_tables', ['restaurant_id'])

    # Create accommodations table
    op.create_table(
        'accommodations',
        sa.Column('id', postgresql.UUID(as_uuid=True), sa.ForeignKey('places.id'), primary_key=True),
        sa.Column('type', sa.String(50)),
        sa.Column('rating', sa.Float()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create accom_units table
    op.create_table(
        'accom_units',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('accommodation_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('accommodations.id'), nullable=False),
        sa.Column('name', sa.String(255)),
        sa.Column('type', sa.String(50)),
        sa.Column('max_occupancy', sa.Integer()),
        sa.Column('unit_price', sa.Numeric(10, 2)),
        sa.Column('is_available', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_accom_units_accommodation_id', 'accom_units', ['accommodation_id'])

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('item_kind', sa.String(50), nullable=False),
        sa.Column('item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('start_datetime', sa.DateTime(), nullable=False),
        sa.Column('end_datetime', sa.DateTime(), nullable=False),
        sa.Column('guest_count', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('special_requests', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint('start_datetime < end_datetime', name='reservations_valid_interval'),
        sa.CheckConstraint('guest_count > 0', name='reservations_positive_guest_count'),
        sa.CheckConstraint(
            "item_kind IN ('restaurant_table', 'accommodation_unit')",
            name='reservations_item_kind',
        ),
    )
    op.create_index('ix_reservations_user_id', 'reservations', ['user_id'])
    op.create_index('ix_reservations_item', 'reservations', ['item_kind', 'item_id'])

    # No two blocking reservations of one item may overlap; [) matches the application check
    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        """
        ALTER TABLE reservations
        ADD CONSTRAINT reservations_no_overlap
        EXCLUDE USING gist (
            item_kind WITH =,
            item_id WITH =,
            tsrange(start_datetime, end_datetime, '[)') WITH &&
        )
        WHERE (status NOT IN ('cancelled', 'no_show'))
        """
    )


def downgrade() -> None:
    op.execute('ALTER TABLE reservations DROP CONSTRAINT IF EXISTS reservations_no_overlap')
    op.drop_table('reservations')
    op.drop_table('accom_units')
    op.drop_table('accommodations')
    op.drop_table('restaurant_tables')
    op.drop_table('restaurants')
    op.drop_table('places')
    op.drop_table('users')
    op.execute('DROP TYPE IF EXISTS userrole')
