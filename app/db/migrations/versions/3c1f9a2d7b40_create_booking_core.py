"""Create booking core tables

Revision ID: 3c1f9a2d7b40
Revises:
Create Date: 2026-10-19 10:12:31.402117

"""
from alembic import op
import sqlalchemy as sa


revision = "3c1f9a2d7b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "halls",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_halls_id", "halls", ["id"])

    booking_status_enum = sa.Enum(
        "confirmed",
        "cancelled",
        "completed",
        name="bookingstatus"
    )

    payment_status_enum = sa.Enum(
        "pending",
        "completed",
        "failed",
        name="paymentstatus"
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_number", sa.String(16), nullable=False),
        sa.Column("customer_name", sa.String(), nullable=False),
        sa.Column("customer_email", sa.String(), nullable=False),
        sa.Column("customer_phone", sa.String(), nullable=False),
        sa.Column("hall_id", sa.Integer(), sa.ForeignKey("halls.id"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_status", payment_status_enum, nullable=False, server_default="pending"),
        sa.Column("payment_reference", sa.String(), nullable=True),
        sa.Column("gateway_authorization_id", sa.String(), nullable=True),
        sa.Column("status", booking_status_enum, nullable=False, server_default="confirmed"),
        sa.Column("special_requests", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("booking_number", name="uq_bookings_booking_number"),
        sa.CheckConstraint("start_time < end_time", name="ck_bookings_time_window"),
        sa.CheckConstraint("number_of_guests >= 1", name="ck_bookings_guests_positive"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_hall_date", "bookings", ["hall_id", "date"])

    op.create_table(
        "booking_sequences",
        sa.Column("name", sa.String(64), primary_key=True),
        sa.Column("value", sa.BigInteger(), nullable=False, server_default="0"),
    )

    op.create_table(
        "booking_day_locks",
        sa.Column("hall_id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.Date(), primary_key=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade():
    op.drop_table("booking_day_locks")
    op.drop_table("booking_sequences")
    op.drop_index("ix_bookings_hall_date", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_halls_id", table_name="halls")
    op.drop_table("halls")

    # Drop ENUM types (no-op outside PostgreSQL)
    sa.Enum(name="paymentstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="bookingstatus").drop(op.get_bind(), checkfirst=True)
