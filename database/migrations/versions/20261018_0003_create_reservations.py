"""create reservations

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0003"
down_revision = "20261018_0002"
branch_labels = None
depends_on = None


event_type_enum = sa.Enum(
    "class",
    "lab",
    "seminar",
    "exam",
    "meeting",
    "maintenance",
    "event",
    name="event_type",
)
reservation_status_enum = sa.Enum("pending", "confirmed", "cancelled", "completed", name="reservation_status")


def upgrade() -> None:
    op.create_table(
        "reservations",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("start_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("event_type", event_type_enum, nullable=False, server_default="class"),
        sa.Column("status", reservation_status_enum, nullable=False, server_default="pending"),
        sa.Column("attendee_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("equipment_needed", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("recurring_template_id", sa.String(length=36), nullable=True),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("end_datetime > start_datetime", name="ck_reservations_window"),
    )
    op.create_index(
        "ix_reservations_room_window",
        "reservations",
        ["room_id", "start_datetime", "end_datetime"],
    )
    op.create_index("ix_reservations_recurring_template_id", "reservations", ["recurring_template_id"])


def downgrade() -> None:
    op.drop_index("ix_reservations_recurring_template_id", table_name="reservations")
    op.drop_index("ix_reservations_room_window", table_name="reservations")
    op.drop_table("reservations")
    reservation_status_enum.drop(op.get_bind(), checkfirst=True)
    event_type_enum.drop(op.get_bind(), checkfirst=True)
