"""create cleaning reports and observation types

Revision ID: 20261018_0005
Revises: 20261018_0004
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0005"
down_revision = "20261018_0004"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "cleaning_observation_types",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "cleaning_reports",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=False),
        sa.Column("cleaning_date", sa.Date(), nullable=False),
        sa.Column("is_cleaned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("cleaned_by", sa.String(length=200), nullable=True),
        sa.Column("cleaned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("observations", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("room_id", "cleaning_date", name="uq_cleaning_reports_room_date"),
    )
    op.create_index("ix_cleaning_reports_room_id", "cleaning_reports", ["room_id"])
    op.create_index("ix_cleaning_reports_cleaning_date", "cleaning_reports", ["cleaning_date"])


def downgrade() -> None:
    op.drop_index("ix_cleaning_reports_cleaning_date", table_name="cleaning_reports")
    op.drop_index("ix_cleaning_reports_room_id", table_name="cleaning_reports")
    op.drop_table("cleaning_reports")
    op.drop_table("cleaning_observation_types")
