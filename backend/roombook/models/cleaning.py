import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from roombook.db.base import Base


class CleaningObservationType(Base):
    __tablename__ = "cleaning_observation_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class CleaningReport(Base):
    __tablename__ = "cleaning_reports"
    __table_args__ = (UniqueConstraint("room_id", "cleaning_date", name="uq_cleaning_reports_room_date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    cleaning_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    is_cleaned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    cleaned_by: Mapped[str | None] = mapped_column(String(200), nullable=True)
    cleaned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Ids of CleaningObservationType rows.
    observations: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
