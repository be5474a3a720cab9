import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Date, DateTime, Enum as SAEnum, Float, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class LeaveEffect(str, Enum):
    # DEDUCT: capped allowance (casual/sick). ADD: earned credits (comp-off, on-duty).
    DEDUCT = "DEDUCT"
    ADD = "ADD"


class LeavePolicy(Base):
    __tablename__ = "leave_policies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    allowed_leaves: Mapped[float] = mapped_column(Float, nullable=False)
    roles: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    is_forwarding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_half_day_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    leave_effect: Mapped[LeaveEffect] = mapped_column(
        SAEnum(LeaveEffect, name="leave_effect"),
        nullable=False,
        default=LeaveEffect.DEDUCT,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
