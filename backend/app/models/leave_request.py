import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class LeaveStatus(str, Enum):
    pending_hod = "pending_hod"
    pending_director = "pending_director"
    approved = "approved"
    rejected_by_hod = "rejected_by_hod"
    rejected_by_director = "rejected_by_director"


TERMINAL_LEAVE_STATUSES = frozenset(
    {LeaveStatus.approved, LeaveStatus.rejected_by_hod, LeaveStatus.rejected_by_director}
)


class PeriodAdjustmentStatus(str, Enum):
    pending = "pending"
    adjusted = "adjusted"
    not_required = "not_required"


class AdjustmentNotificationStatus(str, Enum):
    pending = "pending"
    sent = "sent"
    failed = "failed"


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    employee_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    leave_policy_id: Mapped[str] = mapped_column(String(36), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        SAEnum(LeaveStatus, name="leave_request_status"),
        nullable=False,
        default=LeaveStatus.pending_hod,
        index=True,
    )
    hod_approved_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    hod_approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    hod_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    director_approved_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    director_approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    director_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class LeavePeriodAdjustment(Base):
    __tablename__ = "leave_period_adjustments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    leave_request_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    day: Mapped[str] = mapped_column(String(16), nullable=False)
    period: Mapped[int] = mapped_column(Integer, nullable=False)
    class_name: Mapped[str] = mapped_column(String(100), nullable=False)
    department_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    substitute_faculty_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    status: Mapped[PeriodAdjustmentStatus] = mapped_column(
        SAEnum(PeriodAdjustmentStatus, name="period_adjustment_status"),
        nullable=False,
        default=PeriodAdjustmentStatus.pending,
    )
    notification_status: Mapped[AdjustmentNotificationStatus] = mapped_column(
        SAEnum(AdjustmentNotificationStatus, name="adjustment_notification_status"),
        nullable=False,
        default=AdjustmentNotificationStatus.pending,
    )
