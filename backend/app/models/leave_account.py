import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class LeaveAccount(Base):
    __tablename__ = "leave_accounts"
    __table_args__ = (
        UniqueConstraint("employee_id", "leave_policy_id", name="uq_leave_accounts_employee_policy"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    employee_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    leave_policy_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    total_leaves: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    used_leaves: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    carry_forward_leaves: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    credited_leaves: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
