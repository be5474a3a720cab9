from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.leave_policy import LeaveEffect
from app.models.user import UserRole


class LeavePolicyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    allowed_leaves: float = Field(ge=0)
    roles: list[UserRole] = Field(min_length=1)
    is_forwarding: bool = False
    is_half_day_allowed: bool = False
    leave_effect: LeaveEffect = LeaveEffect.DEDUCT
    start_date: date
    end_date: date


class LeavePolicyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    allowed_leaves: float | None = Field(default=None, ge=0)
    roles: list[UserRole] | None = Field(default=None, min_length=1)
    is_forwarding: bool | None = None
    is_half_day_allowed: bool | None = None
    start_date: date | None = None
    end_date: date | None = None


class LeavePolicyOut(BaseModel):
    id: str
    name: str
    allowed_leaves: float
    roles: list[str]
    is_forwarding: bool
    is_half_day_allowed: bool
    leave_effect: LeaveEffect
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class AllocationErrorOut(BaseModel):
    employee_id: str
    error: str


class LeavePolicyCreateResult(BaseModel):
    policy: LeavePolicyOut
    allocated: int
    skipped: int
    allocation_errors: list[AllocationErrorOut] = Field(default_factory=list)


class YearlyResetResult(BaseModel):
    policy_id: str
    accounts_reset: int


class LeaveSummaryRow(BaseModel):
    leave_policy_id: str
    name: str
    effect: LeaveEffect
    allowed: float
    carry_forward: float
    used: float
    total_available: float
    remaining: float
    half_day_allowed: bool


class FacultyLeaveBalanceRow(BaseModel):
    faculty_id: str
    name: str
    email: str
    role: UserRole
    total_allocated: float
    total_used: float
    total_remaining: float
    used_in_month: int


class DepartmentLeaveBalanceOut(BaseModel):
    department_id: str
    month: int
    year: int
    days_in_month: int
    faculty: list[FacultyLeaveBalanceRow]


class FacultyLeaveAnalyticsRow(BaseModel):
    faculty_id: str
    name: str
    email: str
    total_days: int
    leave_count: int
