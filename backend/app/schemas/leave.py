from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.leave_request import AdjustmentNotificationStatus, LeaveStatus, PeriodAdjustmentStatus


class PeriodOccurrence(BaseModel):
    date: date
    day: str
    period: int
    class_name: str
    department_id: str | None = None
    subject_id: str | None = None
    faculty_id: str | None = None


class PeriodAdjustmentIn(BaseModel):
    date: date
    day: str | None = Field(default=None, max_length=16)
    period: int = Field(ge=0)
    class_name: str = Field(min_length=1, max_length=100)
    department_id: str | None = None
    subject_id: str | None = None
    substitute_faculty_id: str | None = None


class PeriodAdjustmentOut(BaseModel):
    id: str
    date: date
    day: str
    period: int
    class_name: str
    department_id: str | None = None
    subject_id: str | None = None
    substitute_faculty_id: str | None = None
    status: PeriodAdjustmentStatus
    notification_status: AdjustmentNotificationStatus

    model_config = {"from_attributes": True}


class LeaveRequestCreate(BaseModel):
    employee_id: str = Field(min_length=1, max_length=36)
    leave_policy_id: str = Field(min_length=1, max_length=36)
    start_date: date
    end_date: date
    description: str = Field(min_length=1, max_length=2000)
    period_adjustments: list[PeriodAdjustmentIn] | None = None


class HodActionRequest(BaseModel):
    action: str
    comments: str | None = Field(default=None, max_length=1000)
    hod_id: str = Field(min_length=1, max_length=36)


class DirectorActionRequest(BaseModel):
    action: str
    comments: str | None = Field(default=None, max_length=1000)
    director_id: str | None = Field(default=None, max_length=36)


class PeriodAdjustmentsUpdate(BaseModel):
    hod_id: str = Field(min_length=1, max_length=36)
    period_adjustments: list[PeriodAdjustmentIn]


class ApprovalOut(BaseModel):
    approved_by: str | None = None
    approved_at: datetime | None = None
    comments: str | None = None


class LeaveRequestOut(BaseModel):
    id: str
    employee_id: str
    leave_policy_id: str
    start_date: date
    end_date: date
    total_days: int
    description: str
    status: LeaveStatus
    period_adjustments: list[PeriodAdjustmentOut] = Field(default_factory=list)
    hod_approval: ApprovalOut | None = None
    director_approval: ApprovalOut | None = None
    created_at: datetime
    updated_at: datetime | None = None


class SubstituteCandidateOut(BaseModel):
    id: str
    name: str
    email: str

    model_config = {"from_attributes": True}


class PeriodPreviewOut(BaseModel):
    periods: list[PeriodOccurrence]
    available_substitutes: list[SubstituteCandidateOut]
