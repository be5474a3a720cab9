from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.models.leave_request import LeaveRequest
from app.models.user import User
from app.schemas.leave import (
    ApprovalOut,
    DirectorActionRequest,
    HodActionRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    PeriodAdjustmentOut,
    PeriodAdjustmentsUpdate,
    PeriodPreviewOut,
    SubstituteCandidateOut,
)
from app.schemas.leave_policy import FacultyLeaveAnalyticsRow
from app.services import leave_reports, leave_workflow
from app.services.period_schedule import resolve_periods
from app.services.substitution import available_substitutes

router = APIRouter()


def _approval(approved_by: str | None, approved_at, comments: str | None) -> ApprovalOut | None:
    if approved_by is None and approved_at is None:
        return None
    return ApprovalOut(approved_by=approved_by, approved_at=approved_at, comments=comments)


def _hydrate_leave_requests(db: Session, requests: list[LeaveRequest]) -> list[LeaveRequestOut]:
    adjustments_by_request = leave_workflow.list_period_adjustments(db, [item.id for item in requests])
    hydrated: list[LeaveRequestOut] = []
    for item in requests:
        hydrated.append(
            LeaveRequestOut(
                id=item.id,
                employee_id=item.employee_id,
                leave_policy_id=item.leave_policy_id,
                start_date=item.start_date,
                end_date=item.end_date,
                total_days=item.total_days,
                description=item.description,
                status=item.status,
                period_adjustments=[
                    PeriodAdjustmentOut.model_validate(row) for row in adjustments_by_request.get(item.id, [])
                ],
                hod_approval=_approval(item.hod_approved_by_id, item.hod_approved_at, item.hod_comments),
                director_approval=_approval(
                    item.director_approved_by_id,
                    item.director_approved_at,
                    item.director_comments,
                ),
                created_at=item.created_at,
                updated_at=item.updated_at,
            )
        )
    return hydrated


def _single(db: Session, request: LeaveRequest) -> LeaveRequestOut:
    db.refresh(request)
    return _hydrate_leave_requests(db, [request])[0]


@router.post("/leave-requests/apply", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
def apply_leave(payload: LeaveRequestCreate, db: Session = Depends(get_db)) -> LeaveRequestOut:
    request = leave_workflow.submit_leave_request(
        db,
        employee_id=payload.employee_id,
        leave_policy_id=payload.leave_policy_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        description=payload.description,
        period_adjustments=payload.period_adjustments,
    )
    db.commit()
    return _single(db, request)


@router.get("/leave-requests/my-requests/{employee_id}", response_model=list[LeaveRequestOut])
def list_my_leave_requests(employee_id: str, db: Session = Depends(get_db)) -> list[LeaveRequestOut]:
    return _hydrate_leave_requests(db, leave_workflow.list_my_requests(db, employee_id))


@router.get("/leave-requests/periods/{employee_id}", response_model=PeriodPreviewOut)
def preview_leave_periods(
    employee_id: str,
    start_date: date = Query(),
    end_date: date = Query(),
    db: Session = Depends(get_db),
) -> PeriodPreviewOut:
    if end_date < start_date:
        raise ValidationError("End date must be on or after start date")
    employee = db.get(User, employee_id)
    if employee is None:
        raise ResourceNotFoundError("User", employee_id)
    return PeriodPreviewOut(
        periods=resolve_periods(db, employee.id, start_date, end_date),
        available_substitutes=[
            SubstituteCandidateOut.model_validate(item)
            for item in available_substitutes(db, employee, start_date, end_date)
        ],
    )


@router.put("/leave-requests/hod/action/{leave_request_id}", response_model=LeaveRequestOut)
def hod_leave_action(leave_request_id: str, payload: HodActionRequest, db: Session = Depends(get_db)) -> LeaveRequestOut:
    request = leave_workflow.hod_action(
        db,
        leave_request_id=leave_request_id,
        action=payload.action,
        hod_id=payload.hod_id,
        comments=payload.comments,
    )
    db.commit()
    return _single(db, request)


@router.put("/leave-requests/director/action/{leave_request_id}", response_model=LeaveRequestOut)
def director_leave_action(
    leave_request_id: str,
    payload: DirectorActionRequest,
    db: Session = Depends(get_db),
) -> LeaveRequestOut:
    request = leave_workflow.director_action(
        db,
        leave_request_id=leave_request_id,
        action=payload.action,
        director_id=payload.director_id,
        comments=payload.comments,
    )
    db.commit()
    return _single(db, request)


@router.put("/leave-requests/hod/update-periods/{leave_request_id}", response_model=LeaveRequestOut)
def update_leave_periods(
    leave_request_id: str,
    payload: PeriodAdjustmentsUpdate,
    db: Session = Depends(get_db),
) -> LeaveRequestOut:
    request = leave_workflow.update_period_adjustments(
        db,
        leave_request_id=leave_request_id,
        hod_id=payload.hod_id,
        period_adjustments=payload.period_adjustments,
    )
    db.commit()
    return _single(db, request)


@router.get("/leave-requests/hod/pending/{hod_id}", response_model=list[LeaveRequestOut])
def list_hod_pending(hod_id: str, db: Session = Depends(get_db)) -> list[LeaveRequestOut]:
    return _hydrate_leave_requests(db, leave_workflow.hod_pending_requests(db, hod_id))


@router.get("/leave-requests/hod/all/{hod_id}", response_model=list[LeaveRequestOut])
def list_hod_department(hod_id: str, db: Session = Depends(get_db)) -> list[LeaveRequestOut]:
    return _hydrate_leave_requests(db, leave_workflow.hod_department_requests(db, hod_id))


@router.get("/leave-requests/director/pending/{director_id}", response_model=list[LeaveRequestOut])
def list_director_pending(director_id: str, db: Session = Depends(get_db)) -> list[LeaveRequestOut]:
    return _hydrate_leave_requests(db, leave_workflow.director_pending_requests(db, director_id))


@router.get("/leave-requests/director/approved/{director_id}", response_model=list[LeaveRequestOut])
def list_director_approved(director_id: str, db: Session = Depends(get_db)) -> list[LeaveRequestOut]:
    return _hydrate_leave_requests(db, leave_workflow.director_approved_requests(db, director_id))


@router.get("/leave-requests/department/{department_id}/analytics", response_model=list[FacultyLeaveAnalyticsRow])
def get_department_leave_analytics(
    department_id: str,
    year: int | None = Query(default=None, ge=1900, le=9999),
    db: Session = Depends(get_db),
) -> list[FacultyLeaveAnalyticsRow]:
    return leave_reports.department_leave_analytics(db, department_id, year or date.today().year)
