from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.schemas.leave_policy import (
    AllocationErrorOut,
    DepartmentLeaveBalanceOut,
    LeavePolicyCreate,
    LeavePolicyCreateResult,
    LeavePolicyOut,
    LeavePolicyUpdate,
    LeaveSummaryRow,
    YearlyResetResult,
)
from app.services import leave_policies, leave_reports

router = APIRouter()


@router.post("/leave-policies", response_model=LeavePolicyCreateResult, status_code=status.HTTP_201_CREATED)
def create_leave_policy(payload: LeavePolicyCreate, db: Session = Depends(get_db)) -> LeavePolicyCreateResult:
    outcome = leave_policies.create_policy(
        db,
        name=payload.name,
        allowed_leaves=payload.allowed_leaves,
        roles=payload.roles,
        is_forwarding=payload.is_forwarding,
        is_half_day_allowed=payload.is_half_day_allowed,
        leave_effect=payload.leave_effect,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    db.commit()
    db.refresh(outcome.policy)
    return LeavePolicyCreateResult(
        policy=LeavePolicyOut.model_validate(outcome.policy),
        allocated=outcome.allocated,
        skipped=outcome.skipped,
        allocation_errors=[AllocationErrorOut(**item) for item in outcome.errors],
    )


@router.get("/leave-policies", response_model=list[LeavePolicyOut])
def list_leave_policies(db: Session = Depends(get_db)) -> list[LeavePolicyOut]:
    return leave_policies.list_policies(db)


@router.get("/leave-policies/search", response_model=list[LeavePolicyOut])
def search_leave_policies(q: str = Query(default="", max_length=120), db: Session = Depends(get_db)) -> list[LeavePolicyOut]:
    return leave_policies.search_policies(db, q)


@router.post("/leave-policies/yearly-reset", response_model=list[YearlyResetResult])
def reset_all_leave_policies(db: Session = Depends(get_db)) -> list[YearlyResetResult]:
    summary = leave_policies.yearly_reset_all(db)
    db.commit()
    return [YearlyResetResult(policy_id=policy_id, accounts_reset=count) for policy_id, count in summary.items()]


@router.get("/leave-policies/faculty/{employee_id}/summary", response_model=list[LeaveSummaryRow])
def get_faculty_leave_summary(employee_id: str, db: Session = Depends(get_db)) -> list[LeaveSummaryRow]:
    return leave_reports.faculty_leave_summary(db, employee_id)


@router.get("/leave-policies/department/leave-balance", response_model=DepartmentLeaveBalanceOut)
def get_department_leave_balance(
    department_id: str = Query(min_length=1),
    month: int | None = Query(default=None),
    year: int | None = Query(default=None, ge=1900, le=9999),
    db: Session = Depends(get_db),
) -> DepartmentLeaveBalanceOut:
    today = date.today()
    return leave_reports.department_leave_balance(
        db,
        department_id,
        today.month if month is None else month,
        year or today.year,
    )


@router.put("/leave-policies/{policy_id}", response_model=LeavePolicyOut)
def update_leave_policy(policy_id: str, payload: LeavePolicyUpdate, db: Session = Depends(get_db)) -> LeavePolicyOut:
    policy = leave_policies.update_policy(db, policy_id, **payload.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(policy)
    return policy


@router.delete("/leave-policies/{policy_id}")
def delete_leave_policy(policy_id: str, db: Session = Depends(get_db)) -> dict:
    removed_accounts = leave_policies.delete_policy(db, policy_id)
    db.commit()
    return {"message": "Leave policy deleted successfully", "accounts_removed": removed_accounts}


@router.post("/leave-policies/{policy_id}/yearly-reset", response_model=YearlyResetResult)
def reset_leave_policy(policy_id: str, db: Session = Depends(get_db)) -> YearlyResetResult:
    policy = leave_policies.get_policy(db, policy_id)
    count = leave_policies.yearly_reset(db, policy)
    db.commit()
    return YearlyResetResult(policy_id=policy_id, accounts_reset=count)
