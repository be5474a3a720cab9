from app.models.department import Department, DepartmentLevel  # noqa: F401
from app.models.leave_account import LeaveAccount  # noqa: F401
from app.models.leave_policy import LeaveEffect, LeavePolicy  # noqa: F401
from app.models.leave_request import (  # noqa: F401
    AdjustmentNotificationStatus,
    LeavePeriodAdjustment,
    LeaveRequest,
    LeaveStatus,
    PeriodAdjustmentStatus,
)
from app.models.notification import Notification, NotificationType  # noqa: F401
from app.models.timetable import Timetable  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
