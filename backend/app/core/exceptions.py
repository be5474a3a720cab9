class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Raised for missing fields, bad date ranges, unknown actions and lead-time violations."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str, message: str | None = None):
        super().__init__(message or f"{resource_type} with id {resource_id} not found", status_code=404)
        self.details = {"resource_type": resource_type, "resource_id": resource_id}


class AuthorizationError(AppError):
    """Raised when the acting user does not hold the approver role for the step."""
    def __init__(self, message: str):
        super().__init__(message, status_code=403)


class StateConflictError(AppError):
    """Raised when a record is not in the state the action requires."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class InsufficientBalanceError(AppError):
    def __init__(self, available: float, requested: float):
        super().__init__(
            f"Insufficient leave balance. Available: {available:g}, Requested: {requested:g}",
            status_code=400,
            details={"available": available, "requested": requested},
        )


class SubstituteConflictError(AppError):
    """Raised when a proposed substitute is on approved leave for the covered date."""
    def __init__(self, substitute_name: str, substitute_id: str, on_date: str):
        super().__init__(
            f"Substitute faculty {substitute_name} is on leave on {on_date}. Please select another substitute.",
            status_code=409,
            details={"substitute_faculty_id": substitute_id, "date": on_date},
        )
