class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ScheduleConflictError(AppError):
    """Raised when a single create/update fails validation under lock.

    Carries the complete error list and the raw conflict details so the caller
    can show which booking collided and where.
    """
    def __init__(self, message: str, errors: list[str], details: dict = None):
        self.errors = list(errors)
        super().__init__(
            message,
            status_code=409,
            details={"errors": self.errors, "details": details or {}},
        )

class BulkValidationError(AppError):
    """Raised when any item of a bulk request is invalid. Nothing was written."""
    def __init__(self, item_errors: list[dict]):
        self.item_errors = item_errors
        super().__init__(
            f"{len(item_errors)} schedule(s) failed validation. Transaction not executed.",
            status_code=409,
            details={"errors": item_errors},
        )

class TransientStorageError(AppError):
    """Lock timeout, deadlock or lost connection. The caller should retry."""
    def __init__(self, message: str = "Database temporarily unavailable. Please retry.", retry_after: int = 1):
        self.retry_after = retry_after
        super().__init__(message, status_code=503, details={"retryable": True})

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
