class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ReservationValidationError(AppError):
    """Raised before any write when a booking request is incomplete or inconsistent."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class ReservationConflictError(AppError):
    """Raised when the requested slot overlaps an occupying reservation in the same room."""
    def __init__(self, conflict):
        self.conflict = conflict
        super().__init__(
            f"Room is already booked: '{conflict.title}' "
            f"({conflict.start_datetime.isoformat()} - {conflict.end_datetime.isoformat()})",
            status_code=409,
            details={
                "conflict": {
                    "id": conflict.id,
                    "title": conflict.title,
                    "start_datetime": conflict.start_datetime.isoformat(),
                    "end_datetime": conflict.end_datetime.isoformat(),
                }
            },
        )

class InvalidStatusTransitionError(AppError):
    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot change reservation status from {current} to {requested}",
            status_code=409,
            details={"current": current, "requested": requested},
        )

class ReservationPersistenceError(AppError):
    """Raised when a store write fails; rows written by earlier steps are kept."""
    def __init__(self, step: str):
        super().__init__(f"Reservation storage failed during {step}", status_code=500, details={"step": step})
