class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when a schedule cannot be produced from the given input.

    Every scheduling failure is caused by infeasible or malformed input,
    so all of them are reported as client errors.
    """
    kind = "scheduler"

    def __init__(self, message: str, details: dict = None):
        details = {"kind": self.kind, **(details or {})}
        super().__init__(message, status_code=400, details=details)

class InputShapeError(SchedulerError):
    """An empty day, slot, room or exam request list."""
    kind = "input_shape"

class FormatError(SchedulerError):
    """A slot label that does not read as HH:MM."""
    kind = "format"

class AlignmentError(SchedulerError):
    """A slot label that does not start on a whole hour."""
    kind = "alignment"

class CapacityError(SchedulerError):
    """A single exam has more students than all rooms together can seat."""
    kind = "capacity"

class PlacementError(SchedulerError):
    """No day and slot combination admits an exam request."""
    kind = "placement"

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
