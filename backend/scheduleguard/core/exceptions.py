class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class AssignmentRejectedError(AppError):
    """Raised when an assignment is refused, locally or by the persistence backend.

    `issues` holds the rejection already mapped into the assignment error taxonomy.
    """
    def __init__(self, message: str, issues: list = None, status_code: int = 409):
        self.issues = list(issues or [])
        details = {"issues": [issue.model_dump(mode="json", by_alias=True) for issue in self.issues]}
        super().__init__(message, status_code=status_code, details=details)

class BackendUnavailableError(AppError):
    """Raised when the persistence backend cannot be reached or answers garbage."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=502, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
