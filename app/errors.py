"""
Domain errors raised by the assignment and task services.
Each carries the HTTP status the API layer maps it to.
"""


class AssignmentServiceError(Exception):
    """Base class for service errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AssignmentServiceError):
    """A project, task, member or skill does not exist."""
    status_code = 404


class ValidationError(AssignmentServiceError):
    """Request data is inconsistent with the stored state."""
    status_code = 400


class DependencyNotCompletedError(ValidationError):
    """A task cannot be assigned while tasks it depends on are still open."""


class NoEligibleMembersError(AssignmentServiceError):
    """The project exists but offers no candidate for assignment."""
    status_code = 400


class PersistenceError(AssignmentServiceError):
    """A write failed after a candidate was chosen; nothing was committed."""
    status_code = 500
