class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a stable ``code`` so callers can tell exactly which
    precondition failed without parsing the message.
    """

    code = "DOMAIN_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    code = "NOT_FOUND"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"


class WorkshopNotFound(NotFoundError):
    code = "WORKSHOP_NOT_FOUND"


class AnnouncementNotFound(NotFoundError):
    code = "ANNOUNCEMENT_NOT_FOUND"


class NotEnrolled(NotFoundError):
    code = "NOT_ENROLLED"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    code = "AUTHENTICATION_FAILED"


class InvalidCredential(AuthenticationError):
    code = "INVALID_CREDENTIAL"


class AuthorizationError(DomainError):
    """Raised when a principal lacks permission for an action."""

    code = "FORBIDDEN"


class Unauthorized(AuthorizationError):
    code = "UNAUTHORIZED"


class ConflictError(DomainError):
    """Raised when the current state of an entity rejects the request."""

    code = "CONFLICT"


class CapacityExceeded(ConflictError):
    code = "CAPACITY_EXCEEDED"


class DeadlinePassed(ConflictError):
    code = "DEADLINE_PASSED"


class IneligibleGradeSection(ConflictError):
    code = "INELIGIBLE_GRADE_SECTION"


class AlreadyEnrolled(ConflictError):
    code = "ALREADY_ENROLLED"


class WorkshopInactive(ConflictError):
    code = "WORKSHOP_INACTIVE"


class DuplicateChildLink(ConflictError):
    code = "DUPLICATE_CHILD_LINK"


class EmailAlreadyRegistered(ConflictError):
    code = "EMAIL_ALREADY_REGISTERED"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"


class DuplicateStudentInBatch(ValidationError):
    code = "DUPLICATE_STUDENT_IN_BATCH"


class InvalidContext(ValidationError):
    code = "INVALID_CONTEXT"
