class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when the addressed record does not exist."""


class AlreadyEnrolledError(DomainError):
    """Raised when a student already holds an active enrollment in the course."""


class AlreadyRecordedError(DomainError):
    """Raised when attendance for a course/date/intake/section was already taken."""


class StorageError(Exception):
    """Raised when the record store fails (connectivity, query errors).

    Not a DomainError: callers must not present it as a business rule violation.
    """
