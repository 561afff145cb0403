"""Domain error taxonomy shared by the services and the API surface."""


class DomainError(Exception):
    """Base class for failures raised by the domain services."""

    error = "DomainError"
    status_code = 500
    default_message = "Domain operation failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(DomainError):
    """Entity absent, soft-deleted or outside the caller's scope."""

    error = "NotFound"
    status_code = 404
    default_message = "Resource not found"


class InvalidCredentialsError(DomainError):
    error = "InvalidCredentials"
    status_code = 401
    default_message = "Invalid username or password"


class AlreadyExistsError(DomainError):
    error = "AlreadyExists"
    status_code = 409
    default_message = "Resource already exists"


class ConflictError(DomainError):
    """The requested lifecycle transition is not legal from the current state."""

    error = "Conflict"
    status_code = 409
    default_message = "Operation conflicts with the current state"


class InternalFailureError(DomainError):
    error = "InternalFailure"
    status_code = 500
    default_message = "Internal failure"
