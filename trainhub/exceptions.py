class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input data is missing, malformed or out of range."""

    status_code = 400


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when a write would break a uniqueness or assignment rule."""

    status_code = 409


class AuthenticationError(DomainError):
    """Raised when login credentials or tokens are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a caller lacks permission for an action."""

    status_code = 403
