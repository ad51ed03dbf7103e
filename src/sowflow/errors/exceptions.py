"""Custom exception classes for the sowflow API."""


class SowflowError(Exception):
    """Base exception for sowflow."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(SowflowError):
    """Request validation failure detected before any mutation."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(SowflowError):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{resource} '{resource_id}' not found",
            status_code=404,
        )


class AuthenticationError(SowflowError):
    """Authentication required or token invalid."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class AuthorizationError(SowflowError):
    """Actor lacks the role or assignment for the requested action."""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__("AUTHORIZATION_ERROR", message, status_code=403)


class ConflictError(SowflowError):
    """Resource state conflict."""

    def __init__(self, message: str, details=None):
        super().__init__("CONFLICT", message, details, status_code=409)
