"""Custom exceptions for the application."""


class AppException(Exception):
    """Base application exception."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ServiceUnavailableException(AppException):
    """Raised when service is temporarily unavailable (e.g., database connection failure)."""
    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(message, status_code=503)


class InternalServerException(AppException):
    """Raised when an internal server error occurs."""
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, status_code=500)


class TokenSigningException(InternalServerException):
    """Raised when a JWT cannot be signed (missing secret or rejected payload)."""
    def __init__(self, message: str = "Token signing failed"):
        super().__init__(message)
