"""Custom exceptions for the household ledger application."""


class LedgerException(Exception):
    """Base exception for all household ledger errors."""

    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationError(LedgerException):
    """Raised when input validation fails."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class AuthenticationError(LedgerException):
    """Raised when the caller cannot be identified."""

    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=401)


class AuthorizationError(LedgerException):
    """Raised when the caller does not own the group."""

    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, status_code=403)


class NotFoundError(LedgerException):
    """Raised when a resource is not found."""

    error_code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ConflictError(LedgerException):
    """Raised when a conditional write or transaction loses a race."""

    error_code = "CONFLICT"

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message, status_code=409)


class ReceiptExtractionError(LedgerException):
    """Raised when the receipt text extraction service fails."""

    error_code = "OCR_ERROR"

    def __init__(self, message: str = "Receipt text extraction failed"):
        super().__init__(message, status_code=502)


class DatabaseError(LedgerException):
    """Raised when database operations fail."""

    error_code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, status_code=500)
