from fastapi import HTTPException
from fabquote.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details

    @property
    def message(self) -> str:
        return self.detail


# =====================================================
# ENGINE ERROR TAXONOMY
# =====================================================
class ValidationError(AppException):
    """Malformed or missing input. Nothing was written."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.VALIDATION_ERROR, details: dict | None = None):
        super().__init__(400, message, error_code, details)


class AuthorizationError(AppException):
    """Wrong role or not the owner. Never carries row data."""

    def __init__(self, message: str = "Not permitted", error_code: ErrorCode = ErrorCode.PERMISSION_DENIED):
        super().__init__(403, message, error_code, None)


class NotFoundError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.NOT_FOUND, details: dict | None = None):
        super().__init__(404, message, error_code, details)


class InvalidStateError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.QUOTATION_INVALID_STATE, details: dict | None = None):
        super().__init__(409, message, error_code, details)


class ConflictError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.CONFLICT, details: dict | None = None):
        super().__init__(409, message, error_code, details)


class DependencyError(AppException):
    """
    An external collaborator (database, object store, payment gateway) failed.
    Callers own the retry policy; `details` carries whatever is needed for
    manual recovery (e.g. the payment reference).
    """

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.STORAGE_UNAVAILABLE, details: dict | None = None):
        super().__init__(502, message, error_code, details)
