from typing import Optional
from trackly.schemas.errors import ErrorCode


class CustomException(Exception):
    """Base exception class for all custom application exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int,
        code: ErrorCode,
        headers: Optional[dict] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.headers = headers


class AuthenticationException(CustomException):
    """Exception raised when the caller has no valid session"""

    def __init__(self, message: str = "Invalid credentials. Access denied."):
        super().__init__(
            message=message,
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"}
        )


class AuthorizationException(CustomException):
    """Exception raised when the caller lacks the required household role"""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action.",
        code: ErrorCode = ErrorCode.FORBIDDEN,
    ):
        super().__init__(message=message, status_code=403, code=code)


class ResourceNotFoundException(CustomException):
    """Exception raised when a requested resource is not found"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.NOT_FOUND):
        super().__init__(message=message, status_code=404, code=code)


class ResourceConflictException(CustomException):
    """Exception raised when a request conflicts with the current state"""

    def __init__(self, message: str, code: ErrorCode):
        super().__init__(message=message, status_code=409, code=code)


class GoneException(CustomException):
    """Exception raised for resources that existed but are no longer usable"""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVITE_EXPIRED):
        super().__init__(message=message, status_code=410, code=code)


class BadRequestException(CustomException):
    """Exception raised for malformed or invalid requests"""

    def __init__(
        self,
        message: str = "The request is invalid or malformed.",
        code: ErrorCode = ErrorCode.INVALID_REQUEST,
    ):
        super().__init__(message=message, status_code=400, code=code)


class MissingFieldException(BadRequestException):
    """Exception raised when a required body field is absent or blank"""

    def __init__(self, field: str):
        super().__init__(message=f"Missing {field}", code=ErrorCode.MISSING_FIELD)
        self.field = field


class DatabaseException(CustomException):
    """Store failure, always reported with a fixed message"""

    def __init__(self):
        super().__init__(
            message="A database error occurred. Please try again.",
            status_code=500,
            code=ErrorCode.DATABASE_ERROR
        )


class InternalServerException(CustomException):
    """Exception raised for internal server errors"""

    def __init__(self, message: str = "An internal server error occurred."):
        super().__init__(
            message=message,
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR
        )
