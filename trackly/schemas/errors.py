from enum import Enum
from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    # 401
    UNAUTHORIZED = "UNAUTHORIZED"

    # 403
    FORBIDDEN = "FORBIDDEN"
    NOT_ADMIN = "NOT_ADMIN"
    NOT_HOUSEHOLD_MEMBER = "NOT_HOUSEHOLD_MEMBER"
    CANNOT_CHANGE_OWNER = "CANNOT_CHANGE_OWNER"

    # 400
    INVALID_REQUEST = "INVALID_REQUEST"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_ROLE = "INVALID_ROLE"

    # 409
    ALREADY_IN_HOUSEHOLD = "ALREADY_IN_HOUSEHOLD"
    INVITE_ALREADY_USED = "INVITE_ALREADY_USED"
    LAST_ADMIN = "LAST_ADMIN"

    # 404
    NOT_FOUND = "NOT_FOUND"
    INVITE_NOT_FOUND = "INVITE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # 410
    INVITE_EXPIRED = "INVITE_EXPIRED"

    # 500
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class Error(BaseModel):
    message: str
    code: ErrorCode
    status: int

    model_config = ConfigDict(use_enum_values=True)


class ErrorResponse(BaseModel):
    """Body of every error returned to a client."""
    error: Error

    @classmethod
    def of(cls, code: ErrorCode, message: str, status: int) -> "ErrorResponse":
        return cls(error=Error(message=message, code=code, status=status))
