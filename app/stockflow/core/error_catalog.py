from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    USER_INACTIVE = ErrorDefinition(
        "USER_INACTIVE",
        "User is inactive or deleted",
        status.HTTP_403_FORBIDDEN,
    )
    INVALID_REQUEST = ErrorDefinition(
        "INVALID_REQUEST",
        "Invalid request",
        status.HTTP_400_BAD_REQUEST,
    )
    REFERENCE_NOT_FOUND = ErrorDefinition(
        "REFERENCE_NOT_FOUND",
        "Referenced entity not found",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    NOT_FOUND = ErrorDefinition(
        "NOT_FOUND",
        "Resource not found",
        status.HTTP_404_NOT_FOUND,
    )
    INVALID_STATE = ErrorDefinition(
        "INVALID_STATE",
        "Operation not allowed in the current status",
        status.HTTP_409_CONFLICT,
    )
    FORBIDDEN = ErrorDefinition(
        "FORBIDDEN",
        "Operation forbidden in the current status",
        status.HTTP_403_FORBIDDEN,
    )
    ILLEGAL_STATE_TRANSITION = ErrorDefinition(
        "ILLEGAL_STATE_TRANSITION",
        "Illegal status transition",
        status.HTTP_409_CONFLICT,
    )
    QUANTITY_EXCEEDED = ErrorDefinition(
        "QUANTITY_EXCEEDED",
        "Quantity exceeds the remaining allowed quantity",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None):
        self.error = error
        self.details = details
        super().__init__(error.message)

    @property
    def code(self) -> str:
        return self.error.code

    def __str__(self) -> str:
        if isinstance(self.details, dict) and self.details.get("message"):
            return f"{self.error.code}: {self.details['message']}"
        return f"{self.error.code}: {self.error.message}"
