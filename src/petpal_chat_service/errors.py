"""
Domain errors for the chat service.

Each error is an ``HTTPException`` with a fixed status code, so routes and
services can raise them directly and the application's exception handler
renders them as ``{"detail": ..., "code": ...}``.
"""

from enum import Enum
from typing import Optional

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    INVALID_STATE = "InvalidState"
    INCOMPLETE_OWNER_DATA = "IncompleteOwnerData"
    FORBIDDEN = "Forbidden"
    INVALID_INPUT = "InvalidInput"
    NOT_FOUND = "NotFound"


class ChatServiceError(HTTPException):
    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: ErrorCode

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code_default, detail=detail)


class InvalidState(ChatServiceError):
    """The adoption request is not in the state the operation requires."""

    status_code_default = status.HTTP_409_CONFLICT
    code = ErrorCode.INVALID_STATE


class IncompleteOwnerData(ChatServiceError):
    """The pet record lacks the owner contact fields needed to seed a chat."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = ErrorCode.INCOMPLETE_OWNER_DATA


class Forbidden(ChatServiceError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code = ErrorCode.FORBIDDEN


class InvalidInput(ChatServiceError):
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.INVALID_INPUT


class NotFound(ChatServiceError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code = ErrorCode.NOT_FOUND
