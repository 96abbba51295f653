"""Error taxonomy for the event request workflow.

Validation problems are not exceptions; they are reported as a field map by
the submission service. Everything here is caught by the write actions and
turned into a user-visible alert.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Workflow error codes."""

    IDENTITY_MISSING = "IDENTITY_MISSING"
    IDENTITY_INVALID = "IDENTITY_INVALID"
    BACKEND_ERROR = "BACKEND_ERROR"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    REQUEST_CLOSED = "REQUEST_CLOSED"


class DomainError(Exception):
    """Base error with code and user-safe message."""

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class IdentityError(DomainError):
    """Raised when the caller's credential is missing or cannot be decoded."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.IDENTITY_MISSING) -> None:
        super().__init__(code=code, message=message)


class BackendError(DomainError):
    """Raised on a non-2xx response or a transport failure."""

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        code: ErrorCode = ErrorCode.BACKEND_ERROR,
    ) -> None:
        super().__init__(code=code, message=message or "")
        self.status_code = status_code

    @property
    def server_message(self) -> Optional[str]:
        """Backend-provided message, if the backend sent one."""
        return self.message or None


class RequestClosedError(DomainError):
    """Raised when a write targets a request that already reached deal_done."""

    def __init__(self, request_id: str) -> None:
        super().__init__(
            code=ErrorCode.REQUEST_CLOSED,
            message="This event request is already closed",
        )
        self.request_id = request_id
