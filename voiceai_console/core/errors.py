"""
Console Error Types
Typed errors raised by the API adapters, cache layer and client-side validation.

Every failure is scoped to the user action that triggered it; none of these
errors is fatal to the process.
"""
import re
from typing import Any, Dict, Optional


GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."
INVALID_REQUEST_MESSAGE = "Invalid request. Please refresh and try again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."

# Structured code the backend uses for leads that need OTP verification
LEAD_NOT_VERIFIED_CODE = "lead_not_verified"

_DATABASE_ERROR_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"psycopg",
        r"sqlalchemy",
        r"asyncpg",
        r"duplicate key",
        r"violates .* constraint",
        r"\bdatabase\b",
        r"connection to server",
    )
]

_IDENTIFIER_ERROR_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"invalid input syntax for type uuid",
        r"badly formed hexadecimal uuid string",
        r"invalid uuid",
    )
]


def sanitize_error_message(message: Optional[str], fallback: str = GENERIC_ERROR_MESSAGE) -> str:
    """
    Make a backend error message safe to show to the user.

    Database/driver text is replaced with a generic retry message and
    identifier-format errors with a refresh hint. Anything else passes
    through verbatim.
    """
    if not message:
        return fallback

    for pattern in _IDENTIFIER_ERROR_PATTERNS:
        if pattern.search(message):
            return INVALID_REQUEST_MESSAGE

    for pattern in _DATABASE_ERROR_PATTERNS:
        if pattern.search(message):
            return GENERIC_ERROR_MESSAGE

    return message


class ConsoleError(Exception):
    """Base class for all console errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkError(ConsoleError):
    """Raised when the backend cannot be reached"""

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE):
        super().__init__(message)


class ApiError(ConsoleError):
    """Raised when the backend answers with a non-2xx status"""

    def __init__(
        self,
        status_code: int,
        message: str,
        detail: Any = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status={self.status_code}, message={self.message!r})"


class AuthenticationError(ApiError):
    """Raised on 401/403 or when no session is available"""

    def __init__(self, message: str = "Authentication required", status_code: int = 401, **kwargs):
        super().__init__(status_code, message, **kwargs)


class VerificationRequiredError(ApiError):
    """Raised when the backend refuses to schedule a call for an unverified lead"""
    pass


class VerificationError(ConsoleError):
    """Raised when an OTP code is expired or rejected"""
    pass


class ValidationError(ConsoleError):
    """
    Raised by client-side validation before any network call.

    Args:
        field_errors: Mapping of form field name to error message
    """

    def __init__(self, field_errors: Dict[str, str], message: str = "Please fill in all required fields"):
        super().__init__(message)
        self.field_errors = field_errors


class DemoLimitError(ConsoleError):
    """Raised when a demo account has used up its agent allowance"""
    pass


class PollingTimeoutError(ConsoleError):
    """Raised when upload status polling runs out of attempts"""

    def __init__(self, message: str = "Processing timeout", attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


def is_verification_required(error: Exception) -> bool:
    """
    Check whether an error means the lead must be verified first.

    Prefers the structured error code; falls back to matching the backend
    message because older backends only send text.
    """
    if isinstance(error, VerificationRequiredError):
        return True
    if isinstance(error, ApiError):
        if error.error_code == LEAD_NOT_VERIFIED_CODE:
            return True
        return "must be verified" in (error.message or "").lower()
    return False
