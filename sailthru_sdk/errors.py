"""
Sailthru SDK - Error Handling.

============================================================
PURPOSE
============================================================
Uniform error representation for every failed call.

ERROR CATEGORIES:
1. REMOTE     - API answered with a non-2xx status
2. TRANSPORT  - No HTTP status obtained (network, timeout, cancel)
3. DECODE     - 2xx answer whose body does not fit the model

Failed calls never raise: the error travels on the response.
Only precondition violations (bad settings, empty arguments)
raise, and they do so before any network activity.

============================================================
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)


UNKNOWN_RESPONSE_MESSAGE = "Unknown response."
CANCELLED_MESSAGE = "The operation was canceled."


# ============================================================
# ERROR TAXONOMY
# ============================================================

class ErrorCategory(Enum):
    """Where a failure originated."""

    REMOTE = "REMOTE"
    TRANSPORT = "TRANSPORT"
    DECODE = "DECODE"


class ConfigurationError(ValueError):
    """Settings are incomplete or invalid."""

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__(" ".join(self.problems))


# ============================================================
# SAILTHRU ERROR
# ============================================================

@dataclass
class SailthruError:
    """
    Error carried on a failed response.

    ``field_errors`` maps a request field to the messages the
    API reported for it.
    """

    message: str
    field_errors: Optional[Dict[str, List[str]]] = None
    category: ErrorCategory = ErrorCategory.REMOTE
    http_status: Optional[int] = None
    exception: Optional[BaseException] = None
    code: Optional[int] = None
    """Numeric error code, when the API sends one."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "category": self.category.value,
            "message": self.message,
            "field_errors": self.field_errors,
            "http_status": self.http_status,
            "code": self.code,
            "exception": type(self.exception).__name__ if self.exception else None,
        }

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


# ============================================================
# FACTORY FUNCTIONS
# ============================================================

def create_remote_error(
    status_code: int,
    message: Optional[str],
    field_errors: Optional[Dict[str, List[str]]] = None,
) -> SailthruError:
    """Create error for a non-2xx API answer."""
    return SailthruError(
        message=message or UNKNOWN_RESPONSE_MESSAGE,
        field_errors=field_errors,
        category=ErrorCategory.REMOTE,
        http_status=status_code,
    )


def create_transport_error(exc: BaseException) -> SailthruError:
    """Create error for an exception raised before any status was obtained."""
    return SailthruError(
        message=str(exc) or type(exc).__name__,
        category=ErrorCategory.TRANSPORT,
        http_status=0,
        exception=exc,
    )


def create_cancelled_error() -> SailthruError:
    """Create error for a call cancelled by the caller's signal."""
    return SailthruError(
        message=CANCELLED_MESSAGE,
        category=ErrorCategory.TRANSPORT,
        http_status=0,
    )


def create_decode_error(status_code: int, exc: BaseException) -> SailthruError:
    """Create error for a success answer that could not be decoded."""
    return SailthruError(
        message=f"Unable to decode response: {exc}",
        category=ErrorCategory.DECODE,
        http_status=status_code,
        exception=exc,
    )
