"""
Sailthru SDK - Secure Logging Utilities.

============================================================
PURPOSE
============================================================
Structured request/response logging with credential masking.

SECURITY REQUIREMENTS
1. NEVER log the API key, secret or signature in clear
2. Mask sensitive query/form parameters and headers
3. Log only a hash of the JSON payload, never its content

============================================================
"""

import hashlib
import json
import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


# ============================================================
# SENSITIVE DATA
# ============================================================

SENSITIVE_HEADERS = {
    "authorization",
    "x-api-key",
    "api-key",
    "cookie",
}

SENSITIVE_PARAMS = {
    "api_key",
    "apikey",
    "api_secret",
    "secret",
    "sig",
    "signature",
    "password",
    "token",
}

_QUERY_PARAM_PATTERNS = [
    re.compile(rf"([?&]{re.escape(name)}=)([^&]+)", re.IGNORECASE)
    for name in sorted(SENSITIVE_PARAMS)
]


# ============================================================
# MASKING FUNCTIONS
# ============================================================

def mask_value(value: str, show_chars: int = 4) -> str:
    """
    Mask a sensitive value, showing only the first few chars.

    Args:
        value: Value to mask
        show_chars: Number of chars to keep

    Returns:
        Masked value
    """
    if not value or len(value) <= show_chars:
        return "***"
    return f"{value[:show_chars]}...***"


def mask_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Mask sensitive headers."""
    if not headers:
        return {}

    return {
        key: mask_value(str(value)) if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def mask_params(params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Mask sensitive parameters.

    The ``json`` parameter is replaced by a short hash of its text.
    """
    if not params:
        return {}

    masked = {}
    for key, value in params.items():
        lowered = key.lower()
        if lowered in SENSITIVE_PARAMS:
            masked[key] = mask_value(str(value)) if value else value
        elif lowered == "json" and isinstance(value, str):
            masked[key] = f"<json sha256:{hash_text(value)}>"
        elif isinstance(value, dict):
            masked[key] = mask_params(value)
        else:
            masked[key] = value
    return masked


def mask_url(url: str) -> str:
    """
    Mask sensitive query parameters in a URL.

    The ``json`` parameter is dropped from the logged URL.
    """
    if not url:
        return url

    for pattern in _QUERY_PARAM_PATTERNS:
        url = pattern.sub(lambda m: f"{m.group(1)}***", url)

    return re.sub(r"([?&]json=)[^&]*", r"\1<omitted>", url)


def hash_text(text: Optional[str]) -> Optional[str]:
    """Short SHA-256 prefix of a text, for correlation without content."""
    if not text:
        return None
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


# ============================================================
# LOG ENTRY STRUCTURES
# ============================================================

@dataclass
class RequestLogEntry:
    """Structured log entry for requests."""

    timestamp: str
    client_id: str
    operation: str
    method: str
    url: str
    request_id: str

    headers: Dict[str, str] = None
    payload_hash: str = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class ResponseLogEntry:
    """Structured log entry for responses."""

    timestamp: str
    client_id: str
    operation: str
    request_id: str

    status_code: int
    latency_ms: float
    success: bool

    error_category: str = None
    error_message: str = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


# ============================================================
# CLIENT LOGGER
# ============================================================

class ClientLogger:
    """
    Secure logger for API client calls.

    Every request gets a correlation id ``<client_id>-<n>``.
    """

    def __init__(self, client_id: str = "sailthru", logger_name: str = None):
        self._client_id = client_id
        self._logger = logging.getLogger(logger_name or f"sailthru_sdk.{client_id}")
        self._request_counter = 0

    def _generate_request_id(self) -> str:
        self._request_counter += 1
        return f"{self._client_id}-{self._request_counter}"

    def log_request(
        self,
        operation: str,
        method: str,
        url: str,
        headers: Dict[str, str] = None,
        json_payload: str = None,
    ) -> str:
        """
        Log outgoing request.

        Returns:
            Request ID for correlation
        """
        request_id = self._generate_request_id()

        entry = RequestLogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            client_id=self._client_id,
            operation=operation,
            method=method,
            url=mask_url(url),
            request_id=request_id,
            headers=mask_headers(headers) if headers else None,
            payload_hash=hash_text(json_payload),
        )

        self._logger.debug(f"REQUEST: {entry.to_json()}")
        return request_id

    def log_response(
        self,
        operation: str,
        request_id: str,
        status_code: int,
        latency_ms: float,
        success: bool,
        error_category: str = None,
        error_message: str = None,
    ) -> None:
        """Log the outcome of a request."""
        entry = ResponseLogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            client_id=self._client_id,
            operation=operation,
            request_id=request_id,
            status_code=status_code,
            latency_ms=round(latency_ms, 3),
            success=success,
            error_category=error_category,
            error_message=error_message[:200] if error_message else None,
        )

        if success:
            self._logger.debug(f"RESPONSE: {entry.to_json()}")
        else:
            self._logger.warning(f"RESPONSE_ERROR: {entry.to_json()}")

    def warning(self, message: str, **kwargs) -> None:
        self._logger.warning(f"[{self._client_id}] {message}", extra=kwargs)
