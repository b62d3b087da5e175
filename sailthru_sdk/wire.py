"""
Sailthru SDK - Wire Encoding and Decoding.

============================================================
PURPOSE
============================================================
Turns a request into a signed HTTP request, and a raw HTTP
response into a uniform result.

ENCODING:
- POST: form body ``api_key, sig, format, json``
- Other verbs: the same parameters in the query string, with
  ``json`` only when the request carries a payload
- The signature is computed over the exact JSON text that is sent

DECODING:
- 2xx: body parsed into the expected model (absent when empty)
- non-2xx: ``{"message", "errors"}`` envelope, falling back to a
  generic message when it cannot be read
- transport failure: status 0, exception text as the message

============================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar
from urllib.parse import quote, urlencode, urljoin

from .codecs import DEFAULT_OPTIONS, OMIT, CodecOptions, decode_model, encode_value
from .config import Credentials
from .errors import (
    SailthruError,
    create_decode_error,
    create_remote_error,
    create_transport_error,
)
from .signature import DEFAULT_FORMAT, generate_signature


logger = logging.getLogger(__name__)

T = TypeVar("T")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


# ============================================================
# REQUEST / RESPONSE TYPES
# ============================================================

@dataclass
class SailthruRequest:
    """
    A call to one API resource.

    ``payload`` is any model declaring ``WIRE_RULES``, a Map, or
    plain JSON-compatible data.
    """

    method: str
    resource: str
    payload: Any = None

    def __post_init__(self) -> None:
        if not self.method:
            raise ValueError("method must not be empty")
        if not self.resource:
            raise ValueError("resource must not be empty")
        self.method = self.method.upper()


@dataclass
class EncodedHttpRequest:
    """A signed request ready for the transport."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    json_payload: Optional[str] = None
    signature: Optional[str] = None

    @property
    def content(self) -> Optional[str]:
        """Body as text, if any."""
        if self.body is None:
            return None
        return self.body.decode("utf-8")


@dataclass
class RawHttpResponse:
    """Status, headers and body exactly as received."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass
class SailthruResponse(Generic[T]):
    """
    Uniform result of a call.

    Exactly one of ``data`` / ``error`` is meaningful: ``data`` when
    ``is_success`` is true, ``error`` otherwise. ``status_code`` is 0
    when no HTTP response was received.
    """

    method: str
    url: str
    is_success: bool
    status_code: int
    data: Optional[T] = None
    error: Optional[SailthruError] = None
    request_content: Optional[str] = None
    response_content: Optional[str] = None


# ============================================================
# ENCODER
# ============================================================

class WireEncoder:
    """Builds signed HTTP requests."""

    def __init__(self, base_url: str, options: CodecOptions = DEFAULT_OPTIONS):
        self._base_url = base_url
        self._options = options

    def serialize(self, payload: Any) -> Optional[str]:
        """Compact JSON text of the payload, None without one."""
        if payload is None:
            return None
        encoded = encode_value(payload, self._options)
        if encoded is OMIT:
            return None
        return self._options.dumps(encoded)

    def build_url(self, resource: str) -> str:
        return urljoin(self._base_url, resource)

    def encode(
        self,
        request: SailthruRequest,
        credentials: Credentials,
    ) -> EncodedHttpRequest:
        """
        Encode and sign a request.

        Args:
            request: Request to encode
            credentials: Key and secret

        Returns:
            EncodedHttpRequest
        """
        json_payload = self.serialize(request.payload)
        signature = generate_signature(
            credentials.api_key,
            credentials.api_secret,
            DEFAULT_FORMAT,
            json_payload,
        )

        params: List[Tuple[str, str]] = [
            ("api_key", credentials.api_key),
            ("sig", signature),
            ("format", DEFAULT_FORMAT),
        ]
        if json_payload is not None:
            params.append(("json", json_payload))

        url = self.build_url(request.resource)

        if request.method == "POST":
            return EncodedHttpRequest(
                method=request.method,
                url=url,
                headers={"Content-Type": FORM_CONTENT_TYPE},
                body=urlencode(params).encode("utf-8"),
                json_payload=json_payload,
                signature=signature,
            )

        return EncodedHttpRequest(
            method=request.method,
            url=f"{url}?{urlencode(params, quote_via=quote)}",
            json_payload=json_payload,
            signature=signature,
        )


# ============================================================
# DECODER
# ============================================================

class WireDecoder:
    """Turns raw HTTP responses into ``SailthruResponse`` values."""

    def __init__(self, options: CodecOptions = DEFAULT_OPTIONS):
        self._options = options

    def decode(
        self,
        raw: RawHttpResponse,
        method: str,
        url: str,
        model: Optional[type] = None,
    ) -> SailthruResponse:
        """
        Decode a raw response.

        Args:
            raw: Response as received
            method: Request method
            url: Request URL
            model: Expected data model; None for calls without data

        Returns:
            SailthruResponse, never raises for bad bodies
        """
        if not raw.is_success:
            return SailthruResponse(
                method=method,
                url=url,
                is_success=False,
                status_code=raw.status_code,
                error=self.decode_error(raw),
            )

        try:
            data = self._decode_data(raw.body, model)
        except (ValueError, TypeError) as e:
            logger.warning(f"Could not decode {raw.status_code} response from {method}: {e}")
            return SailthruResponse(
                method=method,
                url=url,
                is_success=False,
                status_code=raw.status_code,
                error=create_decode_error(raw.status_code, e),
            )

        return SailthruResponse(
            method=method,
            url=url,
            is_success=True,
            status_code=raw.status_code,
            data=data,
        )

    def _decode_data(self, body: bytes, model: Optional[type]) -> Any:
        if model is None or not body:
            return None

        text = body.decode("utf-8")
        if not text.strip():
            return None

        return decode_model(model, self._options.loads(text), self._options)

    def decode_error(self, raw: RawHttpResponse) -> SailthruError:
        """
        Read the error envelope of a non-2xx response.

        ``{"message": str, "errors": {field: [str, ...]}}``; the older
        ``{"error": int, "errormsg": str}`` shape is also understood.
        """
        try:
            envelope = self._options.loads(raw.body.decode("utf-8"))
        except ValueError:
            return create_remote_error(raw.status_code, None)

        if not isinstance(envelope, dict):
            return create_remote_error(raw.status_code, None)

        message = envelope.get("message")
        if not isinstance(message, str) or not message:
            message = envelope.get("errormsg")
        if not isinstance(message, str):
            message = None

        error = create_remote_error(
            raw.status_code,
            message,
            _field_errors(envelope.get("errors")),
        )

        code = envelope.get("error")
        if isinstance(code, int) and not isinstance(code, bool):
            error.code = code

        return error

    def transport_failure(
        self,
        method: str,
        url: str,
        error: Any,
        request_content: Optional[str] = None,
    ) -> SailthruResponse:
        """
        Result for a call that never received an HTTP status.

        Args:
            method: Request method
            url: Request URL
            error: The exception raised, or a ready SailthruError
            request_content: Body that was to be sent, if any
        """
        if not isinstance(error, SailthruError):
            error = create_transport_error(error)

        return SailthruResponse(
            method=method,
            url=url,
            is_success=False,
            status_code=0,
            error=error,
            request_content=request_content,
        )


def _field_errors(raw: Any) -> Optional[Dict[str, List[str]]]:
    if not isinstance(raw, dict):
        return None

    errors: Dict[str, List[str]] = {}
    for name, messages in raw.items():
        if isinstance(messages, str):
            errors[name] = [messages]
        elif isinstance(messages, list):
            errors[name] = [str(m) for m in messages if m is not None]

    return errors
