"""
Sailthru SDK.

============================================================
PURPOSE
============================================================
Async client for the Sailthru marketing API.

CLIENT:
- SailthruApiClient: signed calls, uniform responses
- UserOperations / PurchaseOperations: resource operations

WIRE:
- WireEncoder: JSON payload + MD5 signature, form body or query
- WireDecoder: success data or error envelope
- generate_signature: the ``sig`` parameter

TRANSPORTS:
- AiohttpTransport: aiohttp ClientSession
- MockTransport: For testing

ERROR HANDLING:
- SailthruError: Unified error representation
- ErrorCategory: REMOTE / TRANSPORT / DECODE

============================================================
"""

# Value types
from .types import (
    Map,
    BoolOrInt,
    OptOutStatus,
    KeyConflict,
    UserKeyType,
    SailthruCookies,
    SailthruEndpoints,
    parse_enum,
)

# Signing
from .signature import generate_signature

# Codecs
from .codecs import (
    CodecOptions,
    FieldRule,
    encode_model,
    decode_model,
    format_vendor_datetime,
    parse_vendor_datetime,
)

# Models
from .models import (
    PurchaseImageUrl,
    PurchaseImage,
    PurchaseItem,
    UserPurchaseItem,
    Purchase,
    UpsertPurchaseRequest,
    UserActivity,
    UserDevice,
    UserLifetime,
    User,
    UserFields,
    GetUserRequest,
    UpsertUserRequest,
)

# Configuration
from .config import (
    Credentials,
    SailthruSettings,
    TimeoutConfig,
)

# Errors
from .errors import (
    ErrorCategory,
    ConfigurationError,
    SailthruError,
)

# Wire
from .wire import (
    SailthruRequest,
    SailthruResponse,
    EncodedHttpRequest,
    RawHttpResponse,
    WireEncoder,
    WireDecoder,
)

# Transports
from .transport import HttpTransport, AiohttpTransport
from .mock import MockTransport, MockConfig

# Client
from .client import (
    SailthruApiClient,
    UserOperations,
    PurchaseOperations,
    create_client,
)


__all__ = [
    # Value types
    "Map",
    "BoolOrInt",
    "OptOutStatus",
    "KeyConflict",
    "UserKeyType",
    "SailthruCookies",
    "SailthruEndpoints",
    "parse_enum",
    # Signing
    "generate_signature",
    # Codecs
    "CodecOptions",
    "FieldRule",
    "encode_model",
    "decode_model",
    "format_vendor_datetime",
    "parse_vendor_datetime",
    # Models
    "PurchaseImageUrl",
    "PurchaseImage",
    "PurchaseItem",
    "UserPurchaseItem",
    "Purchase",
    "UpsertPurchaseRequest",
    "UserActivity",
    "UserDevice",
    "UserLifetime",
    "User",
    "UserFields",
    "GetUserRequest",
    "UpsertUserRequest",
    # Configuration
    "Credentials",
    "SailthruSettings",
    "TimeoutConfig",
    # Errors
    "ErrorCategory",
    "ConfigurationError",
    "SailthruError",
    # Wire
    "SailthruRequest",
    "SailthruResponse",
    "EncodedHttpRequest",
    "RawHttpResponse",
    "WireEncoder",
    "WireDecoder",
    # Transports
    "HttpTransport",
    "AiohttpTransport",
    "MockTransport",
    "MockConfig",
    # Client
    "SailthruApiClient",
    "UserOperations",
    "PurchaseOperations",
    "create_client",
]
