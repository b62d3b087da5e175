"""
Sailthru SDK - Request Signing.

============================================================
PURPOSE
============================================================
Computes the signature sent as the ``sig`` parameter of every call.

ALGORITHM:
1. Tokens: api key, format, and the JSON payload when non-empty
2. Sort tokens by ordinal string order
3. Prepend the API secret to the concatenated tokens
4. MD5 over the UTF-8 bytes, rendered as lowercase hex

The signature must be computed over the exact JSON text that is
transmitted, otherwise the API rejects the call.

============================================================
"""

import hashlib
from typing import Optional


DEFAULT_FORMAT = "json"


def generate_signature(
    api_key: str,
    api_secret: str,
    format: str = DEFAULT_FORMAT,
    json_payload: Optional[str] = None,
) -> str:
    """
    Generate the request signature.

    Args:
        api_key: API key
        api_secret: API secret
        format: Response format parameter
        json_payload: Serialized JSON payload, if the call carries one

    Returns:
        Lowercase hex MD5 digest

    Raises:
        ValueError: If the key or secret is empty
    """
    if not api_key:
        raise ValueError("api_key must not be empty")
    if not api_secret:
        raise ValueError("api_secret must not be empty")

    tokens = [api_key, format]
    if json_payload:
        tokens.append(json_payload)

    # Python compares str by code point, which is ordinal order
    tokens.sort()

    message = api_secret + "".join(tokens)
    return hashlib.md5(message.encode("utf-8")).hexdigest()
