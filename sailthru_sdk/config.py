"""
Sailthru SDK - Configuration.

============================================================
PURPOSE
============================================================
Settings for the API client.

CRITICAL CONSTRAINTS:
- Key, secret and base URL are all required
- Settings are validated once, when the client is built
- Credentials are never logged or placed in the JSON payload

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import List

from .errors import ConfigurationError


DEFAULT_BASE_URL = "https://api.sailthru.com"


# ============================================================
# CREDENTIALS
# ============================================================

@dataclass(frozen=True)
class Credentials:
    """API key and secret used to sign every call."""

    api_key: str
    api_secret: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key must not be empty")
        if not self.api_secret:
            raise ValueError("api_secret must not be empty")


# ============================================================
# CLIENT SETTINGS
# ============================================================

@dataclass
class SailthruSettings:
    """
    Client settings.
    """

    api_key: str = ""
    """API key."""

    api_secret: str = field(default="", repr=False)
    """API secret."""

    base_url: str = DEFAULT_BASE_URL
    """API root URL."""

    capture_request_content: bool = False
    """Copy the sent form body onto each response."""

    capture_response_content: bool = False
    """Copy the received body text onto each response."""

    def validate(self) -> None:
        """
        Check required settings.

        Raises:
            ConfigurationError: Listing every missing setting
        """
        problems: List[str] = []

        if not self.api_key:
            problems.append("A Sailthru API key must be provided.")
        if not self.api_secret:
            problems.append("A Sailthru API secret must be provided.")
        if not self.base_url:
            problems.append("A Sailthru URL must be provided.")

        if problems:
            raise ConfigurationError(problems)

    @property
    def credentials(self) -> Credentials:
        return Credentials(api_key=self.api_key, api_secret=self.api_secret)

    @classmethod
    def from_env(cls, prefix: str = "SAILTHRU") -> "SailthruSettings":
        """
        Create settings from environment variables.

        Reads ``<PREFIX>_API_KEY``, ``<PREFIX>_API_SECRET`` and
        ``<PREFIX>_BASE_URL``.

        Args:
            prefix: Variable name prefix

        Returns:
            SailthruSettings (not yet validated)
        """
        prefix = prefix.upper()

        return cls(
            api_key=os.environ.get(f"{prefix}_API_KEY", ""),
            api_secret=os.environ.get(f"{prefix}_API_SECRET", ""),
            base_url=os.environ.get(f"{prefix}_BASE_URL", DEFAULT_BASE_URL),
        )


# ============================================================
# TIMEOUT CONFIGURATION
# ============================================================

@dataclass
class TimeoutConfig:
    """
    Timeouts for the bundled aiohttp transport.
    """

    connection_timeout_seconds: float = 5.0
    """Connection timeout."""

    read_timeout_seconds: float = 30.0
    """Total time allowed for one request."""
