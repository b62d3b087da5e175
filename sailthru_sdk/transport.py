"""
Sailthru SDK - HTTP Transport.

============================================================
PURPOSE
============================================================
The boundary between the client and the network.

A transport takes a fully encoded request and returns the raw
status, headers and body, or raises. Retries, pooling and
timeouts are the transport's business, not the client's.

AVAILABLE TRANSPORTS:
- AiohttpTransport: aiohttp ClientSession based
- MockTransport (sailthru_sdk.mock): scripted, for tests

============================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import aiohttp

from .config import TimeoutConfig
from .wire import RawHttpResponse


logger = logging.getLogger(__name__)


# ============================================================
# TRANSPORT INTERFACE
# ============================================================

class HttpTransport(ABC):
    """
    Abstract HTTP transport.

    Implementations must be safe to share between concurrent calls.
    """

    @abstractmethod
    async def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> RawHttpResponse:
        """
        Execute one HTTP request.

        Raises:
            Exception: Any failure before a status was obtained
        """
        pass

    async def close(self) -> None:
        """Release held resources."""
        pass


# ============================================================
# AIOHTTP TRANSPORT
# ============================================================

class AiohttpTransport(HttpTransport):
    """
    Transport backed by a shared ``aiohttp.ClientSession``.

    The session is created on first use unless one is supplied.
    A supplied session is not closed by ``close()``.
    """

    def __init__(
        self,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_config: Optional[TimeoutConfig] = None,
    ):
        self._session = session
        self._owns_session = session is None
        self._timeout_config = timeout_config or TimeoutConfig()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                connect=self._timeout_config.connection_timeout_seconds,
                total=self._timeout_config.read_timeout_seconds,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> RawHttpResponse:
        session = self._get_session()

        async with session.request(
            method,
            url,
            headers=headers,
            data=body,
        ) as response:
            content = await response.read()

            return RawHttpResponse(
                status_code=response.status,
                headers=dict(response.headers),
                body=content,
            )

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            logger.debug("Closed aiohttp session")
        self._session = None
