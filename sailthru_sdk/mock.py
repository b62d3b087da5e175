"""
Sailthru SDK - Mock Transport.

============================================================
PURPOSE
============================================================
Scripted transport for testing the client without a network.

FEATURES:
- Queued responses and exceptions, served in order
- Configurable latency
- Full request tracking

============================================================
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qsl, urlsplit

from .transport import HttpTransport
from .wire import RawHttpResponse


logger = logging.getLogger(__name__)


# ============================================================
# MOCK CONFIGURATION
# ============================================================

@dataclass
class MockConfig:
    """Configuration for mock transport."""

    latency_seconds: float = 0.0
    """Delay before each answer."""

    default_status: int = 200
    """Status served when the queue is empty."""

    default_body: bytes = b""
    """Body served when the queue is empty."""


# ============================================================
# RECORDED REQUEST
# ============================================================

@dataclass
class RecordedRequest:
    """A request seen by the mock transport."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def params(self) -> Dict[str, str]:
        """Form or query parameters, decoded."""
        if self.body is not None:
            return dict(parse_qsl(self.body.decode("utf-8"), keep_blank_values=True))
        return dict(parse_qsl(urlsplit(self.url).query, keep_blank_values=True))

    @property
    def payload(self) -> Any:
        """The ``json`` parameter, parsed."""
        text = self.params.get("json")
        return json.loads(text) if text is not None else None


# ============================================================
# MOCK TRANSPORT
# ============================================================

class MockTransport(HttpTransport):
    """
    Transport that answers from a queue.

    Each queued item is a RawHttpResponse to return or an
    exception to raise.
    """

    def __init__(self, config: Optional[MockConfig] = None):
        self._config = config or MockConfig()
        self._queue: List[Union[RawHttpResponse, BaseException]] = []
        self.requests: List[RecordedRequest] = []
        self.closed = False

    # --------------------------------------------------------
    # SCRIPTING
    # --------------------------------------------------------

    def enqueue(self, item: Union[RawHttpResponse, BaseException]) -> None:
        self._queue.append(item)

    def enqueue_json(self, status_code: int, payload: Any) -> None:
        """Queue a response whose body is the JSON text of ``payload``."""
        body = json.dumps(payload).encode("utf-8")
        self._queue.append(
            RawHttpResponse(
                status_code=status_code,
                headers={"Content-Type": "application/json"},
                body=body,
            )
        )

    def enqueue_text(self, status_code: int, text: str) -> None:
        self._queue.append(RawHttpResponse(status_code=status_code, body=text.encode("utf-8")))

    def enqueue_error(self, exc: BaseException) -> None:
        self._queue.append(exc)

    @property
    def last_request(self) -> Optional[RecordedRequest]:
        return self.requests[-1] if self.requests else None

    # --------------------------------------------------------
    # TRANSPORT
    # --------------------------------------------------------

    async def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> RawHttpResponse:
        self.requests.append(
            RecordedRequest(method=method, url=url, headers=dict(headers), body=body)
        )

        if self._config.latency_seconds > 0:
            await asyncio.sleep(self._config.latency_seconds)

        if not self._queue:
            return RawHttpResponse(
                status_code=self._config.default_status,
                body=self._config.default_body,
            )

        item = self._queue.pop(0)
        if isinstance(item, BaseException):
            logger.debug(f"Mock transport raising {type(item).__name__}")
            raise item

        return item

    async def close(self) -> None:
        self.closed = True
