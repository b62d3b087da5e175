"""
Sailthru SDK - API Client.

============================================================
PURPOSE
============================================================
Async client for the Sailthru REST API.

FLOW:
request -> WireEncoder (serialize + sign) -> transport
        -> WireDecoder -> SailthruResponse

GUARANTEES:
- Calls never raise for remote, transport or decoding failures;
  callers branch on ``response.is_success``
- Each call is signed independently, nothing is cached
- No locks or background tasks; the transport may be shared

============================================================
USAGE
============================================================
```python
settings = SailthruSettings(api_key="...", api_secret="...")

async with SailthruApiClient(settings) as client:
    response = await client.users.get_user(
        "someone@example.com",
        fields=UserFields(activity=True, purchases=10),
    )
    if response.is_success:
        print(response.data.lifetime.total_purchase_price)
    else:
        print(response.error.message)
```

============================================================
"""

import asyncio
import dataclasses
import logging
import time
from typing import Any, Dict, List, Optional

from .codecs import CodecOptions
from .config import SailthruSettings
from .errors import create_cancelled_error
from .logging_utils import ClientLogger
from .models import (
    GetUserRequest,
    PurchaseItem,
    UpsertPurchaseRequest,
    UpsertUserRequest,
    User,
    UserFields,
)
from .transport import AiohttpTransport, HttpTransport
from .types import KeyConflict, Map, OptOutStatus, SailthruEndpoints, UserKeyType
from .wire import (
    EncodedHttpRequest,
    RawHttpResponse,
    SailthruRequest,
    SailthruResponse,
    WireDecoder,
    WireEncoder,
)


logger = logging.getLogger(__name__)


DEFAULT_HEADERS = {"Accept": "application/json"}


class _CallCancelled(Exception):
    """The caller's cancellation signal fired before a response arrived."""


# ============================================================
# API CLIENT
# ============================================================

class SailthruApiClient:
    """
    Sailthru API client.

    Operations are grouped by resource: ``client.users`` and
    ``client.purchases``.
    """

    def __init__(
        self,
        settings: SailthruSettings,
        transport: Optional[HttpTransport] = None,
        options: Optional[CodecOptions] = None,
        client_id: str = "sailthru",
    ):
        """
        Initialize the client.

        Args:
            settings: Client settings, validated here
            transport: HTTP transport (default: aiohttp, owned by the client)
            options: Serializer configuration
            client_id: Prefix of log correlation ids

        Raises:
            ConfigurationError: If settings are incomplete
        """
        if settings is None:
            raise ValueError("settings must not be None")
        settings.validate()

        self._settings = settings
        self._credentials = settings.credentials
        self._options = options or CodecOptions()

        self._encoder = WireEncoder(settings.base_url, self._options)
        self._decoder = WireDecoder(self._options)

        self._transport = transport or AiohttpTransport()
        self._owns_transport = transport is None

        self._default_headers: Dict[str, str] = dict(DEFAULT_HEADERS)
        self._logger = ClientLogger(client_id)

        self.users = UserOperations(SailthruEndpoints.USER, self)
        self.purchases = PurchaseOperations(SailthruEndpoints.PURCHASE, self)

    @property
    def settings(self) -> SailthruSettings:
        return self._settings

    @property
    def default_headers(self) -> Dict[str, str]:
        return dict(self._default_headers)

    # --------------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------------

    async def close(self) -> None:
        """Close the transport if the client created it."""
        if self._owns_transport:
            await self._transport.close()

    async def __aenter__(self) -> "SailthruApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # --------------------------------------------------------
    # SEND AND FETCH
    # --------------------------------------------------------

    async def send(
        self,
        request: SailthruRequest,
        cancellation: Optional[asyncio.Event] = None,
    ) -> SailthruResponse:
        """
        Execute a call whose response carries no data.

        Args:
            request: Request to send
            cancellation: Event that aborts the call when set

        Returns:
            SailthruResponse with ``data`` always None
        """
        return await self._execute(request, None, cancellation)

    async def fetch(
        self,
        request: SailthruRequest,
        model: type,
        cancellation: Optional[asyncio.Event] = None,
    ) -> SailthruResponse:
        """
        Execute a call and decode the body into ``model``.

        Args:
            request: Request to send
            model: Model class declaring WIRE_RULES
            cancellation: Event that aborts the call when set

        Returns:
            SailthruResponse with ``data`` of type ``model``
        """
        return await self._execute(request, model, cancellation)

    async def _execute(
        self,
        request: SailthruRequest,
        model: Optional[type],
        cancellation: Optional[asyncio.Event],
    ) -> SailthruResponse:
        if request is None:
            raise ValueError("request must not be None")

        operation = f"{request.method} {request.resource}"

        try:
            encoded = self._encoder.encode(request, self._credentials)
        except (TypeError, ValueError) as e:
            self._logger.warning(f"Could not encode {operation}: {e}")
            return self._decoder.transport_failure(
                request.method,
                self._encoder.build_url(request.resource),
                e,
            )

        headers = dict(self._default_headers)
        headers.update(encoded.headers)
        request_content = encoded.content

        request_id = self._logger.log_request(
            operation=operation,
            method=encoded.method,
            url=encoded.url,
            headers=headers,
            json_payload=encoded.json_payload,
        )
        start_time = time.time()

        try:
            raw = await self._send(encoded, headers, cancellation)
        except _CallCancelled:
            response = self._decoder.transport_failure(
                encoded.method,
                encoded.url,
                create_cancelled_error(),
                request_content,
            )
        except Exception as e:
            response = self._decoder.transport_failure(
                encoded.method,
                encoded.url,
                e,
                request_content,
            )
        else:
            response = self._decoder.decode(raw, encoded.method, encoded.url, model)

            if self._settings.capture_request_content:
                response.request_content = request_content
            if self._settings.capture_response_content:
                response.response_content = raw.text()

        self._logger.log_response(
            operation=operation,
            request_id=request_id,
            status_code=response.status_code,
            latency_ms=(time.time() - start_time) * 1000,
            success=response.is_success,
            error_category=response.error.category.value if response.error else None,
            error_message=response.error.message if response.error else None,
        )

        return response

    async def _send(
        self,
        encoded: EncodedHttpRequest,
        headers: Dict[str, str],
        cancellation: Optional[asyncio.Event],
    ) -> RawHttpResponse:
        if cancellation is None:
            return await self._transport.send(
                encoded.method, encoded.url, headers, encoded.body
            )

        if cancellation.is_set():
            raise _CallCancelled()

        send_task = asyncio.ensure_future(
            self._transport.send(encoded.method, encoded.url, headers, encoded.body)
        )
        cancel_task = asyncio.ensure_future(cancellation.wait())

        try:
            done, _ = await asyncio.wait(
                {send_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            send_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if send_task in done:
            return send_task.result()

        send_task.cancel()
        await asyncio.gather(send_task, return_exceptions=True)
        raise _CallCancelled()


# ============================================================
# USER OPERATIONS
# ============================================================

class UserOperations:
    """Operations on the ``/user`` resource."""

    def __init__(self, resource: str, client: SailthruApiClient):
        self._resource = resource
        self._client = client

    async def get_user(
        self,
        id: str,
        key: str = UserKeyType.EMAIL,
        fields: Optional[UserFields] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> SailthruResponse:
        """
        Get a user.

        Args:
            id: User identifier
            key: Identifier type (see UserKeyType)
            fields: Sections to return
            cancellation: Event that aborts the call when set

        Returns:
            SailthruResponse[User]
        """
        model = GetUserRequest(id=id, key=key, fields=fields)
        request = SailthruRequest("GET", self._resource, model)

        return await self._client.fetch(request, User, cancellation)

    async def upsert_user(
        self,
        id: str,
        key: str = UserKeyType.EMAIL,
        keys: Optional[Map] = None,
        key_conflict: KeyConflict = KeyConflict.MERGE,
        cookies: Optional[Map] = None,
        lists: Optional[Map] = None,
        templates: Optional[Map] = None,
        vars: Optional[Map] = None,
        opt_out_email_status: Optional[OptOutStatus] = None,
        opt_out_sms: Optional[bool] = None,
        fields: Optional[UserFields] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> SailthruResponse:
        """Create or update a user."""
        model = UpsertUserRequest(
            id=id,
            key=key,
            keys=keys,
            key_conflict=key_conflict,
            cookies=cookies,
            lists=lists,
            templates=templates,
            vars=vars,
            opt_out_email_status=opt_out_email_status,
            opt_out_sms=opt_out_sms,
            fields=fields,
        )
        request = SailthruRequest("POST", self._resource, model)

        return await self._client.send(request, cancellation)


# ============================================================
# PURCHASE OPERATIONS
# ============================================================

class PurchaseOperations:
    """Operations on the ``/purchase`` resource."""

    def __init__(self, resource: str, client: SailthruApiClient):
        self._resource = resource
        self._client = client

    async def upsert_purchase(
        self,
        email: str,
        items: List[PurchaseItem],
        incomplete: bool = False,
        message_id: Optional[str] = None,
        cancellation: Optional[asyncio.Event] = None,
    ) -> SailthruResponse:
        """
        Record a purchase or update an open cart.

        Args:
            email: User email address
            items: Purchased items, prices in minor units
            incomplete: True for an open cart
            message_id: Campaign message id (sailthru_bid cookie)
            cancellation: Event that aborts the call when set
        """
        model = UpsertPurchaseRequest(
            email=email,
            items=items,
            incomplete=incomplete,
            message_id=message_id,
        )
        request = SailthruRequest("POST", self._resource, model)

        return await self._client.send(request, cancellation)


# ============================================================
# CONVENIENCE
# ============================================================

def create_client(
    api_key: Optional[str] = None,
    api_secret: Optional[str] = None,
    base_url: Optional[str] = None,
    transport: Optional[HttpTransport] = None,
    **kwargs: Any,
) -> SailthruApiClient:
    """
    Create a client from the environment, with explicit overrides.

    Args:
        api_key: Overrides SAILTHRU_API_KEY
        api_secret: Overrides SAILTHRU_API_SECRET
        base_url: Overrides SAILTHRU_BASE_URL
        transport: HTTP transport
        **kwargs: Other SailthruSettings fields

    Returns:
        SailthruApiClient
    """
    settings = SailthruSettings.from_env()

    if api_key is not None:
        settings.api_key = api_key
    if api_secret is not None:
        settings.api_secret = api_secret
    if base_url is not None:
        settings.base_url = base_url

    known = {f.name for f in dataclasses.fields(SailthruSettings)}
    for name, value in kwargs.items():
        if name not in known:
            raise ValueError(f"Unknown setting: {name}")
        setattr(settings, name, value)

    return SailthruApiClient(settings, transport=transport)
