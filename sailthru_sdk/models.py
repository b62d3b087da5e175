"""
Sailthru SDK - Wire Models.

============================================================
PURPOSE
============================================================
Request and response models for the user and purchase APIs.

Each model lists its wire fields in ``WIRE_RULES``. The order of
the rules is the order of the keys in the serialized JSON, which
is also the text the request signature is computed over.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, List, Optional, Tuple

from .codecs import (
    BOOL_OR_INT,
    BOOLEAN,
    INTEGER,
    PRICE,
    STRING,
    VENDOR_DATETIME,
    EnumCodec,
    FieldRule,
    ListCodec,
    MapCodec,
    ModelCodec,
    StringMapCodec,
)
from .types import BoolOrInt, KeyConflict, Map, OptOutStatus, UserKeyType


def _require(value: Optional[str], name: str) -> str:
    if not value:
        raise ValueError(f"{name} must not be empty")
    return value


# ============================================================
# PURCHASES
# ============================================================

@dataclass
class PurchaseImageUrl:
    """URL container for a purchase image."""

    url: Optional[str] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("url", "url", STRING),
    )


@dataclass
class PurchaseImage:
    """Full size and thumbnail images of a purchased item."""

    full: Optional[PurchaseImageUrl] = None
    thumb: Optional[PurchaseImageUrl] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("full", "full", ModelCodec(PurchaseImageUrl), omit_none=True),
        FieldRule("thumb", "thumb", ModelCodec(PurchaseImageUrl), omit_none=True),
    )


@dataclass
class PurchaseItem:
    """
    A purchased item.

    ``price`` is in minor units (5000 is 50.00). ``images``, ``tags``
    and ``vars`` are left out of the payload when unset.
    """

    id: Optional[str] = None
    title: Optional[str] = None
    price: int = 0
    quantity: int = 0
    url: Optional[str] = None
    images: Optional[List[PurchaseImage]] = None
    tags: Optional[List[str]] = None
    vars: Optional[Map] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("id", "id", STRING),
        FieldRule("title", "title", STRING),
        FieldRule("price", codec=INTEGER),
        FieldRule("quantity", "qty", INTEGER),
        FieldRule("url", "url", STRING),
        FieldRule("images", "images", ListCodec(ModelCodec(PurchaseImage)), omit_none=True),
        FieldRule("tags", "tags", ListCodec(STRING), omit_none=True),
        FieldRule("vars", "vars", StringMapCodec()),
    )


@dataclass
class UserPurchaseItem(PurchaseItem):
    """An item of a recorded purchase, ``price`` as a decimal amount."""

    price: Decimal = Decimal("0")

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = tuple(
        FieldRule("price", codec=PRICE) if rule.attr == "price" else rule
        for rule in PurchaseItem.WIRE_RULES
    )


@dataclass
class Purchase:
    """A purchase recorded against a user. Prices are decimal amounts."""

    price: Decimal = Decimal("0")
    quantity: int = 0
    time: Optional[datetime] = None
    items: List[UserPurchaseItem] = field(default_factory=list)

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("price", codec=PRICE),
        FieldRule("quantity", "qty", INTEGER),
        FieldRule("time", "time", VENDOR_DATETIME),
        FieldRule("items", "items", ListCodec(ModelCodec(UserPurchaseItem))),
    )


@dataclass
class UpsertPurchaseRequest:
    """
    Create or update a purchase.

    Args:
        email: User email address
        items: Purchased items
        incomplete: True for an open cart rather than an order
        message_id: Campaign message id, usually from the sailthru_bid cookie
    """

    email: str
    items: List[PurchaseItem]
    incomplete: bool = False
    message_id: Optional[str] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("email", "email", STRING),
        FieldRule("incomplete", "incomplete", BOOLEAN),
        FieldRule("message_id", "message_id", STRING),
        FieldRule("items", "items", ListCodec(ModelCodec(PurchaseItem))),
    )

    def __post_init__(self) -> None:
        _require(self.email, "email")
        if self.items is None:
            raise ValueError("items must not be None")
        self.items = list(self.items)


# ============================================================
# USERS
# ============================================================

@dataclass
class UserActivity:
    """Timestamps of the user's most recent activity."""

    click_time: Optional[datetime] = None
    create_time: Optional[datetime] = None
    login_time: Optional[datetime] = None
    open_time: Optional[datetime] = None
    signup_time: Optional[datetime] = None
    view_time: Optional[datetime] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("click_time", "click_time", VENDOR_DATETIME),
        FieldRule("create_time", "create_time", VENDOR_DATETIME),
        FieldRule("login_time", "login_time", VENDOR_DATETIME),
        FieldRule("open_time", "open_time", VENDOR_DATETIME),
        FieldRule("signup_time", "signup_time", VENDOR_DATETIME),
        FieldRule("view_time", "view_time", VENDOR_DATETIME),
    )


@dataclass
class UserDevice:
    email: Optional[str] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("email", "top_device_email", STRING),
    )


@dataclass
class UserLifetime:
    """Lifetime engagement counters."""

    messages: int = 0
    page_views: int = 0
    opens: int = 0
    purchases: int = 0
    total_purchase_price: Decimal = Decimal("0")

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("messages", "lifetime_message", INTEGER),
        FieldRule("page_views", "lifetime_pv", INTEGER),
        FieldRule("opens", "lifetime_open", INTEGER),
        FieldRule("purchases", "lifetime_purchase", INTEGER),
        FieldRule("total_purchase_price", "lifetime_purchase_price", PRICE),
    )


@dataclass
class User:
    """A user profile as returned by the user API."""

    activity: Optional[UserActivity] = None
    device: Optional[UserDevice] = None
    engagement: Optional[str] = None
    opt_out_status: Optional[OptOutStatus] = None
    keys: Optional[Map] = None
    lifetime: Optional[UserLifetime] = None
    lists: Optional[Map] = None
    smart_lists: Optional[List[str]] = None
    purchases: Optional[List[Purchase]] = None
    incomplete_purchases: Optional[List[Purchase]] = None
    vars: Optional[Map] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("activity", "activity", ModelCodec(UserActivity)),
        FieldRule("device", "device", ModelCodec(UserDevice)),
        FieldRule("engagement", "engagement", STRING),
        FieldRule("opt_out_status", "optout_email", EnumCodec(OptOutStatus)),
        FieldRule("keys", "keys", MapCodec(STRING)),
        FieldRule("lifetime", "lifetime", ModelCodec(UserLifetime)),
        FieldRule("lists", "lists", MapCodec(VENDOR_DATETIME)),
        FieldRule("smart_lists", "smart-lists", ListCodec(STRING)),
        FieldRule("purchases", "purchases", ListCodec(ModelCodec(Purchase))),
        FieldRule("incomplete_purchases", "purchase_incomplete", ListCodec(ModelCodec(Purchase))),
        FieldRule("vars", "vars", StringMapCodec()),
    )


@dataclass
class UserFields:
    """
    Selects the user fields the API returns.

    Flags request a section; ``purchases`` and ``purchase_incomplete``
    request up to that many entries.
    """

    activity: bool = False
    device: bool = False
    engagement: bool = False
    keys: bool = False
    lifetime: bool = False
    lists: bool = False
    opt_out_status: bool = False
    purchase_incomplete: int = 0
    purchases: int = 0
    smart_lists: bool = False
    vars: bool = False

    def to_map(self) -> Map:
        """Selector map holding only requested fields."""
        selection = Map()
        _select(selection, "activity", self.activity)
        _select(selection, "device", self.device)
        _select(selection, "engagement", self.engagement)
        _select(selection, "keys", self.keys)
        _select(selection, "lifetime", self.lifetime)
        _select(selection, "lists", self.lists)
        _select(selection, "optout_email", self.opt_out_status)
        _select(selection, "purchase_incomplete", self.purchase_incomplete)
        _select(selection, "purchases", self.purchases)
        _select(selection, "smart_lists", self.smart_lists)
        _select(selection, "vars", self.vars)
        return selection


def _select(selection: Map, name: str, value) -> None:
    candidate = BoolOrInt(value)
    if candidate.is_emitted:
        selection[name] = candidate


def _field_map(fields: Optional[UserFields]) -> Optional[Map]:
    return fields.to_map() if fields is not None else None


@dataclass
class GetUserRequest:
    """Look up a user by key."""

    id: str
    key: str = UserKeyType.EMAIL
    fields: Optional[UserFields] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("id", "id", STRING),
        FieldRule("key", "key", STRING),
        FieldRule("field_map", "fields", MapCodec(BOOL_OR_INT)),
    )

    def __post_init__(self) -> None:
        _require(self.id, "id")
        _require(self.key, "key")

    @property
    def field_map(self) -> Optional[Map]:
        return _field_map(self.fields)


@dataclass
class UpsertUserRequest:
    """
    Create or update a user.

    Maps are sent only when they hold entries. ``opt_out_sms`` is sent
    as ``optout_sms_status: "opt-out"`` and only when true.
    """

    id: str
    key: str = UserKeyType.EMAIL
    keys: Optional[Map] = None
    key_conflict: KeyConflict = KeyConflict.MERGE
    cookies: Optional[Map] = None
    lists: Optional[Map] = None
    templates: Optional[Map] = None
    vars: Optional[Map] = None
    opt_out_email_status: Optional[OptOutStatus] = None
    opt_out_sms: Optional[bool] = None
    fields: Optional[UserFields] = None

    WIRE_RULES: ClassVar[Tuple[FieldRule, ...]] = (
        FieldRule("id", "id", STRING),
        FieldRule("key", "key", STRING),
        FieldRule("keys", "keys", MapCodec(STRING)),
        FieldRule("key_conflict", "keyconflict", EnumCodec(KeyConflict)),
        FieldRule("cookies", "cookies", MapCodec(STRING)),
        FieldRule("lists", "lists", MapCodec(BOOLEAN)),
        FieldRule("templates", "optout_templates", MapCodec(BOOLEAN)),
        FieldRule("vars", "vars", MapCodec(STRING)),
        FieldRule("opt_out_email_status", "optout_email", EnumCodec(OptOutStatus)),
        FieldRule("opt_out_sms_status", "optout_sms_status", STRING, omit_none=True),
        FieldRule("field_map", "fields", MapCodec(BOOL_OR_INT)),
    )

    def __post_init__(self) -> None:
        _require(self.id, "id")
        _require(self.key, "key")

    @property
    def opt_out_sms_status(self) -> Optional[str]:
        return "opt-out" if self.opt_out_sms else None

    @property
    def field_map(self) -> Optional[Map]:
        return _field_map(self.fields)
