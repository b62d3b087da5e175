"""
Sailthru SDK - Field Codecs.

============================================================
PURPOSE
============================================================
Explicit field-level encode/decode rules for the wire format.

Every model declares an ordered tuple of ``FieldRule`` entries
(``WIRE_RULES``). ``encode_model`` walks the rules in declared
order, so the JSON object keys follow the declaration, and
``decode_model`` reads the same rules back.

CODECS:
- StringCodec       - strings, absent written as null
- IntegerCodec      - plain integers
- BooleanCodec      - plain booleans
- MapCodec          - Map, keys written in exact sorted order
- StringMapCodec    - Map of strings, tolerant of non-string values
- BoolOrIntCodec    - flag/count union, no wrapper on the wire
- EnumCodec         - lowercase member name, absent omitted
- PriceCodec        - integer minor units <-> Decimal amount
- VendorDateTimeCodec - "Mon, 15 Jan 2024 10:30:00 +0000"
- ListCodec / ModelCodec - arrays and nested models

============================================================
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .types import BoolOrInt, Map, parse_enum


logger = logging.getLogger(__name__)


class _Omit:
    """Marker returned by a codec when the field must not be written."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "OMIT"

    def __bool__(self) -> bool:
        return False


OMIT = _Omit()


# ============================================================
# NAMING
# ============================================================

def to_camel_case(name: str) -> str:
    """
    Convert an attribute name to camelCase.

    ``message_id`` -> ``messageId``, ``Price`` -> ``price``.
    """
    parts = [part for part in name.split("_") if part]
    if not parts:
        return name

    head = parts[0]
    head = head[0].lower() + head[1:]
    return head + "".join(part[0].upper() + part[1:] for part in parts[1:])


# ============================================================
# CODEC OPTIONS
# ============================================================

@dataclass(frozen=True)
class CodecOptions:
    """
    Serializer configuration, built once per client.

    The JSON text is compact: no whitespace between tokens.
    """

    naming_policy: Callable[[str], str] = to_camel_case
    """Wire name for fields without an explicit name."""

    ensure_ascii: bool = True
    """Escape non-ASCII characters as \\uXXXX."""

    def dumps(self, value: Any) -> str:
        """Serialize to compact JSON text."""
        return json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=self.ensure_ascii,
        )

    def loads(self, text: str) -> Any:
        """Parse JSON text."""
        return json.loads(text)


DEFAULT_OPTIONS = CodecOptions()


# ============================================================
# BASE CODECS
# ============================================================

class ValueCodec:
    """
    Codec that dispatches on the runtime type of the value.

    Used for payloads and fields with no dedicated rule.
    """

    def encode(self, value: Any, options: CodecOptions) -> Any:
        return encode_value(value, options)

    def decode(self, raw: Any, options: CodecOptions) -> Any:
        return raw


def _expect(raw: Any, expected: Tuple[type, ...], what: str) -> None:
    # bool is an int subclass and never a valid integer on the wire
    if isinstance(raw, bool) and bool not in expected:
        raise TypeError(f"Expected {what}, got bool")
    if not isinstance(raw, expected):
        raise TypeError(f"Expected {what}, got {type(raw).__name__}")


class StringCodec(ValueCodec):
    def encode(self, value: Any, options: CodecOptions) -> Any:
        return None if value is None else str(value)

    def decode(self, raw: Any, options: CodecOptions) -> Optional[str]:
        if raw is None:
            return None
        _expect(raw, (str,), "string")
        return raw


class IntegerCodec(ValueCodec):
    def encode(self, value: Any, options: CodecOptions) -> Any:
        return None if value is None else int(value)

    def decode(self, raw: Any, options: CodecOptions) -> Optional[int]:
        if raw is None:
            return None
        _expect(raw, (int,), "integer")
        return raw


class BooleanCodec(ValueCodec):
    def encode(self, value: Any, options: CodecOptions) -> Any:
        return None if value is None else bool(value)

    def decode(self, raw: Any, options: CodecOptions) -> Optional[bool]:
        if raw is None:
            return None
        _expect(raw, (bool,), "boolean")
        return raw


# ============================================================
# MAP CODECS
# ============================================================

class MapCodec(ValueCodec):
    """
    Codec for ``Map`` values.

    Entries are written sorted by exact key (ordinal, case-sensitive),
    whatever the insertion order. Entries whose value encodes to
    OMIT are dropped; an absent or empty map is omitted entirely.
    """

    def __init__(self, value_codec: Optional[ValueCodec] = None):
        self._value_codec = value_codec or ValueCodec()

    def encode(self, value: Any, options: CodecOptions) -> Any:
        if value is None:
            return OMIT
        if not isinstance(value, Map):
            value = Map(value)

        encoded: Dict[str, Any] = {}
        for key, item in value.ordered_items():
            wire_item = self._value_codec.encode(item, options)
            if wire_item is OMIT:
                continue
            encoded[key] = wire_item

        return encoded if encoded else OMIT

    def decode(self, raw: Any, options: CodecOptions) -> Optional[Map]:
        if raw is None:
            return None
        _expect(raw, (dict,), "object")

        result = Map()
        for key, item in raw.items():
            result[key] = self.decode_item(item, options)
        return result

    def decode_item(self, raw: Any, options: CodecOptions) -> Any:
        return self._value_codec.decode(raw, options)


class StringMapCodec(MapCodec):
    """
    Map of free-form string variables.

    Decoding is lenient: null becomes "", strings are kept, any other
    JSON value is kept as its compact JSON text.
    """

    def __init__(self):
        super().__init__(StringCodec())

    def decode_item(self, raw: Any, options: CodecOptions) -> str:
        if raw is None:
            return ""
        if isinstance(raw, str):
            return raw
        return options.dumps(raw)


# ============================================================
# TAGGED UNION CODEC
# ============================================================

class BoolOrIntCodec(ValueCodec):
    """
    Writes the bare flag or count, never a discriminator.

    ``False`` and ``0`` are omitted.
    """

    def encode(self, value: Any, options: CodecOptions) -> Any:
        if value is None:
            return OMIT
        if not isinstance(value, BoolOrInt):
            value = BoolOrInt(value)
        if not value.is_emitted:
            return OMIT
        return value.value

    def decode(self, raw: Any, options: CodecOptions) -> Optional[BoolOrInt]:
        if isinstance(raw, int):
            return BoolOrInt(raw)
        return None


# ============================================================
# ENUM CODEC
# ============================================================

class EnumCodec(ValueCodec):
    """Writes the lowercase member name; absent values are omitted."""

    def __init__(self, enum_cls: type):
        self._enum_cls = enum_cls

    def encode(self, value: Any, options: CodecOptions) -> Any:
        if value is None:
            return OMIT
        if not isinstance(value, self._enum_cls):
            raise TypeError(
                f"Expected {self._enum_cls.__name__}, got {type(value).__name__}"
            )
        return value.name.lower()

    def decode(self, raw: Any, options: CodecOptions) -> Optional[Enum]:
        return parse_enum(self._enum_cls, raw)


# ============================================================
# PRICE CODEC
# ============================================================

class PriceCodec(ValueCodec):
    """
    Currency amounts sent as integer minor units.

    5000 on the wire is 50.00.
    """

    def encode(self, value: Any, options: CodecOptions) -> Any:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return int(value.scaleb(2).to_integral_value())
        _expect(value, (int,), "integer minor units")
        return value

    def decode(self, raw: Any, options: CodecOptions) -> Optional[Decimal]:
        if raw is None:
            return None
        _expect(raw, (int,), "integer minor units")
        return Decimal(raw).scaleb(-2)


# ============================================================
# VENDOR DATE/TIME CODEC
# ============================================================

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

_DATETIME_PATTERN = re.compile(
    r"(?P<weekday>[A-Za-z]{3}), (?P<day>\d{2}) (?P<month>[A-Za-z]{3}) "
    r"(?P<year>\d{4}) (?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
)

_OFFSET_PATTERN = re.compile(r"(?P<hours>\d{2})(?P<minutes>\d{2})")


def parse_vendor_datetime(value: Any) -> Optional[datetime]:
    """
    Parse ``"<ddd>, <dd> <MMM> <yyyy> <HH>:<mm>:<ss> <+HHMM>"``.

    The last five characters are the UTC offset and are parsed on
    their own before being combined with the date and time.

    Returns:
        Timezone-aware datetime, or None if the text is malformed
    """
    if not isinstance(value, str) or len(value) < 5:
        return None

    suffix = value[-5:].strip()
    text = value[:-5].strip()

    negative = suffix.startswith("-")
    suffix = suffix.lstrip("+-")

    offset_match = _OFFSET_PATTERN.fullmatch(suffix)
    if offset_match is None:
        return None

    hours = int(offset_match.group("hours"))
    minutes = int(offset_match.group("minutes"))
    if hours > 23 or minutes > 59:
        return None

    offset = timedelta(hours=hours, minutes=minutes)
    if negative:
        offset = -offset

    match = _DATETIME_PATTERN.fullmatch(text)
    if match is None:
        return None

    month_name = match.group("month").title()
    if month_name not in _MONTHS:
        return None

    try:
        parsed = datetime(
            int(match.group("year")),
            _MONTHS.index(month_name) + 1,
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            tzinfo=timezone(offset),
        )
    except ValueError:
        return None

    # Day name must agree with the date
    if _WEEKDAYS[parsed.weekday()] != match.group("weekday").title():
        return None

    return parsed


def format_vendor_datetime(value: datetime) -> str:
    """Format an aware datetime in the vendor text format."""
    offset = value.utcoffset() or timedelta(0)
    sign = "-" if offset < timedelta(0) else "+"
    total_minutes = abs(int(offset.total_seconds())) // 60

    return "{}, {:02d} {} {:04d} {:02d}:{:02d}:{:02d} {}{:02d}{:02d}".format(
        _WEEKDAYS[value.weekday()],
        value.day,
        _MONTHS[value.month - 1],
        value.year,
        value.hour,
        value.minute,
        value.second,
        sign,
        total_minutes // 60,
        total_minutes % 60,
    )


class VendorDateTimeCodec(ValueCodec):
    """Malformed timestamps decode to None instead of failing."""

    def encode(self, value: Any, options: CodecOptions) -> Any:
        if value is None:
            return None
        return format_vendor_datetime(value)

    def decode(self, raw: Any, options: CodecOptions) -> Optional[datetime]:
        parsed = parse_vendor_datetime(raw)
        if parsed is None and raw:
            logger.debug(f"Ignoring malformed timestamp: {raw!r}")
        return parsed


# ============================================================
# COMPOSITE CODECS
# ============================================================

class ListCodec(ValueCodec):
    def __init__(self, item_codec: Optional[ValueCodec] = None):
        self._item_codec = item_codec or ValueCodec()

    def encode(self, value: Any, options: CodecOptions) -> Any:
        if value is None:
            return None
        encoded = []
        for item in value:
            wire_item = self._item_codec.encode(item, options)
            if wire_item is not OMIT:
                encoded.append(wire_item)
        return encoded

    def decode(self, raw: Any, options: CodecOptions) -> Optional[List[Any]]:
        if raw is None:
            return None
        _expect(raw, (list,), "array")
        return [self._item_codec.decode(item, options) for item in raw]


class ModelCodec(ValueCodec):
    """Nested model declaring its own ``WIRE_RULES``."""

    def __init__(self, model_cls: type):
        self._model_cls = model_cls

    def encode(self, value: Any, options: CodecOptions) -> Any:
        if value is None:
            return None
        return encode_model(value, options)

    def decode(self, raw: Any, options: CodecOptions) -> Any:
        return decode_model(self._model_cls, raw, options)


# ============================================================
# FIELD RULES
# ============================================================

@dataclass(frozen=True)
class FieldRule:
    """
    One field of a wire model.

    Attributes:
        attr: Python attribute name
        wire_name: JSON key; None applies the naming policy to ``attr``
        codec: Value codec
        omit_none: Skip the key entirely when the value is None
    """

    attr: str
    wire_name: Optional[str] = None
    codec: ValueCodec = field(default_factory=ValueCodec)
    omit_none: bool = False

    def name_for(self, options: CodecOptions) -> str:
        if self.wire_name is not None:
            return self.wire_name
        return options.naming_policy(self.attr)


def _rules_of(model: Any) -> Tuple[FieldRule, ...]:
    cls = model if isinstance(model, type) else type(model)
    rules = getattr(cls, "WIRE_RULES", None)
    if rules is None:
        raise TypeError(f"{cls.__name__} does not declare WIRE_RULES")
    return rules


def encode_model(model: Any, options: CodecOptions = DEFAULT_OPTIONS) -> Dict[str, Any]:
    """Encode a model to a JSON-ready dict, keys in declared order."""
    encoded: Dict[str, Any] = {}

    for rule in _rules_of(model):
        value = getattr(model, rule.attr)
        if value is None and rule.omit_none:
            continue

        wire_value = rule.codec.encode(value, options)
        if wire_value is OMIT:
            continue

        encoded[rule.name_for(options)] = wire_value

    return encoded


def decode_model(
    model_cls: type,
    raw: Any,
    options: CodecOptions = DEFAULT_OPTIONS,
) -> Any:
    """
    Build a model from a parsed JSON object.

    Keys missing from the object keep the model's defaults; unknown
    keys are ignored.
    """
    if raw is None:
        return None
    _expect(raw, (dict,), f"{model_cls.__name__} object")

    values: Dict[str, Any] = {}
    for rule in _rules_of(model_cls):
        name = rule.name_for(options)
        if name in raw:
            values[rule.attr] = rule.codec.decode(raw[name], options)

    return model_cls(**values)


def encode_value(value: Any, options: CodecOptions = DEFAULT_OPTIONS) -> Any:
    """
    Encode an arbitrary payload value by runtime type.

    Models use their rules, Maps are written in sorted key order,
    enums as lowercase names and datetimes in the vendor format.
    Unset flag/count selectors give OMIT and are dropped from their
    parent object or array.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if hasattr(type(value), "WIRE_RULES"):
        return encode_model(value, options)
    if isinstance(value, Map):
        encoded = MapCodec().encode(value, options)
        return {} if encoded is OMIT else encoded
    if isinstance(value, BoolOrInt):
        return value.value if value.is_emitted else OMIT
    if isinstance(value, Enum):
        return value.name.lower()
    if isinstance(value, datetime):
        return format_vendor_datetime(value)
    if isinstance(value, Decimal):
        return PriceCodec().encode(value, options)
    if isinstance(value, dict):
        encoded = {str(k): encode_value(v, options) for k, v in value.items()}
        return {k: v for k, v in encoded.items() if v is not OMIT}
    if isinstance(value, (list, tuple)):
        encoded = [encode_value(item, options) for item in value]
        return [item for item in encoded if item is not OMIT]

    raise TypeError(f"Cannot encode value of type {type(value).__name__}")


# Shared stateless codec instances
STRING = StringCodec()
INTEGER = IntegerCodec()
BOOLEAN = BooleanCodec()
PRICE = PriceCodec()
VENDOR_DATETIME = VendorDateTimeCodec()
BOOL_OR_INT = BoolOrIntCodec()
