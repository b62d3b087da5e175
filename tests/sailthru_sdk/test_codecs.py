"""
Field Codec Tests.

============================================================
PURPOSE
============================================================
Tests for the wire value codecs.

TEST CATEGORIES:
- Map ordering and omission
- Flag/count union
- Enums, prices and vendor timestamps
- Model encode/decode by field rules

============================================================
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from sailthru_sdk.codecs import (
    BOOL_OR_INT,
    DEFAULT_OPTIONS,
    INTEGER,
    OMIT,
    PRICE,
    STRING,
    VENDOR_DATETIME,
    EnumCodec,
    MapCodec,
    StringMapCodec,
    decode_model,
    encode_model,
    encode_value,
    format_vendor_datetime,
    parse_vendor_datetime,
    to_camel_case,
)
from sailthru_sdk.models import PurchaseItem, UserLifetime
from sailthru_sdk.types import BoolOrInt, Map, OptOutStatus


# ============================================================
# OPTIONS
# ============================================================

class TestCodecOptions:
    """Tests for serializer configuration."""

    def test_dumps_is_compact(self):
        """Test JSON text has no whitespace between tokens."""
        assert DEFAULT_OPTIONS.dumps({"a": [1, 2], "b": None}) == '{"a":[1,2],"b":null}'

    def test_dumps_escapes_non_ascii(self):
        """Test non-ASCII characters are escaped."""
        assert DEFAULT_OPTIONS.dumps({"name": "café"}) == '{"name":"caf\\u00e9"}'

    def test_camel_case(self):
        """Test default naming policy."""
        assert to_camel_case("message_id") == "messageId"
        assert to_camel_case("Price") == "price"
        assert to_camel_case("url") == "url"


# ============================================================
# MAP CODECS
# ============================================================

class TestMapCodec:
    """Tests for Map encoding."""

    def test_entries_sorted_by_key(self):
        """Test entries are written in exact key order."""
        values = Map([("b", BoolOrInt(True)), ("a", BoolOrInt(5))])

        encoded = MapCodec(BOOL_OR_INT).encode(values, DEFAULT_OPTIONS)

        assert list(encoded) == ["a", "b"]
        assert DEFAULT_OPTIONS.dumps(encoded) == '{"a":5,"b":true}'

    def test_sort_is_case_sensitive(self):
        """Test upper case keys sort before lower case ones."""
        values = Map([("zeta", "1"), ("Beta", "2"), ("alpha", "3")])

        encoded = MapCodec(STRING).encode(values, DEFAULT_OPTIONS)

        assert list(encoded) == ["Beta", "alpha", "zeta"]

    def test_false_and_zero_dropped(self):
        """Test unset selectors are not written."""
        values = Map([("a", BoolOrInt(False)), ("b", BoolOrInt(0)), ("c", BoolOrInt(3))])

        encoded = MapCodec(BOOL_OR_INT).encode(values, DEFAULT_OPTIONS)

        assert encoded == {"c": 3}

    def test_empty_or_absent_map_omitted(self):
        """Test absent, empty, and all-dropped maps are omitted."""
        codec = MapCodec(BOOL_OR_INT)

        assert codec.encode(None, DEFAULT_OPTIONS) is OMIT
        assert codec.encode(Map(), DEFAULT_OPTIONS) is OMIT
        assert codec.encode(Map(a=BoolOrInt(False)), DEFAULT_OPTIONS) is OMIT

    def test_decode_builds_map(self):
        """Test decoding gives a case-insensitive Map."""
        decoded = MapCodec(STRING).decode({"Email": "a@b.com"}, DEFAULT_OPTIONS)

        assert isinstance(decoded, Map)
        assert decoded["email"] == "a@b.com"

    def test_string_map_decode_is_lenient(self):
        """Test non-string variables keep their JSON text."""
        decoded = StringMapCodec().decode(
            {"plan": "gold", "score": 7, "none": None, "tags": {"a": [1, 2]}},
            DEFAULT_OPTIONS,
        )

        assert decoded["plan"] == "gold"
        assert decoded["score"] == "7"
        assert decoded["none"] == ""
        assert decoded["tags"] == '{"a":[1,2]}'


# ============================================================
# SCALAR CODECS
# ============================================================

class TestBoolOrIntCodec:
    """Tests for the flag/count codec."""

    def test_bare_value_written(self):
        """Test no discriminator wraps the value."""
        assert BOOL_OR_INT.encode(BoolOrInt(True), DEFAULT_OPTIONS) is True
        assert BOOL_OR_INT.encode(BoolOrInt(10), DEFAULT_OPTIONS) == 10

    def test_decode(self):
        """Test JSON booleans and integers decode."""
        assert BOOL_OR_INT.decode(True, DEFAULT_OPTIONS) == BoolOrInt(True)
        assert BOOL_OR_INT.decode(4, DEFAULT_OPTIONS) == BoolOrInt(4)
        assert BOOL_OR_INT.decode("4", DEFAULT_OPTIONS) is None


class TestEnumCodec:
    """Tests for lowercase enum names."""

    def test_encode_lowercase_name(self):
        """Test members are written as lowercase names."""
        codec = EnumCodec(OptOutStatus)

        assert codec.encode(OptOutStatus.BLAST, DEFAULT_OPTIONS) == "blast"
        assert codec.encode(None, DEFAULT_OPTIONS) is OMIT

    def test_encode_wrong_type_raises(self):
        """Test values of another type are rejected."""
        with pytest.raises(TypeError):
            EnumCodec(OptOutStatus).encode("blast", DEFAULT_OPTIONS)

    def test_decode(self):
        """Test decoding is case-insensitive and unknown gives None."""
        codec = EnumCodec(OptOutStatus)

        assert codec.decode("ALL", DEFAULT_OPTIONS) is OptOutStatus.ALL
        assert codec.decode("never", DEFAULT_OPTIONS) is None


class TestPriceCodec:
    """Tests for minor unit prices."""

    def test_decode_minor_units(self):
        """Test 5000 on the wire is 50.00."""
        assert PRICE.decode(5000, DEFAULT_OPTIONS) == Decimal("50.00")
        assert str(PRICE.decode(12345, DEFAULT_OPTIONS)) == "123.45"

    def test_encode_decimal(self):
        """Test decimal amounts convert to minor units."""
        assert PRICE.encode(Decimal("12.34"), DEFAULT_OPTIONS) == 1234
        assert PRICE.encode(5000, DEFAULT_OPTIONS) == 5000

    def test_decode_rejects_non_integer(self):
        """Test strings and booleans are not prices."""
        with pytest.raises(TypeError):
            PRICE.decode("5000", DEFAULT_OPTIONS)
        with pytest.raises(TypeError):
            PRICE.decode(True, DEFAULT_OPTIONS)

    def test_integer_codec_rejects_bool(self):
        """Test booleans are not integers on the wire."""
        with pytest.raises(TypeError):
            INTEGER.decode(False, DEFAULT_OPTIONS)


# ============================================================
# VENDOR DATE/TIME
# ============================================================

class TestVendorDateTime:
    """Tests for the vendor timestamp format."""

    def test_parse_utc(self):
        """Test a well-formed UTC timestamp."""
        parsed = parse_vendor_datetime("Mon, 15 Jan 2024 10:30:00 +0000")

        assert parsed == datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_parse_negative_offset(self):
        """Test offsets west of UTC."""
        parsed = parse_vendor_datetime("Mon, 15 Jan 2024 10:30:00 -0500")

        assert parsed.utcoffset() == timedelta(hours=-5)
        assert parsed.hour == 10

    def test_malformed_offset(self):
        """Test a non-numeric offset gives None."""
        assert parse_vendor_datetime("Mon, 15 Jan 2024 10:30:00 +0X00") is None

    def test_offset_out_of_range(self):
        """Test impossible offsets give None."""
        assert parse_vendor_datetime("Mon, 15 Jan 2024 10:30:00 +2400") is None
        assert parse_vendor_datetime("Mon, 15 Jan 2024 10:30:00 +0060") is None

    def test_wrong_weekday(self):
        """Test a day name that disagrees with the date gives None."""
        assert parse_vendor_datetime("Tue, 15 Jan 2024 10:30:00 +0000") is None

    def test_garbage(self):
        """Test unparseable input gives None."""
        assert parse_vendor_datetime("2024-01-15T10:30:00Z") is None
        assert parse_vendor_datetime("") is None
        assert parse_vendor_datetime(None) is None
        assert parse_vendor_datetime(12) is None

    def test_invalid_date(self):
        """Test impossible calendar dates give None."""
        assert parse_vendor_datetime("Fri, 30 Feb 2024 10:30:00 +0000") is None

    def test_format(self):
        """Test formatting an aware datetime."""
        value = datetime(2024, 1, 15, 10, 30, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))

        assert format_vendor_datetime(value) == "Mon, 15 Jan 2024 10:30:00 +0530"

    def test_codec_decode_tolerant(self):
        """Test the codec never raises on bad input."""
        assert VENDOR_DATETIME.decode("not a date", DEFAULT_OPTIONS) is None
        assert VENDOR_DATETIME.decode(None, DEFAULT_OPTIONS) is None


# ============================================================
# MODELS BY FIELD RULES
# ============================================================

class TestFieldRules:
    """Tests for encode_model / decode_model."""

    def test_encode_declared_order(self):
        """Test keys follow the declared rule order."""
        item = PurchaseItem(id="1", title="Shoe", price=5000, quantity=2, url="https://x/1")

        encoded = encode_model(item)

        assert list(encoded) == ["id", "title", "price", "qty", "url"]

    def test_unset_optional_fields_omitted(self):
        """Test images, tags and vars are left out when unset."""
        encoded = encode_model(PurchaseItem(id="1"))

        assert "images" not in encoded
        assert "tags" not in encoded
        assert "vars" not in encoded

    def test_decode_missing_keys_keep_defaults(self):
        """Test absent keys keep model defaults."""
        lifetime = decode_model(UserLifetime, {"lifetime_purchase_price": 5000, "other": 1})

        assert lifetime.total_purchase_price == Decimal("50.00")
        assert lifetime.messages == 0

    def test_decode_wrong_shape_raises(self):
        """Test a non-object body for a model is rejected."""
        with pytest.raises(TypeError):
            decode_model(UserLifetime, [1, 2])

    def test_encode_value_unsupported(self):
        """Test unsupported payload values are rejected."""
        with pytest.raises(TypeError):
            encode_value(object())

    def test_encode_value_dispatch(self):
        """Test runtime type dispatch for plain payloads."""
        payload = {
            "when": datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
            "status": OptOutStatus.NONE,
            "vars": Map([("b", 1), ("a", 2)]),
        }

        encoded = encode_value(payload)

        assert encoded["when"] == "Mon, 15 Jan 2024 10:30:00 +0000"
        assert encoded["status"] == "none"
        assert list(encoded["vars"]) == ["a", "b"]

    def test_encode_value_drops_unset_selectors(self):
        """Test False and 0 selectors are dropped from plain payloads."""
        payload = {
            "id": "a",
            "fields": Map(keys=BoolOrInt(False), purchases=BoolOrInt(0), vars=BoolOrInt(True)),
            "flags": [BoolOrInt(0), BoolOrInt(3)],
            "lists": BoolOrInt(False),
        }

        encoded = encode_value(payload)

        assert encoded == {"id": "a", "fields": {"vars": True}, "flags": [3]}
        assert encode_value(BoolOrInt(0)) is OMIT
