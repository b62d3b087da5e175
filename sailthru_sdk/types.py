"""
Sailthru SDK - Core Value Types.

============================================================
PURPOSE
============================================================
Small value containers shared by request and response models.

TYPES:
- Map: ordered map with case-insensitive key lookup
- BoolOrInt: a field selector that is either a flag or a count
- OptOutStatus / KeyConflict: enums written as lowercase names

WIRE RULES:
- Map lookups ignore ASCII case, but the encoder writes entries
  sorted by exact (case-sensitive) key order
- BoolOrInt is never wrapped on the wire, only its value is written

============================================================
"""

from collections.abc import MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


# ============================================================
# ORDERED CASE-INSENSITIVE MAP
# ============================================================

class Map(MutableMapping):
    """
    Ordered mapping of string keys with case-insensitive lookup.

    Setting a key that matches an existing key case-insensitively
    overwrites the value and keeps the original key spelling.
    Iteration follows insertion order.
    """

    def __init__(self, entries: Any = None, **kwargs: Any):
        self._entries: Dict[str, Tuple[str, Any]] = {}

        if entries is not None:
            items = entries.items() if hasattr(entries, "items") else entries
            for key, value in items:
                self[key] = value

        for key, value in kwargs.items():
            self[key] = value

    @staticmethod
    def _fold(key: str) -> str:
        if not isinstance(key, str):
            raise TypeError(f"Map keys must be strings, got {type(key).__name__}")
        # ASCII-only folding, non-ASCII characters compare exactly
        return key.translate(_ASCII_LOWER)

    def __getitem__(self, key: str) -> Any:
        return self._entries[self._fold(key)][1]

    def __setitem__(self, key: str, value: Any) -> None:
        folded = self._fold(key)
        existing = self._entries.get(folded)
        original_key = existing[0] if existing is not None else key
        self._entries[folded] = (original_key, value)

    def __delitem__(self, key: str) -> None:
        del self._entries[self._fold(key)]

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self._fold(key) in self._entries

    def __repr__(self) -> str:
        inner = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"Map({{{inner}}})"

    def count(self) -> int:
        """Number of entries."""
        return len(self._entries)

    def ordered_items(self) -> List[Tuple[str, Any]]:
        """
        Entries sorted by exact key order.

        This is the order entries are written to the wire. It is
        case-sensitive and independent of insertion order. Keys compare
        by UTF-16 code unit, so characters above U+FFFF sort as their
        surrogate pairs.
        """
        return sorted(self._entries.values(), key=lambda pair: pair[0].encode("utf-16-be"))


_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ",
    "abcdefghijklmnopqrstuvwxyz",
)


# ============================================================
# TAGGED UNION (BOOL | INT)
# ============================================================

@dataclass(frozen=True)
class BoolOrInt:
    """
    Field selector value: a boolean flag or a positive item count.

    Only ``True`` flags and counts greater than zero are written to
    the wire, so ``False`` and ``0`` behave exactly like absence.
    """

    value: Union[bool, int]

    def __post_init__(self) -> None:
        if not isinstance(self.value, int):
            raise TypeError(
                f"BoolOrInt value must be bool or int, got {type(self.value).__name__}"
            )

    @classmethod
    def flag(cls, value: bool = True) -> "BoolOrInt":
        return cls(bool(value))

    @classmethod
    def limit(cls, count: int) -> "BoolOrInt":
        return cls(int(count))

    @property
    def is_flag(self) -> bool:
        return isinstance(self.value, bool)

    @property
    def is_count(self) -> bool:
        return not self.is_flag

    @property
    def is_emitted(self) -> bool:
        """Whether this value is written to the wire at all."""
        if self.is_flag:
            return self.value is True
        return self.value > 0


# ============================================================
# ENUMS
# ============================================================

class OptOutStatus(Enum):
    """Email opt-out status of a user."""

    NONE = "none"
    BASIC = "basic"
    BLAST = "blast"
    ALL = "all"


class KeyConflict(Enum):
    """How the API resolves conflicting user keys."""

    MERGE = "merge"
    ERROR = "error"


def parse_enum(enum_cls: type, value: Optional[str]) -> Optional[Enum]:
    """
    Case-insensitive lookup of an enum member by name.

    Returns None for empty or unknown values.
    """
    if not value or not isinstance(value, str):
        return None

    wanted = value.strip().upper()
    for member in enum_cls:
        if member.name == wanted:
            return member
    return None


# ============================================================
# CONSTANTS
# ============================================================

class UserKeyType:
    """Known user key types."""

    COOKIE = "cookie"
    EMAIL = "email"
    EXTERNAL_ID = "exid"
    FACEBOOK = "fb"
    SAILTHRU_ID = "sid"
    SMS = "sms"
    TWITTER = "twitter"


class SailthruCookies:
    """Cookies set by the Sailthru tracking scripts."""

    HORIZON = "sailthru_hid"
    CONTENT = "sailthru_content"
    CID = "sailthru_cid"
    BID = "sailthru_bid"


class SailthruEndpoints:
    """Supported API resources."""

    PURCHASE = "/purchase"
    USER = "/user"
