"""Built-in predicate library.

Every predicate receives the field value already rendered as a string (see
paramcheck.registry.to_display_string) followed by its own arguments, and
returns a bool. Options are keyword arguments; the ones that mirror a single
argument (``matches(pattern)``, ``is_in(values)``) also accept it positionally.

The set of names exposed to validator chains is declared explicitly in
BUILTIN_PREDICATE_NAMES.
"""

import base64
import binascii
import ipaddress
import json
import math
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Union
from urllib.parse import urlparse

from dateutil import parser as date_parser

_ALPHA = re.compile(r"^[A-Za-z]+$")
_ALPHANUMERIC = re.compile(r"^[A-Za-z0-9]+$")
_ASCII = re.compile(r"^[\x00-\x7F]+$")
_NUMERIC = re.compile(r"^[+-]?[0-9]+$")
_INT = re.compile(r"^[-+]?(?:0|[1-9][0-9]*)$")
_INT_LEADING_ZEROES = re.compile(r"^[-+]?[0-9]+$")
_FLOAT = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")
_DECIMAL = re.compile(r"^[-+]?(?:[0-9]+)?(?:\.[0-9]+)?$")
_HEXADECIMAL = re.compile(r"^(?:0[xX])?[0-9a-fA-F]+$")
_HEX_COLOR = re.compile(r"^#?(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_MONGO_ID = re.compile(r"^[0-9a-fA-F]{24}$")
_EMAIL = re.compile(
    r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$"
)
_FQDN_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_TLD = re.compile(r"^[A-Za-z]{2,63}$|^xn--[A-Za-z0-9-]{2,59}$")
_ISO8601 = re.compile(r"^\d{4}-?\d{2}-?\d{2}(?:[T ]\d{2}(?::?\d{2}(?::?\d{2}(?:[.,]\d+)?)?)?(?:Z|[+-]\d{2}(?::?\d{2})?)?)?$")

Number = Union[int, float]

_TRUE_VALUES = ("true", "1")
_FALSE_VALUES = ("false", "0")

# JavaScript-style modifiers; "g", "u" and "y" have no effect on a single search
_REGEX_MODIFIERS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "u": 0,
    "y": 0,
}


def _in_range(number: float, min: Optional[Number], max: Optional[Number]) -> bool:
    if min is not None and number < min:
        return False
    if max is not None and number > max:
        return False
    return True


def _parse_date(value: str) -> Optional[datetime]:
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# String content

def contains(value: str, seed: Any, ignore_case: bool = False) -> bool:
    """Check that the value contains ``seed``."""
    seed = str(seed)
    if ignore_case:
        return seed.lower() in value.lower()
    return seed in value


def equals(value: str, comparison: Any) -> bool:
    return value == str(comparison)


def _regex_flags(flags: Union[int, str]) -> int:
    if not isinstance(flags, str):
        return flags
    result = 0
    for modifier in flags:
        if modifier not in _REGEX_MODIFIERS:
            raise ValueError(f"Unknown regular expression modifier '{modifier}'")
        result |= _REGEX_MODIFIERS[modifier]
    return result


def matches(value: str, pattern: Union[str, "re.Pattern[str]"], flags: Union[int, str] = 0) -> bool:
    """Check the value against a regular expression (searched, not anchored).

    ``flags`` is either ``re`` flags or a modifier string such as "i" or "im".
    """
    if isinstance(pattern, str):
        flags = _regex_flags(flags)
        pattern = re.compile(pattern, flags)
    return pattern.search(value) is not None


def is_empty(value: str, ignore_whitespace: bool = False) -> bool:
    return len(value.strip() if ignore_whitespace else value) == 0


def is_length(value: str, min: int = 0, max: Optional[int] = None) -> bool:
    """Check the value's length is within ``[min, max]``."""
    return _in_range(len(value), min, max)


def is_alpha(value: str) -> bool:
    return bool(_ALPHA.match(value))


def is_alphanumeric(value: str) -> bool:
    return bool(_ALPHANUMERIC.match(value))


def is_ascii(value: str) -> bool:
    return bool(_ASCII.match(value))


def is_lowercase(value: str) -> bool:
    return value == value.lower()


def is_uppercase(value: str) -> bool:
    return value == value.upper()


def is_in(value: str, values: Iterable[Any]) -> bool:
    """Check the value is one of ``values`` (compared as strings)."""
    if isinstance(values, dict):
        values = values.keys()
    return value in {str(v) for v in values}


# Numbers

def is_numeric(value: str) -> bool:
    return bool(_NUMERIC.match(value))


def is_int(
    value: str,
    min: Optional[Number] = None,
    max: Optional[Number] = None,
    allow_leading_zeroes: bool = True,
) -> bool:
    """Check the value is an integer, optionally within ``[min, max]``."""
    pattern = _INT_LEADING_ZEROES if allow_leading_zeroes else _INT
    if not pattern.match(value):
        return False
    return _in_range(int(value), min, max)


def is_float(value: str, min: Optional[Number] = None, max: Optional[Number] = None) -> bool:
    """Check the value is a finite number, optionally within ``[min, max]``."""
    if not _FLOAT.match(value):
        return False
    number = float(value)
    return math.isfinite(number) and _in_range(number, min, max)


def is_decimal(value: str) -> bool:
    return value not in ("", ".", "+", "-") and bool(_DECIMAL.match(value))


def is_divisible_by(value: str, number: Number) -> bool:
    if not is_float(value) or float(number) == 0:
        return False
    return float(value) % float(number) == 0


def is_port(value: str) -> bool:
    return is_int(value, min=0, max=65535, allow_leading_zeroes=False)


def is_boolean(value: str, loose: bool = False) -> bool:
    """Check the value is "true", "false", "1" or "0" (any case if ``loose``)."""
    if loose:
        return value.lower() in _TRUE_VALUES + _FALSE_VALUES + ("yes", "no")
    return value in _TRUE_VALUES + _FALSE_VALUES


def is_hexadecimal(value: str) -> bool:
    return bool(_HEXADECIMAL.match(value))


def is_hex_color(value: str) -> bool:
    return bool(_HEX_COLOR.match(value))


# Identifiers and encodings

def is_uuid(value: str, version: Optional[int] = None) -> bool:
    """Check the value is a hyphenated UUID, optionally of a given version."""
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return False
    if str(parsed) != value.lower():
        return False
    return version is None or parsed.version == int(version)


def is_mongo_id(value: str) -> bool:
    return bool(_MONGO_ID.match(value))


def is_base64(value: str) -> bool:
    if not value or len(value) % 4:
        return False
    try:
        base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def is_json(value: str) -> bool:
    """Check the value parses as a JSON object or array."""
    try:
        parsed = json.loads(value)
    except (ValueError, RecursionError):
        return False
    return isinstance(parsed, (dict, list))


# Network

def is_email(value: str) -> bool:
    if len(value) > 254 or not _EMAIL.match(value):
        return False
    local, _, _ = value.rpartition("@")
    return len(local) <= 64


def is_fqdn(value: str, require_tld: bool = True) -> bool:
    """Check the value is a fully qualified domain name."""
    if value.endswith("."):
        value = value[:-1]
    labels = value.split(".")
    if require_tld:
        if len(labels) < 2 or not _TLD.match(labels[-1]):
            return False
    return all(_FQDN_LABEL.match(label) for label in labels)


def is_ip(value: str, version: Optional[int] = None) -> bool:
    """Check the value is an IP address, optionally of version 4 or 6."""
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return False
    return version is None or address.version == int(version)


def is_url(value: str, protocols: Iterable[str] = ("http", "https", "ftp"), require_tld: bool = True) -> bool:
    """Check the value is an absolute URL with one of ``protocols``."""
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if parsed.scheme not in protocols or not parsed.hostname:
        return False
    host = parsed.hostname
    if host == "localhost" and not require_tld:
        return True
    return is_ip(host) or is_fqdn(host, require_tld=require_tld)


# Dates

def is_iso8601(value: str) -> bool:
    """Check the value is an ISO 8601 date or date-time."""
    if not _ISO8601.match(value):
        return False
    try:
        date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return False
    return True


def is_date(value: str) -> bool:
    """Check the value can be parsed as a calendar date."""
    return bool(value) and _parse_date(value) is not None


def is_after(value: str, date: Optional[str] = None) -> bool:
    """Check the value is a date after ``date`` (default: now)."""
    parsed = _parse_date(value) if value else None
    comparison = _parse_date(date) if date else datetime.now(timezone.utc)
    if parsed is None or comparison is None:
        return False
    return parsed > comparison


def is_before(value: str, date: Optional[str] = None) -> bool:
    """Check the value is a date before ``date`` (default: now)."""
    parsed = _parse_date(value) if value else None
    comparison = _parse_date(date) if date else datetime.now(timezone.utc)
    if parsed is None or comparison is None:
        return False
    return parsed < comparison


# Names exposed to validator chains as built-ins
BUILTIN_PREDICATE_NAMES = frozenset({
    "contains",
    "equals",
    "matches",
    "is_after",
    "is_alpha",
    "is_alphanumeric",
    "is_ascii",
    "is_base64",
    "is_before",
    "is_boolean",
    "is_date",
    "is_decimal",
    "is_divisible_by",
    "is_email",
    "is_empty",
    "is_float",
    "is_fqdn",
    "is_hex_color",
    "is_hexadecimal",
    "is_in",
    "is_int",
    "is_ip",
    "is_iso8601",
    "is_json",
    "is_length",
    "is_lowercase",
    "is_mongo_id",
    "is_numeric",
    "is_port",
    "is_uppercase",
    "is_url",
    "is_uuid",
})

BUILTIN_PREDICATES: Dict[str, Callable[..., bool]] = {
    name: globals()[name] for name in sorted(BUILTIN_PREDICATE_NAMES)
}


__all__ = sorted(BUILTIN_PREDICATE_NAMES) + [
    "BUILTIN_PREDICATE_NAMES",
    "BUILTIN_PREDICATES",
]
