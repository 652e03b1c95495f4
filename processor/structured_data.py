# processor/structured_data.py
"""
Codec for Postilion structured data (field 127.22).

The field packs an ordered set of string attributes. Each attribute is a key
followed by a value, and each of those is written as

    <size digit><length digits><text>

where the single size digit (1-9) says how many characters the decimal
length takes, and the length says how many characters of text follow.
Entries are concatenated without separators:

    "14MSDN172260953"  ->  {"MSDN": "2260953"}

decode() and encode() are exact inverses. Neither keeps any state, so both
are safe to call from any thread or task.
"""
from typing import Dict, Mapping, Optional, Tuple

from .errors import (
    InvalidEntry,
    InvalidLengthIndicator,
    LengthOverflow,
    TruncatedField,
    TruncatedLengthField,
)

AttributeSet = Dict[str, str]

SIZE_DIGITS = "123456789"
DIGITS = frozenset("0123456789")
MAX_LENGTH_DIGITS = 9


def _read_length(raw: str, pos: int, field: str, key: Optional[str]) -> Tuple[int, int]:
    """Read a size digit and the length it announces. Returns (length, new position)."""
    owner = f" for key '{key}'" if key is not None else ""
    if pos >= len(raw):
        raise TruncatedLengthField(
            f"Malformed data: Missing {field} length indicator size{owner}", pos, key
        )

    size_char = raw[pos]
    if size_char not in SIZE_DIGITS:
        raise InvalidLengthIndicator(
            f"Malformed data: Invalid length in prefix. {size_char!r} at index {pos} "
            f"is not a {field} length indicator size (1-9){owner}",
            pos,
            key,
        )
    size = int(size_char)
    pos += 1

    if pos + size > len(raw):
        raise TruncatedLengthField(
            f"Malformed data: Not enough characters for {field} length indicator "
            f"of size {size} at index {pos}{owner}",
            pos,
            key,
        )
    digits = raw[pos:pos + size]
    for i, ch in enumerate(digits):
        if ch not in DIGITS:
            raise InvalidLengthIndicator(
                f"Malformed data: Invalid length in prefix. Could not parse number {digits!r} "
                f"at index {pos + i}{owner}",
                pos + i,
                key,
            )
    return int(digits), pos + size


def _read_text(raw: str, pos: int, length: int, field: str, key: Optional[str]) -> Tuple[str, int]:
    available = len(raw) - pos
    if length > available:
        raise TruncatedField(field, length, available, pos, key)
    return raw[pos:pos + length], pos + length


def decode(raw: Optional[str]) -> AttributeSet:
    """
    Parse the raw field content into an ordered dict of attributes.

    None and "" give an empty dict. A key seen twice keeps its first position
    and takes the last value. Raises a FormatError subclass on malformed data;
    nothing is returned for a partially valid string.
    """
    attributes: AttributeSet = {}
    if raw is None:
        return attributes
    if not isinstance(raw, str):
        raise TypeError(f"structured data must be str, not {type(raw).__name__}")

    pos = 0
    while pos < len(raw):
        key_length, pos = _read_length(raw, pos, "key", None)
        key, pos = _read_text(raw, pos, key_length, "key", None)

        value_length, pos = _read_length(raw, pos, "value", key)
        value, pos = _read_text(raw, pos, value_length, "value", key)

        attributes[key] = value

    return attributes


def _length_prefix(text: str, field: str, index: int, key: str) -> str:
    length = len(text)
    digits = str(length)
    if len(digits) > MAX_LENGTH_DIGITS:
        raise LengthOverflow(
            f"{field} of length {length} in entry {index} cannot be encoded: "
            f"its length needs {len(digits)} digits, at most {MAX_LENGTH_DIGITS} are allowed",
            index,
            key,
        )
    return f"{len(digits)}{digits}"


def encode(attributes: Optional[Mapping[str, str]]) -> str:
    """
    Build the raw field content from attributes, in their iteration order.

    None and an empty mapping give "". Raises InvalidEntry for a missing or
    non-text key/value and LengthOverflow for text too long to describe with
    a single size digit.
    """
    if not attributes:
        return ""

    parts = []
    for index, (key, value) in enumerate(attributes.items()):
        if key is None or value is None:
            raise InvalidEntry("Key or value cannot be None.", index, key)
        if not isinstance(key, str) or not isinstance(value, str):
            raise InvalidEntry(
                f"Key and value must be str, got {type(key).__name__} and {type(value).__name__}",
                index,
                key if isinstance(key, str) else None,
            )

        parts.append(_length_prefix(key, "key", index, key))
        parts.append(key)
        parts.append(_length_prefix(value, "value", index, key))
        parts.append(value)

    return "".join(parts)
