# processor/__init__.py
# Expose the structured data codec at package level: `from processor import decode, encode`.
from .errors import (
    FormatError,
    InvalidEntry,
    InvalidLengthIndicator,
    LengthOverflow,
    TruncatedField,
    TruncatedLengthField,
)
from .structured_data import AttributeSet, decode, encode

__all__ = [
    "AttributeSet",
    "FormatError",
    "InvalidEntry",
    "InvalidLengthIndicator",
    "LengthOverflow",
    "TruncatedField",
    "TruncatedLengthField",
    "decode",
    "encode",
]
