# processor/errors.py
"""
Errors raised by the structured data (field 127.22) codec.

All of them derive from FormatError, itself a ValueError, so callers that
already treat a bad payload as ValueError (see iso_codec.unpack_iso) keep
working unchanged.
"""
from typing import Optional


class FormatError(ValueError):
    """Base class for every malformed-data condition of the codec.

    ``offset`` is the character offset where decoding stopped, or the index of
    the offending entry when encoding. ``key`` is the key being processed, when
    one had already been read.
    """

    def __init__(self, message: str, offset: int, key: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.key = key

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "offset": self.offset,
            "key": self.key,
        }


# decode path

class InvalidLengthIndicator(FormatError):
    pass


class TruncatedLengthField(FormatError):
    pass


class TruncatedField(FormatError):
    """A key or value is shorter than its declared length."""

    def __init__(self, field: str, length: int, available: int, offset: int, key: Optional[str] = None):
        owner = f" for key '{key}'" if key is not None and field == "value" else ""
        super().__init__(
            f"Malformed data: Not enough characters for {field} of length {length}{owner} "
            f"at index {offset} ({available} available)",
            offset,
            key,
        )
        self.field = field
        self.length = length
        self.available = available


# encode path

class InvalidEntry(FormatError):
    pass


class LengthOverflow(FormatError):
    pass
