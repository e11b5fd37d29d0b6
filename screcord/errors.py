"""
Exception types raised by the record codec and the occurrence engine.
"""

from typing import Optional


class ScRecordError(Exception):
    """Base class for all screcord errors."""


class PropertyParseError(ScRecordError, ValueError):
    """
    A raw header value does not match the grammar of its property type.

    Raised by the property parsers. When it happens while parsing a whole
    header block, EventRecord records it per field and keeps going.
    """

    def __init__(self, message: str, raw: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message)
        self.raw = raw
        self.key = key

    def __str__(self):
        msg = super().__str__()
        if self.key:
            return f"{self.key}: {msg}"
        return msg


class OccurrenceNotFoundError(ScRecordError, LookupError):
    """The occurrence sequence is empty, so there is no first occurrence."""
