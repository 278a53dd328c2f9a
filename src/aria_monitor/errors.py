"""Exception types raised by the ARIA monitoring pipeline."""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "EmptyStateError",
    "FormatRegistryError",
    "IndexOutOfRangeError",
    "MalformedRecordError",
    "MismatchError",
    "ParseError",
    "RangeError",
    "StructuralError",
    "UnknownFormatError",
    "ValidationError",
]


class MalformedRecordError(ValueError):
    """Raised when a raw position report cannot be parsed or fails validation."""


class IndexOutOfRangeError(IndexError):
    """Raised when a field index exceeds the delimiters found in a record."""


class RangeError(ValueError):
    """Raised when a heading lies outside ``[0, 360]``."""


class ParseError(ValueError):
    """Raised when JSON text cannot be parsed."""


class StructuralError(ValueError):
    """Raised when JSON text parses but does not have the expected shape."""


class MismatchError(ValueError):
    """Raised when a strict extend mixes events from another facility or date."""


class ValidationError(ValueError):
    """Raised when a serialized record is missing fields or holds invalid values."""


class EmptyStateError(LookupError):
    """Raised when querying an aggregate that has not recorded anything yet."""


class ConfigurationError(RuntimeError):
    """Raised when the project configuration is invalid."""


class FormatRegistryError(ValueError):
    """Raised when invalid entries are supplied to the format registry."""


class UnknownFormatError(LookupError):
    """Raised when a position format tag has not been registered."""
