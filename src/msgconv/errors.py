"""
Error Taxonomy
==============

Exceptions raised by the variant model, the registry and the converters.

    TypeMismatch          Variant accessed as the wrong kind (programmer error)
    UnknownFormat         No converter bound to the requested format id
    DuplicateFormat       Format id already bound and force was not given
    ConversionError       A single event could not be converted
    MalformedCustomBuffer Custom converter could not interpret a buffer
    BatchConversionError  Framed batch aborted by the event at `index`
    PayloadDecodeError    Payload bytes do not match the format's schema
    PluginLoadError       Configured plugin could not be resolved at startup
"""

from typing import Optional


class MsgConvError(Exception):
    """Base class for all msgconv exceptions."""
    pass


class TypeMismatch(MsgConvError, TypeError):
    """Raised when an object variant is accessed as a kind it does not hold."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Object variant is {actual}, not {expected}")
        self.expected = expected
        self.actual = actual


class UnknownFormat(MsgConvError, LookupError):
    """Raised when no converter is registered for a format id."""

    def __init__(self, format_id: int) -> None:
        super().__init__(f"No converter registered for format {format_id:#x}")
        self.format_id = format_id


class DuplicateFormat(MsgConvError, ValueError):
    """Raised when registering a format id that is already bound."""

    def __init__(self, format_id: int, existing: str) -> None:
        super().__init__(
            f"Format {format_id:#x} is already bound to '{existing}'"
        )
        self.format_id = format_id
        self.existing = existing


class ConversionError(MsgConvError):
    """Raised when a single event cannot be converted."""
    pass


class MalformedCustomBuffer(ConversionError):
    """Raised by a custom converter that cannot interpret an opaque buffer."""

    def __init__(self, tag: int, reason: str) -> None:
        super().__init__(f"Malformed custom buffer for tag {tag:#x}: {reason}")
        self.tag = tag
        self.reason = reason


class BatchConversionError(ConversionError):
    """Raised when a framed batch fails because of one of its events."""

    def __init__(self, index: int, cause: Exception) -> None:
        super().__init__(f"Batch conversion failed at event {index}: {cause}")
        self.index = index
        self.cause = cause


class PayloadDecodeError(ConversionError):
    """Raised when payload bytes cannot be decoded back into envelopes."""
    pass


class PluginLoadError(MsgConvError):
    """Raised when a configured converter plugin cannot be loaded."""

    def __init__(self, module: str, reason: str, format_id: Optional[int] = None) -> None:
        target = f" for format {format_id:#x}" if format_id is not None else ""
        super().__init__(f"Cannot load plugin '{module}'{target}: {reason}")
        self.module = module
        self.reason = reason
        self.format_id = format_id
