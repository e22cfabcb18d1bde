"""
Converter Contract
==================

Protocol and shared base class for payload converters.

A converter turns one Envelope (or a batch) into a Payload for one wire
format. Converters must be safe to call from several threads at once:
the built-in ones hold no mutable state after construction.

Batch Semantics:
    - Per-event formats convert each envelope independently. A failing
      event leaves None at its index and does not affect its siblings.
    - Framed formats (one message per batch) fail the whole batch and
      report the failing index through BatchConversionError.
"""

import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

from msgconv.config import ConverterOptions
from msgconv.errors import ConversionError
from msgconv.models.envelope import BatchResult, Envelope, Payload


logger = logging.getLogger(__name__)


@runtime_checkable
class PayloadConverter(Protocol):
    """
    Interface every converter bound in a registry must implement.

    Attributes:
        name: Converter name (custom converters follow <prefix>_<format_id>)
        format_id: Payload format id the converter produces
        content_type: MIME type of produced payloads
        framed: True if batches are encoded as a single message
    """

    name: str
    format_id: int
    content_type: str
    framed: bool

    def convert(self, envelope: Envelope) -> Payload:
        """Convert one envelope."""
        ...

    def convert_batch(self, envelopes: Sequence[Envelope]) -> BatchResult:
        """Convert several envelopes."""
        ...

    def close(self) -> None:
        """Release any resources held by the converter."""
        ...


class BaseConverter:
    """
    Convenience base for converters.

    Subclasses implement `encode()`. The base turns encoded bytes into a
    Payload owned by the envelope's component and provides the per-event
    batch loop.
    """

    name: str = "base"
    format_id: int = -1
    content_type: str = "application/octet-stream"
    framed: bool = False

    def __init__(self, options: Optional[ConverterOptions] = None) -> None:
        """
        Initialize converter.

        Args:
            options: Field-inclusion policy. Defaults include everything.
        """
        self.options = options or ConverterOptions()

    def encode(self, envelope: Envelope) -> bytes:
        """Serialize one envelope. Implemented by subclasses."""
        raise NotImplementedError

    def convert(self, envelope: Envelope) -> Payload:
        data = self.encode(envelope)
        logger.debug(
            f"{self.name}: converted frame={envelope.frame_id} "
            f"tracking_id={envelope.tracking_id} ({len(data)} bytes)"
        )
        return Payload(data=data, component_id=envelope.component_id)

    def convert_batch(self, envelopes: Sequence[Envelope]) -> BatchResult:
        payloads = []
        errors = {}
        for index, envelope in enumerate(envelopes):
            try:
                payloads.append(self.convert(envelope))
            except ConversionError as e:
                logger.warning(f"{self.name}: event {index} failed: {e}")
                payloads.append(None)
                errors[index] = e
        return BatchResult(payloads=tuple(payloads), errors=errors)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, format_id={self.format_id:#x})"
