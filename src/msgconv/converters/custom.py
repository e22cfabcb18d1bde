"""
Custom Converters
=================

Base class for converters of caller-defined payload formats (>= 0x100).

A custom converter is usually shipped as a plugin module. The plugin
exposes a factory named after the naming contract and is registered
explicitly at startup (see msgconv.registry.load_plugins):

    # my_plugin.py
    class LaneReportConverter(CustomConverter):
        def encode_custom(self, envelope, buffer):
            count, = struct.unpack(">H", buffer[:2])
            ...

    def msg2p_336(config_path=None):
        return LaneReportConverter(0x150, config_path=config_path)

Design Rules:
    - The converter name is always <prefix>_<format_id> (decimal id)
    - The opaque buffer comes from a custom object with the same tag,
      falling back to the envelope's extension slot
    - Any parse failure surfaces as MalformedCustomBuffer for that event
      only, so sibling events of a batch are unaffected
"""

import logging
from typing import Optional

from msgconv.config import ConverterOptions
from msgconv.converters.base import BaseConverter
from msgconv.errors import ConversionError, MalformedCustomBuffer
from msgconv.models.envelope import Envelope
from msgconv.models.types import is_custom_tag


logger = logging.getLogger(__name__)


PLUGIN_PREFIX = "msg2p"


def plugin_name(format_id: int, prefix: str = PLUGIN_PREFIX) -> str:
    """Name a custom converter (and its plugin factory) must carry."""
    return f"{prefix}_{format_id}"


class CustomConverter(BaseConverter):
    """
    Base for converters bound to a caller-defined format id.

    Subclasses implement `encode_custom()`, which receives the opaque
    buffer already resolved from the envelope.

    Attributes:
        format_id: Custom payload format id (>= 0x100)
        config_path: Plugin-specific configuration file, if any
    """

    content_type = "application/octet-stream"

    def __init__(
        self,
        format_id: int,
        options: Optional[ConverterOptions] = None,
        config_path: Optional[str] = None,
    ) -> None:
        if not is_custom_tag(format_id):
            raise ValueError(f"Custom format id must be >= 0x100, got {format_id:#x}")
        super().__init__(options)
        self.format_id = format_id
        self.name = plugin_name(format_id)
        self.config_path = config_path

    def custom_buffer(self, envelope: Envelope) -> bytes:
        """
        Resolve the opaque buffer this converter should interpret.

        Raises:
            MalformedCustomBuffer: If the envelope carries no buffer for
                this format
        """
        obj = envelope.obj
        if obj.is_custom and obj.tag == self.format_id:
            return obj.get_buffer()
        if envelope.extension is not None:
            return envelope.extension.data
        raise MalformedCustomBuffer(
            self.format_id,
            f"event object is {obj.describe()} and carries no extension",
        )

    def encode(self, envelope: Envelope) -> bytes:
        buffer = self.custom_buffer(envelope)
        try:
            return self.encode_custom(envelope, buffer)
        except (ConversionError, NotImplementedError):
            raise
        except Exception as e:
            logger.debug(f"{self.name}: encode_custom raised {type(e).__name__}: {e}")
            raise MalformedCustomBuffer(self.format_id, f"{type(e).__name__}: {e}")

    def encode_custom(self, envelope: Envelope, buffer: bytes) -> bytes:
        """Serialize one envelope given its opaque buffer."""
        raise NotImplementedError
