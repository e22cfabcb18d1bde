"""
Converters Module
=================

Payload converters, one per wire format.

Components:
    - PayloadConverter: Protocol every bound converter implements
    - BaseConverter: Shared encode/convert/batch plumbing
    - DeepstreamConverter: Full JSON (format 0)
    - MinimalConverter: Compact JSON (format 1)
    - ProtobufConverter: Framed protobuf (format 2)
    - CustomConverter: Base for plugin converters (formats >= 0x100)
"""

from msgconv.converters.base import BaseConverter, PayloadConverter
from msgconv.converters.custom import PLUGIN_PREFIX, CustomConverter, plugin_name
from msgconv.converters.deepstream import DeepstreamConverter
from msgconv.converters.minimal import MinimalConverter, strip_descriptive
from msgconv.converters.protobuf import ProtobufConverter

__all__ = [
    "PayloadConverter",
    "BaseConverter",
    "DeepstreamConverter",
    "MinimalConverter",
    "strip_descriptive",
    "ProtobufConverter",
    "CustomConverter",
    "PLUGIN_PREFIX",
    "plugin_name",
]
