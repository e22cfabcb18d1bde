"""
Plugin Fixtures
===============

Converter plugins used by the registry and API tests.

The buffer of format 0x150 is a sequence of big-endian 16-bit words.
"""

import json
import struct

from msgconv.converters import CustomConverter


class WordListConverter(CustomConverter):
    """Decodes the opaque buffer into its 16-bit words."""

    content_type = "application/json"

    def encode_custom(self, envelope, buffer):
        words = struct.unpack(f">{len(buffer) // 2}H", buffer)
        return json.dumps({
            "tag": self.format_id,
            "trackingId": envelope.tracking_id,
            "words": list(words),
        }).encode("utf-8")


def msg2p_336(config_path=None):
    return WordListConverter(0x150, config_path=config_path)


def msg2p_338(config_path=None):
    # Returns a converter for the wrong format
    return WordListConverter(0x151, config_path=config_path)


def msg2p_339(config_path=None):
    raise RuntimeError("license file missing")
