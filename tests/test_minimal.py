"""
DEEPSTREAM_MINIMAL Converter Tests
==================================

Compact JSON encoding: descriptive strings and masks are dropped.
"""

import json
import logging

import pytest

from msgconv.converters import MinimalConverter, strip_descriptive
from msgconv.errors import PayloadDecodeError
from msgconv.models import Envelope, ObjectType


@pytest.fixture
def converter():
    return MinimalConverter()


class TestMinimalScenario:
    """The MOVING vehicle event in compact form."""

    def test_keeps_kind_and_tracking(self, converter, vehicle_envelope):
        """Verify the object kind and tracking id are kept."""
        doc = json.loads(converter.convert(vehicle_envelope).data)

        assert doc["event"] == "MOVING"
        assert doc["trackingId"] == 42
        assert doc["object"] == "VEHICLE"
        assert doc["ids"] == [3, 2, 7, 1]
        assert doc["id"] == 120
        assert doc["classId"] == 2
        assert doc["confidence"] == 0.91
        assert doc["bbox"] == [10.0, 20.0, 100.0, 50.0]

    def test_drops_descriptive_strings(self, converter, vehicle_envelope):
        """Verify descriptive strings are dropped."""
        data = converter.convert(vehicle_envelope).data

        for text in (b"sedan", b"Hyundai", b"blue", b"12A3456", b"gate 2"):
            assert text not in data
        assert b"otherAttrs" not in data

    def test_drops_masks(self, converter, full_envelope):
        """Verify mask polygons are dropped."""
        doc = json.loads(converter.convert(full_envelope).data)
        assert doc["object"] == "VEHICLE_EXT"
        assert "mask" not in doc

    def test_smaller_than_full_payload(self, converter, full_envelope):
        """Verify the payload is smaller than the full one."""
        from msgconv.converters import DeepstreamConverter

        full = DeepstreamConverter().convert(full_envelope)
        assert converter.convert(full_envelope).size < full.size

    def test_unknown_object_omitted(self, converter):
        """Verify UNKNOWN objects are omitted."""
        doc = json.loads(converter.convert(Envelope()).data)
        assert "object" not in doc

    def test_custom_object_passthrough(self, converter, custom_envelope):
        """Verify custom buffers pass through."""
        doc = json.loads(converter.convert(custom_envelope).data)

        assert doc["object"] == "CUSTOM"
        assert doc["objectTag"] == 0x150
        assert doc["objectData"] == "qrs="


class TestMinimalDecode:
    """Tests for decoding the compact form."""

    def test_round_trip_is_projection(self, converter, vehicle_envelope, full_envelope):
        """Verify decode restores the descriptive-free projection."""
        for envelope in (vehicle_envelope, full_envelope):
            restored = converter.decode(converter.convert(envelope).data)
            assert restored == strip_descriptive(envelope)

    def test_custom_round_trip_is_lossless(self, converter, custom_envelope):
        """Verify custom objects round-trip losslessly."""
        restored = converter.decode(converter.convert(custom_envelope).data)
        assert restored == custom_envelope

    def test_projection_keeps_kind(self, vehicle_envelope):
        """Verify the projection keeps the object kind."""
        stripped = strip_descriptive(vehicle_envelope)

        assert stripped.obj.kind == ObjectType.VEHICLE
        assert stripped.obj.as_vehicle().color is None
        assert stripped.other_attrs is None
        assert stripped.tracking_id == 42

    def test_invalid_payload(self, converter):
        """Verify an invalid payload raises PayloadDecodeError."""
        with pytest.raises(PayloadDecodeError):
            converter.decode(b'{"version": "1.0"}')

    def test_rejected_payload_logged(self, converter, caplog):
        """Verify rejected payloads are logged at DEBUG."""
        with caplog.at_level(logging.DEBUG, logger="msgconv.converters.minimal"):
            with pytest.raises(PayloadDecodeError):
                converter.decode(b"42")
        assert "rejected payload of 2 bytes" in caplog.text
