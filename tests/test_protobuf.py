"""
DEEPSTREAM_PROTOBUF Converter Tests
===================================

Binary encoding, framed batches and custom passthrough.
"""

import pytest

from msgconv.config import ConverterOptions
from msgconv.converters import ProtobufConverter
from msgconv.converters.protobuf import MESSAGES
from msgconv.errors import BatchConversionError, ConversionError, PayloadDecodeError, UnknownFormat
from msgconv.models import Envelope, EventType, ObjectType, ObjectVariant, PayloadType


@pytest.fixture
def converter():
    return ProtobufConverter()


class FlakyProtobufConverter(ProtobufConverter):
    """Rejects any event with tracking id 13."""

    def _fill_event(self, message, envelope):
        if envelope.tracking_id == 13:
            raise ConversionError("tracking id 13 rejected")
        super()._fill_event(message, envelope)


class TestEncode:
    """Tests for single-event encoding."""

    def test_round_trip(self, converter, vehicle_envelope, full_envelope, custom_envelope):
        """Verify decode restores encoded envelopes."""
        for envelope in (vehicle_envelope, full_envelope, custom_envelope):
            assert converter.decode(converter.convert(envelope).data) == envelope

    def test_wire_fields(self, converter, vehicle_envelope):
        """Verify the encoded message with the raw message class."""
        message = MESSAGES["Event"]()
        message.ParseFromString(converter.convert(vehicle_envelope).data)

        assert message.schema_version == "1.0"
        assert message.event_type == EventType.MOVING
        assert message.tracking_id == 42
        assert message.object.kind == ObjectType.VEHICLE
        assert message.object.vehicle.color == "blue"
        assert not message.object.vehicle.HasField("model")
        assert not message.HasField("video_path")

    def test_unknown_object_not_set(self, converter):
        """Verify UNKNOWN leaves the object field unset."""
        message = MESSAGES["Event"]()
        message.ParseFromString(converter.convert(Envelope()).data)
        assert not message.HasField("object")

    def test_empty_string_kept(self, converter):
        """Verify an empty string stays distinct from an absent one."""
        restored = converter.decode(converter.convert(Envelope(object_id="")).data)
        assert restored.object_id == ""
        assert restored.ts is None

    def test_lanes_truncated(self, converter, full_envelope):
        """Verify only the meaningful lane prefix is written."""
        message = MESSAGES["Event"]()
        message.ParseFromString(converter.convert(full_envelope).data)
        assert list(message.analytics.lanes) == [1, 3]

    def test_inclusion_policy(self, full_envelope):
        """Verify disabled inclusion options drop their fields."""
        converter = ProtobufConverter(ConverterOptions(include_pose=False, include_masks=False))
        restored = converter.decode(converter.convert(full_envelope).data)

        assert restored.pose is None
        assert restored.obj.get_mask() == ()
        assert restored.embedding == full_envelope.embedding

    def test_descriptor(self, converter):
        """Verify the exposed file descriptor."""
        descriptor = converter.file_descriptor
        names = [message.name for message in descriptor.message_type]

        assert descriptor.package == "msgconv.v1"
        assert descriptor.syntax == "proto2"
        assert "Event" in names and "EventBatch" in names

    def test_invalid_bytes(self, converter):
        """Verify undecodable bytes raise PayloadDecodeError."""
        with pytest.raises(PayloadDecodeError):
            converter.decode(b"\xff\xff\xff\xff")


class TestCustomPassthrough:
    """Custom object 0x150 through the protobuf format."""

    def test_buffer_passed_through(self, registry, custom_envelope):
        """Verify conversion succeeds without a converter bound to 0x150."""
        payload = registry.convert(PayloadType.DEEPSTREAM_PROTOBUF, custom_envelope)
        restored = ProtobufConverter().decode(payload.data)

        assert restored.obj.tag == 0x150
        assert restored.obj.get_buffer() == b"\xaa\xbb"
        assert payload.component_id == 4

    def test_custom_format_itself_unknown(self, registry, custom_envelope):
        """Verify the custom format id itself stays unbound."""
        with pytest.raises(UnknownFormat):
            registry.convert(0x150, custom_envelope)

    def test_wire_kind_keeps_tag(self, converter, custom_envelope):
        """Verify the wire kind keeps the custom tag."""
        message = MESSAGES["Event"]()
        message.ParseFromString(converter.convert(custom_envelope).data)

        assert message.object.kind == 0x150
        assert message.object.data == b"\xaa\xbb"

    def test_frame_analysis(self, converter):
        """Verify frame-analysis buffers round-trip."""
        envelope = Envelope(obj=ObjectVariant.frame_analysis(b"\x01\x02"))
        assert converter.decode(converter.convert(envelope).data) == envelope


class TestFramedBatch:
    """Tests for one-message-per-batch encoding."""

    def test_single_framed_payload(self, converter, vehicle_envelope, full_envelope, custom_envelope):
        """Verify a batch becomes one framed payload."""
        envelopes = [vehicle_envelope, full_envelope, custom_envelope]
        result = converter.convert_batch(envelopes)

        assert result.framed
        assert result.ok
        assert len(result.payloads) == 1
        assert result.payloads[0].component_id == vehicle_envelope.component_id
        assert converter.decode_batch(result.payloads[0].data) == envelopes

    def test_empty_batch(self, converter):
        """Verify an empty batch still frames a payload."""
        result = converter.convert_batch([])
        assert result.payloads[0].component_id == 0
        assert converter.decode_batch(result.payloads[0].data) == []

    def test_failing_event_aborts_batch(self, vehicle_envelope):
        """Verify one bad event fails the batch and reports its index."""
        converter = FlakyProtobufConverter()
        bad = Envelope(tracking_id=13)

        with pytest.raises(BatchConversionError) as excinfo:
            converter.convert_batch([vehicle_envelope, vehicle_envelope, bad])
        assert excinfo.value.index == 2
        assert isinstance(excinfo.value.cause, ConversionError)
