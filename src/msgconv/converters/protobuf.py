"""
DEEPSTREAM_PROTOBUF Converter
=============================

Binary encoding with a fixed protobuf schema matching the envelope.

The schema is declared below as a table and compiled at import time into
a descriptor pool, so no generated *_pb2 module is needed. It uses proto2
so that optional fields keep explicit presence: an absent string and an
empty string stay distinguishable on the wire.

Schema (package msgconv.v1):
    message Event {
        optional string schema_version = 1;
        optional uint32 event_type = 2;
        optional ObjectVariant object = 3;     // never set for UNKNOWN
        optional Rect bbox = 4;
        ...
        optional Analytics analytics = 24;
    }
    message ObjectVariant {
        optional uint32 kind = 1;              // ObjectType or custom tag
        optional VehicleObject vehicle = 2;    // one family per typed kind
        ...
        repeated Polygon mask = 9;
        optional bytes data = 10;              // opaque kinds, passthrough
    }
    message EventBatch { repeated Event events = 1; }

Batches are framed: one EventBatch per call. A single bad event fails the
whole batch with BatchConversionError carrying its index.
"""

import logging
from typing import Dict, List, Sequence

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, Message

from msgconv.converters.base import BaseConverter
from msgconv.converters.schema import FAMILY_KEYS
from msgconv.errors import BatchConversionError, ConversionError, PayloadDecodeError
from msgconv.models.analytics import AnalyticsStatus
from msgconv.models.envelope import BatchResult, Envelope, Extension, Payload
from msgconv.models.objects import ATTRIBUTE_MODELS, ObjectVariant
from msgconv.models.primitives import (
    Coordinate,
    Embedding,
    GeoLocation,
    Joint,
    PoseJoints,
    Rect,
    Signature,
)
from msgconv.models.types import (
    CUSTOM_TAG_MIN,
    LANE_SENTINEL,
    MoveDirection,
    ObjectStatus,
    ObjectType,
    PayloadType,
)


logger = logging.getLogger(__name__)


PACKAGE = "msgconv.v1"
FILE_NAME = "msgconv/v1/event.proto"

_F = descriptor_pb2.FieldDescriptorProto

_SCALAR_TYPES = {
    "double": _F.TYPE_DOUBLE,
    "int32": _F.TYPE_INT32,
    "sint32": _F.TYPE_SINT32,
    "uint32": _F.TYPE_UINT32,
    "uint64": _F.TYPE_UINT64,
    "bool": _F.TYPE_BOOL,
    "string": _F.TYPE_STRING,
    "bytes": _F.TYPE_BYTES,
}

_RECT = ("top", "left", "width", "height")
_GEO = ("lat", "lon", "alt")
_XYZ = ("x", "y", "z")
_JOINT = ("x", "y", "z", "confidence")
_IDS = ("class_id", "sensor_id", "module_id", "place_id", "component_id", "frame_id")
_STRINGS = ("ts", "object_id", "sensor_str", "other_attrs", "video_path")
_FLAGS = (
    "lane_cross",
    "reverse_drive",
    "overcrowd",
    "long_park",
    "loitering",
    "break_in",
    "jaywalk",
)


def _fields(type_name, *names, start=1):
    return tuple((name, start + i, type_name) for i, name in enumerate(names))


# (message name, ((field name, number, type[, "repeated"]), ...))
SCHEMA = (
    ("Rect", _fields("double", *_RECT)),
    ("GeoLocation", _fields("double", *_GEO)),
    ("Coordinate", _fields("double", *_XYZ)),
    ("Polygon", (("points", 1, "Coordinate", "repeated"),)),
    ("Signature", (("values", 1, "double", "repeated"),)),
    ("Joint", _fields("double", *_JOINT)),
    ("Pose", (("joints", 1, "Joint", "repeated"), ("pose_type", 2, "uint32"))),
    ("Embedding", (("vector", 1, "double", "repeated"),)),
    ("VehicleObject", _fields("string", "type", "make", "model", "color", "region", "license")),
    ("PersonObject", _fields("string", "gender", "hair", "cap", "apparel") + (("age", 5, "uint32"),)),
    ("FaceObject", _fields(
        "string", "gender", "hair", "cap", "glasses", "facialhair", "name", "eyecolor",
    ) + (("age", 8, "uint32"),)),
    ("BagObject", _fields("string", "type", "color")),
    ("BicycleObject", _fields("string", "type", "color")),
    ("RoadSignObject", _fields("string", "type", "text")),
    ("ProductObject", _fields("string", "brand", "type", "shape")),
    ("ObjectVariant", (
        ("kind", 1, "uint32"),
        ("vehicle", 2, "VehicleObject"),
        ("person", 3, "PersonObject"),
        ("face", 4, "FaceObject"),
        ("bag", 5, "BagObject"),
        ("bicycle", 6, "BicycleObject"),
        ("roadsign", 7, "RoadSignObject"),
        ("product", 8, "ProductObject"),
        ("mask", 9, "Polygon", "repeated"),
        ("data", 10, "bytes"),
    )),
    ("Analytics", (
        ("direction", 1, "uint32"),
        ("status", 2, "uint32"),
        ("move_length", 3, "double"),
        ("move_time_ms", 4, "double"),
        ("move_speed", 5, "double"),
        ("long_stay_ms", 6, "double"),
        ("lanes", 7, "sint32", "repeated"),
        ("reverse_lane_no", 8, "sint32"),
    ) + _fields("bool", *_FLAGS, start=9)),
    ("Extension", (("data", 1, "bytes"),)),
    ("Event", (
        ("schema_version", 1, "string"),
        ("event_type", 2, "uint32"),
        ("object", 3, "ObjectVariant"),
        ("bbox", 4, "Rect"),
        ("location", 5, "GeoLocation"),
        ("coordinate", 6, "Coordinate"),
        ("signature", 7, "Signature"),
    ) + _fields("int32", *_IDS, start=8) + (
        ("confidence", 14, "double"),
        ("tracking_id", 15, "uint64"),
    ) + _fields("string", *_STRINGS, start=16) + (
        ("extension", 21, "Extension"),
        ("pose", 22, "Pose"),
        ("embedding", 23, "Embedding"),
        ("analytics", 24, "Analytics"),
    )),
    ("EventBatch", (("events", 1, "Event", "repeated"),)),
)


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Compile SCHEMA into a FileDescriptorProto."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=FILE_NAME,
        package=PACKAGE,
        syntax="proto2",
    )
    for message_name, fields in SCHEMA:
        message_proto = file_proto.message_type.add(name=message_name)
        for entry in fields:
            field_name, number, type_name = entry[:3]
            field = message_proto.field.add(name=field_name, number=number)
            field.label = _F.LABEL_REPEATED if "repeated" in entry[3:] else _F.LABEL_OPTIONAL
            if type_name in _SCALAR_TYPES:
                field.type = _SCALAR_TYPES[type_name]
            else:
                field.type = _F.TYPE_MESSAGE
                field.type_name = f".{PACKAGE}.{type_name}"
    return file_proto


def _build_message_classes() -> Dict[str, type]:
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(build_file_descriptor().SerializeToString())
    return {
        name: message_factory.GetMessageClass(pool.FindMessageTypeByName(f"{PACKAGE}.{name}"))
        for name, _ in SCHEMA
    }


# Message classes are immutable after import and shared by all converters
MESSAGES = _build_message_classes()


def _copy_in(target: Message, source, names: Sequence[str]) -> None:
    target.SetInParent()
    for name in names:
        setattr(target, name, getattr(source, name))


def _copy_out(source: Message, names: Sequence[str]) -> dict:
    return {name: getattr(source, name) for name in names}


class ProtobufConverter(BaseConverter):
    """
    Binary converter (format DEEPSTREAM_PROTOBUF).

    Example:
        converter = ProtobufConverter()
        payload = converter.convert_batch(envelopes).payloads[0]
        restored = converter.decode_batch(payload.data)
    """

    name = "deepstream-protobuf"
    format_id = int(PayloadType.DEEPSTREAM_PROTOBUF)
    content_type = "application/x-protobuf"
    framed = True

    @property
    def file_descriptor(self) -> descriptor_pb2.FileDescriptorProto:
        """Schema descriptor for consumers that decode payloads themselves."""
        return build_file_descriptor()

    def encode(self, envelope: Envelope) -> bytes:
        message = MESSAGES["Event"]()
        try:
            self._fill_event(message, envelope)
        except (ValueError, TypeError) as e:
            raise ConversionError(f"Cannot encode event: {e}")
        return message.SerializeToString()

    def convert_batch(self, envelopes: Sequence[Envelope]) -> BatchResult:
        envelopes = list(envelopes)
        batch = MESSAGES["EventBatch"]()
        for index, envelope in enumerate(envelopes):
            try:
                self._fill_event(batch.events.add(), envelope)
            except (ConversionError, ValueError, TypeError) as e:
                logger.warning(f"{self.name}: batch aborted at event {index}: {e}")
                raise BatchConversionError(index, e)

        component_id = envelopes[0].component_id if envelopes else 0
        payload = Payload(data=batch.SerializeToString(), component_id=component_id)
        logger.debug(f"{self.name}: framed {len(envelopes)} events ({payload.size} bytes)")
        return BatchResult(payloads=(payload,), framed=True)

    def decode(self, data: bytes) -> Envelope:
        """
        Parse one Event message back into an envelope.

        Raises:
            PayloadDecodeError: If the bytes are not a valid Event
        """
        message = MESSAGES["Event"]()
        try:
            message.ParseFromString(data)
        except DecodeError as e:
            raise PayloadDecodeError(f"Invalid DEEPSTREAM_PROTOBUF payload: {e}")
        return self._envelope_from(message)

    def decode_batch(self, data: bytes) -> List[Envelope]:
        batch = MESSAGES["EventBatch"]()
        try:
            batch.ParseFromString(data)
        except DecodeError as e:
            raise PayloadDecodeError(f"Invalid DEEPSTREAM_PROTOBUF batch: {e}")
        return [self._envelope_from(event) for event in batch.events]

    # -------------------------------------------------------------------------
    # Envelope -> message
    # -------------------------------------------------------------------------

    def _fill_event(self, message: Message, envelope: Envelope) -> None:
        options = self.options
        message.schema_version = options.schema_version
        message.event_type = envelope.event_type

        if not envelope.obj.is_unknown:
            self._fill_object(message.object, envelope.obj)
        if envelope.bbox is not None:
            _copy_in(message.bbox, envelope.bbox, _RECT)
        if envelope.location is not None:
            _copy_in(message.location, envelope.location, _GEO)
        if envelope.coordinate is not None:
            _copy_in(message.coordinate, envelope.coordinate, _XYZ)
        if envelope.signature is not None and options.include_signature:
            message.signature.SetInParent()
            message.signature.values.extend(envelope.signature.values)

        for name in _IDS:
            setattr(message, name, getattr(envelope, name))
        message.confidence = envelope.confidence
        message.tracking_id = envelope.tracking_id
        for name in _STRINGS:
            value = getattr(envelope, name)
            if value is not None:
                setattr(message, name, value)

        if envelope.extension is not None and options.include_extension:
            message.extension.data = envelope.extension.data
        if envelope.pose is not None and options.include_pose:
            message.pose.SetInParent()
            message.pose.pose_type = int(envelope.pose.pose_type)
            for joint in envelope.pose.joints:
                _copy_in(message.pose.joints.add(), joint, _JOINT)
        if envelope.embedding is not None and options.include_embedding:
            message.embedding.SetInParent()
            message.embedding.vector.extend(envelope.embedding.vector)
        if envelope.analytics is not None and options.include_analytics:
            self._fill_analytics(message.analytics, envelope.analytics)

    def _fill_object(self, target: Message, variant: ObjectVariant) -> None:
        target.kind = variant.tag
        if variant.is_opaque:
            target.data = variant.data
            return

        section = getattr(target, FAMILY_KEYS[variant.kind])
        section.SetInParent()
        for name, value in variant.attributes:
            if value is not None:
                setattr(section, name, value)
        if self.options.include_masks:
            for polygon in variant.mask:
                ring = target.mask.add()
                for point in polygon:
                    _copy_in(ring.points.add(), point, _XYZ)

    def _fill_analytics(self, target: Message, status: AnalyticsStatus) -> None:
        target.direction = int(status.direction)
        target.status = int(status.status)
        target.move_length = status.move_length
        target.move_time_ms = status.move_time_ms
        target.move_speed = status.move_speed
        target.long_stay_ms = status.long_stay_ms
        target.lanes.extend(status.crossed_lanes)
        target.reverse_lane_no = status.reverse_lane_no
        for name in _FLAGS:
            setattr(target, name, getattr(status, name))

    # -------------------------------------------------------------------------
    # Message -> envelope
    # -------------------------------------------------------------------------

    def _envelope_from(self, message: Message) -> Envelope:
        try:
            fields = dict(
                event_type=message.event_type,
                obj=(
                    self._object_from(message.object)
                    if message.HasField("object")
                    else ObjectVariant.unknown()
                ),
                confidence=message.confidence,
                tracking_id=message.tracking_id,
                **_copy_out(message, _IDS),
            )
            for name in _STRINGS:
                if message.HasField(name):
                    fields[name] = getattr(message, name)

            if message.HasField("bbox"):
                fields["bbox"] = Rect(**_copy_out(message.bbox, _RECT))
            if message.HasField("location"):
                fields["location"] = GeoLocation(**_copy_out(message.location, _GEO))
            if message.HasField("coordinate"):
                fields["coordinate"] = Coordinate(**_copy_out(message.coordinate, _XYZ))
            if message.HasField("signature"):
                fields["signature"] = Signature(values=tuple(message.signature.values))
            if message.HasField("extension"):
                fields["extension"] = Extension(data=message.extension.data)
            if message.HasField("pose"):
                fields["pose"] = PoseJoints(
                    joints=tuple(Joint(**_copy_out(j, _JOINT)) for j in message.pose.joints),
                    pose_type=message.pose.pose_type,
                )
            if message.HasField("embedding"):
                fields["embedding"] = Embedding(vector=tuple(message.embedding.vector))
            if message.HasField("analytics"):
                fields["analytics"] = self._analytics_from(message.analytics)

            return Envelope(**fields)
        except ValueError as e:
            raise PayloadDecodeError(f"DEEPSTREAM_PROTOBUF event violates envelope rules: {e}")

    def _object_from(self, message: Message) -> ObjectVariant:
        tag = message.kind
        if tag >= CUSTOM_TAG_MIN:
            return ObjectVariant(tag=tag, data=message.data)

        kind = ObjectType(tag)
        section = getattr(message, FAMILY_KEYS[kind])
        attributes = ATTRIBUTE_MODELS[kind](
            **{field.name: value for field, value in section.ListFields()}
        )
        mask = tuple(
            tuple(Coordinate(**_copy_out(point, _XYZ)) for point in ring.points)
            for ring in message.mask
        )
        return ObjectVariant.of(kind, attributes, mask)

    def _analytics_from(self, message: Message) -> AnalyticsStatus:
        return AnalyticsStatus.from_lanes(
            list(message.lanes),
            direction=MoveDirection(message.direction),
            status=ObjectStatus(message.status),
            move_length=message.move_length,
            move_time_ms=message.move_time_ms,
            move_speed=message.move_speed,
            long_stay_ms=message.long_stay_ms,
            reverse_lane_no=(
                message.reverse_lane_no
                if message.HasField("reverse_lane_no")
                else LANE_SENTINEL
            ),
            **_copy_out(message, _FLAGS),
        )
