"""
DEEPSTREAM_MINIMAL Converter
============================

Reduced-bandwidth JSON encoding for high-frequency event streams.

Carries the same fields as DEEPSTREAM except descriptive strings: object
attribute records, mask polygons and the free-text `other_attrs` are
dropped. Everything else is written flat, with primitives as arrays.

Payload Layout:
    {
        "version": "1.0",
        "id": 120,
        "@timestamp": "2023-06-19T10:00:00.000Z",
        "sensorId": "CAM-03",
        "event": "MOVING",
        "ids": [3, 2, 7, 1],                 # sensor, module, place, component
        "trackingId": 42,
        "classId": 2,
        "confidence": 0.91,
        "object": "VEHICLE",
        "bbox": [10.0, 20.0, 100.0, 50.0],   # top, left, width, height
        "location": [37.5, 127.0, 30.0],
        "analytics": {...}
    }

The projection a decoder can restore is given by strip_descriptive().
"""

import logging
from typing import List, Optional, Tuple

from pydantic import Field, ValidationError

from msgconv.converters.base import BaseConverter
from msgconv.converters.schema import (
    WireAnalytics,
    WireModel,
    analytics_from_wire,
    analytics_to_wire,
    b64decode,
    b64encode,
    event_from_wire,
    event_to_wire,
    object_tag_from_wire,
    object_to_wire,
)
from msgconv.errors import PayloadDecodeError
from msgconv.models.envelope import Envelope, Extension
from msgconv.models.objects import ObjectVariant
from msgconv.models.primitives import (
    Coordinate,
    Embedding,
    GeoLocation,
    Joint,
    PoseJoints,
    Rect,
    Signature,
)
from msgconv.models.types import CUSTOM_TAG_MIN, ObjectType, PayloadType


logger = logging.getLogger(__name__)


JointRow = Tuple[float, float, float, float]


class MinimalMessage(WireModel):
    """Top-level DEEPSTREAM_MINIMAL payload."""

    version: str
    id: int = 0
    timestamp: Optional[str] = Field(default=None, alias="@timestamp")
    sensor_id: Optional[str] = None
    event: str
    event_code: Optional[int] = None
    ids: Tuple[int, int, int, int] = (0, 0, 0, 0)
    tracking_id: int = 0
    object_id: Optional[str] = None
    class_id: int = 0
    confidence: float = 0.0
    object: Optional[str] = None
    object_tag: Optional[int] = None
    object_data: Optional[str] = None
    bbox: Optional[Tuple[float, float, float, float]] = None
    location: Optional[Tuple[float, float, float]] = None
    coordinate: Optional[Tuple[float, float, float]] = None
    signature: Optional[List[float]] = None
    pose: Optional[Tuple[int, List[JointRow]]] = None
    embedding: Optional[List[float]] = None
    analytics: Optional[WireAnalytics] = None
    video_path: Optional[str] = None
    ext: Optional[str] = None


def strip_descriptive(envelope: Envelope) -> Envelope:
    """
    Return the envelope as DEEPSTREAM_MINIMAL sees it.

    Typed objects keep their kind but lose their attributes and masks,
    and `other_attrs` is cleared. Opaque objects are untouched.
    """
    obj = envelope.obj
    if not obj.is_opaque:
        obj = ObjectVariant.of(obj.kind)
    return envelope.model_copy(update={"obj": obj, "other_attrs": None})


class MinimalConverter(BaseConverter):
    """Compact JSON converter (format DEEPSTREAM_MINIMAL)."""

    name = "deepstream-minimal"
    format_id = int(PayloadType.DEEPSTREAM_MINIMAL)
    content_type = "application/json"

    def encode(self, envelope: Envelope) -> bytes:
        message = self.to_wire(envelope)
        return message.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    def decode(self, data: bytes) -> Envelope:
        """
        Parse a DEEPSTREAM_MINIMAL payload back into an envelope.

        Typed objects come back with empty attribute records.

        Raises:
            PayloadDecodeError: If the payload does not match the schema
        """
        try:
            message = MinimalMessage.model_validate_json(data)
        except ValidationError as e:
            logger.debug(f"{self.name}: rejected payload of {len(data)} bytes")
            raise PayloadDecodeError(f"Invalid DEEPSTREAM_MINIMAL payload: {e}")
        return self.from_wire(message)

    def to_wire(self, envelope: Envelope) -> MinimalMessage:
        options = self.options
        event_name, event_code = event_to_wire(envelope.event_type)

        message = MinimalMessage(
            version=options.schema_version,
            id=envelope.frame_id,
            timestamp=envelope.ts,
            sensor_id=envelope.sensor_str,
            event=event_name,
            event_code=event_code,
            ids=(
                envelope.sensor_id,
                envelope.module_id,
                envelope.place_id,
                envelope.component_id,
            ),
            tracking_id=envelope.tracking_id,
            object_id=envelope.object_id,
            class_id=envelope.class_id,
            confidence=envelope.confidence,
            video_path=envelope.video_path,
        )

        obj = envelope.obj
        if not obj.is_unknown:
            message.object, message.object_tag = object_to_wire(obj)
            if obj.is_opaque:
                message.object_data = b64encode(obj.data)

        if (bbox := envelope.bbox) is not None:
            message.bbox = (bbox.top, bbox.left, bbox.width, bbox.height)
        if (location := envelope.location) is not None:
            message.location = (location.lat, location.lon, location.alt)
        if (coordinate := envelope.coordinate) is not None:
            message.coordinate = (coordinate.x, coordinate.y, coordinate.z)
        if envelope.signature is not None and options.include_signature:
            message.signature = list(envelope.signature.values)
        if envelope.pose is not None and options.include_pose:
            message.pose = (
                int(envelope.pose.pose_type),
                [(j.x, j.y, j.z, j.confidence) for j in envelope.pose.joints],
            )
        if envelope.embedding is not None and options.include_embedding:
            message.embedding = list(envelope.embedding.vector)
        if envelope.analytics is not None and options.include_analytics:
            message.analytics = analytics_to_wire(envelope.analytics)
        if envelope.extension is not None and options.include_extension:
            message.ext = b64encode(envelope.extension.data)
        return message

    def from_wire(self, message: MinimalMessage) -> Envelope:
        sensor_id, module_id, place_id, component_id = message.ids
        fields = dict(
            event_type=event_from_wire(message.event, message.event_code),
            obj=self._object_from_wire(message),
            class_id=message.class_id,
            sensor_id=sensor_id,
            module_id=module_id,
            place_id=place_id,
            component_id=component_id,
            frame_id=message.id,
            confidence=message.confidence,
            tracking_id=message.tracking_id,
            ts=message.timestamp,
            object_id=message.object_id,
            sensor_str=message.sensor_id,
            video_path=message.video_path,
        )
        if message.bbox is not None:
            top, left, width, height = message.bbox
            fields["bbox"] = Rect(top=top, left=left, width=width, height=height)
        if message.location is not None:
            lat, lon, alt = message.location
            fields["location"] = GeoLocation(lat=lat, lon=lon, alt=alt)
        if message.coordinate is not None:
            x, y, z = message.coordinate
            fields["coordinate"] = Coordinate(x=x, y=y, z=z)
        if message.signature is not None:
            fields["signature"] = Signature(values=tuple(message.signature))
        if message.pose is not None:
            pose_type, rows = message.pose
            fields["pose"] = PoseJoints(
                joints=tuple(Joint(x=x, y=y, z=z, confidence=c) for x, y, z, c in rows),
                pose_type=pose_type,
            )
        if message.embedding is not None:
            fields["embedding"] = Embedding(vector=tuple(message.embedding))
        if message.analytics is not None:
            fields["analytics"] = analytics_from_wire(message.analytics)
        if message.ext is not None:
            fields["extension"] = Extension(data=b64decode(message.ext))

        try:
            return Envelope(**fields)
        except ValidationError as e:
            raise PayloadDecodeError(f"DEEPSTREAM_MINIMAL payload violates envelope rules: {e}")

    def _object_from_wire(self, message: MinimalMessage) -> ObjectVariant:
        if message.object is None:
            return ObjectVariant.unknown()
        tag = object_tag_from_wire(message.object, message.object_tag)
        try:
            if tag >= CUSTOM_TAG_MIN:
                data = b64decode(message.object_data) if message.object_data else b""
                return ObjectVariant(tag=tag, data=data)
            return ObjectVariant.of(ObjectType(tag))
        except ValueError as e:
            raise PayloadDecodeError(f"Invalid object section: {e}")
