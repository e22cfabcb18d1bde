"""
DEEPSTREAM Converter
====================

Full structured JSON encoding of an envelope.

Every populated field is written, including object attributes and mask
polygons. Fields that were not collected (None) are omitted entirely.

Payload Layout:
    {
        "version": "1.0",
        "@timestamp": "2023-06-19T10:00:00.000Z",
        "frameId": 120,
        "componentId": 1,
        "sensor": {"id": 3, "name": "CAM-03"},
        "place": {"id": 7},
        "analyticsModule": {"id": 2},
        "event": {"type": "MOVING"},
        "detection": {
            "objectId": "veh-42",
            "trackingId": 42,
            "classId": 2,
            "confidence": 0.91,
            "bbox": {"top": 10.0, "left": 20.0, "width": 100.0, "height": 50.0},
            "location": {"lat": 37.5, "lon": 127.0, "alt": 30.0}
        },
        "object": {
            "kind": "VEHICLE_EXT",
            "vehicle": {"type": "sedan", "color": "blue"},
            "mask": [[{"x": 0.0, "y": 0.0, "z": 0.0}, ...]]
        },
        "analytics": {"direction": "MOVE_LEFT", "status": "OBJ_MOVE", "lanes": [1, 3], ...},
        "videoPath": "/videos/cam3.mp4",
        "extension": {"data": "qrs=", "size": 2}
    }

Object Rules:
    - UNKNOWN objects produce no "object" key
    - Custom and FRAME_ANALYSIS objects carry their buffer base64-encoded,
      with custom tags preserved in "tag"
"""

import logging
from typing import List, Optional

from pydantic import Field, ValidationError

from msgconv.converters.base import BaseConverter
from msgconv.converters.schema import (
    FAMILY_KEYS,
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
from msgconv.models.objects import (
    BagObject,
    BicycleObject,
    FaceObject,
    ObjectVariant,
    PersonObject,
    ProductObject,
    RoadSignObject,
    VehicleObject,
)
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


# =============================================================================
# Wire Models
# =============================================================================

class WireSensor(WireModel):
    id: int = 0
    name: Optional[str] = None


class WireRef(WireModel):
    id: int = 0


class WireEvent(WireModel):
    type: str
    code: Optional[int] = None


class WirePose(WireModel):
    pose_type: int = 0
    joints: List[Joint] = []


class WireDetection(WireModel):
    """Detection data of the tracked entity, independent of its object kind."""

    object_id: Optional[str] = None
    tracking_id: int = 0
    class_id: int = 0
    confidence: float = 0.0
    bbox: Optional[Rect] = None
    location: Optional[GeoLocation] = None
    coordinate: Optional[Coordinate] = None
    signature: Optional[List[float]] = None
    pose: Optional[WirePose] = None
    embedding: Optional[List[float]] = None
    other_attrs: Optional[str] = None


class WireObject(WireModel):
    """Object variant section. Exactly one family key or `data` is set."""

    kind: str
    tag: Optional[int] = None
    vehicle: Optional[VehicleObject] = None
    person: Optional[PersonObject] = None
    face: Optional[FaceObject] = None
    bag: Optional[BagObject] = None
    bicycle: Optional[BicycleObject] = None
    roadsign: Optional[RoadSignObject] = None
    product: Optional[ProductObject] = None
    mask: Optional[List[List[Coordinate]]] = None
    data: Optional[str] = None
    size: Optional[int] = None


class WireBuffer(WireModel):
    data: str
    size: int


class DeepstreamMessage(WireModel):
    """Top-level DEEPSTREAM payload."""

    version: str
    timestamp: Optional[str] = Field(default=None, alias="@timestamp")
    frame_id: int = 0
    component_id: int = 0
    sensor: WireSensor = Field(default_factory=WireSensor)
    place: WireRef = Field(default_factory=WireRef)
    analytics_module: WireRef = Field(default_factory=WireRef)
    event: WireEvent
    detection: WireDetection = Field(default_factory=WireDetection)
    object: Optional[WireObject] = None
    analytics: Optional[WireAnalytics] = None
    video_path: Optional[str] = None
    extension: Optional[WireBuffer] = None


# =============================================================================
# Converter
# =============================================================================

class DeepstreamConverter(BaseConverter):
    """
    Full JSON converter (format DEEPSTREAM).

    Example:
        converter = DeepstreamConverter()
        payload = converter.convert(envelope)
        restored = converter.decode(payload.data)
    """

    name = "deepstream"
    format_id = int(PayloadType.DEEPSTREAM)
    content_type = "application/json"

    def encode(self, envelope: Envelope) -> bytes:
        message = self.to_wire(envelope)
        return message.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")

    def decode(self, data: bytes) -> Envelope:
        """
        Parse a DEEPSTREAM payload back into an envelope.

        Raises:
            PayloadDecodeError: If the payload does not match the schema
        """
        try:
            message = DeepstreamMessage.model_validate_json(data)
        except ValidationError as e:
            logger.debug(f"{self.name}: rejected payload of {len(data)} bytes")
            raise PayloadDecodeError(f"Invalid DEEPSTREAM payload: {e}")
        return self.from_wire(message)

    # -------------------------------------------------------------------------
    # Envelope -> wire
    # -------------------------------------------------------------------------

    def to_wire(self, envelope: Envelope) -> DeepstreamMessage:
        options = self.options
        event_name, event_code = event_to_wire(envelope.event_type)

        detection = WireDetection(
            object_id=envelope.object_id,
            tracking_id=envelope.tracking_id,
            class_id=envelope.class_id,
            confidence=envelope.confidence,
            bbox=envelope.bbox,
            location=envelope.location,
            coordinate=envelope.coordinate,
            other_attrs=envelope.other_attrs,
        )
        if envelope.signature is not None and options.include_signature:
            detection.signature = list(envelope.signature.values)
        if envelope.pose is not None and options.include_pose:
            detection.pose = WirePose(
                pose_type=int(envelope.pose.pose_type),
                joints=list(envelope.pose.joints),
            )
        if envelope.embedding is not None and options.include_embedding:
            detection.embedding = list(envelope.embedding.vector)

        message = DeepstreamMessage(
            version=options.schema_version,
            timestamp=envelope.ts,
            frame_id=envelope.frame_id,
            component_id=envelope.component_id,
            sensor=WireSensor(id=envelope.sensor_id, name=envelope.sensor_str),
            place=WireRef(id=envelope.place_id),
            analytics_module=WireRef(id=envelope.module_id),
            event=WireEvent(type=event_name, code=event_code),
            detection=detection,
            object=self._object_to_wire(envelope.obj),
            video_path=envelope.video_path,
        )
        if envelope.analytics is not None and options.include_analytics:
            message.analytics = analytics_to_wire(envelope.analytics)
        if envelope.extension is not None and options.include_extension:
            message.extension = WireBuffer(
                data=b64encode(envelope.extension.data),
                size=envelope.extension.size,
            )
        return message

    def _object_to_wire(self, variant: ObjectVariant) -> Optional[WireObject]:
        if variant.is_unknown:
            return None

        kind, tag = object_to_wire(variant)
        if variant.is_opaque:
            return WireObject(
                kind=kind,
                tag=tag,
                data=b64encode(variant.data),
                size=len(variant.data),
            )

        fields = {FAMILY_KEYS[variant.kind]: variant.attributes}
        if variant.is_extended and self.options.include_masks:
            fields["mask"] = [list(polygon) for polygon in variant.mask]
        return WireObject(kind=kind, **fields)

    # -------------------------------------------------------------------------
    # Wire -> envelope
    # -------------------------------------------------------------------------

    def from_wire(self, message: DeepstreamMessage) -> Envelope:
        detection = message.detection
        fields = dict(
            event_type=event_from_wire(message.event.type, message.event.code),
            obj=self._object_from_wire(message.object),
            bbox=detection.bbox,
            location=detection.location,
            coordinate=detection.coordinate,
            class_id=detection.class_id,
            sensor_id=message.sensor.id,
            module_id=message.analytics_module.id,
            place_id=message.place.id,
            component_id=message.component_id,
            frame_id=message.frame_id,
            confidence=detection.confidence,
            tracking_id=detection.tracking_id,
            ts=message.timestamp,
            object_id=detection.object_id,
            sensor_str=message.sensor.name,
            other_attrs=detection.other_attrs,
            video_path=message.video_path,
        )
        if detection.signature is not None:
            fields["signature"] = Signature(values=tuple(detection.signature))
        if detection.pose is not None:
            fields["pose"] = PoseJoints(
                joints=tuple(detection.pose.joints),
                pose_type=detection.pose.pose_type,
            )
        if detection.embedding is not None:
            fields["embedding"] = Embedding(vector=tuple(detection.embedding))
        if message.analytics is not None:
            fields["analytics"] = analytics_from_wire(message.analytics)
        if message.extension is not None:
            fields["extension"] = Extension(data=b64decode(message.extension.data))

        try:
            return Envelope(**fields)
        except ValidationError as e:
            raise PayloadDecodeError(f"DEEPSTREAM payload violates envelope rules: {e}")

    def _object_from_wire(self, wire: Optional[WireObject]) -> ObjectVariant:
        if wire is None:
            return ObjectVariant.unknown()

        tag = object_tag_from_wire(wire.kind, wire.tag)
        try:
            if tag >= CUSTOM_TAG_MIN:
                data = b64decode(wire.data) if wire.data is not None else b""
                return ObjectVariant(tag=tag, data=data)
            kind = ObjectType(tag)
            return ObjectVariant.of(
                kind,
                getattr(wire, FAMILY_KEYS[kind]),
                mask=wire.mask or (),
            )
        except ValueError as e:
            raise PayloadDecodeError(f"Invalid object section: {e}")
