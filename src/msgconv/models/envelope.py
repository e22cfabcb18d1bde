"""
Event Envelope
==============

The unit of work handed to a converter, plus the converter outputs.

An Envelope is built by the producing stage for each event and passed to
a converter read-only for the duration of one conversion call. It is a
frozen pydantic model, so converters cannot mutate it and concurrent
conversions of the same envelope are safe.

Field order follows the interchange ABI:

    event_type, obj, bbox, location, coordinate, signature,
    class_id, sensor_id, module_id, place_id, component_id, frame_id,
    confidence, tracking_id, ts, object_id, sensor_str, other_attrs,
    video_path, extension, pose, embedding, analytics

Optional strings are None when the value was not collected, which is
distinct from "" (collected and empty). Converters omit None values.

Example:
    envelope = Envelope(
        event_type=EventType.MOVING,
        obj=ObjectVariant.vehicle(type="sedan", color="blue"),
        tracking_id=42,
        bbox=Rect(top=10, left=20, width=100, height=50),
    )
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from msgconv.errors import ConversionError
from msgconv.models.analytics import AnalyticsStatus
from msgconv.models.objects import ObjectVariant
from msgconv.models.primitives import (
    Coordinate,
    Embedding,
    GeoLocation,
    PoseJoints,
    Rect,
    Signature,
)
from msgconv.models.types import (
    INT32_MAX,
    INT32_MIN,
    UINT64_MAX,
    EventType,
    is_custom_tag,
    is_valid_event_type,
)


logger = logging.getLogger(__name__)


class Extension(BaseModel):
    """
    Free-form extension slot.

    The buffer's meaning is owned by the producer and the custom converter
    that consumes it. The core only carries it.
    """

    model_config = ConfigDict(
        frozen=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    data: bytes = b""

    @property
    def size(self) -> int:
        return len(self.data)


def _int32(description: str) -> Any:
    return Field(default=0, ge=INT32_MIN, le=INT32_MAX, description=description)


class Envelope(BaseModel):
    """
    One event's full structured metadata.

    Attributes:
        event_type: EventType value, or a custom event id >= 0x100
        obj: The object variant attached to the event
        bbox: Object bounding box
        location: Object geolocation
        coordinate: Object coordinate
        signature: Object signature vector
        class_id: Detector class id
        sensor_id: Id of the sensor that generated the event
        module_id: Id of the analytics module that generated the event
        place_id: Id of the place related to the object
        component_id: Id of the component that generated the event
        frame_id: Video frame id
        confidence: Inference confidence (not clamped)
        tracking_id: Tracker id, stable across frames for one entity
        ts: Event timestamp string
        object_id: Detected or inferred object id
        sensor_str: Sensor identity string
        other_attrs: Free-text attributes
        video_path: Source media path
        extension: Caller-owned extension buffer
        pose: Body pose joints
        embedding: Embedding vector
        analytics: Analytics-derived status sub-record
    """

    model_config = ConfigDict(frozen=True)

    event_type: int = Field(
        default=int(EventType.ENTRY), ge=0, le=INT32_MAX, description="Event type"
    )
    obj: ObjectVariant = Field(default_factory=ObjectVariant.unknown, description="Object variant")

    bbox: Optional[Rect] = None
    location: Optional[GeoLocation] = None
    coordinate: Optional[Coordinate] = None
    signature: Optional[Signature] = None

    class_id: int = _int32("Detector class id")
    sensor_id: int = _int32("Sensor id")
    module_id: int = _int32("Analytics module id")
    place_id: int = _int32("Place id")
    component_id: int = _int32("Component id")
    frame_id: int = _int32("Video frame id")

    confidence: float = Field(default=0.0, description="Inference confidence")
    tracking_id: int = Field(default=0, ge=0, le=UINT64_MAX, description="Tracking id")

    ts: Optional[str] = None
    object_id: Optional[str] = None
    sensor_str: Optional[str] = None
    other_attrs: Optional[str] = None
    video_path: Optional[str] = None

    extension: Optional[Extension] = None
    pose: Optional[PoseJoints] = None
    embedding: Optional[Embedding] = None
    analytics: Optional[AnalyticsStatus] = None

    @field_validator("event_type")
    @classmethod
    def _check_event_type(cls, value: int) -> int:
        if not is_valid_event_type(value):
            raise ValueError(f"Event type {value:#x} is reserved")
        return value

    @field_validator("confidence")
    @classmethod
    def _check_confidence(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("confidence must be finite")
        if not 0.0 <= value <= 1.0:
            logger.debug(f"Confidence {value} outside [0, 1], passing through")
        return value

    @property
    def event_kind(self) -> EventType:
        """Event kind. Custom event ids report EventType.CUSTOM."""
        if self.event_type in EventType._value2member_map_:
            return EventType(self.event_type)
        return EventType.CUSTOM

    @property
    def is_custom_event(self) -> bool:
        return is_custom_tag(self.event_type)


@dataclass(frozen=True, slots=True)
class Payload:
    """
    Converter output.

    The caller owns `data` once the converter returns. Neither the
    converter nor the registry keeps a reference to it.

    Attributes:
        data: Serialized bytes
        component_id: Id of the component that owns the payload
    """

    data: bytes
    component_id: int = 0

    @property
    def size(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full buffer."""
        return f"Payload(size={self.size}, component_id={self.component_id})"


@dataclass(frozen=True, slots=True)
class BatchResult:
    """
    Result of converting several envelopes.

    For per-event formats `payloads` is aligned with the input: a failed
    event leaves None at its index and its error in `errors`. Framed
    formats produce a single payload covering the whole batch.

    Attributes:
        payloads: Converted payloads (None where the event failed)
        errors: Conversion error per failed input index
        framed: True if the batch was encoded as one message
    """

    payloads: Tuple[Optional[Payload], ...] = ()
    errors: Dict[int, ConversionError] = field(default_factory=dict)
    framed: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def succeeded(self) -> Tuple[Payload, ...]:
        """Payloads of the events that converted successfully."""
        return tuple(p for p in self.payloads if p is not None)
