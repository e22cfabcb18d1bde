"""
Shared Wire Schema
==================

Helpers shared by the built-in converters.

    - FAMILY_KEYS: section name of each typed object kind
    - WireModel: camelCase base model for JSON payload sections
    - Event and object kind names (custom ids keep their numeric code)
    - Base64 passthrough for opaque buffers
    - WireAnalytics: the analytics status block

Kind Naming:
    Built-in kinds are written by enum name ("MOVING", "VEHICLE_EXT").
    Caller-defined ids are written as "CUSTOM" plus their numeric value,
    so that a decoder can restore the exact id.
"""

import base64
import binascii
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from msgconv.errors import PayloadDecodeError
from msgconv.models.analytics import AnalyticsStatus
from msgconv.models.objects import ObjectVariant
from msgconv.models.types import (
    LANE_ARRAY_SIZE,
    EventType,
    MoveDirection,
    ObjectStatus,
    ObjectType,
)


CUSTOM_NAME = "CUSTOM"

# Key under which each typed kind writes its attribute record
FAMILY_KEYS = {
    ObjectType.VEHICLE: "vehicle",
    ObjectType.VEHICLE_EXT: "vehicle",
    ObjectType.PERSON: "person",
    ObjectType.PERSON_EXT: "person",
    ObjectType.FACE: "face",
    ObjectType.FACE_EXT: "face",
    ObjectType.BAG: "bag",
    ObjectType.BICYCLE: "bicycle",
    ObjectType.ROADSIGN: "roadsign",
    ObjectType.PRODUCT: "product",
    ObjectType.PRODUCT_EXT: "product",
}


class WireModel(BaseModel):
    """Base for JSON payload sections: camelCase keys, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Kind Names
# =============================================================================

def event_to_wire(event_type: int) -> Tuple[str, Optional[int]]:
    """Return (name, code). code is only set for caller-defined event ids."""
    if event_type in EventType._value2member_map_:
        return EventType(event_type).name, None
    return CUSTOM_NAME, event_type


def event_from_wire(name: str, code: Optional[int]) -> int:
    if code is not None:
        return code
    try:
        return int(EventType[name])
    except KeyError:
        raise PayloadDecodeError(f"Unknown event type '{name}'")


def object_to_wire(variant: ObjectVariant) -> Tuple[str, Optional[int]]:
    """Return (kind name, tag). tag is only set for caller-defined kinds."""
    if variant.is_custom:
        return CUSTOM_NAME, variant.tag
    return variant.kind.name, None


def object_tag_from_wire(kind: str, tag: Optional[int]) -> int:
    if tag is not None:
        return tag
    try:
        return int(ObjectType[kind])
    except KeyError:
        raise PayloadDecodeError(f"Unknown object kind '{kind}'")


# =============================================================================
# Opaque Buffers
# =============================================================================

def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(f"Invalid base64 buffer: {e}")


# =============================================================================
# Analytics Block
# =============================================================================

class WireAnalytics(WireModel):
    """Analytics status as written in JSON payloads."""

    direction: str
    status: str
    move_length: float = 0.0
    move_time_ms: float = 0.0
    speed: float = 0.0
    long_stay_ms: float = 0.0
    lanes: List[int] = []
    reverse_lane: Optional[int] = None
    lane_cross: bool = False
    reverse_drive: bool = False
    overcrowd: bool = False
    long_park: bool = False
    loitering: bool = False
    break_in: bool = False
    jaywalk: bool = False


def analytics_to_wire(status: AnalyticsStatus) -> WireAnalytics:
    """Build the wire block. Only the meaningful lane prefix is written."""
    return WireAnalytics(
        direction=status.direction.name,
        status=status.status.name,
        move_length=status.move_length,
        move_time_ms=status.move_time_ms,
        speed=status.move_speed,
        long_stay_ms=status.long_stay_ms,
        lanes=list(status.crossed_lanes),
        reverse_lane=status.reverse_lane_no if status.reverse_drive else None,
        lane_cross=status.lane_cross,
        reverse_drive=status.reverse_drive,
        overcrowd=status.overcrowd,
        long_park=status.long_park,
        loitering=status.loitering,
        break_in=status.break_in,
        jaywalk=status.jaywalk,
    )


def analytics_from_wire(wire: WireAnalytics) -> AnalyticsStatus:
    if len(wire.lanes) > LANE_ARRAY_SIZE:
        raise PayloadDecodeError(f"Too many lanes in payload: {wire.lanes}")
    try:
        direction = MoveDirection[wire.direction]
        status = ObjectStatus[wire.status]
    except KeyError as e:
        raise PayloadDecodeError(f"Unknown analytics value {e}")
    fields = dict(
        direction=direction,
        status=status,
        move_length=wire.move_length,
        move_time_ms=wire.move_time_ms,
        move_speed=wire.speed,
        long_stay_ms=wire.long_stay_ms,
        lane_cross=wire.lane_cross,
        reverse_drive=wire.reverse_drive,
        overcrowd=wire.overcrowd,
        long_park=wire.long_park,
        loitering=wire.loitering,
        break_in=wire.break_in,
        jaywalk=wire.jaywalk,
    )
    if wire.reverse_lane is not None:
        fields["reverse_lane_no"] = wire.reverse_lane
    try:
        return AnalyticsStatus.from_lanes(wire.lanes, **fields)
    except ValueError as e:
        raise PayloadDecodeError(f"Invalid analytics block: {e}")
