"""
ABI Types
=========

Numeric enums and constants shared by every envelope and converter.

The numeric values below are part of the in-process interchange contract.
They are emitted on the wire (directly in protobuf, by name in JSON) and
must not change without bumping SCHEMA_VERSION.

Reserved Ranges:
    Event, object and payload kinds at or above 0x100 belong to callers.
    The core never interprets them beyond routing by tag.
"""

from enum import IntEnum


SCHEMA_VERSION = "1.0"

# First tag value available to caller-defined kinds
CUSTOM_TAG_MIN = 0x100

# Fixed size of the cross-lane array
LANE_ARRAY_SIZE = 4
LANE_SENTINEL = -1

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
UINT64_MAX = 2 ** 64 - 1


class EventType(IntEnum):
    """
    Kind of event an envelope reports.

    Values at or above RESERVED are custom events. Values between RESET
    and RESERVED are invalid.
    """

    ENTRY = 0
    EXIT = 1
    MOVING = 2
    STOPPED = 3
    EMPTY = 4
    PARKED = 5
    RESET = 6

    RESERVED = 0x100
    CUSTOM = 0x101
    FRAME_ANALYSIS = 0x102


class ObjectType(IntEnum):
    """
    Kind of object attached to an envelope.

    UNKNOWN means the serialized output carries no object at all.
    """

    VEHICLE = 0
    PERSON = 1
    FACE = 2
    BAG = 3
    BICYCLE = 4
    ROADSIGN = 5
    VEHICLE_EXT = 6
    PERSON_EXT = 7
    FACE_EXT = 8
    PRODUCT = 9
    PRODUCT_EXT = 10

    RESERVED = 0x100
    CUSTOM = 0x101
    UNKNOWN = 0x102
    FRAME_ANALYSIS = 0x103


class PayloadType(IntEnum):
    """Built-in payload formats. Custom formats use ids >= RESERVED."""

    DEEPSTREAM = 0
    DEEPSTREAM_MINIMAL = 1
    DEEPSTREAM_PROTOBUF = 2

    RESERVED = 0x100
    CUSTOM = 0x101


class PoseType(IntEnum):
    """Dimensionality of a pose joint list."""

    POSE_2D = 0
    POSE_3D = 1
    POSE_2_5D = 2


class MoveDirection(IntEnum):
    """Dominant movement direction of a tracked object."""

    MOVE_UP = 0
    MOVE_DOWN = 1
    MOVE_LEFT = 2
    MOVE_RIGHT = 3
    MOVE_RIGHT_UP = 4
    MOVE_RIGHT_DOWN = 5
    MOVE_LEFT_UP = 6
    MOVE_LEFT_DOWN = 7
    MOVE_LITTLE = 8
    NO_DIRECTION = 9


class ObjectStatus(IntEnum):
    """Analytics status derived for a tracked object."""

    VEHICLE_LONG_PARK = 0
    PERSON_LONG_STANDING = 1
    PERSON_LONG_WALK = 2
    PERSON_LOITERING = 3
    PERSON_BREAKIN = 4
    PERSON_JAYWALK = 5
    PERSON_OVERCROWD = 6
    COLLIDE_PRE = 7
    COLLIDE_CLOSE = 8
    OBJ_MOVE = 9
    NO_STATUS = 10


# Object kinds that carry a typed attribute record
TYPED_OBJECT_TYPES = frozenset(
    t for t in ObjectType if t < ObjectType.RESERVED
)

# Object kinds that additionally carry mask polygons
EXTENDED_OBJECT_TYPES = frozenset({
    ObjectType.VEHICLE_EXT,
    ObjectType.PERSON_EXT,
    ObjectType.FACE_EXT,
    ObjectType.PRODUCT_EXT,
})

BUILTIN_PAYLOAD_TYPES = frozenset({
    PayloadType.DEEPSTREAM,
    PayloadType.DEEPSTREAM_MINIMAL,
    PayloadType.DEEPSTREAM_PROTOBUF,
})


def is_custom_tag(value: int) -> bool:
    """Return True if value lies in the caller-defined range."""
    return value >= CUSTOM_TAG_MIN


def is_valid_event_type(value: int) -> bool:
    """Event types are either built-in (0..6) or custom (>= 0x100)."""
    return value in EventType._value2member_map_ or is_custom_tag(value)


def is_valid_format_id(value: int) -> bool:
    """Format ids are either built-in (0..2) or custom (>= 0x100)."""
    return value in BUILTIN_PAYLOAD_TYPES or is_custom_tag(value)
