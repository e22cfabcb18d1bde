"""
Geometry & Attribute Primitives
===============================

Immutable value types embedded in event envelopes.

These carry no behavior beyond a few size helpers. Sequences are stored
as tuples so that instances stay hashable and cannot be mutated while a
converter holds them.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field

from msgconv.models.types import PoseType


class Rect(BaseModel):
    """
    Object bounding box in pixels.

    Attributes:
        top: Position of the rectangle's top edge
        left: Position of the rectangle's left edge
        width: Rectangle width
        height: Rectangle height
    """

    model_config = ConfigDict(frozen=True)

    top: float = Field(default=0.0, description="Top edge (pixels)")
    left: float = Field(default=0.0, description="Left edge (pixels)")
    width: float = Field(default=0.0, description="Width (pixels)")
    height: float = Field(default=0.0, description="Height (pixels)")


class GeoLocation(BaseModel):
    """Geolocation of an object (degrees, metres)."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(default=0.0, description="Latitude")
    lon: float = Field(default=0.0, description="Longitude")
    alt: float = Field(default=0.0, description="Altitude")


class Coordinate(BaseModel):
    """3-D position. Also used for mask polygon vertices."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Signature(BaseModel):
    """Object signature vector."""

    model_config = ConfigDict(frozen=True)

    values: Tuple[float, ...] = Field(default=(), description="Signature values")

    @property
    def size(self) -> int:
        return len(self.values)


class Joint(BaseModel):
    """Single pose joint with position and confidence."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    confidence: float = 0.0


class PoseJoints(BaseModel):
    """
    Body pose joint list.

    Attributes:
        joints: Ordered joints of the pose
        pose_type: 2D, 3D or 2.5D
    """

    model_config = ConfigDict(frozen=True)

    joints: Tuple[Joint, ...] = Field(default=(), description="Pose joints")
    pose_type: PoseType = Field(default=PoseType.POSE_2D, description="Pose dimensionality")

    @property
    def num_joints(self) -> int:
        return len(self.joints)


class Embedding(BaseModel):
    """Embedding vector produced by a re-identification model."""

    model_config = ConfigDict(frozen=True)

    vector: Tuple[float, ...] = Field(default=(), description="Embedding values")

    @property
    def size(self) -> int:
        return len(self.vector)


# A mask polygon is an ordered ring of coordinates
Polygon = Tuple[Coordinate, ...]
