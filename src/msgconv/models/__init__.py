"""
Data Models
===========

Pydantic models for event metadata.

This module re-exports all data models for convenient access.

Models:
    Types:
        - EventType, ObjectType, PayloadType: ABI enums
        - PoseType, MoveDirection, ObjectStatus: Attribute enums

    Primitives:
        - Rect, GeoLocation, Coordinate, Signature
        - Joint, PoseJoints, Embedding

    Objects:
        - VehicleObject, PersonObject, FaceObject, ProductObject, ...
        - ObjectVariant: Tagged union of object kinds

    Envelope:
        - AnalyticsStatus: Derived analytics sub-record
        - Extension: Caller-owned extension buffer
        - Envelope: One event's full metadata
        - Payload, BatchResult: Converter outputs
"""

from msgconv.models.types import (
    EventType,
    MoveDirection,
    ObjectStatus,
    ObjectType,
    PayloadType,
    PoseType,
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
from msgconv.models.analytics import AnalyticsStatus
from msgconv.models.envelope import BatchResult, Envelope, Extension, Payload

__all__ = [
    # Types
    "EventType",
    "ObjectType",
    "PayloadType",
    "PoseType",
    "MoveDirection",
    "ObjectStatus",
    # Primitives
    "Rect",
    "GeoLocation",
    "Coordinate",
    "Signature",
    "Joint",
    "PoseJoints",
    "Embedding",
    # Objects
    "VehicleObject",
    "PersonObject",
    "FaceObject",
    "BagObject",
    "BicycleObject",
    "RoadSignObject",
    "ProductObject",
    "ObjectVariant",
    # Envelope
    "AnalyticsStatus",
    "Extension",
    "Envelope",
    "Payload",
    "BatchResult",
]
