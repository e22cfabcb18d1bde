"""
Test Configuration
==================

Pytest fixtures and test configuration for msgconv.
"""

import pytest

from msgconv.models import (
    AnalyticsStatus,
    Coordinate,
    Embedding,
    Envelope,
    EventType,
    Extension,
    GeoLocation,
    Joint,
    MoveDirection,
    ObjectStatus,
    ObjectVariant,
    PoseJoints,
    PoseType,
    Rect,
    Signature,
)
from msgconv.registry import create_default_registry


@pytest.fixture
def sample_analytics():
    """Provide an AnalyticsStatus with two crossed lanes."""
    return AnalyticsStatus.from_lanes(
        [1, 3],
        direction=MoveDirection.MOVE_LEFT,
        status=ObjectStatus.OBJ_MOVE,
        move_length=12.5,
        move_time_ms=1500.0,
        move_speed=8.25,
        long_stay_ms=0.0,
        lane_cross=True,
    )


@pytest.fixture
def sample_mask():
    """Provide one triangular mask polygon."""
    return (
        (
            Coordinate(x=0.0, y=0.0, z=0.0),
            Coordinate(x=4.0, y=0.0, z=0.0),
            Coordinate(x=0.0, y=3.0, z=0.0),
        ),
    )


@pytest.fixture
def vehicle_envelope():
    """Provide the MOVING vehicle event (tracking id 42)."""
    return Envelope(
        event_type=EventType.MOVING,
        obj=ObjectVariant.vehicle(type="sedan", make="Hyundai", color="blue", license="12A3456"),
        bbox=Rect(top=10.0, left=20.0, width=100.0, height=50.0),
        class_id=2,
        sensor_id=3,
        module_id=2,
        place_id=7,
        component_id=1,
        frame_id=120,
        confidence=0.91,
        tracking_id=42,
        ts="2023-06-19T10:00:00.000Z",
        object_id="veh-42",
        sensor_str="CAM-03",
        other_attrs="parked near gate 2",
    )


@pytest.fixture
def full_envelope(sample_analytics, sample_mask):
    """Provide an envelope with every optional field populated."""
    return Envelope(
        event_type=EventType.MOVING,
        obj=ObjectVariant.vehicle_ext(mask=sample_mask, type="truck", color="red", region="KR"),
        bbox=Rect(top=1.5, left=2.5, width=30.0, height=40.0),
        location=GeoLocation(lat=37.5665, lon=126.978, alt=38.0),
        coordinate=Coordinate(x=1.0, y=2.0, z=3.0),
        signature=Signature(values=(0.1, 0.2, 0.3)),
        class_id=5,
        sensor_id=11,
        module_id=4,
        place_id=9,
        component_id=6,
        frame_id=3001,
        confidence=0.75,
        tracking_id=2**40 + 5,
        ts="2023-06-19T10:00:01.000Z",
        object_id="truck-9",
        sensor_str="CAM-11",
        other_attrs="",
        video_path="/videos/cam11.mp4",
        extension=Extension(data=b"\x01\x02\x03"),
        pose=PoseJoints(
            joints=(
                Joint(x=1.0, y=2.0, z=0.0, confidence=0.9),
                Joint(x=3.0, y=4.0, z=0.0, confidence=0.8),
            ),
            pose_type=PoseType.POSE_2_5D,
        ),
        embedding=Embedding(vector=(0.5, -0.25, 0.125)),
        analytics=sample_analytics,
    )


@pytest.fixture
def custom_envelope():
    """Provide an event carrying the caller-defined object 0x150."""
    return Envelope(
        event_type=EventType.ENTRY,
        obj=ObjectVariant.custom(0x150, b"\xaa\xbb"),
        component_id=4,
        tracking_id=7,
    )


@pytest.fixture
def registry():
    """Provide a registry with the built-in converters bound."""
    registry = create_default_registry()
    yield registry
    registry.close()
