"""
Analytics Status
================

Derived analytics state attached to an envelope as a separate sub-record.

Detection data (what was seen) lives on the Envelope itself. This record
holds what the analytics stage concluded about the tracked object over
time: direction, dwell durations, speed, crossed lanes and the rule flags
(lane cross, reverse drive, overcrowd, long park, loitering, break-in,
jaywalk).

Lane Array Rules:
    - lane_numbers always has exactly LANE_ARRAY_SIZE (4) slots
    - The first lane_array_size slots hold lane numbers (>= 0)
    - Remaining slots hold the sentinel -1
    - reverse_lane_no is -1 unless reverse_drive is set

Example:
    status = AnalyticsStatus.from_lanes(
        [1, 3],
        lane_cross=True,
        direction=MoveDirection.MOVE_LEFT,
    )
    status.lane_numbers     # (1, 3, -1, -1)
    status.crossed_lanes    # (1, 3)
"""

import math
from typing import Any, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from msgconv.models.types import (
    LANE_ARRAY_SIZE,
    LANE_SENTINEL,
    MoveDirection,
    ObjectStatus,
)


_EMPTY_LANES = (LANE_SENTINEL,) * LANE_ARRAY_SIZE


class AnalyticsStatus(BaseModel):
    """
    Analytics-derived status of a tracked object.

    Attributes:
        direction: Dominant movement direction
        status: Most recent analytics status
        move_length: Distance moved over the measurement window
        move_time_ms: Duration of the movement window (milliseconds)
        move_speed: Estimated speed
        long_stay_ms: Time spent without significant movement (milliseconds)
        lane_numbers: Crossed lane numbers, padded with -1
        lane_array_size: Number of meaningful entries in lane_numbers
        reverse_lane_no: Lane of a reverse drive, -1 if none
    """

    model_config = ConfigDict(frozen=True)

    direction: MoveDirection = Field(default=MoveDirection.NO_DIRECTION)
    status: ObjectStatus = Field(default=ObjectStatus.NO_STATUS)

    move_length: float = 0.0
    move_time_ms: float = Field(default=0.0, ge=0.0)
    move_speed: float = 0.0
    long_stay_ms: float = Field(default=0.0, ge=0.0)

    lane_numbers: Tuple[int, int, int, int] = Field(default=_EMPTY_LANES)
    lane_array_size: int = Field(default=0, ge=0, le=LANE_ARRAY_SIZE)
    reverse_lane_no: int = Field(default=LANE_SENTINEL, ge=LANE_SENTINEL)

    lane_cross: bool = False
    reverse_drive: bool = False
    overcrowd: bool = False
    long_park: bool = False
    loitering: bool = False
    break_in: bool = False
    jaywalk: bool = False

    @field_validator("move_length", "move_time_ms", "move_speed", "long_stay_ms")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("analytics measurements must be finite")
        return value

    @model_validator(mode="after")
    def _check_lanes(self) -> "AnalyticsStatus":
        """Validate the lane array against its explicit count."""
        used = self.lane_numbers[:self.lane_array_size]
        unused = self.lane_numbers[self.lane_array_size:]
        if any(lane < 0 for lane in used):
            raise ValueError(
                f"lane_array_size is {self.lane_array_size} but "
                f"lane_numbers has unpopulated entries: {self.lane_numbers}"
            )
        if any(lane != LANE_SENTINEL for lane in unused):
            raise ValueError(
                f"lane_numbers entries beyond lane_array_size must be "
                f"{LANE_SENTINEL}: {self.lane_numbers}"
            )
        if self.reverse_lane_no != LANE_SENTINEL and not self.reverse_drive:
            raise ValueError("reverse_lane_no is set but reverse_drive is not flagged")
        return self

    @classmethod
    def from_lanes(cls, lanes: Sequence[int] = (), **fields: Any) -> "AnalyticsStatus":
        """
        Build a status record from the crossed lanes only.

        Args:
            lanes: Crossed lane numbers, at most LANE_ARRAY_SIZE
            **fields: Any other AnalyticsStatus field

        Raises:
            ValueError: If more than LANE_ARRAY_SIZE lanes are given
        """
        lanes = tuple(lanes)
        if len(lanes) > LANE_ARRAY_SIZE:
            raise ValueError(
                f"At most {LANE_ARRAY_SIZE} lanes can be recorded, got {len(lanes)}"
            )
        padded = lanes + (LANE_SENTINEL,) * (LANE_ARRAY_SIZE - len(lanes))
        return cls(lane_numbers=padded, lane_array_size=len(lanes), **fields)

    @property
    def crossed_lanes(self) -> Tuple[int, ...]:
        """The meaningful prefix of lane_numbers."""
        return self.lane_numbers[:self.lane_array_size]
