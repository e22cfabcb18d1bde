"""
Analytics Status Tests
======================

Lane array and reverse-lane invariants of AnalyticsStatus.
"""

import math

import pytest
from pydantic import ValidationError

from msgconv.models import AnalyticsStatus, MoveDirection, ObjectStatus


class TestLaneArray:
    """Tests for the lane array invariant."""

    def test_defaults(self):
        """Verify a default record has no lanes and no reverse lane."""
        status = AnalyticsStatus()

        assert status.lane_numbers == (-1, -1, -1, -1)
        assert status.lane_array_size == 0
        assert status.reverse_lane_no == -1
        assert status.direction == MoveDirection.NO_DIRECTION
        assert status.status == ObjectStatus.NO_STATUS

    def test_from_lanes_pads_with_sentinel(self, sample_analytics):
        """Verify from_lanes pads the lane array with the sentinel."""
        assert sample_analytics.lane_numbers == (1, 3, -1, -1)
        assert sample_analytics.lane_array_size == 2
        assert sample_analytics.crossed_lanes == (1, 3)

    def test_full_lane_array(self):
        """Verify a full lane array needs no padding."""
        status = AnalyticsStatus.from_lanes([0, 1, 2, 3])
        assert status.crossed_lanes == (0, 1, 2, 3)

    def test_too_many_lanes(self):
        """Verify more lanes than the array holds are rejected."""
        with pytest.raises(ValueError):
            AnalyticsStatus.from_lanes([1, 2, 3, 4, 5])

    def test_unpopulated_leading_entry_rejected(self):
        """Verify the first lane_array_size entries must be populated."""
        with pytest.raises(ValidationError):
            AnalyticsStatus(lane_numbers=(1, -1, -1, -1), lane_array_size=2)

    def test_trailing_entry_must_be_sentinel(self):
        """Verify entries past lane_array_size must be the sentinel."""
        with pytest.raises(ValidationError):
            AnalyticsStatus(lane_numbers=(1, 2, 5, -1), lane_array_size=2)

    def test_array_size_bounds(self):
        """Verify lane_array_size stays within the array length."""
        with pytest.raises(ValidationError):
            AnalyticsStatus(lane_array_size=5)


class TestReverseDrive:
    """Tests for the reverse-lane invariant."""

    def test_reverse_lane_requires_flag(self):
        """Verify a reverse lane without the flag is rejected."""
        with pytest.raises(ValidationError):
            AnalyticsStatus(reverse_lane_no=2)

    def test_reverse_lane_with_flag(self):
        """Verify a reverse lane is kept when the flag is set."""
        status = AnalyticsStatus(reverse_lane_no=2, reverse_drive=True)
        assert status.reverse_lane_no == 2

    def test_reverse_flag_without_lane(self):
        """Verify the flag alone is allowed and the lane stays -1."""
        status = AnalyticsStatus(reverse_drive=True)
        assert status.reverse_lane_no == -1


class TestMeasurements:
    """Tests for measurement validation."""

    def test_non_finite_rejected(self):
        """Verify NaN and infinite motion values are rejected."""
        with pytest.raises(ValidationError):
            AnalyticsStatus(move_speed=math.inf)
        with pytest.raises(ValidationError):
            AnalyticsStatus(move_length=math.nan)

    def test_negative_duration_rejected(self):
        """Verify a negative long-stay duration is rejected."""
        with pytest.raises(ValidationError):
            AnalyticsStatus(long_stay_ms=-1.0)
