"""
Object Variant Tests
====================

Construction, kind queries and accessors of ObjectVariant.
"""

import pytest
from pydantic import ValidationError

from msgconv.errors import TypeMismatch
from msgconv.models import (
    Coordinate,
    ObjectType,
    ObjectVariant,
    PersonObject,
    VehicleObject,
)


class TestConstruction:
    """Tests for the variant constructors."""

    def test_vehicle_attributes(self):
        """Verify typed constructors populate their attribute record."""
        car = ObjectVariant.vehicle(type="sedan", color="blue")

        assert car.kind == ObjectType.VEHICLE
        assert car.tag == 0
        assert car.as_vehicle() == VehicleObject(type="sedan", color="blue")
        assert car.as_vehicle().make is None

    def test_every_typed_kind(self):
        """Verify each typed constructor produces its own kind."""
        constructors = {
            ObjectType.VEHICLE: ObjectVariant.vehicle,
            ObjectType.VEHICLE_EXT: ObjectVariant.vehicle_ext,
            ObjectType.PERSON: ObjectVariant.person,
            ObjectType.PERSON_EXT: ObjectVariant.person_ext,
            ObjectType.FACE: ObjectVariant.face,
            ObjectType.FACE_EXT: ObjectVariant.face_ext,
            ObjectType.BAG: ObjectVariant.bag,
            ObjectType.BICYCLE: ObjectVariant.bicycle,
            ObjectType.ROADSIGN: ObjectVariant.roadsign,
            ObjectType.PRODUCT: ObjectVariant.product,
            ObjectType.PRODUCT_EXT: ObjectVariant.product_ext,
        }
        for kind, constructor in constructors.items():
            variant = constructor()
            assert variant.kind == kind
            assert not variant.is_opaque

    def test_of_with_dict_attributes(self):
        """Verify attribute dicts are resolved from the tag."""
        variant = ObjectVariant(tag=ObjectType.PERSON, attributes={"gender": "female", "age": 31})
        assert variant.as_person() == PersonObject(gender="female", age=31)

    def test_custom_tag(self):
        """Verify custom variants keep tag and buffer untouched."""
        blob = ObjectVariant.custom(0x150, b"\xaa\xbb")

        assert blob.tag == 0x150
        assert blob.kind == ObjectType.CUSTOM
        assert blob.is_custom
        assert blob.get_buffer() == b"\xaa\xbb"
        assert blob.size == 2
        assert blob.describe() == "CUSTOM(0x150)"

    def test_custom_rejects_builtin_tags(self):
        """Verify custom tags below 0x100 or equal to built-in opaque kinds fail."""
        for tag in (0x0, 0x0A, 0xFF, ObjectType.UNKNOWN, ObjectType.FRAME_ANALYSIS):
            with pytest.raises(ValueError):
                ObjectVariant.custom(tag, b"")

    def test_reserved_tag_range_rejected(self):
        """Verify tags between the typed kinds and 0x100 are rejected."""
        with pytest.raises(ValidationError):
            ObjectVariant(tag=0x20)

    def test_unknown_and_frame_analysis(self):
        """Verify the built-in opaque kinds."""
        unknown = ObjectVariant.unknown()
        frame = ObjectVariant.frame_analysis(b"\x00\x01")

        assert unknown.is_unknown and unknown.is_opaque and not unknown.is_custom
        assert unknown.get_buffer() == b""
        assert frame.kind == ObjectType.FRAME_ANALYSIS
        assert frame.size == 2

    def test_default_is_unknown(self):
        """Verify the default variant is UNKNOWN."""
        assert ObjectVariant().is_unknown


class TestSingleArm:
    """Tests that exactly one arm is populated."""

    def test_typed_kind_rejects_buffer(self):
        """Verify typed kinds cannot carry a buffer."""
        with pytest.raises(ValidationError):
            ObjectVariant(tag=ObjectType.VEHICLE, attributes=VehicleObject(), data=b"\x01")

    def test_typed_kind_rejects_wrong_record(self):
        """Verify typed kinds reject another kind's record."""
        with pytest.raises(ValidationError):
            ObjectVariant(tag=ObjectType.FACE, attributes=VehicleObject(color="red"))

    def test_plain_kind_rejects_mask(self):
        """Verify only *_EXT kinds can carry masks."""
        polygon = (Coordinate(x=0, y=0), Coordinate(x=1, y=1))
        with pytest.raises(ValidationError):
            ObjectVariant.of(ObjectType.VEHICLE, VehicleObject(), mask=(polygon,))

    def test_opaque_kind_rejects_attributes(self):
        """Verify opaque kinds cannot carry attributes."""
        with pytest.raises(ValidationError):
            ObjectVariant(tag=0x150, attributes=VehicleObject())

    def test_variant_is_immutable(self):
        """Verify variants are frozen."""
        car = ObjectVariant.vehicle(color="blue")
        with pytest.raises(ValidationError):
            car.tag = 1


class TestAccessors:
    """Tests for kind-checked accessors."""

    def test_extended_kind_shares_family_accessor(self, sample_mask):
        """Verify as_vehicle accepts VEHICLE_EXT."""
        variant = ObjectVariant.vehicle_ext(mask=sample_mask, color="red")

        assert variant.as_vehicle().color == "red"
        assert variant.get_mask() == sample_mask
        assert len(variant.get_mask()[0]) == 3

    def test_mask_empty_not_absent(self):
        """Verify an extended kind without masks returns an empty tuple."""
        assert ObjectVariant.person_ext(gender="male").get_mask() == ()

    def test_wrong_family_raises(self):
        """Verify accessing another family raises TypeMismatch."""
        car = ObjectVariant.vehicle(color="blue")
        with pytest.raises(TypeMismatch) as excinfo:
            car.as_person()
        assert excinfo.value.actual == "VEHICLE"

    def test_mask_on_plain_kind_raises(self):
        """Verify get_mask on a plain kind raises TypeMismatch."""
        with pytest.raises(TypeMismatch):
            ObjectVariant.vehicle().get_mask()

    def test_typed_access_on_custom_raises(self):
        """Verify custom and unknown variants expose only their buffer."""
        for variant in (ObjectVariant.custom(0x150, b"\xaa"), ObjectVariant.unknown()):
            with pytest.raises(TypeMismatch):
                variant.as_vehicle()
            with pytest.raises(TypeMismatch):
                variant.get_mask()

    def test_buffer_on_typed_kind_raises(self):
        """Verify get_buffer on a typed kind raises TypeMismatch."""
        with pytest.raises(TypeMismatch):
            ObjectVariant.product(brand="acme").get_buffer()
        with pytest.raises(TypeMismatch):
            ObjectVariant.product(brand="acme").size

    def test_type_mismatch_is_type_error(self):
        """Verify TypeMismatch is also a TypeError."""
        with pytest.raises(TypeError):
            ObjectVariant.bag().as_bicycle()
