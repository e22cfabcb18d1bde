"""
Object Variant Model
====================

Closed tagged union of the built-in object kinds plus an open custom arm.

Each envelope carries exactly one ObjectVariant. The active arm is chosen
by `tag`:

    VEHICLE .. PRODUCT_EXT   typed attribute record (+ mask for *_EXT)
    UNKNOWN, FRAME_ANALYSIS  opaque buffer only
    >= 0x100 otherwise       caller-defined custom kind, opaque buffer

The variant never looks inside an opaque buffer. A converter bound to the
custom tag is expected to understand its layout.

Example:
    from msgconv.models.objects import ObjectVariant

    car = ObjectVariant.vehicle(type="sedan", color="blue")
    car.as_vehicle().color        # "blue"
    car.as_person()               # raises TypeMismatch

    blob = ObjectVariant.custom(0x150, b"\\xaa\\xbb")
    blob.get_buffer()             # b"\\xaa\\xbb"
"""

from typing import Any, Dict, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from msgconv.errors import TypeMismatch
from msgconv.models.primitives import Polygon
from msgconv.models.types import (
    CUSTOM_TAG_MIN,
    EXTENDED_OBJECT_TYPES,
    INT32_MAX,
    TYPED_OBJECT_TYPES,
    ObjectType,
)


# =============================================================================
# Attribute Records
# =============================================================================

class VehicleObject(BaseModel):
    """Descriptive attributes of a vehicle."""

    model_config = ConfigDict(frozen=True)

    type: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    region: Optional[str] = None
    license: Optional[str] = None


class PersonObject(BaseModel):
    """Descriptive attributes of a person."""

    model_config = ConfigDict(frozen=True)

    gender: Optional[str] = None
    hair: Optional[str] = None
    cap: Optional[str] = None
    apparel: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)


class FaceObject(BaseModel):
    """Descriptive attributes of a face."""

    model_config = ConfigDict(frozen=True)

    gender: Optional[str] = None
    hair: Optional[str] = None
    cap: Optional[str] = None
    glasses: Optional[str] = None
    facialhair: Optional[str] = None
    name: Optional[str] = None
    eyecolor: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)


class BagObject(BaseModel):
    """Attributes of a carried bag. The DeepStream schema has no attribute struct for it."""

    model_config = ConfigDict(frozen=True)

    type: Optional[str] = None
    color: Optional[str] = None


class BicycleObject(BaseModel):
    """Attributes of a bicycle. The DeepStream schema has no attribute struct for it."""

    model_config = ConfigDict(frozen=True)

    type: Optional[str] = None
    color: Optional[str] = None


class RoadSignObject(BaseModel):
    """Attributes of a road sign. The DeepStream schema has no attribute struct for it."""

    model_config = ConfigDict(frozen=True)

    type: Optional[str] = None
    text: Optional[str] = None


class ProductObject(BaseModel):
    """Descriptive attributes of a retail product."""

    model_config = ConfigDict(frozen=True)

    brand: Optional[str] = None
    type: Optional[str] = None
    shape: Optional[str] = None


ObjectAttributes = Union[
    VehicleObject,
    PersonObject,
    FaceObject,
    BagObject,
    BicycleObject,
    RoadSignObject,
    ProductObject,
]

ATTRIBUTE_MODELS: Dict[ObjectType, Type[BaseModel]] = {
    ObjectType.VEHICLE: VehicleObject,
    ObjectType.VEHICLE_EXT: VehicleObject,
    ObjectType.PERSON: PersonObject,
    ObjectType.PERSON_EXT: PersonObject,
    ObjectType.FACE: FaceObject,
    ObjectType.FACE_EXT: FaceObject,
    ObjectType.BAG: BagObject,
    ObjectType.BICYCLE: BicycleObject,
    ObjectType.ROADSIGN: RoadSignObject,
    ObjectType.PRODUCT: ProductObject,
    ObjectType.PRODUCT_EXT: ProductObject,
}

_OPAQUE_BUILTINS = (ObjectType.UNKNOWN, ObjectType.FRAME_ANALYSIS)


# =============================================================================
# Variant
# =============================================================================

class ObjectVariant(BaseModel):
    """
    The object attached to an event.

    Exactly one arm is populated per instance. Use the classmethod
    constructors rather than building the fields by hand.

    Attributes:
        tag: ObjectType value, or a caller-defined tag >= 0x100
        attributes: Typed attribute record (typed kinds only)
        mask: Mask polygons (*_EXT kinds only)
        data: Opaque buffer (UNKNOWN, FRAME_ANALYSIS and custom kinds only)
    """

    model_config = ConfigDict(
        frozen=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    tag: int = Field(default=int(ObjectType.UNKNOWN), ge=0, le=INT32_MAX)
    attributes: Optional[ObjectAttributes] = None
    mask: Tuple[Polygon, ...] = ()
    data: bytes = b""

    @model_validator(mode="before")
    @classmethod
    def _coerce_attributes(cls, values: Any) -> Any:
        """Resolve the attribute record type from the tag."""
        if not isinstance(values, dict):
            return values
        tag = values.get("tag", ObjectType.UNKNOWN)
        model = ATTRIBUTE_MODELS.get(tag) if isinstance(tag, int) else None
        if model is None:
            return values
        attrs = values.get("attributes")
        if attrs is None:
            return {**values, "attributes": model()}
        if isinstance(attrs, dict):
            return {**values, "attributes": model.model_validate(attrs)}
        return values

    @model_validator(mode="after")
    def _check_arm(self) -> "ObjectVariant":
        """Enforce that only the arm selected by `tag` is populated."""
        if self.tag in TYPED_OBJECT_TYPES:
            expected = ATTRIBUTE_MODELS[ObjectType(self.tag)]
            if type(self.attributes) is not expected:
                raise ValueError(
                    f"{self.describe()} requires {expected.__name__} attributes"
                )
            if self.data:
                raise ValueError(f"{self.describe()} cannot carry an opaque buffer")
            if self.mask and self.tag not in EXTENDED_OBJECT_TYPES:
                raise ValueError(f"{self.describe()} cannot carry mask polygons")
        elif self.tag < CUSTOM_TAG_MIN:
            raise ValueError(f"Object tag {self.tag:#x} is reserved")
        elif self.attributes is not None or self.mask:
            raise ValueError(f"{self.describe()} carries an opaque buffer only")
        return self

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def of(
        cls,
        kind: ObjectType,
        attributes: Optional[BaseModel] = None,
        mask: Tuple[Polygon, ...] = (),
    ) -> "ObjectVariant":
        """Build a typed variant from a kind and its attribute record."""
        kind = ObjectType(kind)
        model = ATTRIBUTE_MODELS.get(kind)
        if model is None:
            raise ValueError(f"{kind.name} does not carry typed attributes")
        return cls(
            tag=int(kind),
            attributes=attributes if attributes is not None else model(),
            mask=tuple(tuple(polygon) for polygon in mask),
        )

    @classmethod
    def vehicle(cls, **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.VEHICLE, VehicleObject(**attrs))

    @classmethod
    def vehicle_ext(cls, mask: Tuple[Polygon, ...] = (), **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.VEHICLE_EXT, VehicleObject(**attrs), mask)

    @classmethod
    def person(cls, **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.PERSON, PersonObject(**attrs))

    @classmethod
    def person_ext(cls, mask: Tuple[Polygon, ...] = (), **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.PERSON_EXT, PersonObject(**attrs), mask)

    @classmethod
    def face(cls, **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.FACE, FaceObject(**attrs))

    @classmethod
    def face_ext(cls, mask: Tuple[Polygon, ...] = (), **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.FACE_EXT, FaceObject(**attrs), mask)

    @classmethod
    def bag(cls, **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.BAG, BagObject(**attrs))

    @classmethod
    def bicycle(cls, **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.BICYCLE, BicycleObject(**attrs))

    @classmethod
    def roadsign(cls, **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.ROADSIGN, RoadSignObject(**attrs))

    @classmethod
    def product(cls, **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.PRODUCT, ProductObject(**attrs))

    @classmethod
    def product_ext(cls, mask: Tuple[Polygon, ...] = (), **attrs: Any) -> "ObjectVariant":
        return cls.of(ObjectType.PRODUCT_EXT, ProductObject(**attrs), mask)

    @classmethod
    def custom(cls, tag: int, data: bytes = b"") -> "ObjectVariant":
        """Build a caller-defined variant. The buffer is passed through as-is."""
        if tag < CUSTOM_TAG_MIN or tag in _OPAQUE_BUILTINS:
            raise ValueError(f"Custom object tag must be >= {CUSTOM_TAG_MIN:#x}, got {tag:#x}")
        return cls(tag=tag, data=bytes(data))

    @classmethod
    def unknown(cls, data: bytes = b"") -> "ObjectVariant":
        return cls(tag=int(ObjectType.UNKNOWN), data=bytes(data))

    @classmethod
    def frame_analysis(cls, data: bytes = b"") -> "ObjectVariant":
        return cls(tag=int(ObjectType.FRAME_ANALYSIS), data=bytes(data))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def kind(self) -> ObjectType:
        """Active kind. Caller-defined tags report ObjectType.CUSTOM."""
        if self.tag in TYPED_OBJECT_TYPES or self.tag in _OPAQUE_BUILTINS:
            return ObjectType(self.tag)
        return ObjectType.CUSTOM

    @property
    def is_extended(self) -> bool:
        return self.tag in EXTENDED_OBJECT_TYPES

    @property
    def is_opaque(self) -> bool:
        return self.tag >= CUSTOM_TAG_MIN

    @property
    def is_custom(self) -> bool:
        return self.is_opaque and self.tag not in _OPAQUE_BUILTINS

    @property
    def is_unknown(self) -> bool:
        return self.tag == ObjectType.UNKNOWN

    def describe(self) -> str:
        """Human-readable kind name, including the tag for custom kinds."""
        if self.is_custom:
            return f"CUSTOM({self.tag:#x})"
        return self.kind.name

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def _attributes_for(self, *kinds: ObjectType) -> Any:
        if self.tag not in kinds:
            raise TypeMismatch("/".join(k.name for k in kinds), self.describe())
        return self.attributes

    def as_vehicle(self) -> VehicleObject:
        return self._attributes_for(ObjectType.VEHICLE, ObjectType.VEHICLE_EXT)

    def as_person(self) -> PersonObject:
        return self._attributes_for(ObjectType.PERSON, ObjectType.PERSON_EXT)

    def as_face(self) -> FaceObject:
        return self._attributes_for(ObjectType.FACE, ObjectType.FACE_EXT)

    def as_bag(self) -> BagObject:
        return self._attributes_for(ObjectType.BAG)

    def as_bicycle(self) -> BicycleObject:
        return self._attributes_for(ObjectType.BICYCLE)

    def as_roadsign(self) -> RoadSignObject:
        return self._attributes_for(ObjectType.ROADSIGN)

    def as_product(self) -> ProductObject:
        return self._attributes_for(ObjectType.PRODUCT, ObjectType.PRODUCT_EXT)

    def get_mask(self) -> Tuple[Polygon, ...]:
        """
        Mask polygons of an extended object.

        Returns an empty tuple when no mask was supplied.

        Raises:
            TypeMismatch: If the variant is not an *_EXT kind
        """
        if not self.is_extended:
            raise TypeMismatch("an extended object", self.describe())
        return self.mask

    def get_buffer(self) -> bytes:
        """
        Raw buffer of an opaque variant.

        Raises:
            TypeMismatch: If the variant is a typed kind
        """
        if not self.is_opaque:
            raise TypeMismatch("an opaque object", self.describe())
        return self.data

    @property
    def size(self) -> int:
        """Size in bytes of the opaque buffer."""
        return len(self.get_buffer())
