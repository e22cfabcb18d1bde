"""
msgconv
=======

Extensible event-metadata serialization for video analytics pipelines.

Per-frame analytics events (detected objects, their attributes and the
derived analytics state) are converted into wire payloads for downstream
messaging consumers. Built-in object kinds coexist with caller-defined
kinds that travel as a tag plus an opaque buffer.

Components:
    - models: Envelope, ObjectVariant, AnalyticsStatus and primitives
    - converters: DEEPSTREAM, DEEPSTREAM_MINIMAL, DEEPSTREAM_PROTOBUF
    - registry: Format id to converter bindings, plugin loading
    - main: FastAPI conversion service

Example:
    from msgconv.models import Envelope, ObjectVariant, PayloadType
    from msgconv.registry import get_default_registry

    envelope = Envelope(event_type=2, obj=ObjectVariant.vehicle(color="blue"))
    payload = get_default_registry().convert(PayloadType.DEEPSTREAM, envelope)
"""

__version__ = "0.1.0"
__author__ = "msgconv contributors"

__all__ = [
    "__version__",
]
