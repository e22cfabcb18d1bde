"""
Converter Registry
==================

Maps payload format ids to converter instances.

Format Ids:
    0      DEEPSTREAM            (built-in)
    1      DEEPSTREAM_MINIMAL    (built-in)
    2      DEEPSTREAM_PROTOBUF   (built-in)
    >= 0x100                     custom converters (plugins)

Design Rules:
    - Registration is a setup-time operation. Writers are serialized by a
      lock and publish a fresh mapping; lookups read the published mapping
      without locking, so concurrent conversions never see a half-written
      table.
    - Binding an already bound id fails with DuplicateFormat unless force
      is given. The original binding stays in place.
    - Converting with an unbound id fails with UnknownFormat before any
      converter code runs.
    - Plugins are registered explicitly at startup from configuration,
      each under the <prefix>_<format_id> naming contract.

Example:
    registry = create_default_registry()
    registry.register_plugin(LaneReportConverter(0x150))
    payload = registry.convert(PayloadType.DEEPSTREAM, envelope)
"""

import importlib
import logging
import threading
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from msgconv.config import ConverterOptions, PluginConfig, settings
from msgconv.converters import (
    DeepstreamConverter,
    MinimalConverter,
    PayloadConverter,
    ProtobufConverter,
    plugin_name,
)
from msgconv.errors import DuplicateFormat, PluginLoadError, UnknownFormat
from msgconv.models.envelope import BatchResult, Envelope, Payload
from msgconv.models.types import is_custom_tag, is_valid_format_id


logger = logging.getLogger(__name__)


class ConverterRegistry:
    """
    Thread-safe table of format id to converter bindings.

    Attributes:
        formats: Sorted tuple of bound format ids
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._converters: Mapping[int, PayloadConverter] = MappingProxyType({})

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(
        self,
        format_id: int,
        converter: PayloadConverter,
        force: bool = False,
    ) -> None:
        """
        Bind a converter to a format id.

        Args:
            format_id: 0..2 for built-in formats, >= 0x100 for custom ones
            converter: Converter producing that format
            force: Replace an existing binding instead of failing

        Raises:
            ValueError: If the id is outside both ranges or does not match
                the converter's own format_id
            TypeError: If the object does not implement the converter protocol
            DuplicateFormat: If the id is already bound and force is False
        """
        format_id = int(format_id)
        if not is_valid_format_id(format_id):
            raise ValueError(f"Invalid payload format id {format_id:#x}")
        if not isinstance(converter, PayloadConverter):
            raise TypeError(f"{type(converter).__name__} is not a payload converter")
        if converter.format_id != format_id:
            raise ValueError(
                f"Converter '{converter.name}' produces format "
                f"{converter.format_id:#x}, cannot bind it to {format_id:#x}"
            )

        with self._lock:
            existing = self._converters.get(format_id)
            if existing is not None and not force:
                raise DuplicateFormat(format_id, existing.name)

            updated = dict(self._converters)
            updated[format_id] = converter
            self._converters = MappingProxyType(updated)

        if existing is not None:
            logger.warning(
                f"Format {format_id:#x}: replaced '{existing.name}' with '{converter.name}'"
            )
        else:
            logger.info(f"Format {format_id:#x}: registered '{converter.name}'")

    def register_plugin(self, converter: PayloadConverter, force: bool = False) -> None:
        """
        Register a custom converter under the plugin naming contract.

        Raises:
            PluginLoadError: If the converter's id is not custom or its name
                does not follow <prefix>_<format_id>
        """
        module = type(converter).__module__
        format_id = getattr(converter, "format_id", None)
        if not isinstance(format_id, int) or not is_custom_tag(format_id):
            raise PluginLoadError(module, f"plugin format id must be >= 0x100, got {format_id!r}")
        expected = plugin_name(format_id)
        if converter.name != expected:
            raise PluginLoadError(
                module,
                f"converter is named '{converter.name}', expected '{expected}'",
                format_id,
            )
        self.register(format_id, converter, force=force)

    def unregister(self, format_id: int) -> PayloadConverter:
        """
        Remove a binding and return the converter that was bound.

        Raises:
            UnknownFormat: If the id is not bound
        """
        format_id = int(format_id)
        with self._lock:
            if format_id not in self._converters:
                raise UnknownFormat(format_id)
            updated = dict(self._converters)
            converter = updated.pop(format_id)
            self._converters = MappingProxyType(updated)

        logger.info(f"Format {format_id:#x}: unregistered '{converter.name}'")
        return converter

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, format_id: int) -> PayloadConverter:
        converter = self._converters.get(int(format_id))
        if converter is None:
            raise UnknownFormat(int(format_id))
        return converter

    def is_registered(self, format_id: int) -> bool:
        return int(format_id) in self._converters

    @property
    def formats(self) -> tuple:
        return tuple(sorted(self._converters))

    def converters(self) -> Dict[int, PayloadConverter]:
        """Snapshot of the current bindings."""
        return dict(self._converters)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def convert(self, format_id: int, envelope: Envelope) -> Payload:
        """
        Convert one envelope with the converter bound to format_id.

        Raises:
            UnknownFormat: If no converter is bound to format_id
            ConversionError: If the converter rejects the event
        """
        return self.get(format_id).convert(envelope)

    def convert_batch(self, format_id: int, envelopes: Sequence[Envelope]) -> BatchResult:
        """
        Convert a batch of envelopes.

        Per-event formats report failures per index in the result. Framed
        formats raise BatchConversionError for the first failing event.
        """
        return self.get(format_id).convert_batch(envelopes)

    def close(self) -> None:
        """Close every bound converter and clear the table."""
        with self._lock:
            converters = list(self._converters.values())
            self._converters = MappingProxyType({})
        for converter in converters:
            converter.close()
        logger.info(f"Registry closed ({len(converters)} converters)")

    def __len__(self) -> int:
        return len(self._converters)

    def __contains__(self, format_id: int) -> bool:
        return self.is_registered(format_id)


# =============================================================================
# Factories
# =============================================================================

def create_default_registry(options: Optional[ConverterOptions] = None) -> ConverterRegistry:
    """Create a registry with the three built-in formats bound."""
    registry = ConverterRegistry()
    for converter_class in (DeepstreamConverter, MinimalConverter, ProtobufConverter):
        converter = converter_class(options)
        registry.register(converter.format_id, converter)
    return registry


def load_plugins(
    registry: ConverterRegistry,
    plugins: Sequence[PluginConfig],
) -> List[str]:
    """
    Import and register configured converter plugins.

    Each plugin module must expose a factory named after the naming
    contract (e.g. `msg2p_336` for format 0x150). The factory is called
    with the plugin's config_path and must return the converter.

    Returns:
        Names of the registered converters, in configuration order

    Raises:
        PluginLoadError: If a module or factory cannot be resolved, or the
            returned converter does not match its configuration
    """
    loaded = []
    for plugin in plugins:
        factory_name = plugin_name(plugin.format_id)
        try:
            module = importlib.import_module(plugin.module)
        except ImportError as e:
            raise PluginLoadError(plugin.module, str(e), plugin.format_id)

        factory = getattr(module, factory_name, None)
        if not callable(factory):
            raise PluginLoadError(
                plugin.module,
                f"module has no factory named '{factory_name}'",
                plugin.format_id,
            )

        try:
            converter = factory(plugin.config_path)
        except Exception as e:
            raise PluginLoadError(plugin.module, f"factory failed: {e}", plugin.format_id)

        if getattr(converter, "format_id", None) != plugin.format_id:
            raise PluginLoadError(
                plugin.module,
                f"factory returned a converter for format "
                f"{getattr(converter, 'format_id', None)!r}",
                plugin.format_id,
            )

        registry.register_plugin(converter, force=plugin.force)
        loaded.append(converter.name)

    if loaded:
        logger.info(f"Loaded {len(loaded)} converter plugins: {loaded}")
    return loaded


# =============================================================================
# Process-wide Registry
# =============================================================================

_default_registry: Optional[ConverterRegistry] = None
_default_lock = threading.Lock()


def get_default_registry() -> ConverterRegistry:
    """
    Return the process-wide registry, building it on first use.

    The registry is built from the global settings: built-in converters
    with settings.converters, then every plugin in settings.plugins.
    """
    global _default_registry

    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                registry = create_default_registry(settings.converters)
                load_plugins(registry, settings.plugins)
                _default_registry = registry
    return _default_registry


def reset_default_registry() -> None:
    """Close and drop the process-wide registry."""
    global _default_registry

    with _default_lock:
        registry, _default_registry = _default_registry, None
    if registry is not None:
        registry.close()
