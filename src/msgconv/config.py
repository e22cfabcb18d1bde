"""
msgconv Configuration
=====================

This module handles configuration loading for the conversion service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    MSGCONV_CONFIG            -> path of the YAML file to load
    MSGCONV_SCHEMA_VERSION    -> converters.schema_version
    MSGCONV_INCLUDE_POSE      -> converters.include_pose
    MSGCONV_INCLUDE_EMBEDDING -> converters.include_embedding
    MSGCONV_INCLUDE_ANALYTICS -> converters.include_analytics
    MSGCONV_PORT              -> server.port
    MSGCONV_LOG_LEVEL         -> logging.level
    PORT                      -> server.port (Cloud Run)

Example:
    from msgconv.config import settings

    print(settings.converters.include_pose)
    for plugin in settings.plugins:
        print(plugin.module, plugin.format_id)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from msgconv.models.types import SCHEMA_VERSION, is_custom_tag


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="msgconv", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class ConverterOptions(BaseModel):
    """
    Static configuration shared by the built-in converters.

    The include_* switches form the field-inclusion policy. Disabled
    fields are never written, even when populated on the envelope.
    """

    schema_version: str = Field(
        default=SCHEMA_VERSION,
        description="Version string written into JSON payloads",
    )
    include_signature: bool = Field(default=True, description="Emit signature vectors")
    include_pose: bool = Field(default=True, description="Emit pose joints")
    include_embedding: bool = Field(default=True, description="Emit embedding vectors")
    include_analytics: bool = Field(default=True, description="Emit analytics status")
    include_extension: bool = Field(default=True, description="Emit the extension buffer")
    include_masks: bool = Field(
        default=True,
        description="Emit mask polygons of *_EXT objects",
    )


class PluginConfig(BaseModel):
    """A custom converter plugin registered at startup."""

    module: str = Field(..., description="Importable module providing the factory")
    format_id: int = Field(..., description="Custom payload format id (>= 0x100)")
    config_path: Optional[str] = Field(
        default=None,
        description="Plugin-specific configuration file passed to the factory",
    )
    force: bool = Field(default=False, description="Replace an existing binding")

    @field_validator("format_id")
    @classmethod
    def _custom_range(cls, value: int) -> int:
        if not is_custom_tag(value):
            raise ValueError(f"Plugin format id must be >= 0x100, got {value:#x}")
        return value


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for msgconv.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    converters: ConverterOptions = Field(default_factory=ConverterOptions)
    plugins: List[PluginConfig] = Field(default_factory=list)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, uses MSGCONV_CONFIG or
            searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        config_path = os.environ.get("MSGCONV_CONFIG")

    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/etc/msgconv/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Converter settings
    if env_version := os.environ.get("MSGCONV_SCHEMA_VERSION"):
        config_data.setdefault("converters", {})["schema_version"] = env_version
    if env_pose := os.environ.get("MSGCONV_INCLUDE_POSE"):
        config_data.setdefault("converters", {})["include_pose"] = _env_flag(env_pose)
    if env_embedding := os.environ.get("MSGCONV_INCLUDE_EMBEDDING"):
        config_data.setdefault("converters", {})["include_embedding"] = _env_flag(env_embedding)
    if env_analytics := os.environ.get("MSGCONV_INCLUDE_ANALYTICS"):
        config_data.setdefault("converters", {})["include_analytics"] = _env_flag(env_analytics)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("MSGCONV_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("MSGCONV_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
