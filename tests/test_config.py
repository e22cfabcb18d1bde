"""
Configuration Tests
===================

YAML loading and environment overrides.
"""

import pytest
from pydantic import ValidationError

from msgconv.config import PluginConfig, load_config


ENV_VARS = (
    "MSGCONV_CONFIG",
    "MSGCONV_SCHEMA_VERSION",
    "MSGCONV_INCLUDE_POSE",
    "MSGCONV_INCLUDE_EMBEDDING",
    "MSGCONV_INCLUDE_ANALYTICS",
    "MSGCONV_PORT",
    "MSGCONV_LOG_LEVEL",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "converters:\n"
        "  include_pose: false\n"
        "  schema_version: '1.1'\n"
        "plugins:\n"
        "  - module: plugin_fixtures\n"
        "    format_id: 336\n"
        "    config_path: /etc/lane.yaml\n"
        "server:\n"
        "  port: 9100\n"
    )
    return str(path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_when_file_missing(self, tmp_path):
        """Verify defaults apply when the config file is missing."""
        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.service.name == "msgconv"
        assert settings.converters.include_pose is True
        assert settings.converters.schema_version == "1.0"
        assert settings.plugins == []
        assert settings.server.port == 8002

    def test_yaml_values(self, config_file):
        """Verify values are read from YAML."""
        settings = load_config(config_file)

        assert settings.converters.include_pose is False
        assert settings.converters.include_embedding is True
        assert settings.converters.schema_version == "1.1"
        assert settings.plugins[0].format_id == 336
        assert settings.plugins[0].config_path == "/etc/lane.yaml"
        assert settings.server.port == 9100

    def test_config_path_from_env(self, monkeypatch, config_file):
        """Verify MSGCONV_CONFIG selects the config file."""
        monkeypatch.setenv("MSGCONV_CONFIG", config_file)
        assert load_config().server.port == 9100

    def test_env_overrides_yaml(self, monkeypatch, config_file):
        """Verify environment variables override YAML values."""
        monkeypatch.setenv("MSGCONV_INCLUDE_POSE", "true")
        monkeypatch.setenv("MSGCONV_INCLUDE_ANALYTICS", "no")
        monkeypatch.setenv("MSGCONV_SCHEMA_VERSION", "2.0")
        monkeypatch.setenv("MSGCONV_PORT", "9200")
        monkeypatch.setenv("MSGCONV_LOG_LEVEL", "DEBUG")

        settings = load_config(config_file)

        assert settings.converters.include_pose is True
        assert settings.converters.include_analytics is False
        assert settings.converters.schema_version == "2.0"
        assert settings.server.port == 9200
        assert settings.logging.level == "DEBUG"

    def test_port_env_wins(self, monkeypatch, config_file):
        """Verify PORT overrides MSGCONV_PORT."""
        monkeypatch.setenv("MSGCONV_PORT", "9200")
        monkeypatch.setenv("PORT", "8080")
        assert load_config(config_file).server.port == 8080


class TestPluginConfig:
    """Tests for plugin entries."""

    def test_builtin_format_rejected(self):
        """Verify plugins cannot claim a built-in format id."""
        with pytest.raises(ValidationError):
            PluginConfig(module="plugin_fixtures", format_id=2)

    def test_defaults(self):
        """Verify plugin entry defaults."""
        plugin = PluginConfig(module="plugin_fixtures", format_id=0x150)
        assert plugin.force is False
        assert plugin.config_path is None
