"""
Plugins Configuration.

This module holds the declared plugin specs together with the lifecycle
settings, and reads/writes them as a TOML section:

    [plugins]
    continue_on_error = false
    shutdown_reverse = true
    plugin_locations = ["plugins/"]

    [[plugins.configs]]
    type = "Auth"
    plugin = "acme.auth.LdapAuth"
    is_default = true
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from plughost.config.schema import PLUGINS_SCHEMA, SchemaError, validate_settings
from plughost.plugin.errors import ValidationError
from plughost.plugin.spec import PluginSpec, validate_specs

DEFAULT_SECTION = "plugins"


class ConfigError(Exception):
    """Raised when a plugins configuration cannot be read or written."""

    pass


@dataclass
class PluginsConfig:
    """
    Declared plugins and lifecycle settings.

    Attributes:
        configs: Plugin specs, initialized in list order
        plugin_locations: Plugin files/directories to load first
        continue_on_error: Keep going when a plugin fails to load or init
        shutdown_reverse: Shut down in reverse initialization order
    """

    configs: list[PluginSpec] = field(default_factory=list)
    plugin_locations: list[str] | None = None
    continue_on_error: bool = False
    shutdown_reverse: bool = True

    def validate(self) -> None:
        """
        Validate the declared specs.

        Raises:
            ValidationError: On the first structural violation
        """
        validate_specs(self.configs)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PluginsConfig":
        """
        Build a configuration from a parsed section.

        Args:
            data: Section mapping with settings and a "configs" list

        Returns:
            PluginsConfig instance (not yet validated)

        Raises:
            ConfigError: If a setting or spec entry is malformed
        """
        data = dict(data)
        raw_configs = data.pop("configs", [])
        if not isinstance(raw_configs, list):
            raise ConfigError("'configs' field must be a list of tables")

        try:
            settings = validate_settings(data, PLUGINS_SCHEMA)
            configs = [PluginSpec.from_dict(entry) for entry in raw_configs]
        except (SchemaError, ValidationError) as e:
            raise ConfigError(f"Invalid plugins configuration: {e}") from e

        return cls(
            configs=configs,
            plugin_locations=settings["plugin_locations"]
            if "plugin_locations" in data
            else None,
            continue_on_error=settings["continue_on_error"],
            shutdown_reverse=settings["shutdown_reverse"],
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Get the declared form of the configuration.

        Returns:
            Section mapping suitable for from_dict()
        """
        data: dict[str, Any] = {
            "continue_on_error": self.continue_on_error,
            "shutdown_reverse": self.shutdown_reverse,
        }
        if self.plugin_locations is not None:
            data["plugin_locations"] = list(self.plugin_locations)
        data["configs"] = [spec.to_dict() for spec in self.configs]
        return data


def load_plugins_config(file_path: Path, section: str = DEFAULT_SECTION) -> PluginsConfig:
    """
    Read a plugins configuration from a TOML file.

    A missing section yields an empty configuration.

    Args:
        file_path: Path to the TOML file
        section: Name of the top-level table holding the configuration

    Returns:
        PluginsConfig instance (not yet validated)

    Raises:
        ConfigError: If the file cannot be read or is malformed
    """
    file_path = Path(file_path)
    try:
        with open(file_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Plugins TOML file not found: {file_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse TOML in {file_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Unable to read {file_path}: {e}") from e

    section_data = data.get(section, {})
    if not isinstance(section_data, dict):
        raise ConfigError(f"'{section}' must be a table in {file_path}")
    return PluginsConfig.from_dict(section_data)


def dump_plugins_config(
    config: PluginsConfig, file_path: Path, section: str = DEFAULT_SECTION
) -> None:
    """
    Write a plugins configuration to a TOML file with descriptive comments.

    Other top-level tables already in the file are preserved.

    Args:
        config: Configuration to write
        file_path: Path to the TOML file
        section: Name of the top-level table to write

    Raises:
        ConfigError: If the file cannot be read or written
    """
    file_path = Path(file_path)
    try:
        if file_path.exists():
            with open(file_path, encoding="utf-8") as f:
                doc = tomlkit.load(f)
        else:
            doc = tomlkit.document()
    except (OSError, TOMLKitError) as e:
        raise ConfigError(f"Unable to read {file_path}: {e}") from e

    data = config.to_dict()
    table = tomlkit.table()
    for field_name, field_def in PLUGINS_SCHEMA.items():
        if field_name not in data:
            continue
        if field_def.description:
            table.add(tomlkit.comment(field_def.description))
        table.add(field_name, data[field_name])

    specs = tomlkit.aot()
    for spec_data in data["configs"]:
        entry = tomlkit.table()
        entry.update(spec_data)
        specs.append(entry)
    if data["configs"]:
        table.add("configs", specs)

    if section in doc:
        del doc[section]
    doc.add(section, table)

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Unable to write {file_path}: {e}") from e
