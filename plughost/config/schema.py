"""
Plugin Settings Schema.

This module describes the settings table that accompanies the declared
plugin specs and validates values against it.

Key features:
- Typed field definitions with defaults and descriptions
- Item type checks for list fields
- Unknown settings are rejected
"""

import copy
from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Raised when a setting value does not match the schema."""

    pass


@dataclass
class ConfigField:
    """
    Represents a settings field with type and default.

    Attributes:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description (written as a TOML comment)
        item_type: Expected type of list items (list fields only)
    """

    type_: type
    default: Any
    description: str = ""
    item_type: type | None = None

    def __post_init__(self):
        if not isinstance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )
        if self.item_type is not None and self.type_ is not list:
            raise SchemaError("item_type is only supported for list fields")

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field.

        Args:
            value: The value to validate

        Raises:
            SchemaError: If validation fails
        """
        if not isinstance(value, self.type_):
            raise SchemaError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.item_type is not None:
            for item in value:
                if not isinstance(item, self.item_type):
                    raise SchemaError(
                        f"Expected {self.item_type.__name__} items, got {item!r}"
                    )


PLUGINS_SCHEMA: dict[str, ConfigField] = {
    "continue_on_error": ConfigField(
        bool,
        False,
        "Keep initializing the remaining plugins when one fails",
    ),
    "shutdown_reverse": ConfigField(
        bool,
        True,
        "Shut plugins down in reverse order of initialization",
    ),
    "plugin_locations": ConfigField(
        list,
        [],
        "Plugin files and directories to load before initialization",
        item_type=str,
    ),
}


def validate_settings(
    settings: dict[str, Any], schema: dict[str, ConfigField]
) -> dict[str, Any]:
    """
    Validate a settings table and fill in defaults.

    Args:
        settings: Settings read from the config file
        schema: The schema dictionary (field_name -> ConfigField)

    Returns:
        New dictionary with every schema field present

    Raises:
        SchemaError: If a field is unknown or has the wrong type
    """
    for key in settings:
        if key not in schema:
            raise SchemaError(f"Unknown configuration field: {key}")

    result = {}
    for field_name, field in schema.items():
        if field_name not in settings:
            result[field_name] = copy.deepcopy(field.default)
            continue

        try:
            field.validate(settings[field_name])
        except SchemaError as e:
            raise SchemaError(f"Field '{field_name}': {e}") from e
        result[field_name] = settings[field_name]

    return result
