"""
plughost CLI - Inspect plugin configurations.

Usage:
    plughost validate <config.toml>     Check the declared plugin specs
    plughost show <config.toml>         List the declared plugins and settings
"""

import argparse
import sys
from pathlib import Path

from loguru import logger

from plughost.config import ConfigError, PluginsConfig, load_plugins_config
from plughost.plugin.errors import ValidationError
from plughost.plugin.spec import PluginSpec


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="plughost",
        description="Inspect and validate plughost plugin configurations",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--section",
        default="plugins",
        help="TOML table holding the plugin configuration (default: plugins)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    validate = commands.add_parser("validate", help="Validate a plugin configuration")
    validate.add_argument("config", type=Path, help="Path to the TOML file")

    show = commands.add_parser("show", help="Show the declared plugins")
    show.add_argument("config", type=Path, help="Path to the TOML file")

    return parser


def describe_spec(spec: PluginSpec) -> str:
    """Get a one-line description of a spec."""
    if spec.is_multi_instance:
        mode = "multi"
    elif spec.is_default:
        mode = "default"
    else:
        mode = f"id={spec.id}"
    return f"{spec.type:<30} {mode:<16} {spec.plugin or '*'}"


def validate_command(config: PluginsConfig, path: Path) -> int:
    config.validate()
    print(f"{path}: {len(config.configs)} plugin spec(s) OK")
    return 0


def show_command(config: PluginsConfig, path: Path) -> int:
    print(f"{path}:")
    print(f"  continue_on_error = {config.continue_on_error}")
    print(f"  shutdown_reverse  = {config.shutdown_reverse}")
    for location in config.plugin_locations or []:
        print(f"  location: {location}")
    for index, spec in enumerate(config.configs):
        print(f"  [{index}] {describe_spec(spec)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for plughost CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    try:
        config = load_plugins_config(args.config, section=args.section)
        if args.command == "validate":
            return validate_command(config, args.config)
        return show_command(config, args.config)

    except (ConfigError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
