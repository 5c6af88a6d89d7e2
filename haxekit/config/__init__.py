"""Configuration loading for haxekit."""

from haxekit.config.parser import (
    HaxekitConfig,
    load_config,
    parse_haxe_version,
)

__all__ = ["HaxekitConfig", "load_config", "parse_haxe_version"]
