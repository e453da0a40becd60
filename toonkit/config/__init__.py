"""Configuration module: exports ClientSettings and the YAML loaders."""

from toonkit.config.loader import load_config, load_settings
from toonkit.config.settings import ClientSettings

__all__ = ["ClientSettings", "load_config", "load_settings"]
