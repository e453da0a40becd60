"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
#   1. config/toonkit.yaml  -- static defaults checked into the repo
#   2. .env file            -- local developer overrides (not committed)
#   3. TOONKIT_* env vars   -- set per deployment
#
# load_config() reads the YAML file first, then deep-merges the values
# that were explicitly set through the environment on top.  Defaults
# declared on ClientSettings never mask a YAML value.
#
#   yaml      = {"client": {"max_attempts": 3, "min_request_interval": 1.0}}
#   env       = TOONKIT_MAX_ATTEMPTS=8
#   result    = {"client": {"max_attempts": 8, "min_request_interval": 1.0}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from toonkit.config.settings import ClientSettings
from toonkit.utils.errors import ConfigurationError

_LOGGING_FIELDS = {"log_level": "level", "app_env": "env", "configure_logs": "configure"}


def load_config(path: str = "config/toonkit.yaml") -> dict:
    """Load YAML config and merge with environment-based ClientSettings.

    Args:
        path: Path to the YAML configuration file.  A missing file is
              treated as empty.

    Returns:
        Resolved configuration dictionary with ``client`` and ``logging``
        sections.

    Raises:
        ConfigurationError: If the file is not valid YAML or its top
            level is not a mapping.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
    else:
        yaml_config = {}

    yaml_config.setdefault("client", {})
    yaml_config.setdefault("logging", {})

    settings = ClientSettings()
    env_overrides: dict = {"client": {}, "logging": {}}
    for name in settings.model_fields_set:
        value = getattr(settings, name)
        if name in _LOGGING_FIELDS:
            env_overrides["logging"][_LOGGING_FIELDS[name]] = value
        else:
            env_overrides["client"][name] = value

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def load_settings(path: str = "config/toonkit.yaml") -> ClientSettings:
    """Build :class:`ClientSettings` from the merged YAML + env config."""
    config = load_config(path)
    values = dict(config["client"])
    for name, key in _LOGGING_FIELDS.items():
        if key in config["logging"]:
            values[name] = config["logging"][key]
    return ClientSettings(**values)


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
