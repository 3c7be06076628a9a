# gxregistry/config.py
"""
Registry configuration.

Loaded from a YAML file, then overridden by GXREGISTRY_* environment
variables (e.g. GXREGISTRY_API_URL, GXREGISTRY_STRICT_PIN=true).

Example config.yaml:

    api_url: http://localhost:5001
    registry_path: /var/lib/gxregistry/registry.json
    max_package_size: 512000
    store_timeout: 30
    strict_pin: false
    port: 8080
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

ENV_PREFIX = "GXREGISTRY_"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass
class Config:
    """Settings for the store client, registry and front end."""
    api_url: str = "http://localhost:5001"
    registry_path: str = "registry.json"
    max_package_size: int = 512000
    max_nodes: Optional[int] = None
    store_timeout: float = 30.0
    strict_pin: bool = False
    host: str = "127.0.0.1"
    port: int = 8080
    command_prefix: str = "!gx"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        config = cls()
        for key, value in data.items():
            setattr(config, key, _coerce(key, value))
        return config

    @classmethod
    def from_file(cls, path: Path | str) -> "Config":
        """Load config from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)

    def apply_env(self, environ: Mapping[str, str] = None) -> "Config":
        """Override fields from GXREGISTRY_* environment variables."""
        environ = os.environ if environ is None else environ
        for f in fields(self):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                setattr(self, f.name, _coerce(f.name, raw))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw config value (YAML scalar or env string) to the field's type."""
    if key in ("max_package_size", "port"):
        return int(value)
    if key == "max_nodes":
        if value is None or value == "":
            return None
        return int(value)
    if key == "store_timeout":
        return float(value)
    if key == "strict_pin":
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"Invalid boolean for {key}: {value!r}")
    if key == "log_level":
        level = str(value).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {value!r}")
        return level
    return str(value)


def load_config(path: Optional[Path | str] = None,
                environ: Mapping[str, str] = None) -> Config:
    """Load config from an optional YAML file plus environment overrides."""
    config = Config.from_file(path) if path else Config()
    return config.apply_env(environ)
