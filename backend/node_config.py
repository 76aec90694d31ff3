# -*- coding: utf-8 -*-
"""
YAML configuration for the North Node service.

The configuration is loaded once, before the first request, from
``north_node_constants.yaml`` next to this module or from the file named by
the ``NORTH_NODE_CONFIG`` environment variable. Values are read through
``get_config().get("dotted.key")`` or attribute access on ``cfg()``.
"""

import copy
import logging
import os
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

MODULE_CONFIG_PATH = Path(__file__).resolve().parent / "north_node_constants.yaml"
# Installed location of the data file declared in pyproject.toml
INSTALLED_CONFIG_PATH = Path(sys.prefix) / "share" / "north-node-api" / "north_node_constants.yaml"


def default_config_path() -> Path:
    """The constants file beside the modules, else the installed copy"""
    for candidate in (MODULE_CONFIG_PATH, INSTALLED_CONFIG_PATH):
        if candidate.exists():
            return candidate
    return MODULE_CONFIG_PATH


# Used when no constants file is found
DEFAULTS: Dict[str, Any] = {
    "ephemeris": {
        "path": "./ephe",
        "house_system": "P",
        "node": "true",
    },
    "timezone": {
        "locator": "bands",
        "use_zone_library": True,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
    },
    "cors": {
        "allowed_origins": [
            "https://www.janspiller.com",
            "http://astro-sand-box.local",
        ],
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}

REQUIRED_KEYS = [
    "ephemeris.path",
    "ephemeris.house_system",
    "ephemeris.node",
    "timezone.locator",
    "timezone.use_zone_library",
    "server.port",
    "cors.allowed_origins",
]

NODE_TYPES = ("true", "mean")
LOCATORS = ("bands", "timezonefinder")


class NodeConfigError(Exception):
    """Raised for unreadable, malformed or incomplete configuration"""
    pass


def _to_namespace(value: Any) -> Any:
    if isinstance(value, dict):
        return SimpleNamespace(**{k: _to_namespace(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_to_namespace(v) for v in value)
    return value


class NodeConfig:
    """Singleton holding the parsed configuration"""

    _instance: Optional["NodeConfig"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._loaded = False
        return cls._instance

    def __init__(self):
        if self._loaded:
            return
        explicit = os.environ.get("NORTH_NODE_CONFIG")
        self.config_file = explicit or str(default_config_path())
        self._data = self._load(self.config_file, required=bool(explicit))
        self._apply_env_overrides(self._data)
        self._namespace = _to_namespace(self._data)
        self._loaded = True

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the next access reloads from disk"""
        cls._instance = None

    @staticmethod
    def _load(config_file: str, required: bool = True) -> Dict[str, Any]:
        path = Path(config_file)
        if not path.exists():
            if not required:
                logger.info("No configuration file found, using built-in defaults")
                return copy.deepcopy(DEFAULTS)
            raise NodeConfigError(f"Configuration file not found: {config_file}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise NodeConfigError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            raise NodeConfigError(f"Cannot read {config_file}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise NodeConfigError(f"Top level of {config_file} must be a mapping")
        return data

    @staticmethod
    def _apply_env_overrides(data: Dict[str, Any]) -> None:
        ephe_path = os.environ.get("EPHE_PATH")
        if ephe_path:
            data.setdefault("ephemeris", {})["path"] = ephe_path

        port = os.environ.get("PORT")
        if port:
            try:
                data.setdefault("server", {})["port"] = int(port)
            except ValueError:
                raise NodeConfigError(f"PORT must be an integer, got {port!r}") from None

        origins = os.environ.get("CORS_ORIGINS")
        if origins:
            data.setdefault("cors", {})["allowed_origins"] = [
                o.strip() for o in origins.split(",") if o.strip()
            ]

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``"ephemeris.house_system"``"""
        value: Any = self._data
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    @property
    def settings(self) -> SimpleNamespace:
        return self._namespace

    def validate_required_keys(self) -> None:
        missing = [key for key in REQUIRED_KEYS if self.get(key) is None]
        if missing:
            raise NodeConfigError(f"Missing required configuration keys: {', '.join(missing)}")

        house_system = self.get("ephemeris.house_system")
        if not isinstance(house_system, str) or len(house_system) != 1:
            raise NodeConfigError(f"ephemeris.house_system must be a single letter, got {house_system!r}")
        if str(self.get("ephemeris.node")).lower() not in NODE_TYPES:
            raise NodeConfigError(f"ephemeris.node must be one of {NODE_TYPES}")
        if self.get("timezone.locator") not in LOCATORS:
            raise NodeConfigError(f"timezone.locator must be one of {LOCATORS}")
        if not isinstance(self.get("cors.allowed_origins"), list):
            raise NodeConfigError("cors.allowed_origins must be a list")


def get_config() -> NodeConfig:
    return NodeConfig()


def cfg() -> SimpleNamespace:
    """Attribute-style access to the loaded configuration"""
    return get_config().settings


if os.environ.get("NORTH_NODE_CONFIG_SKIP_VALIDATION") != "true":
    try:
        get_config().validate_required_keys()
    except NodeConfigError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise
