# -*- coding: utf-8 -*-
"""Request handling for the North Node service: validate, resolve, calculate, format."""

import functools
import logging
import math
import os
import time
from types import SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional

from node_config import NodeConfigError, cfg, get_config
from calculator import NorthNodeCalculator
from models import (
    CivilDateTime, GeoCoordinate, InputValidationError, NodeRequest,
)
from serialization import serialize_node_chart, serialize_timezone
from timezone_manager import TimezoneManager, to_universal_time

logger = logging.getLogger(__name__)

__version__ = "1.0.0"

REQUIRED_PARAMS = ("year", "month", "day", "hour", "lat", "lon")

# Reference cities for the /test-timezone diagnostics endpoint
REFERENCE_LOCATIONS = [
    {"name": "Manchester, CT", "lat": 41.7759, "lon": -72.5215},
    {"name": "New York, NY", "lat": 40.7128, "lon": -74.0060},
    {"name": "Boston, MA", "lat": 42.3601, "lon": -71.0589},
    {"name": "Halifax, NS", "lat": 44.6488, "lon": -63.5752},
    {"name": "Chicago, IL", "lat": 41.8781, "lon": -87.6298},
    {"name": "Los Angeles, CA", "lat": 34.0522, "lon": -118.2437},
    {"name": "London, UK", "lat": 51.5074, "lon": -0.1278},
    {"name": "Paris, France", "lat": 48.8566, "lon": 2.3522},
    {"name": "Tokyo, Japan", "lat": 35.6762, "lon": 139.6503},
]


def profile_calculation(func):
    """Decorator to log calculation performance"""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time = time.time() - start_time
            logger.error(f"{func.__name__} failed after {execution_time:.4f} seconds: {e}")
            raise
        execution_time = time.time() - start_time
        logger.info(f"{func.__name__} executed in {execution_time:.4f} seconds")
        return result

    return wrapper


def _missing_params(params: Mapping[str, Any], names) -> List[str]:
    return [name for name in names if params.get(name) in (None, "")]


def _parse_int(params: Mapping[str, Any], name: str) -> int:
    raw = params.get(name)
    try:
        return int(str(raw).strip())
    except ValueError:
        raise InputValidationError(f"{name} must be an integer, got {raw!r}") from None


def _parse_float(params: Mapping[str, Any], name: str) -> float:
    raw = params.get(name)
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise InputValidationError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise InputValidationError(f"{name} must be a finite number, got {raw!r}")
    return value


def parse_civil_datetime(params: Mapping[str, Any]) -> CivilDateTime:
    missing = _missing_params(params, ("year", "month", "day", "hour"))
    if missing:
        raise InputValidationError(f"Missing required parameters: {', '.join(missing)}")
    return CivilDateTime(
        year=_parse_int(params, "year"),
        month=_parse_int(params, "month"),
        day=_parse_int(params, "day"),
        hour=_parse_float(params, "hour"),
    )


def parse_node_request(params: Mapping[str, Any]) -> NodeRequest:
    """Validate raw query parameters into a NodeRequest"""
    missing = _missing_params(params, REQUIRED_PARAMS)
    if missing:
        raise InputValidationError(f"Missing required parameters: {', '.join(missing)}")

    civil = parse_civil_datetime(params)
    coord = GeoCoordinate(latitude=_parse_float(params, "lat"), longitude=_parse_float(params, "lon"))

    house_system = params.get("hsys") or None
    if house_system is not None and len(house_system.strip()) != 1:
        raise InputValidationError(f"hsys must be a single house-system letter, got {house_system!r}")

    return NodeRequest(
        civil=civil,
        coordinate=coord,
        explicit_offset=params.get("tz") or None,
        house_system=house_system.strip() if house_system else None,
    )


class NorthNodeEngine:
    """Runs the full North Node pipeline for one request at a time"""

    def __init__(self, config: Optional[SimpleNamespace] = None):
        config = config or cfg()
        self.timezone_manager = TimezoneManager(
            locator=config.timezone.locator,
            use_zone_library=bool(config.timezone.use_zone_library),
        )
        self.calculator = NorthNodeCalculator(
            ephe_path=config.ephemeris.path,
            node=config.ephemeris.node,
        )
        self.default_house_system = config.ephemeris.house_system

    @profile_calculation
    def calculate(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Compute the North Node sign, degree and house for raw query parameters"""
        request = parse_node_request(params)

        resolution = self.timezone_manager.resolve(
            request.coordinate, request.civil, request.explicit_offset)
        ut = to_universal_time(request.civil, resolution)

        chart = self.calculator.calculate_chart(
            request.civil, ut, resolution, request.coordinate,
            request.house_system or self.default_house_system,
        )
        return serialize_node_chart(chart)

    def timezone_survey(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Resolve one civil time at every reference location"""
        civil = parse_civil_datetime(params)

        results = []
        for location in REFERENCE_LOCATIONS:
            coord = GeoCoordinate(location["lat"], location["lon"])
            resolution = self.timezone_manager.resolve(coord, civil)
            entry = {
                "location": location["name"],
                "coordinates": f"{location['lat']}, {location['lon']}",
            }
            entry.update(serialize_timezone(resolution))
            results.append(entry)

        return {
            "title": f"Timezone Test for {civil.year}-{civil.month}-{civil.day} {civil.hour}:00",
            "results": results,
        }


def validate_configuration() -> Dict[str, Any]:
    """Validate current configuration and return status"""
    try:
        config = get_config()
    except NodeConfigError as e:
        return {
            "valid": False,
            "config_file": os.environ.get("NORTH_NODE_CONFIG"),
            "error": str(e),
            "message": "Configuration could not be loaded",
        }
    try:
        config.validate_required_keys()
    except NodeConfigError as e:
        return {
            "valid": False,
            "config_file": config.config_file,
            "error": str(e),
            "message": "Configuration validation failed",
        }
    return {
        "valid": True,
        "config_file": config.config_file,
        "message": "Configuration is valid",
    }


def get_engine_info() -> Dict[str, Any]:
    """Get information about the North Node engine"""
    return {
        "version": __version__,
        "configuration_status": validate_configuration(),
    }


def setup_node_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Setup logging for the North Node service"""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers
    root.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logger.info(f"North Node logging configured at {level} level")


# Initialize logging on module import
if os.environ.get('NORTH_NODE_DISABLE_AUTO_LOGGING') != 'true':
    try:
        setup_node_logging(get_config().get("logging.level", "INFO"),
                           get_config().get("logging.file"))
    except (NodeConfigError, OSError, ValueError) as e:
        print(f"Warning: Failed to setup logging: {e}")
