# -*- coding: utf-8 -*-
"""Public entry points of the North Node service."""

from models import (
    CivilDateTime, GeoCoordinate, TimezoneResolution, UTInstant, HouseAssignment,
    HouseData, NodePosition, NodeChart, Sign, ZoneSpec,
    InputValidationError, TimezoneParseError, EphemerisFailure,
)
from timezone_rules import (
    nth_weekday_of_month, last_weekday_of_month, dst_window, is_dst_active,
    locate_zone_by_bands,
)
from timezone_manager import (
    TimezoneManager,
    parse_explicit_offset,
    to_universal_time,
    from_universal_time,
)
from calculator import NorthNodeCalculator, assign_house, classify_house
from node_engine import (
    NorthNodeEngine,
    parse_node_request,
    setup_node_logging,
    profile_calculation,
    get_engine_info,
    validate_configuration,
)
from node_config import NodeConfig, NodeConfigError, get_config, cfg
from serialization import serialize_node_chart
from _node_math import ordinal_suffix, ordinal, degrees_to_sign
