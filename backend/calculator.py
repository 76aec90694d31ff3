# -*- coding: utf-8 -*-
"""North Node and house cusp calculations on top of the Swiss Ephemeris."""

import logging
import math
from typing import Sequence

import swisseph as swe

from _node_math import degrees_to_sign, normalize_longitude, ordinal
from models import (
    EphemerisFailure, GeoCoordinate, HouseAssignment, HouseData, InputValidationError,
    NodeChart, NodePosition, TimezoneResolution, UTInstant, CivilDateTime,
)

logger = logging.getLogger(__name__)

# Single-letter Swiss Ephemeris house systems that yield 12 cusps
HOUSE_SYSTEMS = {
    "P": "Placidus",
    "K": "Koch",
    "O": "Porphyry",
    "R": "Regiomontanus",
    "C": "Campanus",
    "A": "Equal",
    "E": "Equal",
    "W": "Whole Sign",
    "X": "Axial Rotation",
    "M": "Morinus",
    "H": "Horizontal",
    "T": "Polich/Page",
    "B": "Alcabitius",
    "V": "Vehlow Equal",
    "U": "Krusinski-Pisa",
    "Y": "APC",
    "N": "Equal (0 Aries)",
}


def assign_house(longitude: float, cusps: Sequence[float]) -> HouseAssignment:
    """
    Find the house whose span contains ``longitude``.

    House i runs from cusps[i] up to (not including) cusps[i + 1], with
    house 12 closing on cusps[0]. A span whose end is below its start
    crosses 0 degrees Aries. Houses are tried in order 1..12 and the first
    match wins; when none matches, house 1 is returned with ``fallback``
    set.
    """
    if len(cusps) != 12:
        raise ValueError(f"Expected 12 house cusps, got {len(cusps)}")

    for i in range(12):
        start = cusps[i]
        end = cusps[(i + 1) % 12]

        if end < start:  # Crosses 0°
            if longitude >= start or longitude < end:
                return HouseAssignment(i + 1)
        elif start <= longitude < end:
            return HouseAssignment(i + 1)

    logger.warning(f"Longitude {longitude:.4f} matched no house span in cusps {list(cusps)}; "
                   f"falling back to house 1")
    return HouseAssignment(1, fallback=True)


def classify_house(longitude: float, cusps: Sequence[float]) -> int:
    """House number 1-12 for a longitude, 1 when no span matches"""
    return assign_house(longitude, cusps).house


def _usable_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


class NorthNodeCalculator:
    """Lunar node position and house placement for a Universal Time instant"""

    def __init__(self, ephe_path: str = "", node: str = "true"):
        # Set Swiss Ephemeris path
        swe.set_ephe_path(ephe_path)
        logger.info(f"Ephemeris path set to: {ephe_path or '(built-in Moshier fallback)'}")

        self.node_type = str(node).lower()
        self.node_id = swe.MEAN_NODE if self.node_type == "mean" else swe.TRUE_NODE

    @staticmethod
    def julian_day(ut: UTInstant) -> float:
        """Continuous day count for a UT instant on the Gregorian calendar"""
        return swe.julday(ut.year, ut.month, ut.day, ut.hour, swe.GREG_CAL)

    def get_node_position(self, jd_ut: float) -> NodePosition:
        try:
            node_data, ret_flag = swe.calc_ut(jd_ut, self.node_id, swe.FLG_SWIEPH | swe.FLG_SPEED)
        except Exception as e:
            raise EphemerisFailure(f"Failed to calculate North Node: {e}") from e

        if not node_data or not _usable_number(node_data[0]):
            raise EphemerisFailure("Failed to calculate North Node: no longitude returned")

        latitude = node_data[1] if len(node_data) > 1 and _usable_number(node_data[1]) else 0.0
        speed = node_data[3] if len(node_data) > 3 and _usable_number(node_data[3]) else 0.0
        return NodePosition(longitude=normalize_longitude(node_data[0]), latitude=latitude, speed=speed)

    def get_house_data(self, jd_ut: float, coord: GeoCoordinate, house_system: str) -> HouseData:
        try:
            houses_data, ascmc = swe.houses(jd_ut, coord.latitude, coord.longitude,
                                            house_system.encode("ascii"))
        except Exception as e:
            raise EphemerisFailure(f"House calculation failed: {e}") from e

        cusps = list(houses_data or [])[:12]
        if len(cusps) != 12 or not all(_usable_number(c) for c in cusps):
            raise EphemerisFailure(f"House calculation failed: expected 12 cusps, got {list(houses_data or [])}")
        if not ascmc or len(ascmc) < 2:
            raise EphemerisFailure("House calculation failed: no ascendant/midheaven returned")

        return HouseData(
            cusps=[normalize_longitude(c) for c in cusps],
            ascendant=normalize_longitude(ascmc[0]),
            midheaven=normalize_longitude(ascmc[1]),
        )

    def calculate_chart(self, civil: CivilDateTime, ut: UTInstant, resolution: TimezoneResolution,
                        coord: GeoCoordinate, house_system: str = "P") -> NodeChart:
        """Calculate the node and its house for a resolved birth time"""
        house_system = house_system.upper() if house_system else "P"
        if house_system not in HOUSE_SYSTEMS:
            raise InputValidationError(
                f"Unsupported house system {house_system!r}; expected one of {''.join(sorted(HOUSE_SYSTEMS))}")

        jd_ut = self.julian_day(ut)

        logger.info("Calculating North Node chart for:")
        logger.info(f"  Local time: {civil.year}-{civil.month:02d}-{civil.day:02d} {civil.hour:.4f} "
                    f"({resolution.identifier}, UTC{resolution.utc_offset_hours:+g}, DST: {resolution.is_dst})")
        logger.info(f"  UT time: {ut.year}-{ut.month:02d}-{ut.day:02d} {ut.hour:.4f}")
        logger.info(f"  Julian Day (UT): {jd_ut}")
        logger.info(f"  Location: ({coord.latitude:.4f}, {coord.longitude:.4f})")

        node = self.get_node_position(jd_ut)
        houses = self.get_house_data(jd_ut, coord, house_system)

        for i, cusp in enumerate(houses.cusps, 1):
            sign, degrees, minutes = degrees_to_sign(cusp)
            logger.debug(f"House {i}: {degrees}°{minutes:02d}' {sign.sign_name} ({cusp:.2f}°)")

        assignment = assign_house(node.longitude, houses.cusps)
        logger.info(f"North Node at {node.longitude:.4f}° in the {ordinal(assignment.house)} house "
                    f"({HOUSE_SYSTEMS[house_system]})")

        return NodeChart(
            civil=civil,
            coordinate=coord,
            timezone=resolution,
            ut=ut,
            julian_day=jd_ut,
            node=node,
            houses=houses,
            house_system=house_system,
            house=assignment,
        )
