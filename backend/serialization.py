# -*- coding: utf-8 -*-
"""JSON serialization helpers for North Node results."""

from typing import Any, Dict

from _node_math import degrees_to_sign, ordinal
from models import NodeChart, TimezoneResolution


def format_node_summary(degrees: int, minutes: int, sign_name: str, house: int) -> str:
    return f"{degrees}°{minutes:02d}′ {sign_name} in the {ordinal(house)} house"


def serialize_timezone(resolution: TimezoneResolution) -> Dict[str, Any]:
    return {
        "id": resolution.identifier,
        "offset": resolution.utc_offset_hours,
        "is_dst": resolution.is_dst,
        "source": resolution.source,
        "normalized": resolution.normalized,
    }


def serialize_node_chart(chart: NodeChart) -> Dict[str, Any]:
    """Serialize a node chart into the /north-node response body"""
    sign, degrees, minutes = degrees_to_sign(chart.node.longitude)
    house = chart.house.house

    return {
        "sign": sign.sign_name,
        "degrees": degrees,
        "minutes": minutes,
        "longitude": chart.node.longitude,
        "house": house,
        "formatted": format_node_summary(degrees, minutes, sign.sign_name, house),
        "house_fallback": chart.house.fallback,
        "house_system": chart.house_system,
        "house_cusps": list(chart.houses.cusps),
        "ascendant": chart.houses.ascendant,
        "midheaven": chart.houses.midheaven,
        "timezone": serialize_timezone(chart.timezone),
        "ut": {
            "year": chart.ut.year,
            "month": chart.ut.month,
            "day": chart.ut.day,
            "hour": round(chart.ut.hour, 6),
        },
        "julian_day": chart.julian_day,
    }
