# -*- coding: utf-8 -*-
"""Small numeric helpers shared by the calculator and serializer."""

import math
from typing import Tuple

from models import Sign


def normalize_longitude(longitude: float) -> float:
    """Normalize longitude to the 0-360 degree range"""
    longitude = longitude % 360.0
    if longitude < 0:
        longitude += 360.0
    # -1e-15 % 360 rounds up to 360.0
    if longitude >= 360.0:
        longitude = 0.0
    return longitude


def degrees_to_dms(degrees: float) -> Tuple[int, int, float]:
    """Split decimal degrees into whole degrees, whole minutes and seconds"""
    sign = -1 if degrees < 0 else 1
    degrees = abs(degrees)
    whole = int(math.floor(degrees))
    minutes_float = (degrees - whole) * 60
    minutes = int(math.floor(minutes_float))
    seconds = (minutes_float - minutes) * 60
    return sign * whole, minutes, seconds


def get_sign(longitude: float) -> Sign:
    """Get zodiac sign from longitude"""
    longitude = normalize_longitude(longitude)
    for sign in Sign:
        if sign.start_degree <= longitude < (sign.start_degree + 30):
            return sign
    return Sign.PISCES


def degrees_to_sign(longitude: float) -> Tuple[Sign, int, int]:
    """Return the sign plus whole degree (0-29) and whole minute (0-59) within it"""
    longitude = normalize_longitude(longitude)
    sign = get_sign(longitude)
    degrees, minutes, _ = degrees_to_dms(longitude - sign.start_degree)
    return sign, degrees, minutes


def ordinal_suffix(n: int) -> str:
    """English ordinal suffix: 1 -> st, 2 -> nd, 3 -> rd, 11-13 -> th"""
    if n % 100 in (11, 12, 13):
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


def ordinal(n: int) -> str:
    return f"{n}{ordinal_suffix(n)}"
