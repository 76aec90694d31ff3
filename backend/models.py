# -*- coding: utf-8 -*-
"""Data models and error types for the North Node service."""

import calendar
import datetime
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence


class InputValidationError(ValueError):
    """Raised when a required request parameter is missing or malformed"""
    pass


class TimezoneParseError(InputValidationError):
    """Raised when an explicit UTC offset string cannot be parsed"""
    pass


class EphemerisFailure(Exception):
    """Raised when the ephemeris returns no usable node or house data"""
    pass


class Sign(Enum):
    ARIES = (0, "Aries")
    TAURUS = (30, "Taurus")
    GEMINI = (60, "Gemini")
    CANCER = (90, "Cancer")
    LEO = (120, "Leo")
    VIRGO = (150, "Virgo")
    LIBRA = (180, "Libra")
    SCORPIO = (210, "Scorpio")
    SAGITTARIUS = (240, "Sagittarius")
    CAPRICORN = (270, "Capricorn")
    AQUARIUS = (300, "Aquarius")
    PISCES = (330, "Pisces")

    def __init__(self, start_degree, sign_name):
        self.start_degree = start_degree
        self.sign_name = sign_name


def _require_finite(name: str, value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InputValidationError(f"{name} must be a finite number, got {value!r}")


@dataclass(frozen=True)
class CivilDateTime:
    """Local wall-clock time with no timezone attached"""
    year: int
    month: int
    day: int
    hour: float

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise InputValidationError(f"month must be between 1 and 12, got {self.month}")
        if not 1 <= self.year <= 9999:
            raise InputValidationError(f"year out of range: {self.year}")
        last_day = calendar.monthrange(self.year, self.month)[1]
        if not 1 <= self.day <= last_day:
            raise InputValidationError(
                f"day must be between 1 and {last_day} for {self.year}-{self.month:02d}, got {self.day}")
        _require_finite("hour", self.hour)
        if not 0 <= self.hour < 24:
            raise InputValidationError(f"hour must be in [0, 24), got {self.hour}")

    @property
    def date(self) -> datetime.date:
        return datetime.date(self.year, self.month, self.day)

    def to_naive_datetime(self) -> datetime.datetime:
        return datetime.datetime(self.year, self.month, self.day) + datetime.timedelta(hours=self.hour)


@dataclass(frozen=True)
class GeoCoordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        _require_finite("lat", self.latitude)
        _require_finite("lon", self.longitude)
        if not -90 <= self.latitude <= 90:
            raise InputValidationError(f"lat must be between -90 and 90, got {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise InputValidationError(f"lon must be between -180 and 180, got {self.longitude}")


@dataclass(frozen=True)
class ZoneSpec:
    """One entry of the zone table: identifier, standard offset and DST ruleset"""
    identifier: str
    standard_offset: float
    ruleset: str = "none"


@dataclass(frozen=True)
class TimezoneResolution:
    """UTC offset for one civil time; local = UTC + utc_offset_hours"""
    identifier: str
    utc_offset_hours: float
    is_dst: bool = False
    source: str = "rules"  # "explicit", "library" or "rules"
    normalized: bool = False


@dataclass(frozen=True)
class UTInstant:
    year: int
    month: int
    day: int
    hour: float
    day_shift: int = 0

    @property
    def date(self) -> datetime.date:
        return datetime.date(self.year, self.month, self.day)


@dataclass(frozen=True)
class HouseAssignment:
    house: int
    fallback: bool = False


@dataclass
class NodePosition:
    longitude: float
    latitude: float
    speed: float = 0.0  # degrees per day


@dataclass
class HouseData:
    cusps: List[float]  # index 0 = cusp of house 1
    ascendant: float
    midheaven: float


@dataclass
class NodeRequest:
    civil: CivilDateTime
    coordinate: GeoCoordinate
    explicit_offset: Optional[str] = None
    house_system: Optional[str] = None


@dataclass
class NodeChart:
    civil: CivilDateTime
    coordinate: GeoCoordinate
    timezone: TimezoneResolution
    ut: UTInstant
    julian_day: float
    node: NodePosition
    houses: HouseData
    house_system: str
    house: HouseAssignment

    @property
    def cusps(self) -> Sequence[float]:
        return self.houses.cusps
