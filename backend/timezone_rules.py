# -*- coding: utf-8 -*-
"""
Manual daylight-saving rule table and coordinate-to-zone table.

Used when no zone library answer is available. The US and European rule
eras below are the baseline; finer historical exceptions (1974-75 US
emergency DST, Halifax-specific eras) are left to the zone library.
"""

import calendar
import datetime
from typing import Dict, List, NamedTuple, Optional, Tuple

from models import GeoCoordinate, ZoneSpec

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)
LAST = -1


def nth_weekday_of_month(year: int, month: int, weekday: int, n: int) -> int:
    """Day of month of the n-th (1-based) given weekday, e.g. second Sunday of March"""
    if n < 1:
        raise ValueError(f"occurrence must be >= 1, got {n}")
    first_weekday = datetime.date(year, month, 1).weekday()
    day = 1 + (weekday - first_weekday) % 7 + 7 * (n - 1)
    if day > calendar.monthrange(year, month)[1]:
        raise ValueError(f"{year}-{month:02d} has no occurrence {n} of weekday {weekday}")
    return day


def last_weekday_of_month(year: int, month: int, weekday: int) -> int:
    """Day of month of the last given weekday, e.g. last Sunday of October"""
    last_day = calendar.monthrange(year, month)[1]
    last_weekday = datetime.date(year, month, last_day).weekday()
    return last_day - (last_weekday - weekday) % 7


def weekday_of_month(year: int, month: int, weekday: int, occurrence: int) -> int:
    if occurrence == LAST:
        return last_weekday_of_month(year, month, weekday)
    return nth_weekday_of_month(year, month, weekday, occurrence)


class Transition(NamedTuple):
    month: int
    occurrence: int  # 1..5 or LAST
    weekday: int = SUNDAY

    def date_in(self, year: int) -> datetime.date:
        return datetime.date(year, self.month, weekday_of_month(year, self.month, self.weekday, self.occurrence))


class DstEra(NamedTuple):
    first_year: int
    last_year: Optional[int]  # None = still in force
    start: Transition
    end: Transition

    def covers(self, year: int) -> bool:
        return self.first_year <= year and (self.last_year is None or year <= self.last_year)


DST_RULESETS: Dict[str, List[DstEra]] = {
    "us": [
        DstEra(1966, 1986, Transition(4, LAST), Transition(10, LAST)),
        DstEra(1987, 2006, Transition(4, 1), Transition(10, LAST)),
        DstEra(2007, None, Transition(3, 2), Transition(11, 1)),
    ],
    "eu": [
        DstEra(1981, 1995, Transition(3, LAST), Transition(9, LAST)),
        DstEra(1996, None, Transition(3, LAST), Transition(10, LAST)),
    ],
    "none": [],
}


def dst_window(ruleset: str, year: int) -> Optional[Tuple[datetime.date, datetime.date]]:
    """Start and end dates of DST for a year, or None when no DST applies"""
    try:
        eras = DST_RULESETS[ruleset]
    except KeyError:
        raise ValueError(f"Unknown DST ruleset: {ruleset}") from None
    for era in eras:
        if era.covers(year):
            return era.start.date_in(year), era.end.date_in(year)
    return None


def is_dst_active(ruleset: str, day: datetime.date) -> bool:
    """
    True when the date falls inside the ruleset's DST period.

    The start date already counts as DST and the end date already counts
    as standard time.
    """
    window = dst_window(ruleset, day.year)
    if window is None:
        return False
    start, end = window
    return start <= day < end


# Zone table ---------------------------------------------------------------

ZONES: Dict[str, ZoneSpec] = {spec.identifier: spec for spec in (
    ZoneSpec("America/New_York", -5.0, "us"),
    ZoneSpec("America/Chicago", -6.0, "us"),
    ZoneSpec("America/Denver", -7.0, "us"),
    ZoneSpec("America/Phoenix", -7.0, "none"),
    ZoneSpec("America/Los_Angeles", -8.0, "us"),
    ZoneSpec("America/Anchorage", -9.0, "us"),
    ZoneSpec("America/Halifax", -4.0, "us"),
    ZoneSpec("Pacific/Honolulu", -10.0, "none"),
    ZoneSpec("Europe/London", 0.0, "eu"),
    ZoneSpec("Europe/Paris", 1.0, "eu"),
    ZoneSpec("Europe/Athens", 2.0, "eu"),
    ZoneSpec("Europe/Moscow", 3.0, "none"),
    ZoneSpec("Asia/Kolkata", 5.5, "none"),
    ZoneSpec("Asia/Shanghai", 8.0, "none"),
    ZoneSpec("Asia/Tokyo", 9.0, "none"),
    ZoneSpec("UTC", 0.0, "none"),
)}

DEFAULT_ZONE = ZONES["UTC"]


class ZoneArea(NamedTuple):
    """Rectangle in degrees; lower bounds inclusive, upper bounds exclusive"""
    name: str
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float
    zone: str

    def contains(self, coord: GeoCoordinate) -> bool:
        return (self.lat_min <= coord.latitude < self.lat_max
                and self.lon_min <= coord.longitude < self.lon_max)


# Checked before the bands; these cut across a band's usual rules
SPECIAL_REGIONS: List[ZoneArea] = [
    ZoneArea("Arizona", 31.3, 37.0, -114.8, -109.05, "America/Phoenix"),
    ZoneArea("Hawaii", 18.5, 22.5, -160.5, -154.5, "Pacific/Honolulu"),
    ZoneArea("Atlantic Canada", 43.3, 48.1, -66.9, -59.5, "America/Halifax"),
    ZoneArea("British Isles", 49.8, 61.0, -10.7, 1.8, "Europe/London"),
    ZoneArea("India", 6.5, 35.7, 68.0, 97.5, "Asia/Kolkata"),
]

LONGITUDE_BANDS: List[ZoneArea] = [
    ZoneArea("North American Atlantic", 15.0, 72.0, -66.9, -52.0, "America/Halifax"),
    ZoneArea("North American Eastern", 15.0, 72.0, -87.5, -66.9, "America/New_York"),
    ZoneArea("North American Central", 15.0, 72.0, -101.5, -87.5, "America/Chicago"),
    ZoneArea("North American Mountain", 15.0, 72.0, -115.0, -101.5, "America/Denver"),
    ZoneArea("North American Pacific", 15.0, 72.0, -141.0, -115.0, "America/Los_Angeles"),
    ZoneArea("Alaska", 50.0, 72.0, -170.0, -141.0, "America/Anchorage"),
    ZoneArea("Western Europe", 35.0, 72.0, -10.7, 20.0, "Europe/Paris"),
    ZoneArea("Eastern Europe", 35.0, 72.0, 20.0, 35.0, "Europe/Athens"),
    ZoneArea("Moscow", 42.0, 72.0, 35.0, 60.0, "Europe/Moscow"),
    ZoneArea("China", 18.0, 54.0, 97.5, 128.0, "Asia/Shanghai"),
    ZoneArea("Japan", 24.0, 46.0, 128.0, 146.0, "Asia/Tokyo"),
]


def locate_zone_by_bands(coord: GeoCoordinate) -> ZoneSpec:
    """Map a coordinate to a zone; every coordinate maps to exactly one zone"""
    for area in SPECIAL_REGIONS:
        if area.contains(coord):
            return ZONES[area.zone]
    for area in LONGITUDE_BANDS:
        if area.contains(coord):
            return ZONES[area.zone]
    return DEFAULT_ZONE


def ruleset_for_identifier(identifier: str) -> str:
    """Best-guess ruleset for an IANA identifier missing from the zone table"""
    if identifier in ZONES:
        return ZONES[identifier].ruleset
    if identifier.startswith("America/"):
        return "us"
    if identifier.startswith("Europe/"):
        return "eu"
    return "none"
