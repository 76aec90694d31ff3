# -*- coding: utf-8 -*-
"""Resolve local civil time to a UTC offset and convert it to Universal Time."""

import datetime
import logging
import re
from typing import Optional, Tuple

import pytz
try:
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
except ImportError:
    ZoneInfo = None
    ZoneInfoNotFoundError = KeyError

from models import (
    CivilDateTime, GeoCoordinate, InputValidationError, TimezoneParseError, TimezoneResolution,
    UTInstant, ZoneSpec,
)
from timezone_rules import (
    ZONES, is_dst_active, locate_zone_by_bands, ruleset_for_identifier,
)

logger = logging.getLogger(__name__)

# "EST+5:00", "EST-5", "+5", "+5:30": optional code, mandatory sign, hours, optional minutes
CODED_OFFSET_RE = re.compile(r"([A-Za-z]+)?([+-])(\d{1,2})(?::(\d{2}))?")
# "5": unsigned whole hours only
BARE_OFFSET_RE = re.compile(r"(\d{1,2})")


def parse_explicit_offset(text: str) -> TimezoneResolution:
    """
    Parse a caller-supplied offset string.

    Anything carrying a sign (``CODE±H[:MM]``, ``±H``) follows the POSIX
    sign convention, so ``EST+5:00`` and ``+5`` are five hours behind UTC
    (offset -5). Only an unsigned integer is taken literally as local minus
    UTC, so ``"5"`` is offset +5. DST cannot be inferred from either form
    and is reported False.
    """
    value = text.strip()

    match = CODED_OFFSET_RE.fullmatch(value)
    if match:
        code, sign, hours, minutes = match.groups()
        if minutes is not None and int(minutes) >= 60:
            raise TimezoneParseError(f"Invalid minutes in timezone offset: {text!r}")
        magnitude = int(hours) + (int(minutes) if minutes else 0) / 60.0
        posix_offset = magnitude if sign == "+" else -magnitude
        return _checked_explicit(text, code.upper() if code else "UTC", -posix_offset)

    match = BARE_OFFSET_RE.fullmatch(value)
    if match:
        return _checked_explicit(text, "UTC", float(match.group(1)))

    raise TimezoneParseError(
        f"Unrecognised timezone offset {text!r}; expected e.g. 'EST+5:00' or '5'")


def _checked_explicit(text: str, identifier: str, offset: float) -> TimezoneResolution:
    if not -14.0 <= offset <= 14.0:
        raise TimezoneParseError(f"Timezone offset out of range: {text!r}")
    # Avoid reporting -0.0 for "UTC+0"
    return TimezoneResolution(identifier=identifier, utc_offset_hours=offset + 0.0,
                              is_dst=False, source="explicit")


def _normalize_hour(hour: float) -> Tuple[float, int]:
    """Bring an hour into [0, 24), returning it with the whole-day carry"""
    day_shift = 0
    while hour < 0:
        hour += 24
        day_shift -= 1
    while hour >= 24:
        hour -= 24
        day_shift += 1
    return hour, day_shift


def _shift_date(date: datetime.date, day_shift: int) -> datetime.date:
    try:
        return date + datetime.timedelta(days=day_shift)
    except OverflowError:
        raise InputValidationError(
            f"Date {date.isoformat()} shifted by {day_shift:+d} day(s) falls outside years 1-9999") from None


def to_universal_time(civil: CivilDateTime, resolution: TimezoneResolution) -> UTInstant:
    """Subtract the offset from local time and roll the calendar date as needed"""
    ut_hour, day_shift = _normalize_hour(civil.hour - resolution.utc_offset_hours)
    ut_date = _shift_date(civil.date, day_shift)
    if day_shift:
        logger.debug(f"Date adjusted for UT by {day_shift:+d} day(s): {ut_date.isoformat()}")
    return UTInstant(ut_date.year, ut_date.month, ut_date.day, ut_hour, day_shift)


def from_universal_time(ut: UTInstant, resolution: TimezoneResolution) -> CivilDateTime:
    """Inverse of ``to_universal_time``"""
    local_hour, day_shift = _normalize_hour(ut.hour + resolution.utc_offset_hours)
    local_date = _shift_date(ut.date, day_shift)
    return CivilDateTime(local_date.year, local_date.month, local_date.day, local_hour)


class TimezoneManager:
    """
    Turns a coordinate and a civil time into a ``TimezoneResolution``.

    Precedence: explicit offset text, then the zone library (zoneinfo,
    or pytz when zoneinfo is unavailable), then the manual DST rule table.
    """

    def __init__(self, locator: str = "bands", use_zone_library: bool = True):
        self.locator = locator
        self.use_zone_library = use_zone_library
        self.tf = None
        if locator == "timezonefinder":
            from timezonefinder import TimezoneFinder
            self.tf = TimezoneFinder()

    def get_timezone_for_location(self, lat: float, lon: float) -> Optional[str]:
        """Get IANA timezone string for given coordinates from timezonefinder"""
        if self.tf is None:
            return None
        try:
            return self.tf.timezone_at(lat=lat, lng=lon)
        except Exception as e:
            logger.error(f"Error getting timezone for {lat}, {lon}: {e}")
            return None

    def locate_zone(self, coord: GeoCoordinate, year: int = 2000) -> ZoneSpec:
        """Pick the zone for a coordinate; the band table always answers"""
        tz_name = self.get_timezone_for_location(coord.latitude, coord.longitude)
        if tz_name:
            if tz_name in ZONES:
                return ZONES[tz_name]
            return self._derive_zone_spec(tz_name, coord, year)

        spec = locate_zone_by_bands(coord)
        logger.debug(f"Zone for ({coord.latitude}, {coord.longitude}) from band table: {spec.identifier}")
        return spec

    def _derive_zone_spec(self, identifier: str, coord: GeoCoordinate, year: int) -> ZoneSpec:
        """Build a table entry for a zone only timezonefinder knows about"""
        ruleset = ruleset_for_identifier(identifier)
        try:
            tz = pytz.timezone(identifier)
            probe = tz.localize(datetime.datetime(year, 1, 15, 12), is_dst=False)
            standard = (probe.utcoffset() - probe.dst()).total_seconds() / 3600.0
        except pytz.UnknownTimeZoneError:
            standard = float(round(coord.longitude / 15.0))
            logger.warning(f"Unknown zone {identifier}; assuming UTC{standard:+g} from longitude")
        return ZoneSpec(identifier, standard, ruleset)

    def resolve(self, coord: GeoCoordinate, civil: CivilDateTime,
                explicit_offset: Optional[str] = None) -> TimezoneResolution:
        """Resolve the UTC offset and DST flag for a civil time at a coordinate"""
        if explicit_offset is not None and explicit_offset.strip():
            resolution = parse_explicit_offset(explicit_offset)
            logger.info(f"Using explicit timezone {explicit_offset!r}: "
                        f"{resolution.identifier} (UTC{resolution.utc_offset_hours:+g})")
            return resolution

        spec = self.locate_zone(coord, civil.year)

        if self.use_zone_library:
            resolution = self._resolve_with_library(spec, civil)
            if resolution is not None:
                return resolution

        return self._resolve_with_rules(spec, civil)

    def _resolve_with_rules(self, spec: ZoneSpec, civil: CivilDateTime) -> TimezoneResolution:
        dst = is_dst_active(spec.ruleset, civil.date)
        offset = spec.standard_offset + (1.0 if dst else 0.0)
        logger.info(f"Rule table: {spec.identifier} on {civil.date.isoformat()} "
                    f"UTC{offset:+g} (DST: {dst})")
        return TimezoneResolution(spec.identifier, offset, dst, source="rules")

    def _resolve_with_library(self, spec: ZoneSpec, civil: CivilDateTime) -> Optional[TimezoneResolution]:
        dt_naive = civil.to_naive_datetime()
        try:
            if ZoneInfo:
                try:
                    return self._localize_zoneinfo(spec.identifier, dt_naive)
                except ZoneInfoNotFoundError:
                    logger.debug(f"zoneinfo has no data for {spec.identifier}, trying pytz")
            return self._localize_pytz(spec.identifier, dt_naive)
        except (pytz.UnknownTimeZoneError, ValueError, OSError, OverflowError) as e:
            logger.warning(f"Zone library could not resolve {spec.identifier} at {dt_naive}: {e}; "
                           f"falling back to rule table")
            return None

    def _localize_zoneinfo(self, identifier: str, dt_naive: datetime.datetime) -> TimezoneResolution:
        tz = ZoneInfo(identifier)
        earlier = dt_naive.replace(tzinfo=tz, fold=0)
        later = dt_naive.replace(tzinfo=tz, fold=1)

        if earlier.utcoffset() == later.utcoffset():
            return self._library_resolution(identifier, earlier)

        round_trip = earlier.astimezone(datetime.timezone.utc).astimezone(tz).replace(tzinfo=None)
        if round_trip == dt_naive:
            # During DST "fall back" - choose first occurrence
            logger.warning(f"Ambiguous time {dt_naive} in {identifier} - using earlier occurrence")
            return self._library_resolution(identifier, earlier)

        # During DST "spring forward" - keep the standard offset
        standard = earlier if not earlier.dst() else later
        logger.warning(f"Non-existent time {dt_naive} in {identifier} - "
                       f"falling back to standard offset {standard.utcoffset()}")
        return self._library_resolution(identifier, standard, normalized=True)

    def _localize_pytz(self, identifier: str, dt_naive: datetime.datetime) -> TimezoneResolution:
        tz = pytz.timezone(identifier)
        try:
            dt_local = tz.localize(dt_naive, is_dst=None)
        except pytz.AmbiguousTimeError:
            # During DST "fall back" - choose first occurrence
            dt_local = tz.localize(dt_naive, is_dst=True)
            logger.warning(f"Ambiguous time {dt_naive} in {identifier} - using earlier occurrence")
        except pytz.NonExistentTimeError:
            # During DST "spring forward" - keep the standard offset
            dt_local = tz.localize(dt_naive, is_dst=False)
            logger.warning(f"Non-existent time {dt_naive} in {identifier} - "
                           f"falling back to standard offset {dt_local.utcoffset()}")
            return self._library_resolution(identifier, dt_local, normalized=True)
        return self._library_resolution(identifier, dt_local)

    @staticmethod
    def _library_resolution(identifier: str, dt_local: datetime.datetime,
                            normalized: bool = False) -> TimezoneResolution:
        offset = dt_local.utcoffset().total_seconds() / 3600.0
        dst = bool(dt_local.dst())
        logger.info(f"Zone library: {identifier} at {dt_local.replace(tzinfo=None)} "
                    f"UTC{offset:+g} (DST: {dst})")
        return TimezoneResolution(identifier, offset, dst, source="library", normalized=normalized)
