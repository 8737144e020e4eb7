"""
Solunar calculator: moon phase and the four daily activity windows.

This is a deterministic approximation, not an ephemeris:
  - moon phase is the day count since a reference new moon reduced modulo
    the synodic month;
  - moonrise is a 06:00 baseline shifted by the phase (lunar retardation)
    and a small latitude correction; moonset follows 12.4 h later;
  - major periods (2 h) are centred on lunar transit and its antipode,
    minor periods (1 h) on moonrise and moonset.

Longitude is deliberately not an input. Windows can drift by tens of
minutes from real moon events, which is fine for "best time to fish" use.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import List, Tuple, Union

from .models import SolunarPeriod

_LOGGER = logging.getLogger(__name__)

DateLike = Union[date, datetime]

SYNODIC_MONTH_DAYS = 29.53
# Reference new moon (UTC, naive)
NEW_MOON_EPOCH = datetime(2000, 1, 6, 18, 14)

MOONRISE_BASELINE_H = 6.0
LATITUDE_CORRECTION_H = 1.5
HALF_LUNAR_DAY_H = 12.4

MAJOR_DURATION_H = 2.0
MINOR_DURATION_H = 1.0


class MoonPhaseLabel(str, Enum):
    NEW = "new"
    WAXING_CRESCENT = "waxing_crescent"
    FIRST_QUARTER = "first_quarter"
    WAXING_GIBBOUS = "waxing_gibbous"
    FULL = "full"
    WANING_GIBBOUS = "waning_gibbous"
    LAST_QUARTER = "last_quarter"
    WANING_CRESCENT = "waning_crescent"


_PHASE_BUCKETS: Tuple[MoonPhaseLabel, ...] = tuple(MoonPhaseLabel)

PHASE_DISPLAY_NAMES = {
    MoonPhaseLabel.NEW: "New Moon",
    MoonPhaseLabel.WAXING_CRESCENT: "Waxing Crescent",
    MoonPhaseLabel.FIRST_QUARTER: "First Quarter",
    MoonPhaseLabel.WAXING_GIBBOUS: "Waxing Gibbous",
    MoonPhaseLabel.FULL: "Full Moon",
    MoonPhaseLabel.WANING_GIBBOUS: "Waning Gibbous",
    MoonPhaseLabel.LAST_QUARTER: "Last Quarter",
    MoonPhaseLabel.WANING_CRESCENT: "Waning Crescent",
}


def _days_since_epoch(when: DateLike) -> float:
    """Continuous day count since NEW_MOON_EPOCH. Dates are taken at noon."""
    if isinstance(when, datetime):
        moment = when.astimezone(timezone.utc).replace(tzinfo=None) if when.tzinfo else when
    else:
        moment = datetime(when.year, when.month, when.day, 12)
    return (moment - NEW_MOON_EPOCH).total_seconds() / 86400.0


def moon_phase(when: DateLike) -> float:
    """Moon phase fraction in [0, 1): 0 new moon, 0.5 full moon."""
    phase = (_days_since_epoch(when) % SYNODIC_MONTH_DAYS) / SYNODIC_MONTH_DAYS
    if phase >= 1.0:
        # float rounding right below a full cycle
        phase = 0.0
    return phase


def label_for_phase(phase: float) -> MoonPhaseLabel:
    """Map a phase fraction onto one of eight equal buckets."""
    index = min(7, max(0, int(phase * 8)))
    return _PHASE_BUCKETS[index]


def moon_phase_label(when: DateLike) -> MoonPhaseLabel:
    return label_for_phase(moon_phase(when))


def moon_rise_set_hours(when: DateLike, latitude: float) -> Tuple[float, float]:
    """Approximate local moonrise and moonset as hours in [0, 24)."""
    lat = max(-90.0, min(90.0, float(latitude)))
    lunar_offset = moon_phase(when) * 24.0
    lat_correction = (lat / 90.0) * LATITUDE_CORRECTION_H
    rise = (MOONRISE_BASELINE_H + lunar_offset + lat_correction) % 24.0
    moonset = (rise + HALF_LUNAR_DAY_H) % 24.0
    return rise, moonset


def _day_start(when: DateLike) -> datetime:
    if isinstance(when, datetime):
        return when.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime(when.year, when.month, when.day)


def _at_hours(day_start: datetime, hours: float) -> datetime:
    # whole minutes for display
    return day_start + timedelta(minutes=round(hours * 60.0))


def _window(day_start: datetime, center: datetime, duration_h: float) -> Tuple[datetime, datetime]:
    half = timedelta(hours=duration_h / 2.0)
    start, end = center - half, center + half
    if start < day_start:
        # same lunar event on the following night
        start += timedelta(days=1)
        end += timedelta(days=1)
    return start, end


def solunar_periods(when: DateLike, latitude: float) -> List[SolunarPeriod]:
    """Return the day's four solunar periods, ordered by start time."""
    day_start = _day_start(when)
    rise_h, set_h = moon_rise_set_hours(when, latitude)
    rise = _at_hours(day_start, rise_h)
    moonset = _at_hours(day_start, set_h)

    transit = rise + (moonset - rise) / 2
    underfoot = transit + timedelta(hours=12)

    periods: List[SolunarPeriod] = []
    for kind, label, center, duration in (
        ("major", "Major (moon overhead)", transit, MAJOR_DURATION_H),
        ("major", "Major (moon underfoot)", underfoot, MAJOR_DURATION_H),
        ("minor", "Minor (moonrise)", rise, MINOR_DURATION_H),
        ("minor", "Minor (moonset)", moonset, MINOR_DURATION_H),
    ):
        start, end = _window(day_start, center, duration)
        periods.append(SolunarPeriod(kind=kind, label=label, start=start, end=end))

    periods.sort(key=lambda p: p.start)
    _LOGGER.debug(
        "Solunar periods for %s lat=%s: rise=%.2fh set=%.2fh -> %s",
        day_start.date(),
        latitude,
        rise_h,
        set_h,
        [(p.kind, p.start.strftime("%H:%M")) for p in periods],
    )
    return periods


def format_period_range(period: SolunarPeriod) -> str:
    """Render a period as 'HH:MM - HH:MM'."""
    return f"{period.start:%H:%M} - {period.end:%H:%M}"
