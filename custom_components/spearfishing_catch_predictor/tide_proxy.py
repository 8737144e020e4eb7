"""
Harmonic tide proxy.

Not station data: a sum of the main astronomical constituents with heuristic
relative amplitudes, phased so M2 and S2 peak together at a reference new
moon. That is enough to place highs and lows through the day, to tell a
rising from a falling tide, and to derive a spring/neap coefficient.

Tide coefficient scale (French convention, 20..120): the M2+S2 envelope is
mapped so mean neap tides read 45 and mean spring tides read 95.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import numpy as np

_LOGGER = logging.getLogger(__name__)

# new moon of 2000-01-06 18:14 UTC; M2 and S2 are in phase here
TIDE_EPOCH = datetime(2000, 1, 6, 18, 14, tzinfo=timezone.utc)

CONSTITUENT_PERIOD_HOURS: Dict[str, float] = {
    "M2": 12.4206,
    "S2": 12.0,
    "N2": 12.6583,
    "K1": 23.9345,
    "O1": 25.8193,
    "P1": 24.0659,
    "Q1": 26.8683,
    "M4": 12.4206 / 2.0,
}

# relative amplitudes (heuristic; not station-specific)
CONSTITUENT_DEFAULT_RATIOS: Dict[str, float] = {
    "M2": 1.00,
    "S2": 0.25,
    "N2": 0.18,
    "K1": 0.20,
    "O1": 0.12,
    "P1": 0.06,
    "Q1": 0.03,
    "M4": 0.04,
}

COEF_NEAP = 45.0
COEF_SPRING = 95.0
COEF_MIN = 20.0
COEF_MAX = 120.0

GRID_MINUTES = 6
# within this distance of an extreme the tide reads "high"/"low" instead of rising/falling
SLACK_WINDOW = timedelta(minutes=45)


@dataclass(frozen=True)
class TideEvent:
    kind: str  # "high" | "low"
    time: datetime
    height: float

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "time": self.time.isoformat(), "height_m": round(self.height, 3)}


def _hours_since_epoch(moment: datetime) -> float:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - TIDE_EPOCH).total_seconds() / 3600.0


class TideProxy:
    """In-memory harmonic model for one location. No I/O, no persistence."""

    def __init__(self, latitude: float, longitude: float, *, m2_amplitude: float = 1.0, mean_level: float = 0.0):
        self.latitude = float(latitude or 0.0)
        self.longitude = float(longitude or 0.0)
        self._names = list(CONSTITUENT_PERIOD_HOURS.keys())
        self._periods = np.array([CONSTITUENT_PERIOD_HOURS[n] for n in self._names], dtype=float)
        self._amplitudes = np.array(
            [float(m2_amplitude) * CONSTITUENT_DEFAULT_RATIOS[n] for n in self._names], dtype=float
        )
        self._mean_level = float(mean_level)
        # crude local-time shift of the tidal wave, in hours
        self._lon_shift_h = self.longitude / 15.0
        _LOGGER.debug(
            "TideProxy initialized lat=%s lon=%s constituents=%s", self.latitude, self.longitude, self._names
        )

    def _arguments(self, hours: np.ndarray) -> np.ndarray:
        # shape (len(hours), n_constituents)
        t = np.atleast_1d(hours).astype(float)[:, None] + self._lon_shift_h
        return 2.0 * math.pi * t / self._periods[None, :]

    def _heights(self, hours: np.ndarray) -> np.ndarray:
        return self._mean_level + np.cos(self._arguments(hours)) @ self._amplitudes

    def height_at(self, moment: datetime) -> float:
        """Modelled water height (m, relative to mean level) at a moment."""
        return float(self._heights(np.array([_hours_since_epoch(moment)]))[0])

    def tide_events(self, start: datetime, end: datetime) -> List[TideEvent]:
        """High and low waters strictly inside [start, end), in time order."""
        if end <= start:
            return []
        step_h = GRID_MINUTES / 60.0
        h0 = _hours_since_epoch(start)
        span_h = (end - start).total_seconds() / 3600.0
        offsets = np.arange(-step_h, span_h + step_h, step_h)
        heights = self._heights(h0 + offsets)
        d = np.diff(heights)

        events: List[TideEvent] = []
        for i in range(1, len(d)):
            if d[i - 1] > 0 and d[i] <= 0:
                kind = "high"
            elif d[i - 1] < 0 and d[i] >= 0:
                kind = "low"
            else:
                continue
            off = float(offsets[i])
            if off < 0 or off >= span_h:
                continue
            when = start + timedelta(hours=off)
            events.append(TideEvent(kind=kind, time=when.replace(second=0, microsecond=0), height=float(heights[i])))
        return events

    def tide_type_at(self, moment: datetime) -> str:
        """'high' or 'low' near an extreme, else 'rising' or 'falling'."""
        for ev in self.tide_events(moment - timedelta(hours=1), moment + timedelta(hours=1)):
            if abs(ev.time - moment) <= SLACK_WINDOW:
                return ev.kind
        probe = timedelta(minutes=3)
        return "rising" if self.height_at(moment + probe) > self.height_at(moment - probe) else "falling"

    def tide_coefficient(self, moment: datetime) -> float:
        """Spring/neap coefficient from the M2+S2 envelope, clamped to 20..120."""
        args = self._arguments(np.array([_hours_since_epoch(moment)]))[0]
        i_m2 = self._names.index("M2")
        i_s2 = self._names.index("S2")
        a_m2 = float(self._amplitudes[i_m2])
        a_s2 = float(self._amplitudes[i_s2])
        if a_m2 <= 0 or a_s2 <= 0:
            return COEF_NEAP
        delta = float(args[i_m2] - args[i_s2])
        envelope = math.sqrt(a_m2 ** 2 + a_s2 ** 2 + 2.0 * a_m2 * a_s2 * math.cos(delta))
        lo, hi = abs(a_m2 - a_s2), a_m2 + a_s2
        frac = (envelope - lo) / (hi - lo)
        coef = COEF_NEAP + (COEF_SPRING - COEF_NEAP) * frac
        return round(max(COEF_MIN, min(COEF_MAX, coef)), 1)

    def day_summary(self, day_start: datetime, moment: Optional[datetime] = None) -> Dict[str, Any]:
        """Events of the 24h starting at day_start, plus coefficient and state at `moment`."""
        at = moment or day_start + timedelta(hours=12)
        events = self.tide_events(day_start, day_start + timedelta(days=1))
        return {
            "events": [e.as_dict() for e in events],
            "coefficient": self.tide_coefficient(at),
            "state": self.tide_type_at(at),
        }
