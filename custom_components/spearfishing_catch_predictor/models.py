"""Value types shared by the catch prediction core.

All of these are plain immutable records. Absence of a condition field is
always expressed as None ("unknown"), never as zero.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Conditions:
    """Environmental snapshot at a place and time."""

    temperature: Optional[float] = None  # °C
    wind_speed: Optional[float] = None  # km/h
    wind_direction: Optional[float] = None  # degrees, 0..359
    wave_height: Optional[float] = None  # m
    wave_period: Optional[float] = None  # s
    tide_coefficient: Optional[float] = None  # dimensionless, ~20..120
    moon_phase: Optional[float] = None  # 0..1, 0/1 new moon, 0.5 full moon
    tide_type: Optional[str] = None  # rising / falling / high / low

    def known_fields(self) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(self) if getattr(self, f.name) is not None)

    def with_values(self, **changes: Any) -> "Conditions":
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass(frozen=True)
class Catch:
    species: str
    weight_kg: Optional[float] = None
    length_cm: Optional[float] = None


@dataclass(frozen=True)
class HistoricalDive:
    """A logged outing as read from the fisher's dive log."""

    dive_id: str
    date: date
    location_id: Optional[str]
    conditions: Optional[Conditions]
    catches: Tuple[Catch, ...] = ()
    location_name: Optional[str] = None
    duration_min: Optional[float] = None
    max_depth_m: Optional[float] = None

    @property
    def species(self) -> Tuple[str, ...]:
        """Distinct species caught that day, in logging order."""
        return tuple(dict.fromkeys(c.species for c in self.catches))


@dataclass(frozen=True)
class FactorScore:
    """Closeness of one factor between two Conditions."""

    name: str
    closeness: float  # 0..1
    weight: float
    detail: str
    significant: bool = False


@dataclass(frozen=True)
class SimilarityResult:
    score: float  # 0..1
    factors: Tuple[FactorScore, ...] = ()
    reasons: Tuple[str, ...] = ()

    @property
    def compared(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.factors)

    @property
    def contributing(self) -> Tuple[str, ...]:
        """Factor names that were close enough to count as a reason."""
        return tuple(f.name for f in self.factors if f.significant)


@dataclass(frozen=True)
class CatchMatch:
    """One historical outing ranked against the current conditions."""

    dive: HistoricalDive
    score: float
    contributing: Tuple[str, ...] = ()
    reasons: Tuple[str, ...] = ()
    breakdown: Tuple[FactorScore, ...] = ()
    summary: str = ""

    @property
    def species(self) -> Tuple[str, ...]:
        return self.dive.species

    def as_dict(self) -> Dict[str, Any]:
        return {
            "dive_id": self.dive.dive_id,
            "date": self.dive.date.isoformat(),
            "location_id": self.dive.location_id,
            "location_name": self.dive.location_name,
            "score": round(self.score, 3),
            "score_100": int(round(self.score * 100)),
            "species": list(self.species),
            "catches": [
                {"species": c.species, "weight_kg": c.weight_kg, "length_cm": c.length_cm}
                for c in self.dive.catches
            ],
            "contributing": list(self.contributing),
            "reasons": list(self.reasons),
            "summary": self.summary,
        }


@dataclass(frozen=True)
class SolunarPeriod:
    kind: str  # "major" or "minor"
    label: str
    start: datetime
    end: datetime

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "label": self.label,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


@dataclass(frozen=True)
class ForecastSnapshot:
    """Weather and marine values for one forecast hour.

    `marine` is empty when the marine series does not reach that hour.
    """

    index: int
    time: Optional[str]
    weather: Dict[str, Any] = field(default_factory=dict)
    marine: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_marine(self) -> bool:
        return bool(self.marine)
