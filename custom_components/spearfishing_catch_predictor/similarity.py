"""
Condition similarity scoring.

score = sum(weight_f * closeness_f) / sum(weight_f), taken only over the
factors known in BOTH Conditions. Unknown factors are dropped from numerator
and denominator alike, so missing data narrows the comparison instead of
lowering the score.

Closeness per factor (all in [0, 1], symmetric in its two arguments):
  - scalar factors: 1 - |a - b| / max_difference, floored at 0
  - wind_direction: same, using the angular distance (wraps at 360)
  - moon_phase: same, using the cycle distance (wraps at 1.0)
  - tide_type: 1 on a case-insensitive match, else 0

Weights, maximum differences and "significant" thresholds are carried by a
SimilarityConfig so they can be tuned (by hand or from fitted values)
without touching this algorithm.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from .models import Conditions, FactorScore, SimilarityResult
from .unit_helpers import angular_difference, phase_difference, wind_direction_to_degrees

_LOGGER = logging.getLogger(__name__)

FACTOR_WEIGHTS = {
    "moon_phase": 0.25,
    "tide_coefficient": 0.20,
    "wind_speed": 0.15,
    "wind_direction": 0.15,
    "wave_height": 0.15,
    "tide_type": 0.10,
    "temperature": 0.05,
    "wave_period": 0.05,
}

# difference at which closeness reaches 0
MAX_DIFFERENCES = {
    "moon_phase": 0.25,  # a quarter cycle, ~7 days
    "tide_coefficient": 40.0,
    "wind_speed": 30.0,  # km/h
    "wind_direction": 90.0,  # degrees
    "wave_height": 2.0,  # m
    "temperature": 10.0,  # °C
    "wave_period": 6.0,  # s
}

SIGNIFICANT_CLOSENESS = {
    "moon_phase": 0.8,
    "tide_coefficient": 0.75,
    "wind_speed": 0.8,
    "wind_direction": 0.75,
    "wave_height": 0.8,
    "tide_type": 1.0,
    "temperature": 0.8,
    "wave_period": 0.8,
}

FACTOR_LABELS = {
    "moon_phase": "lunar phase",
    "tide_coefficient": "tide coefficient",
    "wind_speed": "wind speed",
    "wind_direction": "wind direction",
    "wave_height": "swell",
    "tide_type": "tide state",
    "temperature": "temperature",
    "wave_period": "wave period",
}

# closeness at or above which a significant factor reads "same" instead of "similar"
SAME_CLOSENESS = 0.95


def _to_float_safe(v: Any) -> Optional[float]:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class SimilarityConfig:
    """Tunable parameters of the scorer."""

    weights: Mapping[str, float] = field(default_factory=lambda: dict(FACTOR_WEIGHTS))
    max_differences: Mapping[str, float] = field(default_factory=lambda: dict(MAX_DIFFERENCES))
    significant: Mapping[str, float] = field(default_factory=lambda: dict(SIGNIFICANT_CLOSENESS))

    @classmethod
    def from_options(
        cls,
        weights: Optional[Mapping[str, Any]] = None,
        max_differences: Optional[Mapping[str, Any]] = None,
        significant: Optional[Mapping[str, Any]] = None,
    ) -> "SimilarityConfig":
        """Build a config from partial overrides merged onto the defaults.

        Raises ValueError on unknown factors or values that are not
        non-negative numbers (positive for max differences).
        """
        merged_weights = _merge("weights", FACTOR_WEIGHTS, weights, allow_zero=True)
        merged_max = _merge("max_differences", MAX_DIFFERENCES, max_differences, allow_zero=False)
        merged_sig = _merge("significant", SIGNIFICANT_CLOSENESS, significant, allow_zero=True)
        if not any(w > 0 for w in merged_weights.values()):
            raise ValueError("At least one similarity weight must be positive")
        return cls(weights=merged_weights, max_differences=merged_max, significant=merged_sig)


def _merge(name: str, defaults: Mapping[str, float], overrides: Optional[Mapping[str, Any]], allow_zero: bool) -> Dict[str, float]:
    out = dict(defaults)
    for key, raw in (overrides or {}).items():
        if key not in defaults:
            raise ValueError(f"Unknown factor '{key}' in similarity {name}")
        value = _to_float_safe(raw)
        if value is None or value < 0 or (value == 0 and not allow_zero):
            raise ValueError(f"Invalid similarity {name}[{key}]: {raw!r}")
        out[key] = value
    return out


DEFAULT_CONFIG = SimilarityConfig()


def _linear_closeness(diff: float, max_diff: float) -> float:
    if max_diff <= 0:
        return 1.0 if diff == 0 else 0.0
    return max(0.0, 1.0 - diff / max_diff)


def _scalar_pair(name: str, current: Conditions, historical: Conditions):
    a = getattr(current, name)
    b = getattr(historical, name)
    if name == "wind_direction":
        return wind_direction_to_degrees(a), wind_direction_to_degrees(b)
    return _to_float_safe(a), _to_float_safe(b)


_DISTANCES: Dict[str, Callable[[float, float], float]] = {
    "wind_direction": angular_difference,
    "moon_phase": phase_difference,
}


def _factor_closeness(name: str, current: Conditions, historical: Conditions, config: SimilarityConfig) -> Optional[float]:
    """Closeness for one factor, or None when either side is unknown."""
    if name == "tide_type":
        a, b = current.tide_type, historical.tide_type
        if not a or not b:
            return None
        return 1.0 if str(a).strip().lower() == str(b).strip().lower() else 0.0

    a, b = _scalar_pair(name, current, historical)
    if a is None or b is None:
        return None
    distance = _DISTANCES.get(name)
    diff = distance(a, b) if distance else abs(a - b)
    return _linear_closeness(diff, float(config.max_differences.get(name, 0.0)))


def _describe(name: str, closeness: float, significant: bool) -> str:
    label = FACTOR_LABELS.get(name, name.replace("_", " "))
    if not significant:
        return f"different {label}"
    return f"same {label}" if closeness >= SAME_CLOSENESS else f"similar {label}"


def similarity(current: Conditions, historical: Conditions, config: Optional[SimilarityConfig] = None) -> SimilarityResult:
    """Weighted similarity of two Conditions in [0, 1] with its per-factor breakdown."""
    cfg = config or DEFAULT_CONFIG
    factors: List[FactorScore] = []
    total = 0.0
    total_weight = 0.0

    for name, weight in cfg.weights.items():
        weight = float(weight)
        if weight <= 0:
            continue
        closeness = _factor_closeness(name, current, historical, cfg)
        if closeness is None:
            continue
        threshold = float(cfg.significant.get(name, 1.0))
        significant = closeness >= threshold
        factors.append(
            FactorScore(
                name=name,
                closeness=closeness,
                weight=weight,
                detail=_describe(name, closeness, significant),
                significant=significant,
            )
        )
        total += weight * closeness
        total_weight += weight

    if total_weight <= 0:
        return SimilarityResult(score=0.0)

    score = max(0.0, min(1.0, total / total_weight))
    reasons = tuple(f.detail for f in factors if f.significant)
    return SimilarityResult(score=score, factors=tuple(factors), reasons=reasons)


def compare_dives(a: Conditions, b: Conditions, config: Optional[SimilarityConfig] = None) -> Dict[str, Any]:
    """Direct comparison of two outings, shaped for display."""
    result = similarity(a, b, config)
    return {
        "score": round(result.score, 3),
        "score_100": int(round(result.score * 100)),
        "breakdown": {
            f.name: {"closeness": round(f.closeness, 3), "weight": f.weight, "detail": f.detail}
            for f in result.factors
        },
        "reasons": list(result.reasons),
    }
