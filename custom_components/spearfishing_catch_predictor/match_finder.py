"""Rank a fisher's logged outings against the current conditions."""
from __future__ import annotations

import logging
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .const import DEFAULT_MAX_RESULTS, DEFAULT_MIN_SCORE
from .models import CatchMatch, Conditions, HistoricalDive
from .similarity import SimilarityConfig, similarity

_LOGGER = logging.getLogger(__name__)


def _format_day(d: date) -> str:
    return f"{d.day} {d:%b %Y}"


def generate_summary(score: float, species: Sequence[str], day: date) -> str:
    """One-line, human readable description of a match."""
    if not species:
        closeness = "Very similar" if score >= 0.9 else "Similar"
        return f"{closeness} conditions to {_format_day(day)}"

    if len(species) > 3:
        species_text = f"{', '.join(species[:3])} and {len(species) - 3} more"
    else:
        species_text = ", ".join(species)

    if score >= 0.9:
        return f"Near-identical conditions. You caught: {species_text}"
    if score >= 0.8:
        return f"In very similar conditions you caught: {species_text}"
    return f"In similar conditions you caught: {species_text}"


def _is_well_formed(dive: object) -> bool:
    return (
        isinstance(dive, HistoricalDive)
        and isinstance(dive.conditions, Conditions)
        and isinstance(dive.date, date)
    )


def find_matches(
    current: Conditions,
    history: Iterable[HistoricalDive],
    min_score: float = DEFAULT_MIN_SCORE,
    max_results: int = DEFAULT_MAX_RESULTS,
    *,
    location_id: Optional[str] = None,
    only_with_catches: bool = False,
    config: Optional[SimilarityConfig] = None,
) -> List[CatchMatch]:
    """
    Return past outings scoring at least `min_score`, best first.

    - location_id: when set, only outings logged at that spot are scored
      (cheap filter applied before any scoring).
    - only_with_catches: drop outings where nothing was caught.
    Ties on score are broken by the most recent date. Outings without
    recorded conditions, or sharing no known factor with `current`, are
    skipped. Never raises for empty or partially bad history.
    """
    if max_results <= 0:
        return []

    candidates = list(history or ())
    if location_id:
        candidates = [d for d in candidates if getattr(d, "location_id", None) == location_id]
    if only_with_catches:
        candidates = [d for d in candidates if getattr(d, "catches", None)]

    matches: List[CatchMatch] = []
    skipped = 0
    for dive in candidates:
        if not _is_well_formed(dive):
            skipped += 1
            continue
        result = similarity(current, dive.conditions, config)
        if not result.factors:
            skipped += 1
            continue
        if result.score < min_score:
            continue
        matches.append(
            CatchMatch(
                dive=dive,
                score=result.score,
                contributing=result.contributing,
                reasons=result.reasons,
                breakdown=result.factors,
                summary=generate_summary(result.score, dive.species, dive.date),
            )
        )

    if skipped:
        _LOGGER.debug("Skipped %d unscoreable historical dives", skipped)

    matches.sort(key=lambda m: (m.score, m.dive.date.toordinal()), reverse=True)
    _LOGGER.debug(
        "find_matches: %d candidates, %d above %.2f, returning %d",
        len(candidates),
        len(matches),
        min_score,
        min(len(matches), max_results),
    )
    return matches[:max_results]


def find_matches_for_locations(
    conditions_by_location: Mapping[str, Conditions],
    history: Iterable[HistoricalDive],
    min_score: float = DEFAULT_MIN_SCORE,
    max_results: int = 3,
    *,
    only_with_catches: bool = True,
    config: Optional[SimilarityConfig] = None,
) -> Dict[str, List[CatchMatch]]:
    """Per-location matches from a single history; locations with none are left out."""
    dives = list(history or ())
    results: Dict[str, List[CatchMatch]] = {}
    for location_id, conditions in conditions_by_location.items():
        matches = find_matches(
            conditions,
            dives,
            min_score,
            max_results,
            location_id=location_id,
            only_with_catches=only_with_catches,
            config=config,
        )
        if matches:
            results[location_id] = matches
    return results
