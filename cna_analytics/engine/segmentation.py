"""Talent segmentation: the nine-box performance x potential grid.

Performance comes from the SPA rating, potential from the mean capability
score. Two cells are gated: casual staff and officers with under two years
of service cannot be placed as Top Talent or Future Leader and drop to the
matching low-potential cell instead.

Each placement also carries the SPA performance level and a misalignment
flag when the rating contradicts the officer's capability scores.

Independent of narrative generation; the grid never waits on it.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from cna_analytics.engine.config import AnalyticsConfig
from cna_analytics.engine.normalize import leading_int, parse_leading_int
from cna_analytics.models.records import OfficerRecord
from cna_analytics.models.snapshot import (
    Band,
    Misalignment,
    OfficerPlacement,
    PerformanceLevel,
    SegmentationGrid,
    TalentSegment,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = AnalyticsConfig()

DAYS_PER_YEAR = 365.25

# (potential, performance) -> segment, before eligibility gating.
SEGMENT_TABLE: dict[tuple[Band, Band], TalentSegment] = {
    (Band.HIGH, Band.HIGH): TalentSegment.TOP_TALENT,
    (Band.HIGH, Band.MODERATE): TalentSegment.FUTURE_LEADER,
    (Band.HIGH, Band.LOW): TalentSegment.UNREALIZED_POTENTIAL,
    (Band.MODERATE, Band.HIGH): TalentSegment.HIGH_ACHIEVER,
    (Band.MODERATE, Band.MODERATE): TalentSegment.KEY_CONTRIBUTOR,
    (Band.MODERATE, Band.LOW): TalentSegment.INCONSISTENT,
    (Band.LOW, Band.HIGH): TalentSegment.SPECIALIST_EXPERT,
    (Band.LOW, Band.MODERATE): TalentSegment.SOLID_PERFORMER,
    (Band.LOW, Band.LOW): TalentSegment.RISK,
}

# Cells a restricted officer may not occupy, and where they land instead.
RESTRICTED_FALLBACK: dict[TalentSegment, TalentSegment] = {
    TalentSegment.TOP_TALENT: TalentSegment.SPECIALIST_EXPERT,
    TalentSegment.FUTURE_LEADER: TalentSegment.SOLID_PERFORMER,
}

CORE_SEGMENTS = (
    TalentSegment.HIGH_ACHIEVER,
    TalentSegment.KEY_CONTRIBUTOR,
    TalentSegment.SOLID_PERFORMER,
)
HIGH_POTENTIAL_SEGMENTS = (TalentSegment.TOP_TALENT, TalentSegment.FUTURE_LEADER)
AT_RISK_SEGMENTS = (TalentSegment.RISK, TalentSegment.INCONSISTENT)


# ---------------------------------------------------------------------------
# Axis banding
# ---------------------------------------------------------------------------


def performance_band(spa_rating: str | None, config: AnalyticsConfig | None = None) -> Band:
    cfg = config or _DEFAULT_CONFIG
    rating = leading_int(spa_rating)
    if rating >= cfg.high_performance_rating:
        return Band.HIGH
    if rating == cfg.moderate_performance_rating:
        return Band.MODERATE
    return Band.LOW


_PERFORMANCE_LEVELS = {
    5: PerformanceLevel.WELL_ABOVE,
    4: PerformanceLevel.ABOVE,
    3: PerformanceLevel.AT_REQUIRED,
    2: PerformanceLevel.BELOW,
    1: PerformanceLevel.WELL_BELOW,
}


def performance_level(spa_rating: str | None) -> PerformanceLevel:
    """Read the SPA rating against the required level.

    A blank or non-numeric rating reads as At Required Level; a number
    outside 1-5 is Not Rated.
    """
    rating = parse_leading_int(spa_rating)
    if rating is None:
        return PerformanceLevel.AT_REQUIRED
    return _PERFORMANCE_LEVELS.get(rating, PerformanceLevel.NOT_RATED)


def mean_capability(officer: OfficerRecord) -> float:
    ratings = officer.capability_ratings
    if not ratings:
        return 0.0
    return sum(r.current_score for r in ratings) / len(ratings)


def potential_band(mean_score: float, config: AnalyticsConfig | None = None) -> Band:
    cfg = config or _DEFAULT_CONFIG
    if mean_score >= cfg.high_potential_score:
        return Band.HIGH
    if mean_score >= cfg.moderate_potential_score:
        return Band.MODERATE
    return Band.LOW


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------


def tenure_years(commencement: date | None, as_of: date) -> float:
    """Years of service, or 0 without a commencement date."""
    if commencement is None:
        return 0.0
    return (as_of - commencement).days / DAYS_PER_YEAR


def is_restricted(
    officer: OfficerRecord,
    tenure: float,
    config: AnalyticsConfig | None = None,
) -> bool:
    """Casual staff and short-tenure officers are gated out of the top cells."""
    cfg = config or _DEFAULT_CONFIG
    casual = cfg.casual_keyword in (officer.employment_status or "").lower()
    return casual or tenure < cfg.minimum_tenure_years


def misalignment(
    officer: OfficerRecord,
    config: AnalyticsConfig | None = None,
) -> Misalignment | None:
    """Flag an SPA rating that contradicts the officer's own capability scores.

    Needs both a numeric rating and at least one capability rating.
    """
    cfg = config or _DEFAULT_CONFIG
    rating = parse_leading_int(officer.spa_rating)
    if rating is None or not officer.capability_ratings:
        return None
    mean_score = mean_capability(officer)
    if rating in (4, 5) and mean_score < cfg.low_capability_score:
        return Misalignment.HIGH_PERFORMER_LOW_CAPABILITY
    if rating in (1, 2) and mean_score > cfg.high_capability_score:
        return Misalignment.SKILLED_UNDERPERFORMING
    return None


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def place_officer(
    officer: OfficerRecord,
    as_of: date,
    config: AnalyticsConfig | None = None,
) -> OfficerPlacement:
    """Place one officer on the grid."""
    cfg = config or _DEFAULT_CONFIG
    performance = performance_band(officer.spa_rating, cfg)
    mean_score = mean_capability(officer)
    potential = potential_band(mean_score, cfg)
    tenure = tenure_years(officer.commencement_date, as_of)
    restricted = is_restricted(officer, tenure, cfg)

    segment = SEGMENT_TABLE[(potential, performance)]
    if restricted:
        segment = RESTRICTED_FALLBACK.get(segment, segment)

    return OfficerPlacement(
        officer_name=officer.name,
        division=officer.division,
        performance=performance,
        potential=potential,
        mean_capability=mean_score,
        tenure_years=tenure,
        restricted=restricted,
        segment=segment,
        performance_level=performance_level(officer.spa_rating),
        misalignment=misalignment(officer, cfg),
    )


def segment(
    officers: Sequence[OfficerRecord],
    *,
    as_of: date | None = None,
    config: AnalyticsConfig | None = None,
) -> SegmentationGrid:
    """Build the nine-box grid for a survey set.

    ``as_of`` is the reference date for tenure; it defaults to today.
    """
    cfg = config or _DEFAULT_CONFIG
    reference = as_of or date.today()

    placements = [place_officer(o, reference, cfg) for o in officers]
    counts = {cell: 0 for cell in TalentSegment}
    for placement in placements:
        counts[placement.segment] += 1

    total = len(placements)

    def _pct(cells: tuple[TalentSegment, ...]) -> float:
        if total == 0:
            return 0.0
        return sum(counts[c] for c in cells) / total * 100.0

    logger.debug(
        "segment: officers=%d restricted=%d",
        total,
        sum(1 for p in placements if p.restricted),
    )

    return SegmentationGrid(
        total=total,
        counts=counts,
        core_pct=_pct(CORE_SEGMENTS),
        high_potential_pct=_pct(HIGH_POTENTIAL_SEGMENTS),
        at_risk_pct=_pct(AT_RISK_SEGMENTS),
        placements=placements,
    )
