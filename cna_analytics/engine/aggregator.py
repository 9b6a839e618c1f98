"""Aggregation engine: register + survey -> AggregatedData.

Single entry point ``aggregate``. Pure and total: empty collections,
missing optional fields and malformed numeric strings produce zeroed
statistics, never exceptions. Every ratio has an explicit zero guard.

Division rollups deliberately keep two taxonomies side by side: register
figures (ceiling, actual) are grouped by the register record's division,
survey figures (filled_by_cna, skill_gaps, qual_gaps) by the officer's own
division. Survey divisions unknown to the register are reported in
``survey_only_divisions``.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from cna_analytics.engine.config import AnalyticsConfig
from cna_analytics.engine.gaps import classify_gap
from cna_analytics.engine.normalize import (
    EstablishmentIndex,
    extract_grade_number,
    is_filled,
    normalize_gender,
)
from cna_analytics.engine.pillars import baseline_score, extreme_sectors, score_pillars
from cna_analytics.models.records import EstablishmentRecord, LifecycleStage, OfficerRecord
from cna_analytics.models.snapshot import (
    AggregatedData,
    Discrepancy,
    DiscrepancyType,
    DivisionStats,
    GapType,
    GesiMetrics,
)

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = AnalyticsConfig()


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


# ---------------------------------------------------------------------------
# Partial computations
# ---------------------------------------------------------------------------


def _female_seniority_rate(
    establishment: Sequence[EstablishmentRecord],
    senior_grade: int,
) -> float:
    """Percentage of female-coded register positions at or above the senior grade."""
    senior = [r for r in establishment if extract_grade_number(r.grade) >= senior_grade]
    female = sum(1 for r in senior if r.gen.strip().upper() == "F")
    return _ratio(female, len(senior)) * 100.0


def _gesi_awareness_score(officers: Sequence[OfficerRecord], question_code: str) -> float:
    scores = [
        r.current_score
        for o in officers
        for r in o.capability_ratings
        if r.question_code == question_code
    ]
    return _ratio(sum(scores), len(scores))


def _mentions_inclusion(officer: OfficerRecord, keywords: tuple[str, ...]) -> bool:
    text = " ".join(officer.training_preferences).lower()
    return any(k in text for k in keywords)


def detect_discrepancies(
    establishment: Sequence[EstablishmentRecord],
    officers: Sequence[OfficerRecord],
) -> list[Discrepancy]:
    """Gender mismatches between submissions and the positions they resolve to."""
    index = EstablishmentIndex(establishment)
    discrepancies: list[Discrepancy] = []

    for officer in officers:
        record = index.resolve(officer)
        if record is None:
            continue
        register_gender = normalize_gender(record.gen)
        if officer.gender is None or register_gender is None:
            continue
        if officer.gender != register_gender:
            discrepancies.append(
                Discrepancy(
                    type=DiscrepancyType.GENDER_MISMATCH,
                    officer_name=officer.name,
                    position_number=record.position_number or (officer.position_number or ""),
                    details=f"Survey: {officer.gender.value} vs Register: {register_gender.value}",
                )
            )

    return discrepancies


def build_division_stats(
    establishment: Sequence[EstablishmentRecord],
    officers: Sequence[OfficerRecord],
    gap_types: Sequence[GapType],
) -> tuple[dict[str, dict[str, int]], list[str]]:
    """Return (raw per-division counters, survey-only division names).

    ``gap_types`` is aligned with ``officers``.
    """
    stats: dict[str, dict[str, int]] = {}

    def _entry(division: str) -> dict[str, int]:
        if division not in stats:
            stats[division] = {
                "ceiling": 0,
                "actual": 0,
                "filled_by_cna": 0,
                "skill_gaps": 0,
                "qual_gaps": 0,
            }
        return stats[division]

    for record in establishment:
        entry = _entry(record.division)
        entry["ceiling"] += 1
        if is_filled(record):
            entry["actual"] += 1

    register_divisions = set(stats)
    survey_only: list[str] = []

    for officer, gap in zip(officers, gap_types):
        if officer.division not in register_divisions and officer.division not in survey_only:
            survey_only.append(officer.division)
        entry = _entry(officer.division)
        entry["filled_by_cna"] += 1
        if gap == GapType.SKILL:
            entry["skill_gaps"] += 1
        elif gap == GapType.QUALIFICATION:
            entry["qual_gaps"] += 1

    return stats, survey_only


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def aggregate(
    establishment: Sequence[EstablishmentRecord],
    officers: Sequence[OfficerRecord],
    raw_response_count: int | None = None,
    *,
    config: AnalyticsConfig | None = None,
) -> AggregatedData:
    """Compute the statistics snapshot for one register and one survey set.

    Args:
        establishment: Register positions (the authorized ceiling).
        officers: Deduplicated survey submissions.
        raw_response_count: Imported row count before deduplication; defaults
            to the number of officers.
        config: Threshold overrides.
    """
    cfg = config or _DEFAULT_CONFIG

    total_positions = len(establishment)
    on_strength = sum(1 for r in establishment if is_filled(r))
    vacant_positions = total_positions - on_strength

    cna_participants = len(officers)
    total_responses = raw_response_count if raw_response_count is not None else cna_participants

    gap_types = [classify_gap(o, cfg) for o in officers]
    skill_gaps = sum(1 for g in gap_types if g == GapType.SKILL)
    qual_gaps = sum(1 for g in gap_types if g == GapType.QUALIFICATION)
    retirement_risk = sum(
        1 for o in officers if o.age is not None and o.age >= cfg.retirement_age
    )

    lifecycle: dict[LifecycleStage, int] = {stage: 0 for stage in LifecycleStage}
    for officer in officers:
        if officer.lifecycle_stage is not None:
            lifecycle[officer.lifecycle_stage] += 1

    pillar_analysis = score_pillars(officers, cfg)
    gap_sector, peak_sector = extreme_sectors(pillar_analysis)

    discrepancies = detect_discrepancies(establishment, officers)
    if total_positions > 0:
        integrity = max(
            0.0,
            (total_positions - len(discrepancies)) / total_positions * 100.0,
        )
    else:
        integrity = 100.0

    division_counters, survey_only = build_division_stats(establishment, officers, gap_types)
    if survey_only:
        logger.info(
            "aggregate: %d survey division(s) not present in the register",
            len(survey_only),
        )

    logger.debug(
        "aggregate: positions=%d on_strength=%d participants=%d discrepancies=%d",
        total_positions,
        on_strength,
        cna_participants,
        len(discrepancies),
    )

    return AggregatedData(
        total_positions=total_positions,
        on_strength=on_strength,
        vacant_positions=vacant_positions,
        filled_positions=on_strength,
        cna_participants=cna_participants,
        total_responses=total_responses,
        vacancy_rate=_ratio(vacant_positions, total_positions) * 100.0,
        participation_rate=_ratio(cna_participants, on_strength),
        baseline_score=baseline_score(pillar_analysis),
        skill_gaps_count=skill_gaps,
        qualification_gaps_count=qual_gaps,
        retirement_risk_count=retirement_risk,
        data_integrity_score=integrity,
        gap_sector=gap_sector,
        peak_sector=peak_sector,
        division_stats={
            name: DivisionStats(**counters) for name, counters in division_counters.items()
        },
        survey_only_divisions=survey_only,
        lifecycle_distribution=lifecycle,
        pillar_analysis=pillar_analysis,
        discrepancies=discrepancies,
        gesi_metrics=GesiMetrics(
            female_seniority_rate=_female_seniority_rate(establishment, cfg.senior_grade),
            disability_inclusion_count=sum(
                1 for o in officers if _mentions_inclusion(o, cfg.inclusion_keywords)
            ),
            gesi_awareness_score=_gesi_awareness_score(officers, cfg.gesi_question_code),
        ),
    )
