"""Per-officer capability gap classification.

Qualification gaps (grade requires a credential the officer does not
report) take precedence over skill gaps (any capability score under the
threshold).

Deterministic -- no LLM calls.
"""

from __future__ import annotations

from cna_analytics.engine.config import AnalyticsConfig
from cna_analytics.engine.normalize import extract_grade_number
from cna_analytics.models.records import GapCategory, OfficerRecord
from cna_analytics.models.snapshot import GapType

REALISTIC_SCORE = 10.0

_DEFAULT_CONFIG = AnalyticsConfig()


def _lacks_all(text: str, keywords: tuple[str, ...]) -> bool:
    return not any(k in text for k in keywords)


def needs_qualification(
    officer: OfficerRecord,
    config: AnalyticsConfig | None = None,
) -> bool:
    """True when the officer's grade requires a credential they do not report."""
    cfg = config or _DEFAULT_CONFIG
    grade = extract_grade_number(officer.grade)
    qualification = (officer.job_qualification or "").lower()

    needs_degree = grade >= cfg.degree_grade and _lacks_all(
        qualification, cfg.degree_keywords
    )
    needs_masters = grade >= cfg.masters_grade and _lacks_all(
        qualification, cfg.masters_keywords
    )
    return needs_degree or needs_masters


def classify_gap(
    officer: OfficerRecord,
    config: AnalyticsConfig | None = None,
) -> GapType:
    """Classify an officer as Qualification, Skill or Aligned."""
    cfg = config or _DEFAULT_CONFIG
    if needs_qualification(officer, cfg):
        return GapType.QUALIFICATION
    if any(r.current_score < cfg.skill_score_threshold for r in officer.capability_ratings):
        return GapType.SKILL
    return GapType.ALIGNED


# ---------------------------------------------------------------------------
# Rating-level categories (used when importing survey rows)
# ---------------------------------------------------------------------------


def gap_category_for(current_score: float) -> GapCategory:
    """Bucket the gap to the realistic score of 10."""
    gap = REALISTIC_SCORE - current_score
    if gap <= 1:
        return GapCategory.NO_GAP
    if gap <= 2:
        return GapCategory.MINOR_GAP
    if gap <= 5:
        return GapCategory.MODERATE_GAP
    return GapCategory.CRITICAL_GAP

