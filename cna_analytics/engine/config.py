"""Analytics engine configuration.

Provides the pillar table and every threshold used by the gap classifier,
the aggregation engine and the talent segmentation classifier. Defaults
follow the public-service CNA standard and can be overridden per call.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

from pydantic import Field

from cna_analytics.models.common import FrozenCnaBase


class Pillar(FrozenCnaBase):
    """A capability domain scored from question codes sharing a prefix."""

    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


DEFAULT_PILLARS: tuple[Pillar, ...] = (
    Pillar(code="A", name="Strategic Alignment"),
    Pillar(code="B", name="Operational Effectiveness"),
    Pillar(code="C", name="Leadership"),
    Pillar(code="D", name="Performance Management"),
    Pillar(code="E", name="ICT Capability"),
    Pillar(code="F", name="Public Finance Management"),
)


class AnalyticsConfig(FrozenCnaBase):
    """Configuration for the aggregation and segmentation engines.

    Pillar order matters: it breaks ties when picking the gap and peak
    sectors.
    """

    pillars: tuple[Pillar, ...] = DEFAULT_PILLARS

    # Gap classifier
    degree_grade: int = 14
    masters_grade: int = 18
    degree_keywords: tuple[str, ...] = ("degree", "bachelor")
    masters_keywords: tuple[str, ...] = ("masters", "post")
    skill_score_threshold: float = 7.0

    # Aggregation
    retirement_age: int = 55
    senior_grade: int = 13
    gesi_question_code: str = "B2"
    inclusion_keywords: tuple[str, ...] = ("disability", "inclusion")

    # Segmentation
    high_performance_rating: int = 4
    moderate_performance_rating: int = 3
    high_potential_score: float = 8.0
    moderate_potential_score: float = 5.0
    minimum_tenure_years: float = 2.0
    casual_keyword: str = "casual"

    # Misalignment between SPA rating and self-assessed capability
    low_capability_score: float = 5.0
    high_capability_score: float = 7.0


def get_default_config() -> AnalyticsConfig:
    """Return the default engine configuration."""
    return AnalyticsConfig()
