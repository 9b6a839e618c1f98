"""Derived snapshot models: aggregated statistics and the talent grid.

Every field here is pure output of ``engine.aggregator.aggregate`` or
``engine.segmentation.segment``. Snapshots are frozen and carry no
identifiers or timestamps, so identical inputs give equal snapshots.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from cna_analytics.models.common import FrozenCnaBase
from cna_analytics.models.records import LifecycleStage

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class GapType(StrEnum):
    """Per-officer capability gap classification."""

    QUALIFICATION = "Qualification"
    SKILL = "Skill"
    ALIGNED = "Aligned"


class DiscrepancyType(StrEnum):
    """Kinds of register/survey inconsistency detected for a resolved position."""

    GENDER_MISMATCH = "Gender Mismatch"


class Band(StrEnum):
    """Three-level band used for both grid axes."""

    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"


class TalentSegment(StrEnum):
    """The nine cells of the performance x potential grid."""

    TOP_TALENT = "Top Talent"
    FUTURE_LEADER = "Future Leader"
    UNREALIZED_POTENTIAL = "Unrealized Potential"
    HIGH_ACHIEVER = "High Achiever"
    KEY_CONTRIBUTOR = "Key Contributor"
    INCONSISTENT = "Inconsistent"
    SPECIALIST_EXPERT = "Specialist Expert"
    SOLID_PERFORMER = "Solid Performer"
    RISK = "Risk / Low Performer"


class PerformanceLevel(StrEnum):
    """Reading of the SPA rating against the required level."""

    WELL_ABOVE = "Well Above Required"
    ABOVE = "Above Required"
    AT_REQUIRED = "At Required Level"
    BELOW = "Below Required Level"
    WELL_BELOW = "Well Below Required Level"
    NOT_RATED = "Not Rated"


class Misalignment(StrEnum):
    """SPA rating and self-assessed capability pointing in opposite directions."""

    HIGH_PERFORMER_LOW_CAPABILITY = "High performer, low self-assessed capability."
    SKILLED_UNDERPERFORMING = "Skilled staff underperforming."


# ---------------------------------------------------------------------------
# Aggregated data
# ---------------------------------------------------------------------------


class SectorScore(FrozenCnaBase):
    """A named pillar with its organization-wide average."""

    name: str
    score: float = 0.0


class PillarStats(FrozenCnaBase):
    """Organization-wide and per-gender averages for one pillar."""

    avg: float = 0.0
    count: int = 0
    male_avg: float = 0.0
    male_count: int = 0
    female_avg: float = 0.0
    female_count: int = 0


class DivisionStats(FrozenCnaBase):
    """Per-division rollup.

    ``ceiling`` and ``actual`` come from register records grouped by the
    register's division; ``filled_by_cna``, ``skill_gaps`` and ``qual_gaps``
    come from survey records grouped by the officer's own division. The two
    taxonomies are not reconciled.
    """

    ceiling: int = 0
    actual: int = 0
    filled_by_cna: int = 0
    skill_gaps: int = 0
    qual_gaps: int = 0


class GesiMetrics(FrozenCnaBase):
    """Gender Equity and Social Inclusion indicators."""

    female_seniority_rate: float = 0.0
    disability_inclusion_count: int = 0
    gesi_awareness_score: float = 0.0


class Discrepancy(FrozenCnaBase):
    """An inconsistency between a survey submission and its register position."""

    type: DiscrepancyType
    officer_name: str
    position_number: str
    details: str


class AggregatedData(FrozenCnaBase):
    """Immutable statistics snapshot over one register and one survey set."""

    total_positions: int = 0
    on_strength: int = 0
    vacant_positions: int = 0
    filled_positions: int = 0
    cna_participants: int = 0
    total_responses: int = 0
    vacancy_rate: float = 0.0
    participation_rate: float = 0.0
    baseline_score: float = 0.0
    skill_gaps_count: int = 0
    qualification_gaps_count: int = 0
    retirement_risk_count: int = 0
    data_integrity_score: float = 100.0
    gap_sector: SectorScore = Field(default_factory=lambda: SectorScore(name="N/A"))
    peak_sector: SectorScore = Field(default_factory=lambda: SectorScore(name="N/A"))
    division_stats: dict[str, DivisionStats] = Field(default_factory=dict)
    survey_only_divisions: tuple[str, ...] = ()
    lifecycle_distribution: dict[LifecycleStage, int] = Field(default_factory=dict)
    pillar_analysis: dict[str, PillarStats] = Field(default_factory=dict)
    discrepancies: tuple[Discrepancy, ...] = ()
    gesi_metrics: GesiMetrics = Field(default_factory=GesiMetrics)


# ---------------------------------------------------------------------------
# Segmentation grid
# ---------------------------------------------------------------------------


class OfficerPlacement(FrozenCnaBase):
    """Where one officer landed on the grid, with the inputs of the decision."""

    officer_name: str
    division: str = ""
    performance: Band
    potential: Band
    mean_capability: float = 0.0
    tenure_years: float = 0.0
    restricted: bool = False
    segment: TalentSegment
    performance_level: PerformanceLevel = PerformanceLevel.AT_REQUIRED
    misalignment: Misalignment | None = None


class SegmentationGrid(FrozenCnaBase):
    """Nine-cell performance x potential counts plus derived percentages."""

    total: int = 0
    counts: dict[TalentSegment, int] = Field(default_factory=dict)
    core_pct: float = 0.0
    high_potential_pct: float = 0.0
    at_risk_pct: float = 0.0
    placements: tuple[OfficerPlacement, ...] = ()

    def count(self, segment: TalentSegment) -> int:
        """Return the count for one cell (0 for an unseen cell)."""
        return self.counts.get(segment, 0)
