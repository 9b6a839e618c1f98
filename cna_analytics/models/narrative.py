"""Narrative models -- structured prose returned by the external LLM.

The response schemas are what the provider must return; anything else is
rejected at validation. ``NarrativeResult`` wraps a response with its
availability state so callers never have to catch generation failures.
The narrative layer NEVER computes statistics; it only describes snapshots.
"""

from enum import StrEnum

from pydantic import Field

from cna_analytics.models.common import CnaBase, UTCTimestamp, UUIDv7, new_uuid7, utc_now

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class NarrativeKind(StrEnum):
    """Which report the narrative accompanies."""

    WORKFORCE = "WORKFORCE"
    TALENT = "TALENT"


class NarrativeStatus(StrEnum):
    """Outcome of one narrative generation."""

    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"  # Missing key, restricted data, timeout, bad reply
    CANCELLED = "CANCELLED"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class StrategicAlignmentInsights(CnaBase):
    summary: str
    gesi_focus: str
    shrm_focus: str


class WorkforceNarrative(CnaBase):
    """Strategic snapshot of workforce strength, risk and alignment."""

    executive_summary: str = Field(..., min_length=1)
    strategic_alignment_insights: StrategicAlignmentInsights


class PrescriptiveAction(CnaBase):
    """One officer-level action under the 10:20:70 development rule."""

    officer_name: str = Field(..., min_length=1)
    segment: str
    primary_action: str
    succession_target: str | None = None
    rationale: str


class TalentNarrative(CnaBase):
    """Talent density overview plus prescriptive actions for key officers."""

    executive_summary: str = Field(..., min_length=1)
    strategic_insight: str
    prescriptive_actions: list[PrescriptiveAction] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Result envelope
# ---------------------------------------------------------------------------


class NarrativeResult(CnaBase):
    """Narrative plus availability state.

    ``narrative`` is set only when ``status`` is AVAILABLE; ``reason`` explains
    any other state.
    """

    result_id: UUIDv7 = Field(default_factory=new_uuid7)
    kind: NarrativeKind
    status: NarrativeStatus
    narrative: WorkforceNarrative | TalentNarrative | None = None
    reason: str | None = None
    provider: str | None = None
    model: str | None = None
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    generated_at: UTCTimestamp = Field(default_factory=utc_now)

    @property
    def is_available(self) -> bool:
        return self.status == NarrativeStatus.AVAILABLE
