"""Typed input records for the establishment register and CNA survey.

Both record types are produced by the ingestion boundary
(``cna_analytics.ingestion.rows``) or built directly by callers. They are
frozen: the engine never mutates an imported record.
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum

from pydantic import Field

from cna_analytics.models.common import FrozenCnaBase

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Gender(StrEnum):
    """Gender as reported on a survey submission."""

    MALE = "Male"
    FEMALE = "Female"


class GapCategory(StrEnum):
    """Size of the gap between a current score and the realistic target of 10."""

    NO_GAP = "No Gap"
    MINOR_GAP = "Minor Gap"
    MODERATE_GAP = "Moderate Gap"
    CRITICAL_GAP = "Critical Gap"


class LifecycleStage(StrEnum):
    """Workforce lifecycle stage self-reported on the survey."""

    RECRUITMENT_ENTRY = "Recruitment/Entry"
    EARLY_CAREER = "Early Career"
    CAREER_PROGRESSION = "Career Progression"
    LEADERSHIP_TRACK = "Leadership Track"
    EXIT_RETIREMENT_PREP = "Exit/Retirement Prep"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class EstablishmentRecord(FrozenCnaBase):
    """One authorized position on the establishment register.

    ``occupant`` and ``status`` are kept verbatim; whether the position is
    vacant is decided only by ``engine.normalize.is_vacant``.
    """

    position_number: str = ""
    designation: str = ""
    grade: str = ""
    division: str = ""
    occupant: str = ""
    status: str = ""
    gen: str = Field(default="", description="Register gender code: 'M', 'F' or ''.")


class CapabilityRating(FrozenCnaBase):
    """A single capability questionnaire answer."""

    question_code: str = Field(..., min_length=1)
    current_score: float = Field(..., ge=0.0, le=10.0)
    gap_score: float = 0.0
    gap_category: GapCategory = GapCategory.NO_GAP


class OfficerRecord(FrozenCnaBase):
    """One CNA survey submission."""

    name: str = ""
    division: str = ""
    position: str = ""
    position_number: str | None = None
    grade: str = ""
    gender: Gender | None = None
    age: int | None = None
    years_of_experience: int | None = None
    employment_status: str | None = None
    commencement_date: date | None = None
    spa_rating: str = ""
    capability_ratings: list[CapabilityRating] = Field(default_factory=list)
    job_qualification: str | None = None
    lifecycle_stage: LifecycleStage | None = None
    training_preferences: list[str] = Field(default_factory=list)
    email: str | None = None
