"""Shared pytest fixtures for the CNA Analytics test suite.

Provides:
- anyio_backend: pins async tests to asyncio
- make_position / make_officer: record builders with sensible defaults
- ratings: helper turning {code: score} into CapabilityRating lists
- as_of: fixed reference date so tenure-dependent results are stable
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

import pytest

from cna_analytics.models.records import (
    CapabilityRating,
    EstablishmentRecord,
    OfficerRecord,
)

AS_OF = date(2025, 1, 1)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def as_of() -> date:
    return AS_OF


def _ratings(scores: dict[str, float]) -> list[CapabilityRating]:
    return [
        CapabilityRating(
            question_code=code,
            current_score=score,
            gap_score=10.0 - score,
        )
        for code, score in scores.items()
    ]


@pytest.fixture
def ratings() -> Callable[[dict[str, float]], list[CapabilityRating]]:
    return _ratings


@pytest.fixture
def make_position() -> Callable[..., EstablishmentRecord]:
    def _make(**overrides: object) -> EstablishmentRecord:
        fields: dict[str, object] = {
            "position_number": "P1",
            "designation": "Finance Officer",
            "grade": "12",
            "division": "Finance",
            "occupant": "Jane Doe",
            "status": "Permanent",
            "gen": "F",
        }
        fields.update(overrides)
        return EstablishmentRecord(**fields)

    return _make


@pytest.fixture
def make_officer() -> Callable[..., OfficerRecord]:
    def _make(scores: dict[str, float] | None = None, **overrides: object) -> OfficerRecord:
        fields: dict[str, object] = {
            "name": "Jane Doe",
            "division": "Finance",
            "position": "Finance Officer",
            "position_number": "P1",
            "grade": "12",
            "gender": "Female",
            "age": 40,
            "employment_status": "Permanent",
            "commencement_date": date(2015, 1, 1),
            "spa_rating": "3",
            "capability_ratings": _ratings(scores if scores is not None else {"A1": 8.0}),
            "job_qualification": "Bachelor of Commerce",
        }
        fields.update(overrides)
        return OfficerRecord(**fields)

    return _make
