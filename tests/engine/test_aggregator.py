"""Tests for the aggregation engine.

Covers: establishment counts and rates, participation, gap counts,
retirement risk, pillar-derived figures, discrepancies and integrity,
division rollups (including survey-only divisions), lifecycle distribution,
GESI metrics, totality on empty/malformed input and idempotence.
"""

from __future__ import annotations

import pytest

from cna_analytics.engine.aggregator import aggregate, build_division_stats, detect_discrepancies
from cna_analytics.engine.config import AnalyticsConfig
from cna_analytics.models.records import LifecycleStage
from cna_analytics.models.snapshot import DiscrepancyType, GapType


# ===================================================================
# Establishment figures
# ===================================================================


class TestEstablishmentCounts:
    def test_single_vacant_position_no_officers(self, make_position) -> None:
        data = aggregate([make_position(division="Finance", occupant="*****VACANT*****")], [])
        assert data.total_positions == 1
        assert data.on_strength == 0
        assert data.vacant_positions == 1
        assert data.vacancy_rate == 100.0
        assert data.participation_rate == 0.0
        assert data.filled_positions == 0

    def test_strength_plus_vacancies_is_total(self, make_position) -> None:
        establishment = [
            make_position(position_number="P1", occupant="A"),
            make_position(position_number="P2", occupant=""),
            make_position(position_number="P3", occupant="vacant"),
            make_position(position_number="P4", occupant="B", status="Vacant"),
            make_position(position_number="P5", occupant="C"),
        ]
        data = aggregate(establishment, [])
        assert data.on_strength + data.vacant_positions == data.total_positions
        assert data.on_strength == 2
        assert data.vacancy_rate == pytest.approx(60.0)

    def test_empty_inputs_are_zeroed(self) -> None:
        data = aggregate([], [])
        assert data.total_positions == 0
        assert data.vacancy_rate == 0.0
        assert data.participation_rate == 0.0
        assert data.baseline_score == 0.0
        assert data.data_integrity_score == 100.0
        assert data.gap_sector.name == "N/A"
        assert data.gesi_metrics.female_seniority_rate == 0.0


# ===================================================================
# Survey figures
# ===================================================================


class TestParticipation:
    def test_rate_is_participants_over_strength(self, make_position, make_officer) -> None:
        establishment = [
            make_position(position_number=f"P{i}", occupant=f"Officer {i}") for i in range(4)
        ]
        data = aggregate(establishment, [make_officer()])
        assert data.participation_rate == pytest.approx(0.25)

    def test_zero_strength_gives_zero_rate(self, make_position, make_officer) -> None:
        data = aggregate([make_position(occupant="")], [make_officer()])
        assert data.participation_rate == 0.0

    def test_raw_response_count(self, make_officer) -> None:
        officers = [make_officer(name="A"), make_officer(name="B")]
        assert aggregate([], officers).total_responses == 2
        assert aggregate([], officers, 5).total_responses == 5

    def test_gap_counts(self, make_officer) -> None:
        officers = [
            make_officer({"A1": 9.0}, grade="14", job_qualification="Diploma"),
            make_officer({"A1": 4.0}, grade="10"),
            make_officer({"A1": 5.0}, grade="11"),
            make_officer({"A1": 9.0}, grade="10"),
        ]
        data = aggregate([], officers)
        assert data.qualification_gaps_count == 1
        assert data.skill_gaps_count == 2

    def test_retirement_risk(self, make_officer) -> None:
        officers = [make_officer(age=55), make_officer(age=54), make_officer(age=None)]
        assert aggregate([], officers).retirement_risk_count == 1

    def test_lifecycle_distribution_covers_all_stages(self, make_officer) -> None:
        officers = [
            make_officer(lifecycle_stage=LifecycleStage.EARLY_CAREER),
            make_officer(lifecycle_stage=LifecycleStage.EARLY_CAREER),
            make_officer(lifecycle_stage=None),
        ]
        dist = aggregate([], officers).lifecycle_distribution
        assert set(dist) == set(LifecycleStage)
        assert dist[LifecycleStage.EARLY_CAREER] == 2
        assert dist[LifecycleStage.LEADERSHIP_TRACK] == 0

    def test_pillar_figures(self, make_officer) -> None:
        officers = [make_officer({"A1": 4.0, "B1": 8.0})]
        data = aggregate([], officers)
        assert data.baseline_score == pytest.approx(6.0)
        assert data.gap_sector.name == "Strategic Alignment"
        assert data.peak_sector.name == "Operational Effectiveness"
        assert data.pillar_analysis["Operational Effectiveness"].count == 1


# ===================================================================
# Discrepancies and integrity
# ===================================================================


class TestDiscrepancies:
    def test_gender_mismatch_by_position_number(self, make_position, make_officer) -> None:
        establishment = [make_position(position_number="P1", gen="M", occupant="Jane Doe")]
        officers = [make_officer(position_number="P1", gender="Female")]
        found = detect_discrepancies(establishment, officers)
        assert len(found) == 1
        assert found[0].type == DiscrepancyType.GENDER_MISMATCH
        assert found[0].position_number == "P1"
        assert found[0].details == "Survey: Female vs Register: Male"

    def test_matching_gender_is_clean(self, make_position, make_officer) -> None:
        establishment = [make_position(gen="F")]
        assert detect_discrepancies(establishment, [make_officer(gender="Female")]) == []

    def test_missing_gender_on_either_side(self, make_position, make_officer) -> None:
        assert detect_discrepancies([make_position(gen="")], [make_officer(gender="Male")]) == []
        assert detect_discrepancies([make_position(gen="M")], [make_officer(gender=None)]) == []

    def test_unmatched_officer_ignored(self, make_position, make_officer) -> None:
        establishment = [make_position(position_number="P1", gen="M", occupant="Someone")]
        officer = make_officer(position_number="P2", name="Other", gender="Female")
        assert detect_discrepancies(establishment, [officer]) == []

    def test_integrity_score(self, make_position, make_officer) -> None:
        establishment = [
            make_position(position_number="P1", gen="M", occupant="Jane Doe"),
            make_position(position_number="P2", gen="F", occupant="Mary Kauk"),
            make_position(position_number="P3", gen="M", occupant="John Kila"),
            make_position(position_number="P4", gen="M", occupant=""),
        ]
        officers = [make_officer(position_number="P1", gender="Female")]
        data = aggregate(establishment, officers)
        assert len(data.discrepancies) == 1
        assert data.data_integrity_score == pytest.approx(75.0)

    def test_integrity_never_negative(self, make_position, make_officer) -> None:
        establishment = [make_position(position_number="P1", gen="M")]
        officers = [
            make_officer(name="A", position_number="P1", gender="Female"),
            make_officer(name="B", position_number="P1", gender="Female"),
        ]
        data = aggregate(establishment, officers)
        assert len(data.discrepancies) == 2
        assert data.data_integrity_score == 0.0


# ===================================================================
# Division rollups
# ===================================================================


class TestDivisionStats:
    def test_ceiling_sums_to_total(self, make_position) -> None:
        establishment = [
            make_position(position_number="P1", division="Finance"),
            make_position(position_number="P2", division="Finance", occupant=""),
            make_position(position_number="P3", division="Corporate"),
        ]
        data = aggregate(establishment, [])
        assert sum(s.ceiling for s in data.division_stats.values()) == data.total_positions
        assert data.division_stats["Finance"].ceiling == 2
        assert data.division_stats["Finance"].actual == 1

    def test_survey_figures_use_officer_division(self, make_position, make_officer) -> None:
        establishment = [make_position(position_number="P1", division="Finance")]
        officer = make_officer({"A1": 3.0}, division="Finance", grade="10")
        data = aggregate(establishment, [officer])
        stats = data.division_stats["Finance"]
        assert stats.filled_by_cna == 1
        assert stats.skill_gaps == 1
        assert stats.qual_gaps == 0

    def test_survey_only_division_is_reported(self, make_position, make_officer) -> None:
        establishment = [make_position(position_number="P1", division="Finance & Admin")]
        officer = make_officer(position_number="P1", division="Finance")
        data = aggregate(establishment, [officer])
        assert data.survey_only_divisions == ("Finance",)
        assert data.division_stats["Finance"].ceiling == 0
        assert data.division_stats["Finance"].filled_by_cna == 1
        assert data.division_stats["Finance & Admin"].filled_by_cna == 0
        assert sum(s.ceiling for s in data.division_stats.values()) == data.total_positions

    def test_build_division_stats_aligns_gap_types(self, make_officer) -> None:
        officers = [make_officer(division="ICT"), make_officer(division="ICT")]
        counters, survey_only = build_division_stats(
            [], officers, [GapType.QUALIFICATION, GapType.ALIGNED],
        )
        assert counters["ICT"]["qual_gaps"] == 1
        assert counters["ICT"]["filled_by_cna"] == 2
        assert survey_only == ["ICT"]


# ===================================================================
# GESI
# ===================================================================


class TestGesiMetrics:
    def test_female_seniority_rate(self, make_position) -> None:
        establishment = [
            make_position(position_number="P1", grade="13", gen="F"),
            make_position(position_number="P2", grade="14-14A", gen="M"),
            make_position(position_number="P3", grade="15", gen="M"),
            make_position(position_number="P4", grade="16", gen="f"),
            make_position(position_number="P5", grade="10", gen="F"),
        ]
        data = aggregate(establishment, [])
        assert data.gesi_metrics.female_seniority_rate == pytest.approx(50.0)

    def test_disability_inclusion_count(self, make_officer) -> None:
        officers = [
            make_officer(training_preferences=["Disability Awareness"]),
            make_officer(training_preferences=["Leadership", "Social INCLUSION"]),
            make_officer(training_preferences=["Budgeting"]),
            make_officer(training_preferences=[]),
        ]
        assert aggregate([], officers).gesi_metrics.disability_inclusion_count == 2

    def test_gesi_awareness_score(self, make_officer) -> None:
        officers = [
            make_officer({"B2": 6.0, "A1": 10.0}),
            make_officer({"B2": 8.0}),
            make_officer({"B1": 2.0}),
        ]
        assert aggregate([], officers).gesi_metrics.gesi_awareness_score == pytest.approx(7.0)

    def test_custom_gesi_code(self, make_officer) -> None:
        config = AnalyticsConfig(gesi_question_code="A1")
        data = aggregate([], [make_officer({"A1": 4.0})], config=config)
        assert data.gesi_metrics.gesi_awareness_score == 4.0


# ===================================================================
# Totality and determinism
# ===================================================================


class TestPurity:
    def test_malformed_fields_do_not_raise(self, make_position, make_officer) -> None:
        establishment = [make_position(grade="N/A", gen="?", position_number="")]
        officers = [make_officer(grade="", spa_rating="n/a", age=None, position_number=None)]
        data = aggregate(establishment, officers)
        assert data.total_positions == 1

    def test_oversized_digit_runs_do_not_raise(self, make_position, make_officer) -> None:
        huge = "1" * 5000
        data = aggregate([make_position(grade=huge)], [make_officer(grade=huge, spa_rating=huge)])
        assert data.total_positions == 1
        assert data.gesi_metrics.female_seniority_rate == 0.0

    def test_idempotent(self, make_position, make_officer) -> None:
        establishment = [
            make_position(position_number="P1", gen="M"),
            make_position(position_number="P2", occupant="", division="ICT"),
        ]
        officers = [make_officer({"A1": 5.0, "B2": 7.0}), make_officer(name="X", division="HR")]
        assert aggregate(establishment, officers) == aggregate(establishment, officers)

    def test_snapshot_sequences_are_immutable(self, make_position, make_officer) -> None:
        data = aggregate([make_position(gen="M")], [make_officer(division="Audit")])
        assert data.discrepancies and data.survey_only_divisions
        with pytest.raises(AttributeError):
            data.discrepancies.append(data.discrepancies[0])
        with pytest.raises(AttributeError):
            data.survey_only_divisions.append("HR")

    def test_inputs_not_mutated(self, make_position, make_officer) -> None:
        establishment = [make_position()]
        officers = [make_officer()]
        before = ([r.model_dump() for r in establishment], [o.model_dump() for o in officers])
        aggregate(establishment, officers)
        after = ([r.model_dump() for r in establishment], [o.model_dump() for o in officers])
        assert before == after
