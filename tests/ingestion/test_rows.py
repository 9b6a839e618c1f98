"""Tests for boundary normalization of imported spreadsheet rows.

Covers: fuzzy header resolution, rating column detection, cell coercion,
officer and establishment row parsing, deduplication and import warnings.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from cna_analytics.ingestion.rows import (
    ESTABLISHMENT_HEADER_ALIASES,
    OFFICER_HEADER_ALIASES,
    RecordImportError,
    deduplicate_officers,
    find_header,
    parse_date,
    parse_establishment_rows,
    parse_list,
    parse_officer_rows,
    parse_score,
    rating_columns,
    resolve_headers,
)
from cna_analytics.models.records import Gender, GapCategory, LifecycleStage


@pytest.fixture
def survey_row() -> dict[str, object]:
    return {
        "Full Name": "Jane Doe",
        "Email": "jane.doe@agency.gov",
        "Division": "Finance",
        "Position": "Senior Accountant",
        "Position No.": "FIN-001",
        "Grade": "14-14A",
        "Gender": "female",
        "Age": 47.0,
        "Employment Status": "Permanent",
        "Commencement Date": "15/03/2012",
        "SPA Rating": 4.0,
        "Job Qualification": "Bachelor of Commerce",
        "Lifecycle Stage": "Leadership Track",
        "Training Preferences": "Budgeting; Disability inclusion, Leadership",
        "A1": 7,
        "A2": "8.5",
        "B2": "n/a",
        "C1": 12,
    }


@pytest.fixture
def register_rows() -> list[dict[str, object]]:
    return [
        {"Position Number": "FIN-001", "Designation": "Senior Accountant", "Grade": "14",
         "Division": "Finance", "Occupant": "Jane Doe", "Status": "Permanent", "Gen": "f"},
        {"Position Number": "FIN-002", "Designation": "Accountant", "Grade": "12",
         "Division": "Finance", "Occupant": "*****VACANT*****", "Status": "", "Gen": ""},
        {"Position Number": None, "Designation": None, "Grade": None,
         "Division": None, "Occupant": None, "Status": None, "Gen": None},
    ]


# ===================================================================
# Header resolution
# ===================================================================


class TestHeaderResolution:
    def test_exact_alias_wins(self) -> None:
        headers = ["Officer Name Notes", "Name"]
        assert find_header(headers, ["name"]) == "Name"

    def test_word_boundary_match(self) -> None:
        assert find_header(["Current Division"], ["division"]) == "Current Division"

    def test_substring_match(self) -> None:
        assert find_header(["SubDivisionCode"], ["division"]) == "SubDivisionCode"

    def test_unresolved(self) -> None:
        assert find_header(["Foo", "Bar"], ["division"]) is None

    def test_resolve_officer_headers(self, survey_row) -> None:
        resolved = resolve_headers(list(survey_row), OFFICER_HEADER_ALIASES)
        assert resolved["name"] == "Full Name"
        assert resolved["position_number"] == "Position No."
        assert resolved["spa_rating"] == "SPA Rating"
        assert resolved["employment_status"] == "Employment Status"
        assert "years_of_experience" not in resolved

    def test_resolve_register_headers(self, register_rows) -> None:
        resolved = resolve_headers(list(register_rows[0]), ESTABLISHMENT_HEADER_ALIASES)
        assert resolved["designation"] == "Designation"
        assert resolved["gen"] == "Gen"

    def test_rating_columns(self) -> None:
        headers = ["A1", "b12 Teamwork", "H2", "H3", "G7", "Age", "Email", "Z1"]
        assert rating_columns(headers) == [
            ("A1", "A1"),
            ("b12 Teamwork", "B12"),
            ("H2", "H2"),
            ("G7", "G7"),
        ]


# ===================================================================
# Cell coercion
# ===================================================================


class TestCoercion:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2012-03-15", date(2012, 3, 15)),
            ("2012-03-15T08:00:00", date(2012, 3, 15)),
            ("15/03/2012", date(2012, 3, 15)),
            (date(2012, 3, 15), date(2012, 3, 15)),
            (datetime(2012, 3, 15, 9, 30), date(2012, 3, 15)),
            ("", None),
            ("someday", None),
            (None, None),
        ],
    )
    def test_parse_date(self, value: object, expected: date | None) -> None:
        assert parse_date(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(7, 7.0), ("8.5", 8.5), (0, 0.0), (10, 10.0), (11, None), (-1, None), ("n/a", None), ("", None)],
    )
    def test_parse_score(self, value: object, expected: float | None) -> None:
        assert parse_score(value) == expected

    def test_parse_list(self) -> None:
        assert parse_list("A, B;C ,, ") == ["A", "B", "C"]
        assert parse_list(["A", "", "B"]) == ["A", "B"]
        assert parse_list(None) == []


# ===================================================================
# Officer rows
# ===================================================================


class TestParseOfficerRows:
    def test_full_row(self, survey_row) -> None:
        report = parse_officer_rows([survey_row])
        assert report.raw_row_count == 1
        officer = report.records[0]
        assert officer.name == "Jane Doe"
        assert officer.position_number == "FIN-001"
        assert officer.gender == Gender.FEMALE
        assert officer.age == 47
        assert officer.spa_rating == "4"
        assert officer.commencement_date == date(2012, 3, 15)
        assert officer.lifecycle_stage == LifecycleStage.LEADERSHIP_TRACK
        assert officer.training_preferences == ["Budgeting", "Disability inclusion", "Leadership"]
        assert officer.email == "jane.doe@agency.gov"

    def test_invalid_ratings_skipped(self, survey_row) -> None:
        officer = parse_officer_rows([survey_row]).records[0]
        assert [r.question_code for r in officer.capability_ratings] == ["A1", "A2"]
        a2 = officer.capability_ratings[1]
        assert a2.current_score == 8.5
        assert a2.gap_score == 1.5
        assert a2.gap_category == GapCategory.MINOR_GAP

    def test_missing_cells_default(self) -> None:
        report = parse_officer_rows([{"Name": "John Kila", "Age": "", "A1": 5}])
        officer = report.records[0]
        assert officer.age is None
        assert officer.gender is None
        assert officer.position_number is None
        assert officer.division == ""

    def test_duplicates_removed_first_wins(self, survey_row) -> None:
        later = {**survey_row, "Division": "Corporate"}
        report = parse_officer_rows([survey_row, later])
        assert report.raw_row_count == 2
        assert report.duplicate_count == 1
        assert report.records[0].division == "Finance"
        assert any("duplicate" in w for w in report.warnings)

    def test_deduplicate_can_be_disabled(self, survey_row) -> None:
        report = parse_officer_rows([survey_row, survey_row], deduplicate=False)
        assert len(report.records) == 2
        assert report.duplicate_count == 0

    def test_warnings_for_missing_columns(self) -> None:
        report = parse_officer_rows([{"Comments": "none"}])
        assert len(report.warnings) == 2

    def test_empty_input_rejected(self) -> None:
        with pytest.raises(RecordImportError):
            parse_officer_rows([])

    def test_import_error_is_value_error(self) -> None:
        assert issubclass(RecordImportError, ValueError)


class TestDeduplicateOfficers:
    def test_email_key_ignores_case(self, make_officer) -> None:
        first = make_officer(email="A@x.gov", name="A")
        second = make_officer(email="a@x.gov", name="B")
        assert deduplicate_officers([first, second]) == [first]

    def test_composite_key_without_email(self, make_officer) -> None:
        first = make_officer(email=None, name="Jane Doe", division="Finance")
        second = make_officer(email="", name=" jane doe", division="FINANCE")
        other = make_officer(email=None, name="Jane Doe", division="ICT")
        assert deduplicate_officers([first, second, other]) == [first, other]


# ===================================================================
# Establishment rows
# ===================================================================


class TestParseEstablishmentRows:
    def test_rows_normalized(self, register_rows) -> None:
        report = parse_establishment_rows(register_rows)
        assert report.raw_row_count == 3
        assert len(report.records) == 2
        first, second = report.records
        assert first.gen == "F"
        assert first.occupant == "Jane Doe"
        assert second.occupant == "*****VACANT*****"
        assert any("blank" in w for w in report.warnings)

    def test_missing_position_numbers_warned(self) -> None:
        report = parse_establishment_rows([{"Division": "ICT", "Occupant": "A"}])
        assert report.records[0].position_number == ""
        assert any("position number" in w for w in report.warnings)

    def test_missing_occupant_column_warned(self) -> None:
        report = parse_establishment_rows([{"Position Number": "P1", "Division": "ICT"}])
        assert any("occupant" in w.lower() for w in report.warnings)

    def test_empty_input_rejected(self) -> None:
        with pytest.raises(RecordImportError):
            parse_establishment_rows([])
