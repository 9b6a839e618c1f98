"""Boundary normalization of loosely-typed tabular rows into strict records.

Rows arrive as ``dict[str, object]`` from an external spreadsheet reader,
with free-text headers and inconsistent vocabularies. This module resolves
headers, coerces cells, and builds frozen ``OfficerRecord`` /
``EstablishmentRecord`` values. All string sniffing lives here; the engine
only sees typed records.

Malformed cells degrade to defaults and are reported as warnings. Only an
input with no rows at all is rejected.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Generic, TypeVar

from pydantic import Field, ValidationError

from cna_analytics.engine.gaps import REALISTIC_SCORE, gap_category_for
from cna_analytics.engine.normalize import composite_key, leading_int, normalize_gender
from cna_analytics.models.common import CnaBase
from cna_analytics.models.records import (
    CapabilityRating,
    EstablishmentRecord,
    LifecycleStage,
    OfficerRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")

Row = Mapping[str, object]


class RecordImportError(ValueError):
    """Raised when an import contains no usable rows."""


class ImportReport(CnaBase, Generic[R]):
    """Outcome of normalizing one batch of rows."""

    records: list[R] = Field(default_factory=list)
    raw_row_count: int = 0
    duplicate_count: int = 0
    resolved_headers: dict[str, str] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Header aliases
# ---------------------------------------------------------------------------

OFFICER_HEADER_ALIASES: dict[str, list[str]] = {
    "email": ["email address", "e-mail", "email", "user email"],
    "name": ["full name", "officer name", "name", "occupant", "i1", "employee name", "staff name"],
    "position": ["job title", "position", "role", "designation", "i4", "post title"],
    "position_number": [
        "position no.", "position no", "position number", "pos no.", "pos no",
        "position id", "post number", "establishment id",
    ],
    "division": [
        "business unit", "division", "department", "directorate",
        "division/section", "i6", "branch", "section", "unit",
    ],
    "grade": ["position grade", "job grade", "grade", "level", "classification", "i5", "ps grade"],
    "spa_rating": [
        "spa rating", "performance rating", "spa score",
        "most attained spa rating", "spa", "i12", "performance score",
    ],
    "training_preferences": [
        "training preferences", "learning preferences", "desired training", "interest areas",
    ],
    "age": ["age", "i2", "years of age"],
    "gender": ["gender", "sex", "m/f"],
    "job_qualification": [
        "job qualification", "qualification", "highest qualification",
        "i8", "i11", "attained degree", "credentials",
    ],
    "commencement_date": ["commencement date", "start date", "i10", "entry date", "appointment date"],
    "years_of_experience": ["years of experience", "experience", "i9", "service length", "tenure"],
    "employment_status": ["employment status", "status", "i7", "contract type"],
    "lifecycle_stage": ["lifecycle stage", "lifecycle", "career phase"],
}

ESTABLISHMENT_HEADER_ALIASES: dict[str, list[str]] = {
    "position_number": ["position number", "position no.", "pos no", "establishment no", "post id"],
    "division": ["division", "department", "business unit", "description", "descriptions", "cost center"],
    "grade": ["grade", "level", "classification", "class", "salary grade"],
    "designation": ["designation", "position title", "position", "job title", "role"],
    "occupant": ["occupant", "name", "incumbent", "staff name"],
    "status": ["status", "employment status", "vacancy status"],
    "gen": ["gen", "gender", "sex"],
}

RATING_HEADER_RE = re.compile(r"^([A-G][0-9]{1,2}|H[256])", re.IGNORECASE)

_LIST_SPLIT_RE = re.compile(r"[,;]")
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%Y/%m/%d")


def find_header(headers: Sequence[str], aliases: Sequence[str]) -> str | None:
    """Resolve one field's column: exact alias, then whole word, then substring."""
    lowered = [str(h or "").strip().lower() for h in headers]

    for alias in aliases:
        alias_l = alias.lower()
        if alias_l in lowered:
            return headers[lowered.index(alias_l)]

    for alias in aliases:
        pattern = re.compile(rf"\b{re.escape(alias)}\b", re.IGNORECASE)
        for header, text in zip(headers, lowered):
            if pattern.search(text):
                return header

    for alias in aliases:
        alias_l = alias.lower()
        for header, text in zip(headers, lowered):
            if alias_l in text:
                return header

    return None


def resolve_headers(
    headers: Sequence[str],
    aliases: Mapping[str, Sequence[str]],
) -> dict[str, str]:
    """Return {field: column header} for every field that could be resolved."""
    resolved: dict[str, str] = {}
    for field_name, names in aliases.items():
        found = find_header(headers, names)
        if found is not None:
            resolved[field_name] = found
    return resolved


def rating_columns(headers: Sequence[str]) -> list[tuple[str, str]]:
    """Return (header, question code) for capability rating columns."""
    columns: list[tuple[str, str]] = []
    for header in headers:
        match = RATING_HEADER_RE.match(str(header or "").strip())
        if match:
            columns.append((header, match.group(1).upper()))
    return columns


# ---------------------------------------------------------------------------
# Cell coercion
# ---------------------------------------------------------------------------


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _optional_text(value: object) -> str | None:
    return _text(value) or None


def _positive_int(value: object) -> int | None:
    number = leading_int(value)
    return number if number > 0 else None


def parse_list(value: object) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [_text(v) for v in value if _text(v)]
    return [part.strip() for part in _LIST_SPLIT_RE.split(_text(value)) if part.strip()]


def parse_date(value: object) -> date | None:
    """Parse native dates, ISO strings and day-first numeric dates; None otherwise."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_score(value: object) -> float | None:
    """Parse a 0-10 capability score; None when blank, non-numeric or out of range."""
    text = _text(value)
    if not text:
        return None
    try:
        score = float(text)
    except ValueError:
        return None
    if 0.0 <= score <= 10.0:
        return score
    return None


def parse_lifecycle(value: object) -> LifecycleStage | None:
    text = _text(value).lower()
    for stage in LifecycleStage:
        if stage.value.lower() == text:
            return stage
    return None


def _rows_headers(rows: Sequence[Row], headers: Sequence[str] | None) -> list[str]:
    if headers is not None:
        return list(headers)
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


# ---------------------------------------------------------------------------
# Officers
# ---------------------------------------------------------------------------


def _build_ratings(row: Row, columns: list[tuple[str, str]]) -> list[CapabilityRating]:
    ratings: list[CapabilityRating] = []
    for header, code in columns:
        score = parse_score(row.get(header))
        if score is None:
            continue
        ratings.append(
            CapabilityRating(
                question_code=code,
                current_score=score,
                gap_score=REALISTIC_SCORE - score,
                gap_category=gap_category_for(score),
            )
        )
    return ratings


def officer_from_row(
    row: Row,
    resolved: Mapping[str, str],
    columns: list[tuple[str, str]],
) -> OfficerRecord:
    """Build one officer record from a raw survey row."""

    def get(field_name: str) -> object:
        header = resolved.get(field_name)
        return row.get(header) if header is not None else None

    return OfficerRecord(
        name=_text(get("name")),
        division=_text(get("division")),
        position=_text(get("position")),
        position_number=_optional_text(get("position_number")),
        grade=_text(get("grade")),
        gender=normalize_gender(_text(get("gender"))),
        age=_positive_int(get("age")),
        years_of_experience=_positive_int(get("years_of_experience")),
        employment_status=_optional_text(get("employment_status")),
        commencement_date=parse_date(get("commencement_date")),
        spa_rating=_text(get("spa_rating")),
        capability_ratings=_build_ratings(row, columns),
        job_qualification=_optional_text(get("job_qualification")),
        lifecycle_stage=parse_lifecycle(get("lifecycle_stage")),
        training_preferences=parse_list(get("training_preferences")),
        email=_optional_text(get("email")),
    )


def deduplicate_officers(officers: Sequence[OfficerRecord]) -> list[OfficerRecord]:
    """Unique participants: keyed by email when present, else name|division.

    The first submission for a participant wins.
    """
    seen: set[str] = set()
    unique: list[OfficerRecord] = []
    for officer in officers:
        email = (officer.email or "").strip().lower()
        key = f"email:{email}" if email else f"key:{composite_key(officer.name, officer.division)}"
        if key in seen:
            continue
        seen.add(key)
        unique.append(officer)
    return unique


def parse_officer_rows(
    rows: Sequence[Row],
    headers: Sequence[str] | None = None,
    *,
    deduplicate: bool = True,
) -> ImportReport[OfficerRecord]:
    """Normalize raw survey rows into officer records.

    Raises:
        RecordImportError: when ``rows`` is empty.
    """
    if not rows:
        raise RecordImportError("The imported survey data contains no rows.")

    header_list = _rows_headers(rows, headers)
    resolved = resolve_headers(header_list, OFFICER_HEADER_ALIASES)
    columns = rating_columns(header_list)
    warnings: list[str] = []

    if "name" not in resolved:
        warnings.append("No officer name column found; identity matching will be limited.")
    if not columns:
        warnings.append("No capability rating columns found.")

    officers: list[OfficerRecord] = []
    for idx, row in enumerate(rows, start=1):
        try:
            officers.append(officer_from_row(row, resolved, columns))
        except ValidationError as exc:
            warnings.append(f"Row {idx} skipped: {exc.error_count()} invalid field(s).")

    unique = deduplicate_officers(officers) if deduplicate else officers
    duplicates = len(officers) - len(unique)
    if duplicates:
        warnings.append(f"{duplicates} duplicate submission(s) removed.")

    logger.info(
        "Imported %d survey row(s): %d unique participant(s), %d warning(s)",
        len(rows),
        len(unique),
        len(warnings),
    )

    return ImportReport[OfficerRecord](
        records=unique,
        raw_row_count=len(rows),
        duplicate_count=duplicates,
        resolved_headers=resolved,
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# Establishment
# ---------------------------------------------------------------------------


def establishment_from_row(row: Row, resolved: Mapping[str, str]) -> EstablishmentRecord:
    """Build one register record; occupant and status are kept verbatim."""

    def get(field_name: str) -> str:
        header = resolved.get(field_name)
        return _text(row.get(header)) if header is not None else ""

    return EstablishmentRecord(
        position_number=get("position_number"),
        designation=get("designation"),
        grade=get("grade"),
        division=get("division"),
        occupant=get("occupant"),
        status=get("status"),
        gen=get("gen").upper(),
    )


def parse_establishment_rows(
    rows: Sequence[Row],
    headers: Sequence[str] | None = None,
) -> ImportReport[EstablishmentRecord]:
    """Normalize raw register rows into establishment records.

    Completely blank rows are dropped.

    Raises:
        RecordImportError: when ``rows`` is empty.
    """
    if not rows:
        raise RecordImportError("The imported establishment data contains no rows.")

    header_list = _rows_headers(rows, headers)
    resolved = resolve_headers(header_list, ESTABLISHMENT_HEADER_ALIASES)
    warnings: list[str] = []
    if "occupant" not in resolved:
        warnings.append("No occupant column found; every position will read as vacant.")

    records: list[EstablishmentRecord] = []
    blank = 0
    for row in rows:
        record = establishment_from_row(row, resolved)
        if not any(record.model_dump().values()):
            blank += 1
            continue
        records.append(record)

    if blank:
        warnings.append(f"{blank} blank row(s) dropped.")

    missing_numbers = sum(1 for r in records if not r.position_number)
    if missing_numbers:
        warnings.append(f"{missing_numbers} position(s) without a position number.")

    logger.info(
        "Imported %d register row(s): %d position(s), %d warning(s)",
        len(rows),
        len(records),
        len(warnings),
    )

    return ImportReport[EstablishmentRecord](
        records=records,
        raw_row_count=len(rows),
        resolved_headers=resolved,
        warnings=warnings,
    )
