"""Identity and vacancy normalization.

The single source of truth for deciding whether a register position is
vacant and for matching survey submissions to register positions. Every
other module asks these functions; none re-implements the checks.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from cna_analytics.models.records import EstablishmentRecord, Gender, OfficerRecord

VACANCY_MARKER = "*****VACANT*****"
VACANT_STATUS = "Vacant"

_DIGIT_RUN_RE = re.compile(r"[0-9]+")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?[0-9]+)")


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------


def is_vacant(occupant: str | None, status: str | None) -> bool:
    """Return True when a register position has no occupant.

    Precedence (first match wins): blank occupant, occupant "vacant" in any
    case, occupant containing the ``*****VACANT*****`` marker, status exactly
    "Vacant".
    """
    occ = (occupant or "").strip()
    if not occ:
        return True
    if occ.lower() == "vacant":
        return True
    if VACANCY_MARKER in occ:
        return True
    return status == VACANT_STATUS


def is_filled(record: EstablishmentRecord) -> bool:
    """Complement of ``is_vacant`` for a register record."""
    return not is_vacant(record.occupant, record.status)


# ---------------------------------------------------------------------------
# Scalar parsing
# ---------------------------------------------------------------------------


def _to_int(digits: str) -> int:
    """Digit runs past the interpreter's int conversion limit read as 0."""
    try:
        return int(digits)
    except ValueError:
        return 0


def extract_grade_number(grade: str | None) -> int:
    """Return the first run of digits in a grade string, or 0.

    "14-14A" -> 14, "Grade 12" -> 12, "" -> 0.
    """
    match = _DIGIT_RUN_RE.search(grade or "")
    return _to_int(match.group(0)) if match else 0


def parse_leading_int(text: object) -> int | None:
    """Integer prefix of a cell, or None when there is none.

    "4" -> 4, " 3.5" -> 3, "5 (Excellent)" -> 5, "n/a" -> None.
    """
    if text is None:
        return None
    match = _LEADING_INT_RE.match(str(text))
    return _to_int(match.group(1)) if match else None


def leading_int(text: object) -> int:
    """Like ``parse_leading_int`` but reads a missing prefix as 0."""
    value = parse_leading_int(text)
    return 0 if value is None else value


def normalize_gender(raw: str | None) -> Gender | None:
    """Map register codes ("M"/"F") and survey text ("male", "Female") to Gender."""
    value = (raw or "").strip().lower()
    if value.startswith("m"):
        return Gender.MALE
    if value.startswith("f"):
        return Gender.FEMALE
    return None


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def composite_key(name: str | None, division: str | None) -> str:
    """Identity key used when no shared position number exists."""
    return f"{(name or '').strip().lower()}|{(division or '').strip().lower()}"


def officer_key(officer: OfficerRecord) -> str:
    return composite_key(officer.name, officer.division)


def occupant_key(record: EstablishmentRecord) -> str:
    return composite_key(record.occupant, record.division)


class EstablishmentIndex:
    """Lookup from survey submissions to register positions.

    Position number wins over the composite key. A composite-key hit is
    rejected when both sides carry a non-empty position number and the
    numbers differ. Duplicated position numbers resolve to the last record
    in register order. Only filled positions are indexed by occupant name.
    """

    def __init__(self, establishment: Iterable[EstablishmentRecord]) -> None:
        self._by_number: dict[str, EstablishmentRecord] = {}
        self._by_key: dict[str, EstablishmentRecord] = {}
        for record in establishment:
            number = record.position_number.strip()
            if number:
                self._by_number[number] = record
            if is_filled(record):
                self._by_key.setdefault(occupant_key(record), record)

    def resolve(self, officer: OfficerRecord) -> EstablishmentRecord | None:
        """Return the register record for a submission, or None when unmatched."""
        number = (officer.position_number or "").strip()
        if number and number in self._by_number:
            return self._by_number[number]

        record = self._by_key.get(officer_key(officer))
        if record is None:
            return None
        record_number = record.position_number.strip()
        if number and record_number and number != record_number:
            return None
        return record


def find_non_submitters(
    establishment: Sequence[EstablishmentRecord],
    officers: Iterable[OfficerRecord],
) -> list[EstablishmentRecord]:
    """Return filled positions whose occupant has no matching survey submission."""
    submitted = {officer_key(o) for o in officers}
    return [
        record
        for record in establishment
        if is_filled(record) and occupant_key(record) not in submitted
    ]
