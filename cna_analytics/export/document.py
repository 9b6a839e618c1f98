"""Generic report document built from the dashboard snapshots.

Produces the ``{title, sections: [{title, content}]}`` model handed to
export collaborators. Content items are paragraphs (plain strings) or
tables. Serializing the document to PDF, DOCX or XLSX is the collaborator's
job, not this module's.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from cna_analytics.models.common import CnaBase
from cna_analytics.models.narrative import NarrativeResult, TalentNarrative, WorkforceNarrative
from cna_analytics.models.snapshot import AggregatedData, SegmentationGrid, TalentSegment


class TableBlock(CnaBase):
    """A table content item."""

    type: Literal["table"] = "table"
    headers: list[str]
    rows: list[list[str | int | float]] = Field(default_factory=list)


class ReportSection(CnaBase):
    title: str
    content: list[str | TableBlock] = Field(default_factory=list)


class ReportDocument(CnaBase):
    title: str
    sections: list[ReportSection] = Field(default_factory=list)


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _score(value: float) -> str:
    return f"{value:.2f}"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def _establishment_section(data: AggregatedData) -> ReportSection:
    return ReportSection(
        title="Establishment Summary",
        content=[
            TableBlock(
                headers=["Metric", "Value"],
                rows=[
                    ["Authorized ceiling", data.total_positions],
                    ["On strength", data.on_strength],
                    ["Vacant positions", data.vacant_positions],
                    ["Vacancy rate", _pct(data.vacancy_rate)],
                ],
            )
        ],
    )


def _participation_section(data: AggregatedData) -> ReportSection:
    content: list[str | TableBlock] = [
        TableBlock(
            headers=["Metric", "Value"],
            rows=[
                ["CNA participants", data.cna_participants],
                ["Raw survey responses", data.total_responses],
                ["Participation rate", _pct(data.participation_rate * 100.0)],
                ["Skill gaps", data.skill_gaps_count],
                ["Qualification gaps", data.qualification_gaps_count],
                ["Retirement risk (55+)", data.retirement_risk_count],
            ],
        ),
    ]
    lifecycle_rows = [[stage.value, count] for stage, count in data.lifecycle_distribution.items()]
    if lifecycle_rows:
        content.append(TableBlock(headers=["Lifecycle stage", "Officers"], rows=lifecycle_rows))
    return ReportSection(title="Survey Participation", content=content)


def _pillar_section(data: AggregatedData) -> ReportSection:
    rows: list[list[str | int | float]] = [
        [
            name,
            _score(stats.avg),
            stats.count,
            _score(stats.male_avg),
            _score(stats.female_avg),
        ]
        for name, stats in data.pillar_analysis.items()
    ]
    return ReportSection(
        title="Capability Pillars",
        content=[
            f"Baseline capability score: {_score(data.baseline_score)}",
            f"Largest gap: {data.gap_sector.name} ({_score(data.gap_sector.score)})",
            f"Strongest pillar: {data.peak_sector.name} ({_score(data.peak_sector.score)})",
            TableBlock(
                headers=["Pillar", "Average", "Respondents", "Male avg", "Female avg"],
                rows=rows,
            ),
        ],
    )


def _division_section(data: AggregatedData) -> ReportSection:
    rows: list[list[str | int | float]] = [
        [name, s.ceiling, s.actual, s.filled_by_cna, s.skill_gaps, s.qual_gaps]
        for name, s in sorted(data.division_stats.items())
    ]
    content: list[str | TableBlock] = [
        TableBlock(
            headers=["Division", "Ceiling", "Actual", "CNA submitted", "Skill gaps", "Qual gaps"],
            rows=rows,
        )
    ]
    if data.survey_only_divisions:
        content.append(
            "Survey divisions not found in the register: "
            + ", ".join(data.survey_only_divisions)
        )
    return ReportSection(title="Division Breakdown", content=content)


def _gesi_section(data: AggregatedData) -> ReportSection:
    gesi = data.gesi_metrics
    return ReportSection(
        title="GESI Metrics",
        content=[
            TableBlock(
                headers=["Indicator", "Value"],
                rows=[
                    ["Female seniority rate (grade 13+)", _pct(gesi.female_seniority_rate)],
                    ["Disability / inclusion training requests", gesi.disability_inclusion_count],
                    ["GESI policy awareness score", _score(gesi.gesi_awareness_score)],
                ],
            )
        ],
    )


def _integrity_section(data: AggregatedData) -> ReportSection:
    content: list[str | TableBlock] = [
        f"Data integrity score: {_pct(data.data_integrity_score)}",
    ]
    if data.discrepancies:
        content.append(
            TableBlock(
                headers=["Type", "Officer", "Position", "Details"],
                rows=[
                    [d.type.value, d.officer_name, d.position_number, d.details]
                    for d in data.discrepancies
                ],
            )
        )
    else:
        content.append("No discrepancies detected between the register and the survey.")
    return ReportSection(title="Data Integrity", content=content)


def _segmentation_section(grid: SegmentationGrid) -> ReportSection:
    content: list[str | TableBlock] = [
        TableBlock(
            headers=["Segment", "Officers"],
            rows=[[cell.value, grid.count(cell)] for cell in TalentSegment],
        ),
        TableBlock(
            headers=["Indicator", "Value"],
            rows=[
                ["Core workforce", _pct(grid.core_pct)],
                ["High-potential pool", _pct(grid.high_potential_pct)],
                ["At risk", _pct(grid.at_risk_pct)],
            ],
        ),
    ]

    misaligned = [p for p in grid.placements if p.misalignment is not None]
    if misaligned:
        content.append(
            TableBlock(
                headers=["Officer", "Division", "Performance level", "Mean capability", "Flag"],
                rows=[
                    [
                        p.officer_name,
                        p.division,
                        p.performance_level.value,
                        round(p.mean_capability, 1),
                        p.misalignment.value,
                    ]
                    for p in misaligned
                ],
            )
        )
    return ReportSection(title="Talent Segmentation", content=content)


def _narrative_section(result: NarrativeResult) -> ReportSection:
    body = result.narrative
    if not result.is_available or body is None:
        reason = result.reason or result.status.value.lower()
        return ReportSection(
            title="Narrative",
            content=[f"Narrative unavailable: {reason}"],
        )

    content: list[str | TableBlock] = [body.executive_summary]
    if isinstance(body, WorkforceNarrative):
        insights = body.strategic_alignment_insights
        content.extend([
            f"Strategic alignment: {insights.summary}",
            f"GESI focus: {insights.gesi_focus}",
            f"SHRM focus: {insights.shrm_focus}",
        ])
    elif isinstance(body, TalentNarrative):
        content.append(f"Strategic insight: {body.strategic_insight}")
        if body.prescriptive_actions:
            content.append(
                TableBlock(
                    headers=["Officer", "Segment", "Action", "Succession target", "Rationale"],
                    rows=[
                        [
                            a.officer_name,
                            a.segment,
                            a.primary_action,
                            a.succession_target or "",
                            a.rationale,
                        ]
                        for a in body.prescriptive_actions
                    ],
                )
            )
    return ReportSection(title="Narrative", content=content)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_workforce_report(
    data: AggregatedData,
    grid: SegmentationGrid | None = None,
    narrative: NarrativeResult | None = None,
    *,
    agency_name: str,
) -> ReportDocument:
    """Build the export document for one dashboard computation."""
    sections = [
        _establishment_section(data),
        _participation_section(data),
        _pillar_section(data),
        _division_section(data),
        _gesi_section(data),
        _integrity_section(data),
    ]
    if grid is not None:
        sections.append(_segmentation_section(grid))
    if narrative is not None:
        sections.append(_narrative_section(narrative))

    return ReportDocument(
        title=f"{agency_name} Capability Needs Analysis Report",
        sections=sections,
    )
