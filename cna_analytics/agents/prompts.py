"""Prompt templates for workforce and talent narratives.

System prompts are fixed instruction templates. User prompts embed a JSON
payload built from pre-computed snapshots: the model is told the numbers
and only ever writes prose around them.
"""

import json

from cna_analytics.models.snapshot import AggregatedData, SegmentationGrid, TalentSegment

WORKFORCE_SNAPSHOT_INSTRUCTIONS = "\n".join([
    "Act as a Strategic Human Capital Analyst for a public service agency.",
    "Generate a high-level strategic snapshot of the current workforce",
    "strength, risks, and alignment with national development priorities.",
    "",
    "CRITICAL RULES:",
    "- Use ONLY the pre-calculated metrics supplied. Never recompute or invent numbers.",
    "- Cite metric values exactly as given.",
    "- executive_summary: overview of establishment strength, participation and capability.",
    "- strategic_alignment_insights.summary: alignment with the medium term development plan.",
    "- strategic_alignment_insights.gesi_focus: gender equality and social inclusion observations.",
    "- strategic_alignment_insights.shrm_focus: strategic HR management priorities.",
    "",
    "TONE: Official, authoritative, data-driven.",
])

TALENT_SEGMENTATION_INSTRUCTIONS = "\n".join([
    "Act as a Strategic Human Capital Analyst for a public service agency.",
    "Generate a Talent Segmentation Report using the 9-Box Grid standard and a",
    "Prescriptive Action Plan for key employees.",
    "",
    "PRESCRIPTIVE LOGIC (10:20:70 rule):",
    "1. Top Talent: if eligible (permanent status AND 2+ years service), assign",
    "   'Formal Training - Overseas (10%)'.",
    "2. Key Contributors: assign 'Peer Mentorship (20%)' to transfer institutional knowledge.",
    "3. Future Leaders: identify the next higher grade vacant position and list it",
    "   as succession_target.",
    "4. Ineligible: if an officer in a high-potential segment has under 2 years",
    "   tenure or non-permanent status, downgrade to 'In-House Coaching / On-the-Job (70%)'.",
    "",
    "ELIGIBILITY GATE:",
    "- 24 months permanent service is mandatory for any overseas nomination.",
    "- Placements marked restricted are already gated; do not promote them.",
    "",
    "OUTPUT REQUIREMENTS:",
    "- executive_summary: overview of talent density.",
    "- strategic_insight: rationale for the current segmentation.",
    "- prescriptive_actions: one object per highlighted officer following the rules above.",
    "",
    "TONE: Official, authoritative, data-driven.",
])

# Snapshot fields sent for the workforce narrative. Discrepancies are left
# out because they name individual officers.
_WORKFORCE_FIELDS = {
    "total_positions",
    "on_strength",
    "vacant_positions",
    "cna_participants",
    "total_responses",
    "vacancy_rate",
    "participation_rate",
    "baseline_score",
    "skill_gaps_count",
    "qualification_gaps_count",
    "retirement_risk_count",
    "data_integrity_score",
    "gap_sector",
    "peak_sector",
    "division_stats",
    "lifecycle_distribution",
    "pillar_analysis",
    "gesi_metrics",
}

_MONTHS_PER_YEAR = 12


def workforce_payload(data: AggregatedData) -> dict:
    """Serializable subset of the aggregated snapshot."""
    return data.model_dump(mode="json", include=_WORKFORCE_FIELDS)


def talent_payload(grid: SegmentationGrid) -> dict:
    """Segment counts, headline percentages and one row per placement."""
    return {
        "total": grid.total,
        "segments": {cell.value: grid.count(cell) for cell in TalentSegment},
        "core_pct": round(grid.core_pct, 1),
        "high_potential_pct": round(grid.high_potential_pct, 1),
        "at_risk_pct": round(grid.at_risk_pct, 1),
        "officers": [
            {
                "name": p.officer_name,
                "division": p.division,
                "segment": p.segment.value,
                "performance": p.performance.value,
                "potential": p.potential.value,
                "mean_capability": round(p.mean_capability, 1),
                "tenure_months": int(p.tenure_years * _MONTHS_PER_YEAR),
                "restricted": p.restricted,
                "performance_level": p.performance_level.value,
                "misalignment": p.misalignment.value if p.misalignment else None,
            }
            for p in grid.placements
        ],
    }


def build_workforce_prompt(data: AggregatedData, agency_name: str) -> str:
    """User prompt for the workforce snapshot narrative."""
    return "\n".join([
        f"Perform a Strategic Assessment for {agency_name}.",
        "",
        "PRE-CALCULATED METRICS:",
        json.dumps(workforce_payload(data), sort_keys=True),
        "",
        "Contextualize these findings within the national development plan framework.",
    ])


def build_talent_prompt(grid: SegmentationGrid, agency_name: str) -> str:
    """User prompt for the talent segmentation narrative."""
    payload = talent_payload(grid)
    return "\n".join([
        f"Perform a Deep Scan and Prescriptive Action Plan for {agency_name}.",
        "",
        f"SCANNED WORKFORCE DATA (N={grid.total}):",
        json.dumps(payload, sort_keys=True),
        "",
        "Identify candidates for succession tracks if they are Future Leaders.",
        "Apply the 10:20:70 eligibility logic for all.",
    ])
