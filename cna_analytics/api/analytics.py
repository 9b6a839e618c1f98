"""FastAPI analytics endpoints.

POST /v1/analytics/import     -- raw spreadsheet rows -> typed records + import reports
POST /v1/analytics/snapshot   -- records -> aggregated data, talent grid, non-submitters
POST /v1/analytics/report     -- records -> export document (optionally with narrative)
POST /v1/analytics/narrative  -- records -> narrative result (always 200)

Stateless: every request carries the full register and survey set.
"""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from cna_analytics.agents.narrative import NarrativeGenerator
from cna_analytics.api.dependencies import get_analytics_service, get_narrative_generator
from cna_analytics.config.settings import Settings, get_settings
from cna_analytics.engine.service import AnalyticsService, DashboardSnapshot
from cna_analytics.export.document import ReportDocument, build_workforce_report
from cna_analytics.ingestion.rows import (
    ImportReport,
    RecordImportError,
    parse_establishment_rows,
    parse_officer_rows,
)
from cna_analytics.models.narrative import NarrativeKind, NarrativeResult
from cna_analytics.models.records import EstablishmentRecord, OfficerRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/analytics", tags=["analytics"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------


class ImportRequest(BaseModel):
    officer_rows: list[dict[str, Any]] = Field(default_factory=list)
    establishment_rows: list[dict[str, Any]] = Field(default_factory=list)
    deduplicate: bool = True


class ImportResponse(BaseModel):
    officers: ImportReport[OfficerRecord] | None = None
    establishment: ImportReport[EstablishmentRecord] | None = None


class AnalyticsRequest(BaseModel):
    establishment: list[EstablishmentRecord] = Field(default_factory=list)
    officers: list[OfficerRecord] = Field(default_factory=list)
    raw_response_count: int | None = Field(default=None, ge=0)
    as_of: date | None = None


class ReportRequest(AnalyticsRequest):
    agency_name: str | None = None
    include_narrative: bool = False


class NarrativeRequest(AnalyticsRequest):
    kind: NarrativeKind = NarrativeKind.WORKFORCE
    agency_name: str | None = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/import", response_model=ImportResponse)
async def import_rows(body: ImportRequest) -> ImportResponse:
    """Normalize raw rows. Either collection may be omitted, not both."""
    if not body.officer_rows and not body.establishment_rows:
        raise HTTPException(status_code=422, detail="No rows supplied.")

    response = ImportResponse()
    try:
        if body.officer_rows:
            response.officers = parse_officer_rows(
                body.officer_rows, deduplicate=body.deduplicate,
            )
        if body.establishment_rows:
            response.establishment = parse_establishment_rows(body.establishment_rows)
    except RecordImportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return response


@router.post("/snapshot", response_model=DashboardSnapshot)
async def compute_snapshot(
    body: AnalyticsRequest,
    service: AnalyticsService = Depends(get_analytics_service),
) -> DashboardSnapshot:
    return service.compute(
        body.establishment,
        body.officers,
        raw_response_count=body.raw_response_count,
        as_of=body.as_of,
    )


@router.post("/report", response_model=ReportDocument)
async def build_report(
    body: ReportRequest,
    service: AnalyticsService = Depends(get_analytics_service),
    generator: NarrativeGenerator = Depends(get_narrative_generator),
    settings: Settings = Depends(get_settings),
) -> ReportDocument:
    """Build the export document; narrative failure never fails the report."""
    snapshot = service.compute(
        body.establishment,
        body.officers,
        raw_response_count=body.raw_response_count,
        as_of=body.as_of,
    )
    agency_name = body.agency_name or settings.AGENCY_NAME

    narrative: NarrativeResult | None = None
    if body.include_narrative:
        narrative = await generator.generate_workforce_narrative(
            snapshot.aggregated, agency_name=agency_name,
        )

    return build_workforce_report(
        snapshot.aggregated,
        snapshot.segmentation,
        narrative,
        agency_name=agency_name,
    )


@router.post("/narrative", response_model=NarrativeResult)
async def generate_narrative(
    body: NarrativeRequest,
    service: AnalyticsService = Depends(get_analytics_service),
    generator: NarrativeGenerator = Depends(get_narrative_generator),
) -> NarrativeResult:
    """Generate a narrative; UNAVAILABLE is a normal 200 response."""
    snapshot = service.compute(
        body.establishment,
        body.officers,
        raw_response_count=body.raw_response_count,
        as_of=body.as_of,
    )
    if body.kind == NarrativeKind.TALENT:
        result = await generator.generate_talent_narrative(
            snapshot.segmentation, agency_name=body.agency_name,
        )
    else:
        result = await generator.generate_workforce_narrative(
            snapshot.aggregated, agency_name=body.agency_name,
        )

    logger.info("Narrative request served: kind=%s status=%s", result.kind, result.status)
    return result
