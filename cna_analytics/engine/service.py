"""Dashboard computation orchestrator.

Runs the aggregation engine, the segmentation classifier and non-submitter
detection over one pair of collections and bundles the results. Holds only
configuration, so one instance can serve concurrent callers.

Deterministic -- no LLM calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from cna_analytics.engine.aggregator import aggregate
from cna_analytics.engine.config import AnalyticsConfig, get_default_config
from cna_analytics.engine.normalize import find_non_submitters
from cna_analytics.engine.segmentation import segment
from cna_analytics.models.common import FrozenCnaBase
from cna_analytics.models.records import EstablishmentRecord, OfficerRecord
from cna_analytics.models.snapshot import AggregatedData, SegmentationGrid

logger = logging.getLogger(__name__)


class DashboardSnapshot(FrozenCnaBase):
    """Everything the presentation layer needs from one computation."""

    aggregated: AggregatedData
    segmentation: SegmentationGrid
    non_submitters: tuple[EstablishmentRecord, ...] = ()


class AnalyticsService:
    """Computes a ``DashboardSnapshot`` from a register and a survey set."""

    def __init__(self, config: AnalyticsConfig | None = None) -> None:
        self._config = config or get_default_config()

    @property
    def config(self) -> AnalyticsConfig:
        return self._config

    def compute(
        self,
        establishment: Sequence[EstablishmentRecord],
        officers: Sequence[OfficerRecord],
        *,
        raw_response_count: int | None = None,
        as_of: date | None = None,
    ) -> DashboardSnapshot:
        """Compute statistics, the talent grid and the non-submitter list.

        Pass ``as_of`` to pin the tenure reference date; with it the result
        depends on the arguments alone.
        """
        aggregated = aggregate(
            establishment,
            officers,
            raw_response_count,
            config=self._config,
        )
        grid = segment(officers, as_of=as_of, config=self._config)
        non_submitters = find_non_submitters(establishment, officers)

        logger.info(
            "Dashboard computed: %d positions, %d participants, %d non-submitters",
            aggregated.total_positions,
            aggregated.cna_participants,
            len(non_submitters),
        )

        return DashboardSnapshot(
            aggregated=aggregated,
            segmentation=grid,
            non_submitters=non_submitters,
        )
