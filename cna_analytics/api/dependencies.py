"""FastAPI dependency injection factories.

Endpoints get the analytics service and the narrative generator via
Depends(); tests swap them through ``app.dependency_overrides``.
"""

from fastapi import Depends

from cna_analytics.agents.narrative import NarrativeGenerator
from cna_analytics.config.settings import Settings, get_settings
from cna_analytics.engine.service import AnalyticsService

_analytics_service = AnalyticsService()


def get_analytics_service() -> AnalyticsService:
    """The service holds only configuration, so one instance is shared."""
    return _analytics_service


def get_narrative_generator(
    settings: Settings = Depends(get_settings),
) -> NarrativeGenerator:
    return NarrativeGenerator.from_settings(settings)
