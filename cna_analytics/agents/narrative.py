"""Optional narrative generation layered over the computed snapshots.

Each generation is one bounded LLM call. Every failure (no permitted
provider, missing key, timeout, transport error, invalid reply) is caught
here and returned as an UNAVAILABLE ``NarrativeResult``; snapshots are
never affected. ``start_*`` methods run the call as an ``asyncio.Task``
that the caller can cancel on teardown.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

import httpx

from cna_analytics.agents.llm_client import (
    LLMClient,
    LLMRequest,
    LLMResponseError,
    LLMUnavailableError,
)
from cna_analytics.agents.prompts import (
    TALENT_SEGMENTATION_INSTRUCTIONS,
    WORKFORCE_SNAPSHOT_INSTRUCTIONS,
    build_talent_prompt,
    build_workforce_prompt,
)
from cna_analytics.config.settings import Settings
from cna_analytics.models.common import DataClassification
from cna_analytics.models.narrative import (
    NarrativeKind,
    NarrativeResult,
    NarrativeStatus,
    TalentNarrative,
    WorkforceNarrative,
)
from cna_analytics.models.snapshot import AggregatedData, SegmentationGrid

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


def _unavailable(kind: NarrativeKind, reason: str) -> NarrativeResult:
    logger.warning("%s narrative unavailable: %s", kind.value, reason)
    return NarrativeResult(kind=kind, status=NarrativeStatus.UNAVAILABLE, reason=reason)


# ---------------------------------------------------------------------------
# Task handle
# ---------------------------------------------------------------------------


class NarrativeTask:
    """Handle on a running narrative generation.

    Must be created inside a running event loop.
    """

    def __init__(
        self,
        kind: NarrativeKind,
        coro: Coroutine[Any, Any, NarrativeResult],
    ) -> None:
        self.kind = kind
        self._task: asyncio.Task[NarrativeResult] = asyncio.create_task(coro)

    def cancel(self) -> bool:
        """Request cancellation. Returns False if already finished."""
        return self._task.cancel()

    def done(self) -> bool:
        return self._task.done()

    async def result(self) -> NarrativeResult:
        """Wait for the narrative; a cancelled task yields a CANCELLED result."""
        try:
            return await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
            logger.info("%s narrative generation cancelled", self.kind.value)
            return NarrativeResult(
                kind=self.kind,
                status=NarrativeStatus.CANCELLED,
                reason="Narrative generation was cancelled",
            )


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class NarrativeGenerator:
    """Builds prompts from snapshots and calls the routed LLM provider."""

    def __init__(
        self,
        llm_client: LLMClient | None,
        *,
        classification: DataClassification = DataClassification.CONFIDENTIAL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        agency_name: str = "Agency",
    ) -> None:
        self._llm = llm_client
        self._classification = classification
        self._timeout = timeout
        self._agency_name = agency_name

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "NarrativeGenerator":
        """Build a generator; RESTRICTED data gets no LLM client at all."""
        llm_client: LLMClient | None = None
        if settings.DATA_CLASSIFICATION != DataClassification.RESTRICTED:
            llm_client = LLMClient(
                anthropic_key=settings.ANTHROPIC_API_KEY,
                openai_key=settings.OPENAI_API_KEY,
                anthropic_model=settings.NARRATIVE_MODEL_ANTHROPIC,
                openai_model=settings.NARRATIVE_MODEL_OPENAI,
                request_timeout=settings.NARRATIVE_TIMEOUT_SECONDS,
                transport=transport,
            )
        return cls(
            llm_client,
            classification=settings.DATA_CLASSIFICATION,
            timeout=settings.NARRATIVE_TIMEOUT_SECONDS,
            agency_name=settings.AGENCY_NAME,
        )

    # ----- One-shot generation -----

    async def generate_workforce_narrative(
        self,
        data: AggregatedData,
        *,
        agency_name: str | None = None,
    ) -> NarrativeResult:
        request = LLMRequest(
            system_prompt=WORKFORCE_SNAPSHOT_INSTRUCTIONS,
            user_prompt=build_workforce_prompt(data, agency_name or self._agency_name),
            output_schema=WorkforceNarrative,
        )
        return await self._run(NarrativeKind.WORKFORCE, request)

    async def generate_talent_narrative(
        self,
        grid: SegmentationGrid,
        *,
        agency_name: str | None = None,
    ) -> NarrativeResult:
        request = LLMRequest(
            system_prompt=TALENT_SEGMENTATION_INSTRUCTIONS,
            user_prompt=build_talent_prompt(grid, agency_name or self._agency_name),
            output_schema=TalentNarrative,
            max_tokens=4096,
        )
        return await self._run(NarrativeKind.TALENT, request)

    # ----- Cancellable tasks -----

    def start_workforce_narrative(
        self,
        data: AggregatedData,
        *,
        agency_name: str | None = None,
    ) -> NarrativeTask:
        return NarrativeTask(
            NarrativeKind.WORKFORCE,
            self.generate_workforce_narrative(data, agency_name=agency_name),
        )

    def start_talent_narrative(
        self,
        grid: SegmentationGrid,
        *,
        agency_name: str | None = None,
    ) -> NarrativeTask:
        return NarrativeTask(
            NarrativeKind.TALENT,
            self.generate_talent_narrative(grid, agency_name=agency_name),
        )

    # ----- Internals -----

    async def _run(self, kind: NarrativeKind, request: LLMRequest) -> NarrativeResult:
        if self._llm is None:
            if self._classification == DataClassification.RESTRICTED:
                return _unavailable(kind, "External narrative generation is disabled for RESTRICTED data")
            return _unavailable(kind, "No LLM client configured")

        try:
            response = await asyncio.wait_for(
                self._llm.generate(request, self._classification),
                timeout=self._timeout,
            )
        except TimeoutError:
            return _unavailable(kind, f"Narrative generation timed out after {self._timeout:g}s")
        except LLMUnavailableError as exc:
            return _unavailable(kind, str(exc))
        except LLMResponseError as exc:
            return _unavailable(kind, f"Invalid narrative response: {exc}")
        except httpx.HTTPError as exc:
            return _unavailable(kind, f"Narrative transport error: {exc}")

        return NarrativeResult(
            kind=kind,
            status=NarrativeStatus.AVAILABLE,
            narrative=response.parsed,
            provider=response.provider.value,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
