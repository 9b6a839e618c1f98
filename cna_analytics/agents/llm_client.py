"""LLM client abstraction for narrative generation.

Unified async interface for Anthropic/OpenAI with:
- Data classification-based routing (RESTRICTED -> no external provider,
  CONFIDENTIAL/INTERNAL -> Anthropic, PUBLIC -> OpenAI)
- Structured JSON output with Pydantic validation
- Retry with exponential backoff on transport errors, 429 and 5xx
- Token usage tracking

Agents use this client for prose only -- they NEVER compute statistics.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from cna_analytics.models.common import DataClassification

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class LLMUnavailableError(RuntimeError):
    """No usable provider, or the provider could not be reached."""


class LLMResponseError(ValueError):
    """Provider answered, but not with valid structured output."""


# ---------------------------------------------------------------------------
# Provider enum
# ---------------------------------------------------------------------------


class LLMProvider(StrEnum):
    """Supported LLM providers."""

    ANTHROPIC = "ANTHROPIC"
    OPENAI = "OPENAI"


# ---------------------------------------------------------------------------
# Token tracking
# ---------------------------------------------------------------------------


@dataclass
class TokenUsage:
    """Token usage for a single LLM call."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


# ---------------------------------------------------------------------------
# Request / Response
# ---------------------------------------------------------------------------


@dataclass
class LLMRequest:
    """Structured request to an LLM provider."""

    system_prompt: str
    user_prompt: str
    output_schema: type[BaseModel]
    max_tokens: int = 2048
    temperature: float = 0.2


@dataclass
class LLMResponse:
    """Structured response from an LLM provider."""

    content: str
    parsed: BaseModel
    provider: LLMProvider
    model: str
    usage: TokenUsage


# ---------------------------------------------------------------------------
# Provider routing
# ---------------------------------------------------------------------------

_DEFAULT_ROUTING: dict[DataClassification, LLMProvider | None] = {
    DataClassification.RESTRICTED: None,
    DataClassification.CONFIDENTIAL: LLMProvider.ANTHROPIC,
    DataClassification.INTERNAL: LLMProvider.ANTHROPIC,
    DataClassification.PUBLIC: LLMProvider.OPENAI,
}


class ProviderRouter:
    """Select LLM provider based on data classification.

    ``None`` means the data may not leave the deployment.
    """

    def __init__(
        self,
        routing_table: dict[DataClassification, LLMProvider | None] | None = None,
    ) -> None:
        self._table = routing_table or dict(_DEFAULT_ROUTING)

    def select(self, classification: DataClassification) -> LLMProvider | None:
        """Return the appropriate provider for the given classification."""
        return self._table.get(classification)


# ---------------------------------------------------------------------------
# JSON extraction helpers
# ---------------------------------------------------------------------------

_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def _extract_json(raw: str) -> str:
    """Extract JSON from raw LLM output, stripping markdown fences."""
    match = _JSON_BLOCK_RE.search(raw)
    if match:
        return match.group(1).strip()
    return raw.strip()


def _schema_instruction(schema: type[BaseModel]) -> str:
    return (
        "Respond with a single JSON object matching this JSON schema, "
        "with no prose outside the object:\n"
        + json.dumps(schema.model_json_schema())
    )


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def _response_json(resp: httpx.Response) -> dict:
    try:
        return resp.json()
    except ValueError as exc:
        raise LLMResponseError(f"Provider returned a non-JSON body: {exc}") from exc


def _token_usage(data: dict, input_key: str, output_key: str) -> TokenUsage:
    """Read the provider's usage block; an absent block counts as zero."""
    usage_data = data.get("usage", {})
    if not isinstance(usage_data, dict):
        raise LLMResponseError("Provider usage block is not an object")
    try:
        usage = TokenUsage(
            input_tokens=int(usage_data.get(input_key, 0)),
            output_tokens=int(usage_data.get(output_key, 0)),
        )
    except (TypeError, ValueError) as exc:
        raise LLMResponseError(f"Invalid token usage from provider: {exc}") from exc
    if usage.input_tokens < 0 or usage.output_tokens < 0:
        raise LLMResponseError("Provider reported negative token usage")
    return usage


# ---------------------------------------------------------------------------
# LLM client
# ---------------------------------------------------------------------------


class LLMClient:
    """Unified LLM client with structured output, retry, and tracking."""

    def __init__(
        self,
        *,
        anthropic_key: str = "",
        openai_key: str = "",
        anthropic_model: str = DEFAULT_ANTHROPIC_MODEL,
        openai_model: str = DEFAULT_OPENAI_MODEL,
        max_retries: int = 3,
        base_delay: float = 1.0,
        request_timeout: float = 60.0,
        router: ProviderRouter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._anthropic_key = anthropic_key
        self._openai_key = openai_key
        self._models = {
            LLMProvider.ANTHROPIC: anthropic_model,
            LLMProvider.OPENAI: openai_model,
        }
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._request_timeout = request_timeout
        self._router = router or ProviderRouter()
        self._transport = transport
        self._usage_log: list[TokenUsage] = []

    # ----- Structured output parsing -----

    def parse_structured_output(self, *, raw: str, schema: type[T]) -> T:
        """Parse raw LLM output into a validated Pydantic model.

        Raises LLMResponseError (a ValueError) if JSON is invalid or fails
        schema validation.
        """
        cleaned = _extract_json(raw)
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise LLMResponseError(f"Invalid JSON from LLM: {exc}") from exc
        try:
            return schema.model_validate(data)
        except ValidationError as exc:
            raise LLMResponseError(f"Schema validation failed: {exc}") from exc

    # ----- Provider availability -----

    def available_providers(self) -> list[LLMProvider]:
        """Return list of providers with API keys configured."""
        providers: list[LLMProvider] = []
        if self._anthropic_key:
            providers.append(LLMProvider.ANTHROPIC)
        if self._openai_key:
            providers.append(LLMProvider.OPENAI)
        return providers

    def is_available_for(self, classification: DataClassification) -> bool:
        """Check if a provider is available for the given classification."""
        needed = self._router.select(classification)
        return needed is not None and needed in self.available_providers()

    def select_provider(self, classification: DataClassification) -> LLMProvider:
        """Return the provider to call, or raise LLMUnavailableError."""
        provider = self._router.select(classification)
        if provider is None:
            raise LLMUnavailableError(
                f"No external provider permitted for {classification.value} data"
            )
        if provider not in self.available_providers():
            raise LLMUnavailableError(f"No API key configured for {provider.value}")
        return provider

    # ----- Retry / backoff -----

    def compute_backoff_delays(self) -> list[float]:
        """Compute exponential backoff delays for retries."""
        return [self.base_delay * (2**i) for i in range(self.max_retries)]

    # ----- Token tracking -----

    def record_usage(self, usage: TokenUsage) -> None:
        """Record token usage from a call."""
        self._usage_log.append(usage)

    def cumulative_usage(self) -> TokenUsage:
        """Return cumulative token usage across all recorded calls."""
        total_in = sum(u.input_tokens for u in self._usage_log)
        total_out = sum(u.output_tokens for u in self._usage_log)
        return TokenUsage(input_tokens=total_in, output_tokens=total_out)

    def reset_usage(self) -> None:
        """Reset cumulative token usage."""
        self._usage_log.clear()

    # ----- Generation -----

    async def generate(
        self,
        request: LLMRequest,
        classification: DataClassification,
    ) -> LLMResponse:
        """Call the routed provider and validate its structured output.

        Raises:
            LLMUnavailableError: no permitted provider, missing key, a
                non-retryable HTTP error, or retries exhausted.
            LLMResponseError: the reply is not valid JSON for the schema.
        """
        provider = self.select_provider(classification)
        model = self._models[provider]

        async with httpx.AsyncClient(
            timeout=self._request_timeout,
            transport=self._transport,
        ) as client:
            content, usage = await self._call_with_retry(client, provider, model, request)

        parsed = self.parse_structured_output(raw=content, schema=request.output_schema)
        self.record_usage(usage)
        logger.info(
            "LLM call completed: provider=%s model=%s tokens=%d",
            provider.value,
            model,
            usage.total_tokens,
        )
        return LLMResponse(
            content=content,
            parsed=parsed,
            provider=provider,
            model=model,
            usage=usage,
        )

    async def _call_with_retry(
        self,
        client: httpx.AsyncClient,
        provider: LLMProvider,
        model: str,
        request: LLMRequest,
    ) -> tuple[str, TokenUsage]:
        delays = self.compute_backoff_delays()
        last_error: Exception | None = None

        for attempt in range(len(delays) + 1):
            try:
                if provider == LLMProvider.ANTHROPIC:
                    return await self._call_anthropic(client, model, request)
                return await self._call_openai(client, model, request)
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if not _is_retryable(status):
                    raise LLMUnavailableError(
                        f"{provider.value} rejected the request: HTTP {status}"
                    ) from exc
                last_error = exc
            except httpx.TransportError as exc:
                last_error = exc

            if attempt < len(delays):
                logger.warning(
                    "LLM call to %s failed (attempt %d/%d): %s",
                    provider.value,
                    attempt + 1,
                    len(delays) + 1,
                    last_error,
                )
                await asyncio.sleep(delays[attempt])

        raise LLMUnavailableError(
            f"{provider.value} unreachable after {len(delays) + 1} attempts: {last_error}"
        ) from last_error

    # ------------------------------------------------------------------
    # Provider calls
    # ------------------------------------------------------------------

    async def _call_anthropic(
        self,
        client: httpx.AsyncClient,
        model: str,
        request: LLMRequest,
    ) -> tuple[str, TokenUsage]:
        headers = {
            "x-api-key": self._anthropic_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "content-type": "application/json",
        }
        body = {
            "model": model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "system": f"{request.system_prompt}\n\n{_schema_instruction(request.output_schema)}",
            "messages": [{"role": "user", "content": request.user_prompt}],
        }
        resp = await client.post(ANTHROPIC_MESSAGES_URL, headers=headers, json=body)
        resp.raise_for_status()
        data = _response_json(resp)

        try:
            text = "".join(
                block.get("text", "")
                for block in data["content"]
                if block.get("type") == "text"
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise LLMResponseError("Anthropic response has no content blocks") from exc

        return text, _token_usage(data, "input_tokens", "output_tokens")

    async def _call_openai(
        self,
        client: httpx.AsyncClient,
        model: str,
        request: LLMRequest,
    ) -> tuple[str, TokenUsage]:
        headers = {
            "Authorization": f"Bearer {self._openai_key}",
            "Content-Type": "application/json",
        }
        body = {
            "model": model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "response_format": {"type": "json_object"},
            "messages": [
                {
                    "role": "system",
                    "content": f"{request.system_prompt}\n\n{_schema_instruction(request.output_schema)}",
                },
                {"role": "user", "content": request.user_prompt},
            ],
        }
        resp = await client.post(OPENAI_CHAT_URL, headers=headers, json=body)
        resp.raise_for_status()
        data = _response_json(resp)

        try:
            text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMResponseError("OpenAI response has no message content") from exc

        return text, _token_usage(data, "prompt_tokens", "completion_tokens")
