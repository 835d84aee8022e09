"""OpenAI provider using openai SDK with native async."""

import logging
import time

from openai import AsyncOpenAI

from wallbounce.models import TurnRequest
from wallbounce.providers.base import (
    AIProvider,
    MalformedResponseError,
    ModelFamilyPolicy,
    ProviderUnavailableError,
    SamplingLimits,
    UpstreamError,
    resolve_sampling,
)
from wallbounce.validation import normalize_messages

logger = logging.getLogger(__name__)

OPENAI_LIMITS = SamplingLimits(
    min_temperature=0.0,
    max_temperature=2.0,
    default_temperature=1.0,
    min_output_tokens=1,
    max_output_tokens=4000,
    default_output_tokens=2500,
)

# GPT-5 series rejects any temperature but 1 and renames the token budget.
OPENAI_SAMPLING_POLICIES: tuple[ModelFamilyPolicy, ...] = (
    ModelFamilyPolicy(pattern="gpt-5", fixed_temperature=1.0, token_param="max_completion_tokens"),
)


class OpenAIProvider(AIProvider):
    """OpenAI chat-completions provider via openai SDK."""

    limits = OPENAI_LIMITS
    policies = OPENAI_SAMPLING_POLICIES

    def __init__(self, api_key: str | None, name: str = "openai") -> None:
        self._name = name
        self._api_key = (api_key or "").strip()
        self._client: AsyncOpenAI | None = None

    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> AsyncOpenAI:
        if not self.is_available():
            raise ProviderUnavailableError(
                self._name, "OpenAI provider is not available. Please configure OPENAI_API_KEY."
            )
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def complete_turn(self, request: TurnRequest) -> str:
        client = self._get_client()

        if isinstance(request.conversation, str):
            messages = [{"role": "user", "content": request.conversation}]
        else:
            messages = request.conversation
        messages = normalize_messages(messages)

        sampling = resolve_sampling(self._name, request, self.limits, self.policies, "max_tokens")

        logger.info("Calling OpenAI %s...", request.model)
        start = time.monotonic()
        try:
            response = await client.chat.completions.create(
                model=request.model,
                messages=messages,
                temperature=sampling.temperature,
                **{sampling.token_param: sampling.max_output_tokens},
            )
        except Exception as exc:
            raise UpstreamError(self._name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        choice = response.choices[0] if response.choices else None
        if choice is None or choice.message is None or not choice.message.content:
            raise MalformedResponseError(self._name, "Empty response content")

        logger.info("OpenAI %s: %.2fs", request.model, latency)
        return choice.message.content

    async def list_models(self) -> list[str]:
        if not self.is_available():
            return []
        try:
            page = await self._get_client().models.list()
        except Exception as exc:
            raise UpstreamError(self._name, f"Model listing failed: {exc}") from exc
        return [m.id for m in page.data if "gpt" in m.id]
