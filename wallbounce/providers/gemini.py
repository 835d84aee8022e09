"""Gemini provider using google-genai SDK with native async."""

import logging
import time

from google import genai
from google.genai import types as genai_types

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

GEMINI_LIMITS = SamplingLimits(
    min_temperature=0.0,
    max_temperature=2.0,
    default_temperature=1.0,
    min_output_tokens=1,
    max_output_tokens=8192,
    default_output_tokens=2500,
)

GEMINI_SAMPLING_POLICIES: tuple[ModelFamilyPolicy, ...] = ()

GEMINI_MODELS = [
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.0-flash-001",
    "gemini-1.5-pro-002",
    "gemini-1.5-flash-002",
]

_ROLE_MAP = {"assistant": "model"}


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    limits = GEMINI_LIMITS
    policies = GEMINI_SAMPLING_POLICIES

    def __init__(self, api_key: str | None, name: str = "gemini") -> None:
        self._name = name
        self._api_key = (api_key or "").strip()
        self._client: genai.Client | None = None

    def name(self) -> str:
        return self._name

    def is_available(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> genai.Client:
        if not self.is_available():
            raise ProviderUnavailableError(
                self._name, "Gemini integration not available. Please configure GOOGLE_API_KEY."
            )
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    @staticmethod
    def convert_conversation(entries: list[dict]) -> list[dict]:
        """Map system/user/assistant roles onto Gemini's user/model vocabulary.

        Only "assistant" is renamed; every other role and every extra key on
        an entry is kept as is.
        """
        converted = []
        for entry in entries:
            role = entry.get("role")
            converted.append({**entry, "role": _ROLE_MAP.get(role, role)})
        return converted

    def _build_contents(
        self, conversation: list[dict] | str
    ) -> tuple[list[genai_types.Content], str | None]:
        if isinstance(conversation, str):
            return [genai_types.Content(role="user", parts=[genai_types.Part(text=conversation)])], None

        entries = self.convert_conversation(normalize_messages(conversation))
        system_parts = [e["content"] for e in entries if e.get("role") == "system"]
        contents = [
            genai_types.Content(role=e.get("role"), parts=[genai_types.Part(text=e["content"])])
            for e in entries
            if e.get("role") != "system"
        ]
        return contents, "\n\n".join(system_parts) or None

    async def complete_turn(self, request: TurnRequest) -> str:
        client = self._get_client()
        contents, system_instruction = self._build_contents(request.conversation)
        sampling = resolve_sampling(
            self._name, request, self.limits, self.policies, "max_output_tokens"
        )

        logger.info("Calling Google Gemini %s...", request.model)
        start = time.monotonic()
        try:
            response = await client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=genai_types.GenerateContentConfig(
                    temperature=sampling.temperature,
                    system_instruction=system_instruction,
                    **{sampling.token_param: sampling.max_output_tokens},
                ),
            )
        except Exception as exc:
            raise UpstreamError(self._name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.text:
            raise MalformedResponseError(self._name, "Empty response text")

        logger.info("Gemini %s: %.2fs", request.model, latency)
        return response.text

    async def list_models(self) -> list[str]:
        if not self.is_available():
            return []
        return list(GEMINI_MODELS)
