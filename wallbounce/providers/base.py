"""Abstract base for the two dialogue participants' model providers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from wallbounce.models import TurnRequest
from wallbounce.validation import clamp_number

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        self.message = message
        super().__init__(f"[{provider_name}] {message}")


class ProviderUnavailableError(ProviderError):
    """No usable credential is configured."""


class MalformedResponseError(ProviderError):
    """The backend replied without the expected output."""


class UpstreamError(ProviderError):
    """Network, auth or rate-limit failure reported by the backend."""


@dataclass(frozen=True)
class SamplingLimits:
    min_temperature: float
    max_temperature: float
    default_temperature: float
    min_output_tokens: int
    max_output_tokens: int
    default_output_tokens: int


@dataclass(frozen=True)
class ModelFamilyPolicy:
    """Backend quirk applied to every model whose name matches pattern.

    Matching is a plain substring search on the model name, so an
    unrelated model that happens to contain the pattern is caught too.
    """

    pattern: str
    fixed_temperature: float | None = None
    token_param: str | None = None

    def matches(self, model: str) -> bool:
        return self.pattern in model


@dataclass
class SamplingParams:
    temperature: float
    max_output_tokens: int
    token_param: str


def resolve_sampling(
    provider_name: str,
    request: TurnRequest,
    limits: SamplingLimits,
    policies: tuple[ModelFamilyPolicy, ...],
    token_param: str,
) -> SamplingParams:
    """Clamp the request's sampling values and apply the first matching family policy."""
    params = SamplingParams(
        temperature=clamp_number(
            request.temperature,
            limits.min_temperature,
            limits.max_temperature,
            limits.default_temperature,
        ),
        max_output_tokens=int(
            clamp_number(
                request.max_output_tokens,
                limits.min_output_tokens,
                limits.max_output_tokens,
                limits.default_output_tokens,
            )
        ),
        token_param=token_param,
    )

    for policy in policies:
        if not policy.matches(request.model):
            continue
        if policy.fixed_temperature is not None and params.temperature != policy.fixed_temperature:
            logger.warning(
                "%s: %s only supports temperature=%s, overriding %s",
                provider_name,
                request.model,
                policy.fixed_temperature,
                params.temperature,
            )
            params.temperature = policy.fixed_temperature
        if policy.token_param:
            params.token_param = policy.token_param
        break

    return params


class AIProvider(ABC):
    """One side of the dialogue: completes a turn given a conversation or a prompt."""

    limits: SamplingLimits
    policies: tuple[ModelFamilyPolicy, ...] = ()

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'openai', 'gemini')."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """True iff a usable credential is held. Never touches the network."""
        ...

    @abstractmethod
    async def complete_turn(self, request: TurnRequest) -> str:
        """Issue one completion call and return the generated text.

        Args:
            request: Model, conversation entries or prompt, sampling values.

        Returns:
            The model's reply text.

        Raises:
            ProviderUnavailableError: No credential configured.
            MalformedResponseError: Reply is missing its output.
            UpstreamError: The backend call itself failed.
        """
        ...

    async def list_models(self) -> list[str]:
        return []
