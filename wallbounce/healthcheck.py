"""Provider health checks: ping each participant's API before a discussion."""

import asyncio
import logging

from wallbounce.models import TurnRequest
from wallbounce.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_PING_MAX_TOKENS = 16
_TIMEOUT_SEC = 15.0


async def _check_one(name: str, provider: AIProvider, model: str) -> tuple[str, bool, str]:
    """Ping a single provider. Returns (name, ok, error_message)."""
    if not provider.is_available():
        return name, False, "No API key configured"
    try:
        await asyncio.wait_for(
            provider.complete_turn(
                TurnRequest(model=model, conversation=_PING_PROMPT, max_output_tokens=_PING_MAX_TOKENS)
            ),
            timeout=_TIMEOUT_SEC,
        )
        return name, True, ""
    except Exception as exc:
        logger.debug("Health check for %s failed: %s", name, exc)
        return name, False, str(exc)


async def run_health_checks(
    providers: dict[str, tuple[AIProvider, str]],
) -> dict[str, tuple[bool, str]]:
    """Ping all providers in parallel.

    Args:
        providers: Name -> (provider, model to ping with).

    Returns:
        Dict mapping provider name -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(
        *(_check_one(n, p, model) for n, (p, model) in providers.items())
    )
    return {name: (ok, err) for name, ok, err in results}
