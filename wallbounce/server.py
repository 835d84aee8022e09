"""FastMCP stdio server exposing the chat and wall-bounce tools.

Usage:
    wallbounce serve
    python -m wallbounce.server

Logs go to stderr; stdout carries the MCP protocol.
"""

import logging
import sys
from typing import Annotated, Any

from dotenv import load_dotenv
from fastmcp import FastMCP
from pydantic import Field

from config.config_loader import AppConfig, load_config
from wallbounce.dialogue import DialogueEngine
from wallbounce.providers.base import AIProvider
from wallbounce.providers.gemini import GeminiProvider
from wallbounce.providers.openai_provider import OpenAIProvider
from wallbounce.tools import ToolDefaults, ToolHandlers

logger = logging.getLogger(__name__)

SERVER_NAME = "wallbounce"

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "gemini": GeminiProvider,
}


def build_providers(config: AppConfig) -> dict[str, AIProvider]:
    """Instantiate every configured provider, available or not. Keyed by name."""
    providers: dict[str, AIProvider] = {}
    for name, provider_cfg in config.providers.items():
        if name not in PROVIDER_CLASSES:
            logger.warning("Provider '%s' unknown, skipping", name)
            continue
        providers[name] = PROVIDER_CLASSES[name](provider_cfg.api_key, name=name)
    return providers


def build_engine(config: AppConfig, providers: dict[str, AIProvider]) -> DialogueEngine:
    return DialogueEngine(
        first=providers[config.defaults.first_provider],
        second=providers[config.defaults.second_provider],
        prompts=config.prompts,
        max_output_tokens=config.defaults.max_output_tokens,
    )


def build_tool_handlers(config: AppConfig) -> ToolHandlers:
    providers = build_providers(config)
    defaults = ToolDefaults(
        openai_model=config.providers["openai"].model,
        gemini_model=config.providers["gemini"].model,
        rounds=config.defaults.rounds,
        temperature=config.defaults.temperature,
    )
    return ToolHandlers(
        openai_provider=providers["openai"],
        gemini_provider=providers["gemini"],
        engine=build_engine(config, providers),
        defaults=defaults,
    )


async def _call(handlers: ToolHandlers, tool_name: str, args: dict) -> str:
    """Run one tool call; errors come back as text, never as a protocol failure."""
    try:
        result = await handlers.handle_tool_call(tool_name, args)
    except Exception as exc:
        logger.error("Tool %s failed: %s", tool_name, exc)
        return f"Error: {exc}"
    return "\n".join(block["text"] for block in result["content"])


def create_server(handlers: ToolHandlers) -> FastMCP:
    """Register the tools on a FastMCP server.

    Sampling and round arguments are accepted as any JSON value; ToolHandlers
    fills in defaults and the engine/providers clamp them.
    """
    mcp = FastMCP(
        name=SERVER_NAME,
        instructions=(
            "Chat with OpenAI GPT and Google Gemini models, or let the two bounce a "
            "topic back and forth for a fixed number of rounds."
        ),
    )
    defaults = handlers.defaults

    @mcp.tool()
    async def chat_with_gpt(
        messages: Annotated[Any, Field(description="Array of {role, content} messages (system/user/assistant)")],
        model: Annotated[str | None, Field(description=f"OpenAI model (default {defaults.openai_model})")] = None,
        temperature: Annotated[Any, Field(description="Sampling temperature (0-2)")] = None,
        max_tokens: Annotated[Any, Field(description="Maximum tokens in response")] = None,
    ) -> str:
        """Chat with OpenAI GPT models (e.g. gpt-5, gpt-5-mini, gpt-4o)."""
        return await _call(
            handlers,
            "chat_with_gpt",
            {"messages": messages, "model": model, "temperature": temperature, "max_tokens": max_tokens},
        )

    @mcp.tool()
    async def chat_with_gemini(
        messages: Annotated[Any, Field(description="Array of {role, content} messages (system/user/assistant/model)")],
        model: Annotated[str | None, Field(description=f"Gemini model (default {defaults.gemini_model})")] = None,
        temperature: Annotated[Any, Field(description="Sampling temperature (0-2)")] = None,
        max_output_tokens: Annotated[Any, Field(description="Maximum tokens in response")] = None,
    ) -> str:
        """Chat with Google Gemini models (e.g. gemini-2.5-pro, gemini-2.0-flash)."""
        return await _call(
            handlers,
            "chat_with_gemini",
            {
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            },
        )

    @mcp.tool()
    async def wall_bounce_chat(
        topic: Annotated[Any, Field(description="Topic or question to discuss")],
        model1: Annotated[
            str | None, Field(description=f"First model, OpenAI, opens the discussion (default {defaults.openai_model})")
        ] = None,
        model2: Annotated[
            str | None, Field(description=f"Second model, Gemini (default {defaults.gemini_model})")
        ] = None,
        rounds: Annotated[Any, Field(description=f"Number of rounds, clamped to 1-10 (default {defaults.rounds})")] = None,
        temperature: Annotated[
            Any, Field(description=f"Sampling temperature, clamped to 0-2 (default {defaults.temperature})")
        ] = None,
    ) -> str:
        """Automatic back-and-forth discussion between a GPT model and a Gemini model."""
        return await _call(
            handlers,
            "wall_bounce_chat",
            {
                "topic": topic,
                "model1": model1,
                "model2": model2,
                "rounds": rounds,
                "temperature": temperature,
            },
        )

    @mcp.tool()
    async def list_models() -> str:
        """List available OpenAI and Gemini models."""
        return await _call(handlers, "list_models", {})

    return mcp


def run_server(config: AppConfig) -> None:
    create_server(build_tool_handlers(config)).run()


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    run_server(load_config())
