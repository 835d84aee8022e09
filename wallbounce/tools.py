"""Tool handlers exposed at the process boundary."""

import logging
from dataclasses import dataclass
from typing import Any

from wallbounce.dialogue import DEFAULT_ROUNDS, DEFAULT_TEMPERATURE, DialogueEngine
from wallbounce.models import SessionParameters, TurnRequest
from wallbounce.providers.base import AIProvider
from wallbounce.validation import normalize_messages

logger = logging.getLogger(__name__)


class UnknownToolError(LookupError):
    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


@dataclass
class ToolDefaults:
    """Fallbacks for omitted tool arguments, resolved from config at startup."""

    openai_model: str = "gpt-4o"
    gemini_model: str = "gemini-2.5-pro"
    rounds: int = DEFAULT_ROUNDS
    temperature: float = DEFAULT_TEMPERATURE
    chat_temperature: float = 1.0
    chat_max_tokens: int = 2500


def _text_result(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


def _arg(args: dict, key: str, default: Any) -> Any:
    value = args.get(key)
    return default if value is None else value


class ToolHandlers:
    """Routes a tool name plus argument bag to the providers or the dialogue engine."""

    def __init__(
        self,
        openai_provider: AIProvider,
        gemini_provider: AIProvider,
        engine: DialogueEngine,
        defaults: ToolDefaults | None = None,
    ) -> None:
        self._openai = openai_provider
        self._gemini = gemini_provider
        self._engine = engine
        self.defaults = defaults or ToolDefaults()
        self._handlers = {
            "chat_with_gpt": self.chat_with_gpt,
            "chat_with_gemini": self.chat_with_gemini,
            "wall_bounce_chat": self.wall_bounce_chat,
            "list_models": self.list_models,
        }

    async def chat_with_gpt(self, args: dict) -> dict:
        model = _arg(args, "model", self.defaults.openai_model)
        response = await self._openai.complete_turn(
            TurnRequest(
                model=model,
                conversation=normalize_messages(args.get("messages")),
                temperature=_arg(args, "temperature", self.defaults.chat_temperature),
                max_output_tokens=_arg(args, "max_tokens", self.defaults.chat_max_tokens),
            )
        )
        return _text_result(f"**Model:** {model}\n**Response:** {response}")

    async def chat_with_gemini(self, args: dict) -> dict:
        model = _arg(args, "model", self.defaults.gemini_model)
        response = await self._gemini.complete_turn(
            TurnRequest(
                model=model,
                conversation=normalize_messages(args.get("messages")),
                temperature=_arg(args, "temperature", self.defaults.chat_temperature),
                max_output_tokens=_arg(args, "max_output_tokens", self.defaults.chat_max_tokens),
            )
        )
        return _text_result(f"**Model:** {model}\n**Response:** {response}")

    async def wall_bounce_chat(self, args: dict) -> dict:
        transcript = await self._engine.conduct_dialogue(
            SessionParameters(
                topic=args.get("topic"),
                first_model=_arg(args, "model1", self.defaults.openai_model),
                second_model=_arg(args, "model2", self.defaults.gemini_model),
                rounds=_arg(args, "rounds", self.defaults.rounds),
                temperature=_arg(args, "temperature", self.defaults.temperature),
            )
        )
        return _text_result(transcript)

    async def list_models(self, args: dict | None = None) -> dict:
        openai_models = await self._openai.list_models()
        gemini_models = await self._gemini.list_models()
        openai_list = "\n".join(f"- {m}" for m in openai_models)
        gemini_list = "\n".join(f"- {m}" for m in gemini_models)
        return _text_result(
            f"**Available OpenAI GPT models:**\n{openai_list}\n\n"
            f"**Available Google Gemini models:**\n{gemini_list}"
        )

    async def handle_tool_call(self, tool_name: str, args: dict | None) -> dict:
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise UnknownToolError(tool_name)
        logger.info("Tool call: %s", tool_name)
        return await handler(args or {})
