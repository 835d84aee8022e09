"""Load settings.yaml into typed dataclasses. Resolves API keys and model overrides once at startup."""

import logging
import os
import string
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"

# Provider name -> environment variable that overrides its default model
_MODEL_OVERRIDE_ENV = {
    "openai": "OPENAI_MODEL",
    "gemini": "GEMINI_MODEL",
}

# Placeholders each prompt template may use. Literal braces must be doubled ({{ }}).
_TEMPLATE_FIELDS: dict[str, set[str]] = {
    "opening": {"topic"},
    "response": {"previous"},
    "continuation": {"response"},
    "summary": {"first_model", "second_model", "topic", "rounds", "round_label"},
}


def _check_template(template_name: str, template: str, allowed: set[str]) -> None:
    """Reject templates that str.format cannot fill with the allowed placeholders."""
    try:
        fields_used = {name for _, name, _, _ in string.Formatter().parse(template) if name is not None}
    except ValueError as exc:
        raise ValueError(
            f"Prompt template '{template_name}' is malformed ({exc}); double literal braces as {{{{ }}}}"
        ) from exc
    unknown = fields_used - allowed
    if unknown:
        raise ValueError(
            f"Prompt template '{template_name}' uses unknown placeholder(s) "
            f"{', '.join(repr(n) for n in sorted(unknown))}; allowed: {', '.join(sorted(allowed))}. "
            "Double literal braces as {{ }}"
        )


@dataclass
class ProviderConfig:
    name: str
    model: str
    api_key_env: str
    api_key: str | None = None


@dataclass
class PromptsConfig:
    opening: str = (
        "You are an expert taking part in a technical discussion. Hold a constructive, "
        "insightful conversation with another AI model about the topic below, developing "
        "ideas and offering new perspectives.\n\n"
        "Topic: {topic}\n\n"
        "Give your opening view or questions on this topic."
    )
    response: str = (
        "You are another expert taking part in a technical discussion. Respond to the "
        "previous AI model's statement and move the discussion forward. Offer different "
        "viewpoints or alternatives and keep the dialogue constructive.\n\n"
        "The previous model said:\n"
        '"{previous}"\n\n'
        "Give your response, questions or additional insights."
    )
    continuation: str = (
        'Response from another expert: "{response}"\n\n'
        "Taking this response into account, develop the discussion further."
    )
    summary: str = (
        "In this wall-bounce session, {first_model} and {second_model} discussed "
        '"{topic}" over {round_label}. '
        "Each model contributed its own perspective and built on the other's points."
    )

    def __post_init__(self) -> None:
        for template_name, allowed in _TEMPLATE_FIELDS.items():
            _check_template(template_name, getattr(self, template_name), allowed)


@dataclass
class DefaultsConfig:
    first_provider: str = "openai"
    second_provider: str = "gemini"
    rounds: int = 3
    temperature: float = 0.8
    max_output_tokens: int = 1500
    output_dir: Path = Path("./output")


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    providers: dict[str, ProviderConfig]
    prompts: PromptsConfig = field(default_factory=PromptsConfig)
    available_providers: set[str] = field(default_factory=set)


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load configuration from settings.yaml and the process environment.

    Raises FileNotFoundError if settings file missing.
    Logs warnings for missing API keys but does not raise; those providers
    are left out of available_providers.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    defaults_raw = raw.get("defaults", {})
    base = DefaultsConfig()
    defaults = DefaultsConfig(
        first_provider=str(defaults_raw.get("first_provider", base.first_provider)),
        second_provider=str(defaults_raw.get("second_provider", base.second_provider)),
        rounds=int(defaults_raw.get("rounds", base.rounds)),
        temperature=float(defaults_raw.get("temperature", base.temperature)),
        max_output_tokens=int(defaults_raw.get("max_output_tokens", base.max_output_tokens)),
        output_dir=Path(defaults_raw.get("output_dir", base.output_dir)),
    )

    prompts_raw = raw.get("prompts") or {}
    known = {f.name for f in fields(PromptsConfig)}
    unknown = set(prompts_raw) - known
    if unknown:
        logger.warning("Ignoring unknown prompt templates: %s", ", ".join(sorted(unknown)))
    prompts = PromptsConfig(**{k: str(v) for k, v in prompts_raw.items() if k in known})

    providers: dict[str, ProviderConfig] = {}
    available_providers: set[str] = set()

    for provider_name, provider_raw in raw["providers"].items():
        model = provider_raw["model"]
        override_env = _MODEL_OVERRIDE_ENV.get(provider_name)
        if override_env and os.environ.get(override_env, "").strip():
            model = os.environ[override_env].strip()
            logger.info("Model for %s overridden by %s: %s", provider_name, override_env, model)

        api_key = os.environ.get(provider_raw["api_key_env"], "").strip() or None
        providers[provider_name] = ProviderConfig(
            name=provider_name,
            model=model,
            api_key_env=provider_raw["api_key_env"],
            api_key=api_key,
        )

        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.warning(
                "Provider disabled (no API key): %s; set %s in .env",
                provider_name,
                provider_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        providers=providers,
        prompts=prompts,
        available_providers=available_providers,
    )
