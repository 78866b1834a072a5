"""
Selectable chat models.

Aliases are what clients send as selectedModel; each maps to a LiteLLM model
string. Provider API keys are picked up by LiteLLM from the environment
(OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY, GROQ_API_KEY, XAI_API_KEY).
"""

from dataclasses import dataclass
from typing import Any

from toolchat.domain.exceptions import UnknownModelError


@dataclass(frozen=True)
class ModelSpec:
    alias: str
    litellm_model: str
    provider: str
    name: str
    description: str
    api_version: str
    capabilities: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.alias,
            "provider": self.provider,
            "name": self.name,
            "description": self.description,
            "apiVersion": self.api_version,
            "capabilities": list(self.capabilities),
        }


MODEL_CATALOG: dict[str, ModelSpec] = {
    spec.alias: spec
    for spec in (
        # OpenAI
        ModelSpec(
            "gpt-4", "openai/gpt-4", "OpenAI", "GPT-4",
            "Most capable GPT-4 model for complex tasks requiring advanced reasoning.",
            "gpt-4", ("Reasoning", "Creative", "Analysis"),
        ),
        ModelSpec(
            "gpt-4-turbo", "openai/gpt-4-turbo", "OpenAI", "GPT-4 Turbo",
            "Faster and more efficient version of GPT-4 with extended context.",
            "gpt-4-turbo", ("Reasoning", "Efficient", "Extended Context"),
        ),
        ModelSpec(
            "gpt-4o", "openai/gpt-4o", "OpenAI", "GPT-4o",
            "Latest GPT-4 Omni model with multimodal capabilities.",
            "gpt-4o", ("Multimodal", "Reasoning", "Latest"),
        ),
        ModelSpec(
            "gpt-4o-mini", "openai/gpt-4o-mini", "OpenAI", "GPT-4o Mini",
            "Smaller, faster version of GPT-4o with good performance.",
            "gpt-4o-mini", ("Efficient", "Fast", "Cost-Effective"),
        ),
        # Anthropic
        ModelSpec(
            "claude-3-5-sonnet", "anthropic/claude-3-5-sonnet-20241022", "Anthropic",
            "Claude 3.5 Sonnet",
            "Most intelligent Claude model with excellent reasoning and coding capabilities.",
            "claude-3-5-sonnet-20241022", ("Reasoning", "Coding", "Analysis"),
        ),
        ModelSpec(
            "claude-3-5-haiku", "anthropic/claude-3-5-haiku-20241022", "Anthropic",
            "Claude 3.5 Haiku", "Fast and efficient Claude model for quick tasks.",
            "claude-3-5-haiku-20241022", ("Fast", "Efficient", "Balanced"),
        ),
        ModelSpec(
            "claude-3-opus", "anthropic/claude-3-opus-20240229", "Anthropic", "Claude 3 Opus",
            "Most powerful Claude 3 model for complex reasoning tasks.",
            "claude-3-opus-20240229", ("Reasoning", "Creative", "Complex Tasks"),
        ),
        # Google
        ModelSpec(
            "gemini-1.5-pro", "gemini/gemini-1.5-pro", "Google", "Gemini 1.5 Pro",
            "Google's most capable model with large context window.",
            "gemini-1.5-pro", ("Large Context", "Multimodal", "Reasoning"),
        ),
        ModelSpec(
            "gemini-1.5-flash", "gemini/gemini-1.5-flash", "Google", "Gemini 1.5 Flash",
            "Fast and efficient Gemini model for quick responses.",
            "gemini-1.5-flash", ("Fast", "Efficient", "Multimodal"),
        ),
        # Groq
        ModelSpec(
            "qwen3-32b", "groq/qwen/qwen3-32b", "Groq", "Qwen 3 32B",
            "Latest version of Alibaba's Qwen 32B with strong reasoning and coding capabilities.",
            "qwen3-32b", ("Reasoning", "Efficient", "Agentic"),
        ),
        ModelSpec(
            "kimi-k2", "groq/moonshotai/kimi-k2-instruct", "Groq", "Kimi K2",
            "Latest version of Moonshot AI's Kimi K2 with good balance of capabilities.",
            "kimi-k2-instruct", ("Balanced", "Efficient", "Agentic"),
        ),
        ModelSpec(
            "llama4", "groq/meta-llama/llama-4-scout-17b-16e-instruct", "Groq", "Llama 4",
            "Latest version of Meta's Llama 4 with good balance of capabilities.",
            "llama-4-scout-17b-16e-instruct", ("Balanced", "Efficient", "Agentic"),
        ),
        # xAI
        ModelSpec(
            "grok-3-mini", "xai/grok-3-mini-latest", "XAI", "Grok 3 Mini",
            "Latest version of XAI's Grok 3 Mini with strong reasoning and coding capabilities.",
            "grok-3-mini-latest", ("Reasoning", "Efficient", "Agentic"),
        ),
    )
}


def get_model(alias: str) -> ModelSpec:
    """
    Look up a model alias.

    Raises:
        UnknownModelError: If the alias is not in the catalog.
    """
    spec = MODEL_CATALOG.get(alias)
    if spec is None:
        raise UnknownModelError(alias)
    return spec


def list_models() -> list[ModelSpec]:
    return list(MODEL_CATALOG.values())
