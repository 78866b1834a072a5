"""
LLM adapter: model catalog and the LiteLLM-backed model capability.
"""

from toolchat.infrastructure.llm.litellm_capability import LiteLLMCapability, StreamConfig
from toolchat.infrastructure.llm.model_catalog import MODEL_CATALOG, ModelSpec, get_model, list_models

__all__ = ["LiteLLMCapability", "StreamConfig", "MODEL_CATALOG", "ModelSpec", "get_model", "list_models"]
