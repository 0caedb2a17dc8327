"""LLM integration module for TaskTeller."""

from .service import LLMService, LLMConfig, build_provider
from .prompts import PromptTemplates
from .providers.base import LLMProvider, LLMRequest, LLMResponse, LLMError, ModelSpec, UnknownModelError

__all__ = [
    "LLMService",
    "LLMConfig",
    "build_provider",
    "PromptTemplates",
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "LLMError",
    "ModelSpec",
    "UnknownModelError",
]
