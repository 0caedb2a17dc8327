"""LLM provider implementations."""

from .base import LLMProvider, LLMRequest, LLMResponse, ModelSpec
from .bedrock import BedrockProvider
from .mock import MockProvider

__all__ = [
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "ModelSpec",
    "BedrockProvider",
    "MockProvider",
]
