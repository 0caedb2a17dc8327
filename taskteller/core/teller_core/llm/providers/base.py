"""Provider-neutral request/response types and the provider interface."""

from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


class LLMRole(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class LLMMessage:
    role: LLMRole
    content: str


@dataclass
class LLMRequest:
    """One completion request: conversation, target model and sampling limits."""
    messages: List[LLMMessage]
    model: str
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    system_prompt: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_prompt(cls, prompt: str, model: str, **options) -> "LLMRequest":
        """Single-turn request carrying ``prompt`` as the only user message."""
        return cls(messages=[LLMMessage(role=LLMRole.USER, content=prompt)], model=model, **options)

    def last_user_message(self) -> Optional[str]:
        for msg in reversed(self.messages):
            if msg.role == LLMRole.USER:
                return msg.content
        return None

    def approximate_input_tokens(self) -> float:
        """About four characters per token, system prompt included."""
        chars = sum(len(msg.content) for msg in self.messages) + len(self.system_prompt or "")
        return chars / 4


@dataclass
class LLMUsage:
    prompt_tokens: int
    completion_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class LLMResponse:
    """Reply text plus whatever accounting the provider reported."""
    content: str
    model: str
    usage: Optional[LLMUsage] = None
    finish_reason: Optional[str] = None
    request_id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ModelSpec:
    """Catalogue entry for one model a provider can serve."""
    model_id: str
    max_tokens: int
    input_cost_per_1k: float = 0.0
    output_cost_per_1k: float = 0.0

    def cost(self, input_tokens: float, output_tokens: float) -> float:
        """USD cost for the given token counts."""
        return (input_tokens / 1000) * self.input_cost_per_1k + (output_tokens / 1000) * self.output_cost_per_1k


class LLMError(Exception):
    """Base exception for LLM-related errors."""

    retryable = False


class LLMRateLimitError(LLMError):
    retryable = True


class LLMAuthenticationError(LLMError):
    """Missing or rejected credentials."""


class LLMServiceError(LLMError):
    """Provider-side outage or internal failure."""

    retryable = True


class UnknownModelError(LLMError):
    """The requested model is not in the provider's catalogue."""


class LLMProvider(ABC):
    """Interface every completion backend implements."""

    name: str = "base"
    MODELS: Dict[str, ModelSpec] = {}

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Send ``request`` and return the reply.

        Raises:
            LLMError: Transport, credential or provider failures
        """

    def model_spec(self, model_name: str) -> ModelSpec:
        """Look up ``model_name`` in the catalogue.

        Raises:
            UnknownModelError: The provider does not serve this model
        """
        try:
            return self.MODELS[model_name]
        except KeyError:
            raise UnknownModelError(f"Unknown model for {self.name}: {model_name}") from None

    def list_available_models(self) -> List[str]:
        return list(self.MODELS)

    def estimate_cost(self, request: LLMRequest) -> float:
        """Upper-bound USD cost, assuming the full ``max_tokens`` is generated."""
        spec = self.model_spec(request.model)
        return spec.cost(request.approximate_input_tokens(), request.max_tokens or spec.max_tokens)

    def actual_cost(self, response: LLMResponse) -> Optional[float]:
        """USD cost from reported usage, or None when the provider sent none."""
        if response.usage is None:
            return None
        return self.model_spec(response.model).cost(response.usage.prompt_tokens, response.usage.completion_tokens)

    def validate_request(self, request: LLMRequest) -> None:
        """Reject requests no provider could serve.

        Raises:
            ValueError: Listing every problem found
        """
        problems = []
        if not request.messages:
            problems.append("at least one message is required")
        if any(not msg.content.strip() for msg in request.messages):
            problems.append("message content cannot be empty")
        if not request.model:
            problems.append("a model is required")
        if request.max_tokens is not None and request.max_tokens <= 0:
            problems.append("max_tokens must be positive")
        if request.temperature is not None and not 0.0 <= request.temperature <= 1.0:
            problems.append("temperature must be between 0.0 and 1.0")

        if problems:
            raise ValueError("Invalid request: " + "; ".join(problems))
