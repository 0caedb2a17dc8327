"""Extraction requests against the configured LLM provider."""

import os
import json
import asyncio
import logging
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .providers.base import LLMProvider, LLMRequest, LLMResponse, LLMError
from .providers.bedrock import BedrockProvider
from .providers.mock import MockProvider
from .prompts import PromptTemplates
from ..state.models import TaskItem

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "taskteller" / "llm.json"

# LLMConfig field -> environment variable that overrides it
ENV_OVERRIDES = {
    "provider": "TASKTELLER_LLM_PROVIDER",
    "model": "TASKTELLER_LLM_MODEL",
    "aws_profile": "TASKTELLER_AWS_PROFILE",
    "aws_region": "TASKTELLER_AWS_REGION",
}


@dataclass
class LLMConfig:
    """Provider choice, sampling settings and the daily spend ceiling."""
    provider: str = "bedrock"
    model: str = "claude-3-5-haiku"
    max_tokens: int = 500
    temperature: float = 0.3
    aws_profile: Optional[str] = None
    aws_region: str = "us-east-1"
    cost_limit_daily: float = 5.0  # USD
    max_retries: int = 2
    retry_base_delay: float = 0.5  # seconds, doubled per attempt
    mock_delay: float = 0.0
    mock_fail_rate: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LLMConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "LLMConfig":
        """Read ``llm.json`` if present, then apply environment overrides."""
        config_path = config_path or DEFAULT_CONFIG_PATH
        data: Dict[str, Any] = {}

        if config_path.exists():
            try:
                data = json.loads(config_path.read_text())
                logger.info(f"Loaded LLM config from {config_path}")
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Ignoring unreadable LLM config {config_path}: {e}")

        for key, env_name in ENV_OVERRIDES.items():
            if env_name in os.environ:
                data[key] = os.environ[env_name]

        return cls.from_dict(data)

    def save(self, config_path: Optional[Path] = None) -> Path:
        config_path = config_path or DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(self.to_dict(), indent=2))
        return config_path


def build_provider(config: LLMConfig) -> LLMProvider:
    """Instantiate the provider named by ``config.provider``.

    Raises:
        LLMError: Unknown provider name, or the provider could not start
    """
    if config.provider == "bedrock":
        return BedrockProvider(region=config.aws_region, aws_profile=config.aws_profile)
    if config.provider == "mock":
        return MockProvider(delay=config.mock_delay, fail_rate=config.mock_fail_rate)
    raise LLMError(f"Unsupported provider: {config.provider}")


class LLMService:
    """Sends extraction prompts to one provider and keeps a running cost total."""

    def __init__(self, config: Optional[LLMConfig] = None, provider: Optional[LLMProvider] = None):
        """
        Args:
            config: Settings; read from ``llm.json`` and the environment when omitted
            provider: Ready-made provider, skipping ``build_provider``
        """
        self.config = config or LLMConfig.load()
        self.provider = provider or build_provider(self.config)
        self.config.provider = self.provider.name
        self.request_count = 0
        self.daily_cost = 0.0

        # The mock serves a single model whatever the config names
        if isinstance(self.provider, MockProvider) and self.config.model not in self.provider.MODELS:
            self.config.model = self.provider.list_available_models()[0]

        logger.info(f"LLM service using {self.provider.name}/{self.config.model}")

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """Run one single-turn completion within the daily budget.

        Raises:
            LLMError: Budget exhausted, unknown model, invalid request or provider failure
        """
        request = LLMRequest.for_prompt(
            prompt,
            model or self.config.model,
            max_tokens=max_tokens or self.config.max_tokens,
            temperature=self.config.temperature if temperature is None else temperature,
            system_prompt=system_prompt,
        )

        estimate = self.provider.estimate_cost(request)
        if self.daily_cost + estimate > self.config.cost_limit_daily:
            raise LLMError(
                f"Daily cost limit of ${self.config.cost_limit_daily:.2f} would be exceeded "
                f"(spent ${self.daily_cost:.4f}, request up to ${estimate:.4f})"
            )

        response = await self._generate_with_retry(request)

        cost = self.provider.actual_cost(response)
        self.daily_cost += estimate if cost is None else cost
        self.request_count += 1
        logger.info(f"LLM request #{self.request_count} done, ${self.daily_cost:.4f} spent today")
        return response

    async def _generate_with_retry(self, request: LLMRequest) -> LLMResponse:
        """Send ``request``, retrying retryable failures with exponential backoff."""
        attempt = 0
        while True:
            try:
                return await self.provider.generate(request)
            except ValueError as e:
                raise LLMError(str(e)) from e
            except LLMError as e:
                if not e.retryable or attempt >= self.config.max_retries:
                    logger.error(f"{self.provider.name} request failed: {e}")
                    raise
                delay = self.config.retry_base_delay * (2 ** attempt)
                attempt += 1
                logger.warning(
                    f"{self.provider.name} request failed ({e}); "
                    f"retry {attempt}/{self.config.max_retries} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

    async def request_task_extraction(self, text: str, now: datetime) -> str:
        """Ask the model to break ``text`` into tasks.

        The reply is returned untouched; decoding it is the pipeline's job.

        Args:
            text: The user's spoken or typed request
            now: Reference instant quoted in the prompt

        Returns:
            Raw reply text

        Raises:
            LLMError: The request could not be completed
        """
        response = await self.generate(
            prompt=PromptTemplates.task_extraction_user_prompt(text),
            system_prompt=PromptTemplates.task_extraction_system_prompt(now),
        )
        logger.debug(f"Extraction reply: {response.content}")
        return response.content

    async def generate_daily_summary(
        self,
        tasks: Sequence[TaskItem],
        now: datetime,
        overdue_count: int = 0,
    ) -> str:
        """Short encouraging summary of today's open tasks.

        The most urgent tasks are listed first; the prompt names at most five.

        Raises:
            LLMError: The request could not be completed
        """
        ranked = sorted(
            (task for task in tasks if not task.is_completed),
            key=lambda t: -t.priority.rank,
        )
        response = await self.generate(
            prompt=PromptTemplates.daily_summary_user_prompt(ranked, now, overdue_count),
            system_prompt=PromptTemplates.daily_summary_system_prompt(),
            max_tokens=200,
            temperature=0.7,
        )
        return response.content.strip()

    def get_status(self) -> Dict[str, Any]:
        return {
            "provider": self.provider.name,
            "model": self.config.model,
            "request_count": self.request_count,
            "daily_cost": self.daily_cost,
            "cost_limit": self.config.cost_limit_daily,
            "available_models": self.provider.list_available_models(),
        }

    def save_config(self, config_path: Optional[Path] = None) -> Path:
        """Persist the active settings (default ``~/.config/taskteller/llm.json``)."""
        return self.config.save(config_path)
