"""Tests for LLM service and providers."""

import json
from datetime import datetime
from unittest.mock import AsyncMock, patch, MagicMock

import pytest
from botocore.exceptions import ClientError

from taskteller.core.teller_core.llm.service import LLMService, LLMConfig
from taskteller.core.teller_core.llm.providers.base import (
    LLMRequest,
    LLMResponse,
    LLMMessage,
    LLMRole,
    LLMUsage,
    LLMError,
    LLMRateLimitError,
    LLMAuthenticationError,
    LLMServiceError,
    ModelSpec,
    UnknownModelError,
)
from taskteller.core.teller_core.llm.providers.mock import MockProvider
from taskteller.core.teller_core.llm.providers.bedrock import (
    BedrockProvider,
    build_messages_body,
    parse_messages_reply,
)
from taskteller.core.teller_core.llm.prompts import PromptTemplates
from taskteller.core.teller_core.parsing import TaskCategory, TaskPriority, extract_tasks
from taskteller.core.teller_core.state import TaskItem

# Monday, January 5, 2026
NOW = datetime(2026, 1, 5, 9, 30)


class TestProviderModels:
    """Test provider-neutral request and response types."""

    def test_last_user_message(self):
        """Test the most recent user message is found."""
        request = LLMRequest(
            messages=[
                LLMMessage(role=LLMRole.USER, content="first"),
                LLMMessage(role=LLMRole.ASSISTANT, content="reply"),
                LLMMessage(role=LLMRole.USER, content="second"),
            ],
            model="mock-task-parser",
        )
        assert request.last_user_message() == "second"

    def test_usage_total(self):
        """Test total tokens is derived from prompt and completion."""
        assert LLMUsage(prompt_tokens=10, completion_tokens=20).total_tokens == 30


class TestPromptTemplates:
    """Test extraction prompts."""

    def test_system_prompt_anchors_dates(self):
        """Test today and tomorrow are spelled out for the model."""
        prompt = PromptTemplates.task_extraction_system_prompt(NOW)
        assert "Monday, January 05, 2026" in prompt
        assert "Tuesday, January 06, 2026" in prompt

    def test_system_prompt_lists_enum_values(self):
        """Test allowed priorities and categories are listed."""
        prompt = PromptTemplates.task_extraction_system_prompt(NOW)
        for value in [p.value for p in TaskPriority] + [c.value for c in TaskCategory]:
            assert f'"{value}"' in prompt
        assert '"tasks"' in prompt

    def test_user_prompt(self):
        """Test the user prompt carries the trimmed request."""
        assert PromptTemplates.task_extraction_user_prompt("  buy milk ") == "Parse these tasks: buy milk"


class TestMockProvider:
    """Test the offline provider."""

    def setup_method(self):
        """Set up test fixtures."""
        self.provider = MockProvider()

    def _request(self, content: str) -> LLMRequest:
        return LLMRequest(
            messages=[LLMMessage(role=LLMRole.USER, content=content)],
            model="mock-task-parser",
            max_tokens=500,
        )

    @pytest.mark.asyncio
    async def test_extraction_reply_is_fenced_json(self):
        """Test extraction prompts get a fenced tasks object."""
        response = await self.provider.generate(self._request("Parse these tasks: buy milk tomorrow"))

        assert response.content.startswith("```json\n")
        assert response.content.endswith("\n```")
        assert response.usage.total_tokens > 0
        assert response.request_id == "mock-000001"

    @pytest.mark.asyncio
    async def test_unfenced_reply(self):
        """Test fencing can be switched off."""
        provider = MockProvider(fenced=False)
        response = await provider.generate(self._request("Parse these tasks: buy milk"))
        assert json.loads(response.content)["tasks"][0]["category"] == "shopping"

    @pytest.mark.asyncio
    async def test_splits_and_tags_tasks(self):
        """Test conjunctions split tasks and hints set category and priority."""
        provider = MockProvider(fenced=False)
        response = await provider.generate(
            self._request("Parse these tasks: math exam tomorrow at 4 PM and english essay friday at 6 PM")
        )
        tasks = json.loads(response.content)["tasks"]

        assert [t["title"] for t in tasks] == ["Math exam", "English essay"]
        assert tasks[0]["dueDate"] == "tomorrow"
        assert tasks[0]["dueTime"] == "4 PM"
        assert tasks[0]["priority"] == "high"
        assert tasks[1]["dueDate"] == "friday"
        assert tasks[1]["priority"] == "medium"
        assert all(t["category"] == "school" for t in tasks)

    @pytest.mark.asyncio
    async def test_non_extraction_prompt_gets_prose(self):
        """Test prompts without the extraction marker get a prose refusal."""
        response = await self.provider.generate(self._request("tell me a joke"))
        assert "only help" in response.content

    @pytest.mark.asyncio
    async def test_canned_reply(self):
        """Test a canned reply is returned verbatim."""
        provider = MockProvider(canned_reply="Sorry, I cannot help with that.")
        response = await provider.generate(self._request("Parse these tasks: anything"))
        assert response.content == "Sorry, I cannot help with that."

    @pytest.mark.asyncio
    async def test_failure_injection(self):
        """Test fail_rate=1 always raises a service error."""
        provider = MockProvider(fail_rate=1.0)
        with pytest.raises(LLMServiceError):
            await provider.generate(self._request("Parse these tasks: x"))

    @pytest.mark.asyncio
    async def test_request_validation(self):
        """Test an empty request is rejected."""
        with pytest.raises(ValueError):
            await self.provider.generate(LLMRequest(messages=[], model="mock-task-parser"))


class TestBedrockProvider:
    """Test Bedrock provider with a mocked boto3 client."""

    def setup_method(self):
        """Set up a provider whose boto3 session is mocked."""
        self.session_patcher = patch("boto3.Session")
        mock_session_cls = self.session_patcher.start()
        self.client = MagicMock()
        mock_session_cls.return_value.client.return_value = self.client
        self.provider = BedrockProvider(region="us-west-2")

    def teardown_method(self):
        self.session_patcher.stop()

    def _request(self) -> LLMRequest:
        return LLMRequest(
            messages=[LLMMessage(role=LLMRole.USER, content="Parse these tasks: buy milk")],
            model="claude-3-5-haiku",
            max_tokens=500,
            temperature=0.3,
            system_prompt="You are a task parser.",
        )

    def test_messages_body(self):
        """Test the Anthropic messages body is built from the request."""
        body = build_messages_body(self._request(), BedrockProvider.MODELS["claude-3-5-haiku"])

        assert body["anthropic_version"] == "bedrock-2023-05-31"
        assert body["system"] == "You are a task parser."
        assert body["messages"] == [{"role": "user", "content": "Parse these tasks: buy milk"}]
        assert body["max_tokens"] == 500
        assert body["temperature"] == 0.3

    def test_messages_body_caps_max_tokens(self):
        """Test max_tokens never exceeds the model's limit."""
        request = self._request()
        request.max_tokens = 100_000
        body = build_messages_body(request, BedrockProvider.MODELS["claude-3-haiku"])
        assert body["max_tokens"] == 4096

    def test_parse_reply(self):
        """Test text blocks and usage are read from the reply."""
        response = parse_messages_reply(
            {
                "content": [
                    {"type": "text", "text": '{"tasks": '},
                    {"type": "tool_use", "id": "ignored"},
                    {"type": "text", "text": "[]}\n"},
                ],
                "usage": {"input_tokens": 120, "output_tokens": 15},
                "stop_reason": "end_turn",
            },
            "claude-3-5-haiku",
            request_id="req-123",
        )

        assert response.content == '{"tasks": []}'
        assert response.usage.prompt_tokens == 120
        assert response.usage.completion_tokens == 15
        assert response.finish_reason == "end_turn"
        assert response.request_id == "req-123"

    @pytest.mark.asyncio
    async def test_generate(self):
        """Test a full invoke round trip through the mocked client."""
        body = MagicMock()
        body.read.return_value = json.dumps({
            "content": [{"type": "text", "text": "hello"}],
            "usage": {"input_tokens": 5, "output_tokens": 1},
        }).encode()
        self.client.invoke_model.return_value = {"body": body, "ResponseMetadata": {"RequestId": "req-9"}}

        response = await self.provider.generate(self._request())

        assert response.content == "hello"
        assert response.request_id == "req-9"
        kwargs = self.client.invoke_model.call_args.kwargs
        assert kwargs["modelId"] == BedrockProvider.MODELS["claude-3-5-haiku"].model_id
        assert json.loads(kwargs["body"])["system"] == "You are a task parser."

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,error_class", [
        ("ThrottlingException", LLMRateLimitError),
        ("AccessDeniedException", LLMAuthenticationError),
        ("ServiceUnavailableException", LLMServiceError),
        ("ValidationException", LLMError),
    ])
    async def test_client_errors_are_mapped(self, code, error_class):
        """Test Bedrock error codes map onto the error hierarchy."""
        self.client.invoke_model.side_effect = ClientError(
            {"Error": {"Code": code, "Message": "nope"}}, "InvokeModel"
        )
        with pytest.raises(error_class) as exc_info:
            await self.provider.generate(self._request())
        assert code in str(exc_info.value)

    def test_retryable_errors(self):
        """Test throttling and outages are marked retryable."""
        assert LLMRateLimitError.retryable
        assert LLMServiceError.retryable
        assert not LLMAuthenticationError.retryable

    def test_unknown_model(self):
        """Test unknown model names are rejected."""
        with pytest.raises(UnknownModelError):
            self.provider.model_spec("gpt-9")

    def test_cost_estimates(self):
        """Test estimates assume the full max_tokens and actual cost uses usage."""
        spec = ModelSpec(model_id="x", max_tokens=1000, input_cost_per_1k=1.0, output_cost_per_1k=2.0)
        assert spec.cost(500, 250) == pytest.approx(1.0)

        request = self._request()
        haiku = BedrockProvider.MODELS["claude-3-5-haiku"]
        expected = haiku.cost(request.approximate_input_tokens(), 500)
        assert self.provider.estimate_cost(request) == pytest.approx(expected)

        response = parse_messages_reply({"usage": {"input_tokens": 1000, "output_tokens": 1000}}, "claude-3-5-haiku")
        assert self.provider.actual_cost(response) == pytest.approx(0.0048)
        assert self.provider.actual_cost(parse_messages_reply({}, "claude-3-5-haiku")) is None


class TestLLMService:
    """Test service orchestration."""

    def test_mock_provider_selection(self):
        """Test the mock provider switches to its own model."""
        service = LLMService(config=LLMConfig(provider="mock"))

        assert isinstance(service.provider, MockProvider)
        assert service.config.model == "mock-task-parser"

    def test_unsupported_provider(self):
        """Test unknown provider names raise LLMError."""
        with pytest.raises(LLMError):
            LLMService(config=LLMConfig(provider="carrier-pigeon"))

    @pytest.mark.asyncio
    async def test_extraction_reply_feeds_pipeline(self):
        """Test a mock extraction reply decodes into resolved tasks."""
        service = LLMService(config=LLMConfig(provider="mock"))
        text = "math exam tomorrow at 4 PM and english essay friday at 6 PM"

        reply = await service.request_task_extraction(text, NOW)
        result = extract_tasks(reply, text, now=NOW)

        assert result.strategy == "multi_task"
        assert [t.due_date for t in result.tasks] == [
            datetime(2026, 1, 6, 16, 0),
            datetime(2026, 1, 9, 18, 0),
        ]
        assert service.request_count == 1
        assert service.daily_cost > 0

    @pytest.mark.asyncio
    async def test_cost_limit(self):
        """Test requests are refused once the daily limit is reached."""
        service = LLMService(config=LLMConfig(provider="mock", cost_limit_daily=0.0))
        with pytest.raises(LLMError, match="cost limit"):
            await service.request_task_extraction("buy milk", NOW)

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self):
        """Test provider failures surface as LLMError."""
        provider = MockProvider(fail_rate=1.0)
        service = LLMService(config=LLMConfig(retry_base_delay=0.0), provider=provider)
        with pytest.raises(LLMError):
            await service.request_task_extraction("buy milk", NOW)
        assert service.request_count == 0
        assert provider.request_count == 3

    @pytest.mark.asyncio
    async def test_unknown_model_becomes_llm_error(self):
        """Test models missing from the catalogue surface as LLMError."""
        with patch("boto3.Session"):
            provider = BedrockProvider()
        service = LLMService(config=LLMConfig(model="gpt-9"), provider=provider)

        with pytest.raises(LLMError, match="Unknown model"):
            await service.request_task_extraction("buy milk", NOW)

    def test_status_and_save_config(self, tmp_path):
        """Test status reporting and config persistence."""
        service = LLMService(config=LLMConfig(provider="mock"))
        status = service.get_status()
        assert status["provider"] == "mock"
        assert status["available_models"] == ["mock-task-parser"]

        config_path = tmp_path / "llm.json"
        service.save_config(config_path)
        saved = json.loads(config_path.read_text())
        assert saved["provider"] == "mock"
        assert LLMConfig.from_dict(saved).model == "mock-task-parser"

    @pytest.mark.asyncio
    async def test_invalid_request_becomes_llm_error(self):
        """Test request validation failures surface as LLMError."""
        service = LLMService(config=LLMConfig(provider="mock"))
        with pytest.raises(LLMError, match="Invalid request"):
            await service.generate("   ")

    def test_config_file_then_environment(self, tmp_path, monkeypatch):
        """Test llm.json values are overridden by TASKTELLER_* variables."""
        config_path = tmp_path / "llm.json"
        config_path.write_text(json.dumps({"provider": "bedrock", "model": "claude-3-haiku", "cost_limit_daily": 1.5}))
        monkeypatch.setenv("TASKTELLER_LLM_PROVIDER", "mock")
        monkeypatch.delenv("TASKTELLER_LLM_MODEL", raising=False)

        config = LLMConfig.load(config_path)

        assert config.provider == "mock"
        assert config.model == "claude-3-haiku"
        assert config.cost_limit_daily == 1.5


def _task_item(title: str, priority: str = "medium", **fields) -> TaskItem:
    return TaskItem(
        task_id=f"task-{title.lower().replace(' ', '-')}",
        owner_id="alice",
        title=title,
        priority=priority,
        created_at=NOW,
        **fields,
    )


class TestServiceRetries:
    """Test retry handling for transient provider failures."""

    def _reply(self) -> LLMResponse:
        return LLMResponse(content='{"tasks": []}', model="mock-task-parser")

    @pytest.mark.asyncio
    async def test_retryable_error_is_retried(self):
        """Test a throttled request succeeds on a later attempt."""
        provider = MockProvider()
        service = LLMService(config=LLMConfig(retry_base_delay=0.0), provider=provider)

        with patch.object(
            provider, "generate", AsyncMock(side_effect=[LLMRateLimitError("slow down"), self._reply()])
        ) as generate:
            response = await service.generate("Parse these tasks: buy milk")

        assert response.content == '{"tasks": []}'
        assert generate.await_count == 2
        assert service.request_count == 1

    @pytest.mark.asyncio
    async def test_non_retryable_error_is_not_retried(self):
        """Test credential failures fail on the first attempt."""
        provider = MockProvider()
        service = LLMService(config=LLMConfig(retry_base_delay=0.0), provider=provider)

        with patch.object(
            provider, "generate", AsyncMock(side_effect=LLMAuthenticationError("bad keys"))
        ) as generate:
            with pytest.raises(LLMAuthenticationError):
                await service.generate("Parse these tasks: buy milk")

        assert generate.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_are_bounded(self):
        """Test max_retries limits the number of attempts."""
        provider = MockProvider()
        service = LLMService(config=LLMConfig(max_retries=0, retry_base_delay=0.0), provider=provider)

        with patch.object(provider, "generate", AsyncMock(side_effect=LLMServiceError("down"))) as generate:
            with pytest.raises(LLMServiceError):
                await service.generate("Parse these tasks: buy milk")

        assert generate.await_count == 1


class TestDailySummaryPrompts:
    """Test daily summary prompts."""

    def test_user_prompt_lists_tasks_with_priority(self):
        """Test each task is listed with its priority."""
        tasks = [_task_item("Math exam", "high"), _task_item("Buy milk", "low")]
        prompt = PromptTemplates.daily_summary_user_prompt(tasks, NOW, overdue_count=1)

        assert "Today is Monday, January 05, 2026." in prompt
        assert "Today I have 2 task(s) and 1 overdue task(s)." in prompt
        assert "- Math exam (priority: High)" in prompt
        assert "- Buy milk (priority: Low)" in prompt

    def test_user_prompt_names_at_most_five_tasks(self):
        """Test the count covers every task but only five are listed."""
        tasks = [_task_item(f"Task {i}") for i in range(7)]
        prompt = PromptTemplates.daily_summary_user_prompt(tasks, NOW)

        assert "Today I have 7 task(s)" in prompt
        assert prompt.count("\n- ") == 5
        assert "Task 5" not in prompt

    def test_user_prompt_without_tasks(self):
        """Test an empty day is described as such."""
        prompt = PromptTemplates.daily_summary_user_prompt([], NOW)
        assert "Today I have 0 task(s)" in prompt
        assert "No specific tasks yet." in prompt

    def test_system_prompt_asks_for_brevity(self):
        """Test the system prompt limits the summary length."""
        assert "2-3 sentences" in PromptTemplates.daily_summary_system_prompt()


class TestDailySummaryService:
    """Test daily summary generation through the service."""

    @pytest.mark.asyncio
    async def test_mock_summary_starts_with_most_urgent_task(self):
        """Test high-priority tasks are listed first."""
        service = LLMService(config=LLMConfig(provider="mock"))
        tasks = [_task_item("Buy milk", "low"), _task_item("Math exam", "high"), _task_item("Call mom")]

        summary = await service.generate_daily_summary(tasks, NOW)

        assert summary == "You have 3 task(s) today. Start with Math exam. You've got this!"
        assert service.request_count == 1

    @pytest.mark.asyncio
    async def test_completed_tasks_are_left_out(self):
        """Test only open tasks reach the prompt."""
        provider = MockProvider()
        service = LLMService(config=LLMConfig(provider="mock"), provider=provider)
        tasks = [_task_item("Math exam", "high", completed_at=NOW), _task_item("Call mom")]

        with patch.object(provider, "generate", AsyncMock(return_value=LLMResponse(content=" Busy day! ", model="mock-task-parser"))) as generate:
            summary = await service.generate_daily_summary(tasks, NOW)

        request = generate.await_args.args[0]
        assert summary == "Busy day!"
        assert "Math exam" not in request.last_user_message()
        assert "Today I have 1 task(s)" in request.last_user_message()
        assert request.temperature == 0.7

    @pytest.mark.asyncio
    async def test_empty_day(self):
        """Test a day without tasks still gets a reply."""
        service = LLMService(config=LLMConfig(provider="mock"))
        assert await service.generate_daily_summary([], NOW) == "Nothing is due today. Enjoy the breathing room!"
