"""Mock LLM provider for testing and development."""

import asyncio
import json
import random
import re
from typing import Dict, List, Any, Optional

from .base import (
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMUsage,
    LLMServiceError,
    ModelSpec,
)

EXTRACTION_MARKER = "Parse these tasks:"
SUMMARY_MARKER = "Today I have"

# Keyword hints used to fake model judgement, checked in order
CATEGORY_HINTS = [
    ("school", ("exam", "test", "homework", "class", "essay", "quiz")),
    ("work", ("meeting", "report", "email", "client", "deploy")),
    ("health", ("doctor", "dentist", "gym", "run", "pharmacy")),
    ("shopping", ("buy", "groceries", "order", "pick up")),
    ("personal", ("call", "mom", "dad", "birthday", "laundry")),
]
HIGH_PRIORITY_HINTS = ("exam", "test", "deadline", "urgent", "asap")

_DATE_HINT = re.compile(
    r"\b(today|tomorrow|next week|monday|tuesday|wednesday|thursday|friday|saturday|sunday"
    r"|(?:january|february|march|april|may|june|july|august|september|october|november|december)\s+\d{1,2}(?:,\s*\d{4})?)\b",
    re.IGNORECASE,
)
_TIME_HINT = re.compile(r"\b(\d{1,2}(?::\d{2})?\s*(?:am|pm))\b", re.IGNORECASE)
_TASK_SEPARATOR = re.compile(r"\s*(?:,\s*and\s+|\band then\b|;|\band\b)\s*", re.IGNORECASE)
_SUMMARY_COUNT = re.compile(r"Today I have (\d+) task")
_SUMMARY_TASK = re.compile(r"^- (.+) \(priority: \w+\)$", re.MULTILINE)


class MockProvider(LLMProvider):
    """Offline provider that answers extraction prompts with task JSON.

    Daily summary prompts get a one-line recap naming the first listed task.
    """

    name = "mock"

    MODELS = {
        "mock-task-parser": ModelSpec(
            model_id="mock-task-parser",
            max_tokens=4000,
            input_cost_per_1k=0.001,
            output_cost_per_1k=0.001,
        ),
    }

    def __init__(
        self,
        delay: float = 0.0,
        fail_rate: float = 0.0,
        fenced: bool = True,
        canned_reply: Optional[str] = None
    ):
        """Initialize mock provider.

        Args:
            delay: Artificial delay to simulate API latency
            fail_rate: Rate of random failures (0.0 to 1.0)
            fenced: Wrap JSON replies in a ```json fence like chat models often do
            canned_reply: Fixed reply returned for every request
        """
        self.delay = delay
        self.fail_rate = fail_rate
        self.fenced = fenced
        self.canned_reply = canned_reply
        self.request_count = 0

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.validate_request(request)
        self.request_count += 1

        if self.delay > 0:
            await asyncio.sleep(self.delay)

        if self.fail_rate > 0 and random.random() < self.fail_rate:
            raise LLMServiceError("Mock provider random failure")

        content = self.canned_reply if self.canned_reply is not None else self._generate_response_content(request)

        input_tokens = sum(len(msg.content.split()) for msg in request.messages)
        return LLMResponse(
            content=content,
            model=request.model,
            usage=LLMUsage(prompt_tokens=input_tokens, completion_tokens=len(content.split())),
            finish_reason="stop",
            request_id=f"mock-{self.request_count:06d}",
        )

    def _generate_response_content(self, request: LLMRequest) -> str:
        message = request.last_user_message() or ""
        if EXTRACTION_MARKER not in message:
            if SUMMARY_MARKER in message:
                return self._mock_summary(message)
            return "I can only help with turning requests into tasks."

        text = message.split(EXTRACTION_MARKER, 1)[1].strip()
        reply = json.dumps({"tasks": [self._mock_task(part) for part in self._split_tasks(text)]})
        return f"```json\n{reply}\n```" if self.fenced else reply

    def _split_tasks(self, text: str) -> List[str]:
        parts = [part.strip(" .") for part in _TASK_SEPARATOR.split(text)]
        return [part for part in parts if part] or [text]

    def _mock_task(self, text: str) -> Dict[str, Any]:
        lowered = text.lower()
        date_match = _DATE_HINT.search(text)
        time_match = _TIME_HINT.search(text)

        title = text
        for match in (date_match, time_match):
            if match:
                title = title.replace(match.group(0), "")
        title = re.sub(r"\b(?:on|at|by)\b\s*(?=$|\s)", "", title)
        title = " ".join(title.split()) or text

        category = "other"
        for name, hints in CATEGORY_HINTS:
            if any(hint in lowered for hint in hints):
                category = name
                break

        return {
            "title": title[:1].upper() + title[1:],
            "dueDate": date_match.group(0) if date_match else None,
            "dueTime": time_match.group(0).upper() if time_match else None,
            "priority": "high" if any(hint in lowered for hint in HIGH_PRIORITY_HINTS) else "medium",
            "category": category,
            "notes": None,
        }

    def _mock_summary(self, message: str) -> str:
        count = _SUMMARY_COUNT.search(message)
        titles = _SUMMARY_TASK.findall(message)
        if not titles:
            return "Nothing is due today. Enjoy the breathing room!"
        return f"You have {count.group(1) if count else len(titles)} task(s) today. Start with {titles[0]}. You've got this!"
