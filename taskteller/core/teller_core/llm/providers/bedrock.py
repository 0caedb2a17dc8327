"""Anthropic models on AWS Bedrock via ``bedrock-runtime`` ``invoke_model``."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import (
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMRole,
    LLMUsage,
    LLMError,
    LLMRateLimitError,
    LLMAuthenticationError,
    LLMServiceError,
    ModelSpec,
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"

ERROR_CODES = {
    "ThrottlingException": LLMRateLimitError,
    "TooManyRequestsException": LLMRateLimitError,
    "AccessDeniedException": LLMAuthenticationError,
    "UnrecognizedClientException": LLMAuthenticationError,
    "ExpiredTokenException": LLMAuthenticationError,
    "ServiceUnavailableException": LLMServiceError,
    "InternalServerException": LLMServiceError,
    "ModelNotReadyException": LLMServiceError,
    "ModelTimeoutException": LLMServiceError,
}


def build_messages_body(request: LLMRequest, spec: ModelSpec) -> Dict[str, Any]:
    """Anthropic messages payload; SYSTEM messages fold into ``system``."""
    system_parts = [request.system_prompt] if request.system_prompt else []
    turns = []
    for msg in request.messages:
        if msg.role == LLMRole.SYSTEM:
            system_parts.append(msg.content)
        else:
            turns.append({"role": msg.role.value, "content": msg.content})

    body: Dict[str, Any] = {
        "anthropic_version": ANTHROPIC_VERSION,
        "max_tokens": min(request.max_tokens or spec.max_tokens, spec.max_tokens),
        "messages": turns,
    }
    if system_parts:
        body["system"] = "\n\n".join(system_parts)
    if request.temperature is not None:
        body["temperature"] = request.temperature
    return body


def translate_client_error(error: ClientError) -> LLMError:
    code = error.response.get("Error", {}).get("Code", "Unknown")
    error_class = ERROR_CODES.get(code, LLMError)
    return error_class(f"Bedrock rejected the request ({code}): {error}")


def parse_messages_reply(payload: Dict[str, Any], model: str, request_id: Optional[str] = None) -> LLMResponse:
    """Join the text blocks of a messages reply into one LLMResponse."""
    text = "".join(
        block.get("text", "")
        for block in payload.get("content", [])
        if block.get("type") == "text"
    )
    usage = payload.get("usage")
    return LLMResponse(
        content=text.strip(),
        model=model,
        usage=LLMUsage(
            prompt_tokens=usage.get("input_tokens", 0),
            completion_tokens=usage.get("output_tokens", 0),
        ) if usage else None,
        finish_reason=payload.get("stop_reason"),
        request_id=request_id,
    )


class BedrockProvider(LLMProvider):
    """Anthropic models served through AWS Bedrock."""

    name = "bedrock"

    MODELS = {
        "claude-3-5-haiku": ModelSpec(
            model_id="us.anthropic.claude-3-5-haiku-20241022-v1:0",
            max_tokens=8192,
            input_cost_per_1k=0.0008,
            output_cost_per_1k=0.004,
        ),
        "claude-3-5-sonnet": ModelSpec(
            model_id="anthropic.claude-3-5-sonnet-20240620-v1:0",
            max_tokens=8192,
            input_cost_per_1k=0.003,
            output_cost_per_1k=0.015,
        ),
        "claude-3-haiku": ModelSpec(
            model_id="anthropic.claude-3-haiku-20240307-v1:0",
            max_tokens=4096,
            input_cost_per_1k=0.00025,
            output_cost_per_1k=0.00125,
        ),
    }

    def __init__(self, region: str = "us-east-1", aws_profile: Optional[str] = None, **client_kwargs):
        """Create the ``bedrock-runtime`` client.

        Args:
            region: AWS region hosting the models
            aws_profile: Named profile from the shared AWS config, if any
            **client_kwargs: Passed through to ``session.client``

        Raises:
            LLMAuthenticationError: The session or client could not be created
        """
        self.region = region
        self.aws_profile = aws_profile

        try:
            session = boto3.Session(profile_name=aws_profile) if aws_profile else boto3.Session()
            self.client = session.client("bedrock-runtime", region_name=region, **client_kwargs)
        except (BotoCoreError, ClientError) as e:
            raise LLMAuthenticationError(f"Could not create Bedrock client: {e}") from e
        logger.info(f"Bedrock client ready in {region}")

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.validate_request(request)
        spec = self.model_spec(request.model)
        body = build_messages_body(request, spec)

        loop = asyncio.get_running_loop()
        try:
            payload, request_id = await loop.run_in_executor(None, self._invoke, spec.model_id, body)
        except ClientError as e:
            raise translate_client_error(e) from e
        except BotoCoreError as e:
            raise LLMServiceError(f"Bedrock call failed: {e}") from e

        return parse_messages_reply(payload, request.model, request_id)

    def _invoke(self, model_id: str, body: Dict[str, Any]):
        logger.debug(f"invoke_model {model_id}")
        raw = self.client.invoke_model(
            modelId=model_id,
            body=json.dumps(body),
            contentType="application/json",
            accept="application/json",
        )
        return json.loads(raw["body"].read()), raw.get("ResponseMetadata", {}).get("RequestId")
