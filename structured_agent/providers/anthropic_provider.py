"""Messages API backends (Anthropic and Anthropic on AWS Bedrock)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from anthropic import Anthropic, AnthropicBedrock

from ..error_handling.errors import NoBackendConfigured, ProviderError
from ..local_cache import LocalCache
from ..provider_ir import ContentBlock, Message, OutputMessage, TextBlock, ToolUseBlock, message_to_dict
from ..provider_metrics import ProviderMetricsCollector
from ..tool import Tool
from .base import BaseProvider

logger = logging.getLogger(__name__)


class AnthropicBaseProvider(BaseProvider):
    """The message model already matches the Messages API block shapes."""

    client: Any = None
    max_output_tokens: Optional[int] = None

    def _convert_messages(self, messages: List[Message]) -> List[Dict[str, Any]]:
        return [message_to_dict(message) for message in messages]

    def _normalize_content(self, response: Any) -> List[ContentBlock]:
        content: List[ContentBlock] = []
        for block in self._get_attr(response, "content", []) or []:
            block_type = self._get_attr(block, "type")
            if block_type == "text":
                content.append(TextBlock(text=str(self._get_attr(block, "text", ""))))
            elif block_type == "tool_use":
                content.append(
                    ToolUseBlock(
                        id=str(self._get_attr(block, "id")),
                        name=str(self._get_attr(block, "name")),
                        input=dict(self._get_attr(block, "input", {}) or {}),
                    )
                )
            else:
                logger.debug("Ignoring %s block from %s", block_type, self.provider_id)
        return content

    def _tokens_used(self, response: Any) -> int:
        usage = self._get_attr(response, "usage")
        if usage is None:
            return 0
        return int(self._get_attr(usage, "input_tokens", 0) or 0) + int(self._get_attr(usage, "output_tokens", 0) or 0)

    def fetch_raw_message(
        self,
        *,
        model: str,
        messages: List[Message],
        system: Optional[str],
        tools: Sequence[Tool],
        max_tokens: int,
    ) -> OutputMessage:
        self._require_backend(self.client)
        request: Dict[str, Any] = {
            "model": model,
            "messages": self._convert_messages(messages),
            "max_tokens": self._budget(max_tokens, self.max_output_tokens),
        }
        if system:
            request["system"] = system
        if tools:
            request["tools"] = [tool.to_definition() for tool in tools]

        logger.debug("messages.create model=%s max_tokens=%s", model, request["max_tokens"])
        try:
            response = self.client.messages.create(**request)
        except Exception as exc:
            raise ProviderError(str(exc), details=self._error_details(exc, "messages.create")) from exc

        return OutputMessage(
            role="assistant",
            content=self._normalize_content(response),
            tokens_used=self._tokens_used(response),
        )


class AnthropicProvider(AnthropicBaseProvider):
    provider_id = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        cache: Optional[LocalCache] = None,
        max_output_tokens: Optional[int] = None,
        metrics: Optional[ProviderMetricsCollector] = None,
    ) -> None:
        super().__init__(cache=cache, metrics=metrics)
        if not api_key and cache is None:
            raise NoBackendConfigured("No API key or cache provided")
        self.max_output_tokens = max_output_tokens
        self.client = Anthropic(api_key=api_key) if api_key else None


class AWSAnthropicProvider(AnthropicBaseProvider):
    provider_id = "aws-anthropic"

    def __init__(
        self,
        aws_access_key: Optional[str] = None,
        aws_secret_key: Optional[str] = None,
        aws_region: Optional[str] = None,
        cache: Optional[LocalCache] = None,
        max_output_tokens: Optional[int] = None,
        metrics: Optional[ProviderMetricsCollector] = None,
    ) -> None:
        super().__init__(cache=cache, metrics=metrics)
        has_credentials = bool(aws_access_key and aws_secret_key)
        if not has_credentials and cache is None:
            raise NoBackendConfigured("No AWS credentials or cache provided")
        self.max_output_tokens = max_output_tokens
        self.client = None
        if has_credentials:
            kwargs: Dict[str, Any] = {"aws_access_key": aws_access_key, "aws_secret_key": aws_secret_key}
            if aws_region:
                kwargs["aws_region"] = aws_region
            self.client = AnthropicBedrock(**kwargs)
