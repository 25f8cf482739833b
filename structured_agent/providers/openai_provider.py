"""Chat Completions backends (OpenAI and Azure OpenAI)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import AzureOpenAI, OpenAI

from ..error_handling.errors import NoBackendConfigured, ProviderError
from ..local_cache import LocalCache
from ..provider_ir import Message, OutputMessage, TextBlock, ToolResultBlock, ToolUseBlock
from ..provider_metrics import ProviderMetricsCollector
from ..tool import Tool
from .base import BaseProvider

logger = logging.getLogger(__name__)

DEFAULT_AZURE_API_VERSION = "2024-06-01"


class OpenAIBaseProvider(BaseProvider):
    """Translation between the message model and the Chat Completions wire shape."""

    client: Any = None
    max_output_tokens: Optional[int] = None

    # --- data conversion helpers -----------------------------------------
    def _convert_messages_to_chat(self, messages: List[Message], system: Optional[str]) -> List[Dict[str, Any]]:
        converted: List[Dict[str, Any]] = []
        if system:
            converted.append({"role": "system", "content": system})
        for message in messages:
            if isinstance(message.content, str):
                converted.append({"role": message.role, "content": message.content})
                continue
            texts: List[str] = []
            tool_calls: List[Dict[str, Any]] = []
            for block in message.content:
                if isinstance(block, TextBlock):
                    texts.append(block.text)
                elif isinstance(block, ToolUseBlock):
                    tool_calls.append(
                        {
                            "id": block.id,
                            "type": "function",
                            "function": {"name": block.name, "arguments": json.dumps(block.input)},
                        }
                    )
                elif isinstance(block, ToolResultBlock):
                    # one tool message per result
                    converted.append({"role": "tool", "tool_call_id": block.tool_use_id, "content": block.content})
                else:
                    raise TypeError(f"Unknown content block: {block!r}")
            if tool_calls:
                converted.append(
                    {
                        "role": "assistant",
                        "content": "\n\n".join(texts) if texts else None,
                        "tool_calls": tool_calls,
                    }
                )
            elif texts:
                converted.append({"role": message.role, "content": "\n\n".join(texts)})
        return converted

    def _convert_tools_to_openai(self, tools: Sequence[Tool]) -> Optional[List[Dict[str, Any]]]:
        if not tools:
            return None
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_schema,
                },
            }
            for tool in tools
        ]

    # --- response parsing helpers ----------------------------------------
    def _extract_tool_uses(self, message: Any) -> List[ToolUseBlock]:
        blocks: List[ToolUseBlock] = []
        for raw in self._get_attr(message, "tool_calls") or []:
            fn = self._get_attr(raw, "function", {}) or {}
            arguments = self._get_attr(fn, "arguments", "{}") or "{}"
            if isinstance(arguments, str):
                try:
                    parsed = json.loads(arguments)
                except json.JSONDecodeError as exc:
                    raise ProviderError(
                        "Tool call arguments were not valid JSON",
                        details={"provider": self.provider_id, "body_snippet": arguments[:400]},
                    ) from exc
            else:
                parsed = arguments
            if not isinstance(parsed, dict):
                raise ProviderError(
                    "Tool call arguments were not a JSON object",
                    details={"provider": self.provider_id, "body_snippet": str(arguments)[:400]},
                )
            blocks.append(
                ToolUseBlock(
                    id=str(self._get_attr(raw, "id")),
                    name=str(self._get_attr(fn, "name")),
                    input=parsed,
                )
            )
        return blocks

    def _tokens_used(self, response: Any) -> int:
        usage = self._get_attr(response, "usage")
        if usage is None:
            return 0
        prompt = self._get_attr(usage, "prompt_tokens", 0) or 0
        completion = self._get_attr(usage, "completion_tokens", 0) or 0
        return int(prompt) + int(completion)

    def _request_model(self, model: str) -> str:
        return model

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
            "model": self._request_model(model),
            "messages": self._convert_messages_to_chat(messages, system),
            "max_tokens": self._budget(max_tokens, self.max_output_tokens),
        }
        request_tools = self._convert_tools_to_openai(tools)
        if request_tools:
            request["tools"] = request_tools

        logger.debug("chat.completions.create model=%s max_tokens=%s", request["model"], request["max_tokens"])
        try:
            response = self.client.chat.completions.create(**request)
        except Exception as exc:
            raise ProviderError(str(exc), details=self._error_details(exc, "chat.completions.create")) from exc

        choices = self._get_attr(response, "choices") or []
        if not choices:
            raise ProviderError("Provider returned no choices", details={"provider": self.provider_id})
        message = self._get_attr(choices[0], "message", {})

        content: List[Any] = []
        text = self._get_attr(message, "content")
        if text:
            content.append(TextBlock(text=str(text)))
        content.extend(self._extract_tool_uses(message))
        return OutputMessage(role="assistant", content=content, tokens_used=self._tokens_used(response))


class OpenAIProvider(OpenAIBaseProvider):
    provider_id = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        cache: Optional[LocalCache] = None,
        base_url: Optional[str] = None,
        max_output_tokens: Optional[int] = None,
        metrics: Optional[ProviderMetricsCollector] = None,
    ) -> None:
        super().__init__(cache=cache, metrics=metrics)
        if not api_key and cache is None:
            raise NoBackendConfigured("No API key or cache provided")
        self.max_output_tokens = max_output_tokens
        self.client = None
        if api_key:
            kwargs: Dict[str, Any] = {"api_key": api_key}
            if base_url:
                kwargs["base_url"] = base_url
            self.client = OpenAI(**kwargs)


class AzureOpenAIProvider(OpenAIBaseProvider):
    provider_id = "azure-openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        endpoint: Optional[str] = None,
        api_version: Optional[str] = None,
        deployment: Optional[str] = None,
        cache: Optional[LocalCache] = None,
        max_output_tokens: Optional[int] = None,
        metrics: Optional[ProviderMetricsCollector] = None,
    ) -> None:
        super().__init__(cache=cache, metrics=metrics)
        if not (api_key and endpoint) and cache is None:
            raise NoBackendConfigured("No Azure OpenAI credentials or cache provided")
        self.deployment = deployment
        self.max_output_tokens = max_output_tokens
        self.client = None
        if api_key and endpoint:
            self.client = AzureOpenAI(
                api_key=api_key,
                azure_endpoint=endpoint,
                api_version=api_version or DEFAULT_AZURE_API_VERSION,
            )

    def _request_model(self, model: str) -> str:
        return self.deployment or model
