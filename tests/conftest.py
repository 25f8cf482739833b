import os
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

# Ensure project root is on sys.path so tests run without an editable install
ROOT = os.path.dirname(os.path.abspath(__file__))
PROJ = os.path.abspath(os.path.join(ROOT, os.pardir))
if PROJ not in sys.path:
    sys.path.insert(0, PROJ)

from structured_agent.provider_ir import Message, OutputMessage, TextBlock, ToolUseBlock  # noqa: E402
from structured_agent.providers.base import BaseProvider  # noqa: E402
from structured_agent.tool import Tool, ToolCallContext  # noqa: E402


def pytest_configure(config):
    # Register custom marks used by some tests to silence warnings
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


Reply = Union[OutputMessage, Callable[[Dict[str, Any]], OutputMessage]]


class ScriptedProvider(BaseProvider):
    """In-process backend that replays a fixed list of replies."""

    provider_id = "scripted"

    def __init__(self, replies: Sequence[Reply], cache=None) -> None:
        super().__init__(cache=cache)
        self._replies: List[Reply] = list(replies)
        self.calls: List[Dict[str, Any]] = []
        self.raw_calls: List[Dict[str, Any]] = []

    def fetch_message(self, **kwargs: Any) -> OutputMessage:
        self.calls.append(kwargs)
        return super().fetch_message(**kwargs)

    def fetch_raw_message(self, **kwargs: Any) -> OutputMessage:
        self.raw_calls.append(kwargs)
        if not self._replies:
            raise AssertionError("ScriptedProvider ran out of replies")
        reply = self._replies.pop(0)
        if callable(reply):
            return reply(kwargs)
        return reply


def text_reply(text: str, tokens: int = 10) -> OutputMessage:
    return OutputMessage(role="assistant", content=[TextBlock(text=text)], tokens_used=tokens)


def tool_reply(*calls: Dict[str, Any], text: Optional[str] = None, tokens: int = 10) -> OutputMessage:
    content: List[Any] = []
    if text:
        content.append(TextBlock(text=text))
    for call in calls:
        content.append(ToolUseBlock(id=call["id"], name=call["name"], input=call.get("input", {})))
    return OutputMessage(role="assistant", content=content, tokens_used=tokens)


def _weather(args: Dict[str, Any], context: ToolCallContext) -> str:
    return f"The weather in {args['location']} is 20 degrees Celsius."


@pytest.fixture
def weather_tool() -> Tool:
    return Tool(
        name="get_current_weather",
        description="Get the current weather in a given location",
        input_schema={
            "type": "object",
            "properties": {"location": {"type": "string"}},
            "required": ["location"],
        },
        fn=_weather,
    )


@pytest.fixture
def user_messages() -> List[Message]:
    return [Message(role="user", content="What is the weather in Tokyo?")]
