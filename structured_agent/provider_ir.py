"""Provider-agnostic representation of conversations and tool use."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional, Union


Role = Literal["user", "assistant"]

ROLES = ("user", "assistant")


@dataclass
class TextBlock:
    text: str

    @property
    def type(self) -> str:
        return "text"


@dataclass
class ToolUseBlock:
    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return "tool_use"


@dataclass
class ToolResultBlock:
    tool_use_id: str
    content: str

    @property
    def type(self) -> str:
        return "tool_result"


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]
Content = Union[str, List[ContentBlock]]


def _check_content(role: str, content: Content) -> None:
    if role not in ROLES:
        raise ValueError(f"Unsupported message role: {role!r}")
    if isinstance(content, str):
        return
    has_results = False
    has_other = False
    for block in content:
        if isinstance(block, ToolResultBlock):
            has_results = True
            if role != "user":
                raise ValueError("tool_result blocks may only appear in user messages")
        elif isinstance(block, ToolUseBlock):
            has_other = True
            if role != "assistant":
                raise ValueError("tool_use blocks may only appear in assistant messages")
        elif isinstance(block, TextBlock):
            has_other = True
        else:
            raise TypeError(f"Unknown content block: {block!r}")
    if has_results and has_other:
        raise ValueError("A message carrying tool_result blocks cannot carry other blocks")


@dataclass
class Message:
    role: Role
    content: Content

    def __post_init__(self) -> None:
        if not isinstance(self.content, str):
            self.content = list(self.content)
        _check_content(self.role, self.content)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "role" and "role" in self.__dict__:
            raise AttributeError("Message role is immutable")
        super().__setattr__(name, value)


@dataclass
class OutputMessage(Message):
    tokens_used: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.tokens_used < 0:
            raise ValueError("tokens_used must be non-negative")

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content)


def assistant_text(messages: Iterable[Message]) -> str:
    """Assistant text in emission order, messages separated by a blank line."""
    parts: List[str] = []
    for message in messages:
        if message.role != "assistant":
            continue
        if isinstance(message.content, str):
            parts.append(message.content)
            continue
        texts: List[str] = []
        for block in message.content:
            if not isinstance(block, (TextBlock, ToolUseBlock, ToolResultBlock)):
                raise TypeError(f"Unknown content block: {block!r}")
            if isinstance(block, TextBlock):
                texts.append(block.text)
        parts.append("\n\n".join(texts))
    return "\n\n".join(parts)


@dataclass
class Response:
    """Terminal result of one agent invocation.

    ``output_text`` is derived: the repaired JSON text when structured output
    was requested, otherwise all assistant text in emission order.
    """

    output: List[OutputMessage] = field(default_factory=list)
    tokens_used: int = 0
    json_text: Optional[str] = None

    @property
    def output_text(self) -> str:
        if self.json_text is not None:
            return self.json_text
        return assistant_text(self.output)


# ---------------------------------------------------------------------------
# Dict codecs (wire shape shared with the cache file and vendor payloads)
# ---------------------------------------------------------------------------


def block_to_dict(block: ContentBlock) -> Dict[str, Any]:
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ToolUseBlock):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    if isinstance(block, ToolResultBlock):
        return {"type": "tool_result", "tool_use_id": block.tool_use_id, "content": block.content}
    raise TypeError(f"Unknown content block: {block!r}")


def block_from_dict(raw: Dict[str, Any]) -> ContentBlock:
    block_type = raw.get("type")
    if block_type == "text":
        return TextBlock(text=str(raw.get("text", "")))
    if block_type == "tool_use":
        return ToolUseBlock(id=str(raw["id"]), name=str(raw["name"]), input=dict(raw.get("input") or {}))
    if block_type == "tool_result":
        return ToolResultBlock(tool_use_id=str(raw["tool_use_id"]), content=str(raw.get("content", "")))
    raise TypeError(f"Unknown content block type: {block_type!r}")


def content_to_wire(content: Content) -> Union[str, List[Dict[str, Any]]]:
    if isinstance(content, str):
        return content
    return [block_to_dict(block) for block in content]


def content_from_wire(content: Any) -> Content:
    if isinstance(content, str):
        return content
    if content is None:
        return ""
    return [block if isinstance(block, (TextBlock, ToolUseBlock, ToolResultBlock)) else block_from_dict(block) for block in content]


def message_to_dict(message: Message) -> Dict[str, Any]:
    return {"role": message.role, "content": content_to_wire(message.content)}


def message_from_dict(raw: Union[Message, Dict[str, Any]]) -> Message:
    if isinstance(raw, Message):
        return raw
    return Message(role=raw.get("role", "user"), content=content_from_wire(raw.get("content")))


def output_message_to_dict(message: OutputMessage) -> Dict[str, Any]:
    payload = message_to_dict(message)
    payload["type"] = "message"
    payload["tokens_used"] = message.tokens_used
    return payload


def output_message_from_dict(raw: Dict[str, Any]) -> OutputMessage:
    return OutputMessage(
        role=raw.get("role", "assistant"),
        content=content_from_wire(raw.get("content")),
        tokens_used=int(raw.get("tokens_used") or 0),
    )


def normalize_messages(messages: Iterable[Union[Message, Dict[str, Any]]]) -> List[Message]:
    """Accept Message objects or plain dicts and return plain Messages."""
    normalized: List[Message] = []
    for message in messages:
        if isinstance(message, OutputMessage):
            normalized.append(message.to_message())
        else:
            normalized.append(message_from_dict(message))
    return normalized


def validate_tool_correlation(messages: Iterable[Message]) -> None:
    """Raise ValueError if a tool_result refers to no earlier tool_use."""
    seen: set = set()
    for idx, message in enumerate(messages):
        if isinstance(message.content, str):
            continue
        for block in message.content:
            if isinstance(block, ToolUseBlock):
                seen.add(block.id)
            elif isinstance(block, ToolResultBlock):
                if block.tool_use_id not in seen:
                    raise ValueError(
                        f"tool_result at message {idx} references unknown tool_use id {block.tool_use_id!r}"
                    )
            elif not isinstance(block, TextBlock):
                raise TypeError(f"Unknown content block: {block!r}")
