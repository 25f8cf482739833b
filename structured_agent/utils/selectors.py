from __future__ import annotations

from typing import List, Optional, Sequence

from ..provider_ir import Content, Message, TextBlock, ToolResultBlock, ToolUseBlock, assistant_text


def _check_block(block) -> None:
    if not isinstance(block, (TextBlock, ToolUseBlock, ToolResultBlock)):
        raise TypeError(f"Unknown content block: {block!r}")


def select_tool_use_blocks(content: Content) -> List[ToolUseBlock]:
    """Tool-use blocks of a message content, in emission order."""
    if isinstance(content, str):
        return []
    blocks: List[ToolUseBlock] = []
    for block in content:
        _check_block(block)
        if isinstance(block, ToolUseBlock):
            blocks.append(block)
    return blocks


def select_tool_use_block(content: Content) -> Optional[ToolUseBlock]:
    blocks = select_tool_use_blocks(content)
    return blocks[0] if blocks else None


def select_message_text(message: Message) -> str:
    """First text of a message; raises ValueError when it carries none."""
    if isinstance(message.content, str):
        return message.content
    for block in message.content:
        _check_block(block)
        if isinstance(block, TextBlock):
            return block.text
    raise ValueError("No text found in message")


def select_last_text(messages: Sequence[Message]) -> str:
    """Most recent text block across ``messages``, or "" if there is none."""
    for message in reversed(list(messages)):
        if isinstance(message.content, str):
            return message.content
        for block in reversed(message.content):
            _check_block(block)
            if isinstance(block, TextBlock):
                return block.text
    return ""


def select_all_text(messages: Sequence[Message]) -> str:
    """Assistant text in emission order, messages separated by a blank line."""
    return assistant_text(messages)
