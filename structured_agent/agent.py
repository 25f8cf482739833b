"""Multi-turn agent loop with tool dispatch and structured output."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

from .error_handling.error_handler import ErrorHandler
from .error_handling.errors import ToolNotFound
from .json_validator import JsonValidator
from .observation import Observation
from .provider_ir import (
    Message,
    OutputMessage,
    Response,
    ToolResultBlock,
    ToolUseBlock,
    message_to_dict,
    normalize_messages,
)
from .providers.base import BaseProvider
from .tool import Tool, ToolCallContext
from .utils.selectors import select_last_text, select_tool_use_blocks

logger = logging.getLogger(__name__)

MessageLike = Union[Message, Dict[str, Any]]

SCHEMA_INSTRUCTIONS = (
    "In your final message, you must return only a JSON object that matches the below schema "
    "with no other commentary."
)


def budget_message(*, tokens: int, turns: int, max_tokens: int, max_turns: int) -> str:
    return (
        f"You have used {tokens} tokens and {turns} turns to provide a response. "
        f"You have {max_tokens - tokens} tokens and {max_turns - turns} turns remaining."
    )


def schema_block(json_schema: Dict[str, Any]) -> str:
    return (
        f"\n{SCHEMA_INSTRUCTIONS}\n"
        f"<json_output_schema>\n{json.dumps(json_schema, indent=2)}\n</json_output_schema>\n"
    )


class Agent:
    """Owns instructions and tools; each ``get_response`` call is independent."""

    def __init__(
        self,
        instructions: Optional[str] = None,
        tools: Optional[Sequence[Tool]] = None,
        error_handler: Optional[ErrorHandler] = None,
        max_tokens: int = 4000,
        max_turns: int = 5,
        max_attempts: int = 2,
    ) -> None:
        self.instructions = instructions
        self.max_tokens = max_tokens
        self.max_turns = max_turns
        self.max_attempts = max_attempts
        self.tools: List[Tool] = list(tools or [])
        names = [tool.name for tool in self.tools]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tool names: {', '.join(duplicates)}")
        self.error_handler = error_handler or ErrorHandler()

    def _system_prompt(
        self,
        json_schema: Optional[Dict[str, Any]],
        *,
        tokens: int,
        turns: int,
        max_tokens: int,
        max_turns: int,
    ) -> str:
        system = self.instructions or ""
        if json_schema is not None:
            system += schema_block(json_schema)
            system += budget_message(tokens=tokens, turns=turns, max_tokens=max_tokens, max_turns=max_turns)
        return system

    def get_response(
        self,
        messages: Sequence[MessageLike],
        provider: BaseProvider,
        model: str,
        json_schema: Optional[Dict[str, Any]] = None,
        max_tokens: Optional[int] = None,
        max_turns: Optional[int] = None,
        observation: Optional[Observation] = None,
        max_attempts: Optional[int] = None,
    ) -> Response:
        """Run the turn loop until the model stops requesting tools.

        Exhausting ``max_turns`` or ``max_tokens`` ends the loop normally; the
        response then holds whatever the model produced so far. Limits left as
        None fall back to the agent's own settings.
        """
        max_tokens = self.max_tokens if max_tokens is None else max_tokens
        max_turns = self.max_turns if max_turns is None else max_turns
        max_attempts = self.max_attempts if max_attempts is None else max_attempts
        observation = observation or Observation()
        input_messages = normalize_messages(messages)
        output: List[OutputMessage] = []
        turns = 0
        tokens = 0

        while True:
            turns += 1
            if turns > max_turns:
                logger.info("Max turns reached.")
                break
            if tokens >= max_tokens:
                logger.info("Max tokens reached.")
                break

            transcript = input_messages + [message.to_message() for message in output]
            system = self._system_prompt(
                json_schema, tokens=tokens, turns=turns, max_tokens=max_tokens, max_turns=max_turns
            )
            try:
                reply = provider.fetch_message(
                    system=system,
                    model=model,
                    messages=transcript,
                    tools=self.tools,
                    max_tokens=max_tokens - tokens,
                    observation=observation,
                    name=f"turn-{turns}",
                )
            except Exception as exc:
                diagnostic = self.error_handler.handle_provider_error(
                    exc, [message_to_dict(message) for message in transcript]
                )
                logger.error("Provider call turn-%d failed: %s (%s)", turns, exc, diagnostic["hint"])
                raise

            tokens += reply.tokens_used
            output.append(reply)

            tool_uses = select_tool_use_blocks(reply.content)
            if not tool_uses:
                break
            for block in tool_uses:
                tool_messages = input_messages + [message.to_message() for message in output]
                result = self.run_tool(block, tool_messages, observation)
                output.append(OutputMessage(role="user", content=[result], tokens_used=0))

        if json_schema is None:
            return Response(output=output, tokens_used=tokens)

        validator = JsonValidator(
            model=model,
            json_schema=json_schema,
            provider=provider,
            observation=observation,
            max_tokens=max_tokens,
            max_attempts=max_attempts,
        )
        repair_output, json_text = validator.validate(
            instructions=self.instructions or "",
            input=json.dumps([message_to_dict(message) for message in input_messages]),
            result=select_last_text(output),
        )
        output.extend(repair_output)
        return Response(output=output, tokens_used=tokens + validator.tokens_used, json_text=json_text)

    def get_validated_json_response(
        self,
        input_messages: Sequence[MessageLike],
        provider: BaseProvider,
        model: str,
        json_schema: Dict[str, Any],
        max_tokens: int = 2000,
        observation: Optional[Observation] = None,
        max_attempts: Optional[int] = None,
    ) -> str:
        """Repair the last text of an existing transcript into schema-valid JSON."""
        max_attempts = self.max_attempts if max_attempts is None else max_attempts
        transcript = normalize_messages(input_messages)
        context = transcript
        if transcript and transcript[-1].role == "assistant":
            context = transcript[:-1]
        validator = JsonValidator(
            model=model,
            json_schema=json_schema,
            provider=provider,
            observation=observation,
            max_tokens=max_tokens,
            max_attempts=max_attempts,
        )
        _, json_text = validator.validate(
            instructions=self.instructions or "",
            input=json.dumps([message_to_dict(message) for message in context]),
            result=select_last_text(transcript),
        )
        return json_text

    def find_tool_by_name(self, name: str) -> Tool:
        for tool in self.tools:
            if tool.name == name:
                return tool
        raise ToolNotFound(name)

    def run_tool(
        self,
        block: ToolUseBlock,
        messages: List[Message],
        observation: Optional[Observation] = None,
    ) -> ToolResultBlock:
        tool = self.find_tool_by_name(block.name)
        context = ToolCallContext(id=str(uuid.uuid4()), messages=list(messages), observation=observation)
        try:
            content = tool.call(block.input, context)
        except Exception as exc:
            diagnostic = self.error_handler.handle_tool_error(exc, block.name, block.input)
            logger.error("Tool %s failed: %s", block.name, diagnostic["error"])
            raise
        return ToolResultBlock(tool_use_id=block.id, content=content)
