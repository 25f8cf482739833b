"""Bounded repair loop that coerces model output into schema-valid JSON."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .error_handling.errors import InvalidJsonAfterMaxAttempts
from .observation import Observation
from .provider_ir import Message, OutputMessage
from .providers.base import BaseProvider
from .utils.json_text import canonical_json, is_valid_json, parse_json, select_json_in_text
from .utils.selectors import select_last_text

logger = logging.getLogger(__name__)

VALIDATOR_INSTRUCTIONS = "You are a JSON validator. You help ensure responses match the request JSON schema."


def _error_message(errors: List[str]) -> str:
    return (
        "The JSON response contained the following errors. Can you fix them?\n"
        "Return only the corrected JSON object with no other commentary.\n"
        "<errors>\n" + "\n".join(errors) + "\n</errors>"
    )


class JsonValidator:
    """Validate a candidate reply and re-prompt the model with the errors.

    ``max_attempts`` bounds the repair calls: an always-invalid model costs
    exactly ``max_attempts`` provider calls before
    :class:`InvalidJsonAfterMaxAttempts` is raised.
    """

    def __init__(
        self,
        model: str,
        json_schema: Dict[str, Any],
        provider: BaseProvider,
        observation: Optional[Observation] = None,
        max_tokens: int = 2000,
        max_attempts: int = 2,
    ) -> None:
        if max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        self.model = model
        self.json_schema = json_schema
        self.provider = provider
        self.observation = observation or Observation()
        self.max_tokens = max_tokens
        self.max_attempts = max_attempts
        self.instructions = VALIDATOR_INSTRUCTIONS
        self._tokens_used = 0

    @property
    def tokens_used(self) -> int:
        return self._tokens_used

    def validate(self, instructions: str, input: str, result: str) -> Tuple[List[OutputMessage], str]:
        """Return ``(repair_messages, json_text)`` for ``result``.

        The first repair prompt carries the original instructions, user input
        and invalid reply as context; later rounds extend that transcript.
        """
        context: List[Message] = [
            Message(
                role="user",
                content=f"<instructions>{instructions}</instructions>\n<user_input>{input}</user_input>",
            ),
            Message(role="assistant", content=result),
        ]
        output: List[OutputMessage] = []
        candidate = result
        attempts = 0
        self._tokens_used = 0

        while True:
            attempts += 1
            selected = select_json_in_text(candidate)
            valid, errors = is_valid_json(selected, self.json_schema)
            if valid:
                logger.debug("JSON validated after %d attempt(s)", attempts)
                return output, canonical_json(parse_json(selected))

            if attempts > self.max_attempts:
                logger.info("JSON still invalid after %d attempts", attempts)
                raise InvalidJsonAfterMaxAttempts(candidate, attempts, errors)

            logger.debug("JSON attempt %d invalid: %s", attempts, errors)
            output.append(OutputMessage(role="user", content=_error_message(errors), tokens_used=0))
            reply = self.provider.fetch_message(
                system=self.instructions,
                model=self.model,
                messages=context + [message.to_message() for message in output],
                max_tokens=self.max_tokens - self._tokens_used,
                observation=self.observation,
                name="structure_json",
            )
            self._tokens_used += reply.tokens_used
            output.append(reply)
            candidate = select_last_text([reply])
