"""Provider contract shared by every model backend."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Union

from ..error_handling.errors import NoBackendConfigured
from ..local_cache import LocalCache
from ..observation import Observation
from ..provider_ir import (
    Message,
    OutputMessage,
    message_to_dict,
    normalize_messages,
    output_message_from_dict,
    output_message_to_dict,
)
from ..provider_metrics import ProviderMetricsCollector
from ..tool import Tool

logger = logging.getLogger(__name__)

# Bump when the cached value shape or the key projection changes.
CACHE_FORMAT_VERSION = 1


class BaseProvider:
    """Turns (system, transcript, tools, budget) into one assistant message.

    ``fetch_message`` owns caching, metrics and tracing; subclasses implement
    only ``fetch_raw_message`` to talk to their backend.
    """

    provider_id = "base"

    def __init__(self, cache: Optional[LocalCache] = None, metrics: Optional[ProviderMetricsCollector] = None) -> None:
        self.cache = cache
        self.metrics = metrics or ProviderMetricsCollector()

    # --- backend hook ----------------------------------------------------
    def fetch_raw_message(
        self,
        *,
        model: str,
        messages: List[Message],
        system: Optional[str],
        tools: Sequence[Tool],
        max_tokens: int,
    ) -> OutputMessage:
        raise NotImplementedError("Not implemented")

    def _implements_backend(self) -> bool:
        return type(self).fetch_raw_message is not BaseProvider.fetch_raw_message

    def _require_backend(self, client: Any) -> None:
        if client is None:
            raise NoBackendConfigured(
                f"{type(self).__name__} has no API credentials and the request was not found in the cache"
            )

    # --- response parsing helpers ----------------------------------------
    def _get_attr(self, obj: Any, name: str, default: Any = None) -> Any:
        if hasattr(obj, name):
            return getattr(obj, name)
        if isinstance(obj, dict):
            return obj.get(name, default)
        return default

    def _error_details(self, exc: Exception, context: str) -> Dict[str, Any]:
        details: Dict[str, Any] = {"provider": self.provider_id, "context": context}
        status = getattr(exc, "status_code", None)
        if status is not None:
            details["status_code"] = status
        body = getattr(exc, "body", None)
        if body is not None:
            details["body_snippet"] = str(body)[:400].strip()
        return details

    def _budget(self, max_tokens: int, cap: Optional[int]) -> int:
        limit = min(max_tokens, cap) if cap else max_tokens
        return max(1, int(limit))

    # --- cache projection ------------------------------------------------
    def cache_projection(
        self,
        *,
        model: str,
        messages: List[Message],
        system: Optional[str],
        tools: Sequence[Tool],
        max_tokens: int,
        name: Optional[str],
    ) -> Dict[str, Any]:
        return {
            "cache_version": CACHE_FORMAT_VERSION,
            "system": system,
            "model": model,
            "messages": [message_to_dict(message) for message in messages],
            "tools": [tool.to_cache_key() for tool in tools],
            "name": name,
            "max_tokens": max_tokens,
        }

    def fetch_message(
        self,
        *,
        model: str,
        messages: Sequence[Union[Message, Dict[str, Any]]],
        system: Optional[str] = None,
        tools: Optional[Sequence[Tool]] = None,
        max_tokens: int,
        observation: Optional[Observation] = None,
        name: Optional[str] = None,
    ) -> OutputMessage:
        if not self._implements_backend():
            raise NotImplementedError("Not implemented")

        transcript = normalize_messages(messages)
        tool_list = list(tools or [])
        observation = observation or Observation()
        generation = observation.generation(
            input={"system": system, "messages": [message_to_dict(m) for m in transcript]},
            model=model,
            model_parameters={"max_tokens": max_tokens},
        )

        key: Optional[Dict[str, Any]] = None
        started = time.perf_counter()
        if self.cache is not None:
            key = self.cache_projection(
                model=model,
                messages=transcript,
                system=system,
                tools=tool_list,
                max_tokens=max_tokens,
                name=name,
            )
            cached = self.cache.get(key)
            if cached is not None:
                message = output_message_from_dict(cached)
                self.metrics.add_call(
                    self.provider_id,
                    name=name,
                    elapsed=time.perf_counter() - started,
                    outcome="cache_hit",
                    tokens_used=message.tokens_used,
                )
                logger.debug("Cache hit for %s call %s", self.provider_id, name)
                generation.end(output_message_to_dict(message))
                return message

        try:
            message = self.fetch_raw_message(
                model=model,
                messages=transcript,
                system=system,
                tools=tool_list,
                max_tokens=max_tokens,
            )
        except Exception as exc:
            self.metrics.add_call(
                self.provider_id,
                name=name,
                elapsed=time.perf_counter() - started,
                outcome="error",
                error_reason=str(exc),
            )
            raise

        self.metrics.add_call(
            self.provider_id,
            name=name,
            elapsed=time.perf_counter() - started,
            outcome="backend",
            tokens_used=message.tokens_used,
        )
        if self.cache is not None and key is not None:
            self.cache.set(key, output_message_to_dict(message))
        generation.end(output_message_to_dict(message))
        return message
