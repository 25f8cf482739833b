"""Optional tracing handles passed explicitly through agent calls.

An :class:`Observation` wraps a tracing client (anything exposing
``generation``/``update``/``end``) and degrades to a no-op without one, so the
agent never needs a tracing backend to run.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class Observation:
    def __init__(self, client: Optional[Any] = None, *, is_trace: bool = False) -> None:
        self.client = client
        self.is_trace = is_trace

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def generation(
        self,
        input: Any,
        model: Optional[str] = None,
        model_parameters: Optional[Dict[str, Any]] = None,
    ) -> "Observation":
        if self.client is None:
            return Observation()
        child = self.client.generation(input=input, model=model, model_parameters=model_parameters)
        return Observation(child)

    def update(self, input: Any) -> None:
        if self.client is None:
            return
        self.client.update(input=input)

    def end(self, output: Any) -> None:
        if self.client is None:
            return
        # trace clients stay open; only their output is recorded
        if self.is_trace:
            self.client.update(output=output)
        else:
            self.client.end(output=output)


class Observer:
    """Factory for root observations (one trace per agent call)."""

    def __init__(self, client: Optional[Any] = None) -> None:
        self.client = client

    @classmethod
    def create_from_options(cls, telemetry_path: Optional[str] = None) -> "Observer":
        if telemetry_path:
            from .monitoring.telemetry import TelemetryLogger

            return cls(TelemetryLogger(telemetry_path))
        return cls()

    def trace(self, input: Any, user_id: Optional[str] = None, session_id: Optional[str] = None) -> Observation:
        if self.client is None:
            return Observation()
        trace = self.client.trace(input=input, user_id=user_id, session_id=session_id)
        return Observation(trace, is_trace=True)

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Observer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
