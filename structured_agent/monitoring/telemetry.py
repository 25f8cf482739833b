from __future__ import annotations

import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class TelemetryLogger:
    """JSONL tracing sink usable as an :class:`~structured_agent.observation.Observer` client."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or os.environ.get("STRUCTURED_AGENT_TELEMETRY_PATH")
        self._fh = None
        if self.path:
            p = Path(self.path)
            p.parent.mkdir(parents=True, exist_ok=True)
            # append mode JSONL
            self._fh = p.open("a", encoding="utf-8")

    def log(self, payload: Dict[str, Any]) -> None:
        if not self._fh:
            return
        record = {"ts": time.time(), **payload}
        try:
            self._fh.write(json.dumps(record, separators=(",", ":"), default=str) + "\n")
            self._fh.flush()
        except (OSError, ValueError) as exc:
            logger.warning("Dropping telemetry record for %s: %s", self.path, exc)

    def trace(self, input: Any, user_id: Optional[str] = None, session_id: Optional[str] = None) -> "TelemetryTraceClient":
        client = TelemetryTraceClient(self, kind="trace")
        self.log(
            {
                "event": "trace",
                "id": client.id,
                "input": input,
                "user_id": user_id,
                "session_id": session_id,
            }
        )
        return client

    def close(self) -> None:
        if self._fh:
            self._fh.close()
            self._fh = None


class TelemetryTraceClient:
    """One trace or generation span; every call appends a record."""

    def __init__(self, sink: TelemetryLogger, *, kind: str, parent_id: Optional[str] = None) -> None:
        self.sink = sink
        self.kind = kind
        self.parent_id = parent_id
        self.id = uuid.uuid4().hex

    def generation(
        self,
        input: Any,
        model: Optional[str] = None,
        model_parameters: Optional[Dict[str, Any]] = None,
    ) -> "TelemetryTraceClient":
        child = TelemetryTraceClient(self.sink, kind="generation", parent_id=self.id)
        self.sink.log(
            {
                "event": "generation",
                "id": child.id,
                "parent_id": self.id,
                "input": input,
                "model": model,
                "model_parameters": model_parameters or {},
            }
        )
        return child

    def update(self, **fields: Any) -> None:
        self.sink.log({"event": "update", "id": self.id, "kind": self.kind, **fields})

    def end(self, output: Any = None) -> None:
        self.sink.log({"event": "end", "id": self.id, "kind": self.kind, "output": output})
