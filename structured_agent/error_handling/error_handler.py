"""
Diagnostics for failures raised during an agent call
"""

import json
import logging
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Builds diagnostic payloads for provider and tool failures.

    The handler never swallows an error: callers log the payload and re-raise.
    """

    def __init__(self, snapshot_path: Optional[str] = None):
        self.snapshot_path = snapshot_path

    def handle_provider_error(self, error: Exception, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Describe a provider failure (credentials, quotas, rate limits)."""
        details = getattr(error, "details", None)
        snippet = ""
        if isinstance(details, dict):
            snippet = str(details.get("body_snippet") or "")

        result: Dict[str, Any] = {
            "error": str(error),
            "error_type": error.__class__.__name__,
            "messages": messages,
            "hint": "Verify provider credentials/quotas and model availability, or record the call into the cache first.",
            "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        }

        lowered = (snippet or str(error)).lower()
        if "rate limit" in lowered or "too many requests" in lowered:
            result["hint"] = "Provider indicated a rate limit or quota issue. Reduce request rate or wait before retrying."
        elif "no api key" in lowered or "credential" in lowered:
            result["hint"] = "No credentials were configured; supply an API key or a cache that already holds this call."

        if details:
            result["details"] = details

        self.write_error_snapshot(result)
        return result

    def handle_tool_error(self, error: Exception, tool_name: str, tool_input: Dict[str, Any]) -> Dict[str, Any]:
        """Describe a failure raised from inside a tool."""
        return {
            "error": str(error),
            "error_type": error.__class__.__name__,
            "function": tool_name,
            "args": tool_input,
            "hint": "Tools should return failures as text; a raised error aborts the whole agent call.",
        }

    def write_error_snapshot(self, error_result: Dict[str, Any]) -> None:
        """Write error snapshot to JSON file"""
        if not self.snapshot_path:
            return
        path = Path(self.snapshot_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(error_result, indent=2, default=str))
        except OSError as exc:
            logger.warning("Unable to write error snapshot to %s: %s", path, exc)
