from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class CallMetric:
    provider: str
    name: Optional[str]
    elapsed: float
    outcome: str  # cache_hit | backend | error
    tokens_used: int = 0
    error_reason: Optional[str] = None


@dataclass
class ProviderMetricsCollector:
    """Collects per-call metrics for provider invocations."""

    calls: List[CallMetric] = field(default_factory=list)

    def reset(self) -> None:
        self.calls.clear()

    def add_call(
        self,
        provider: str,
        *,
        name: Optional[str],
        elapsed: float,
        outcome: str,
        tokens_used: int = 0,
        error_reason: Optional[str] = None,
    ) -> None:
        self.calls.append(
            CallMetric(
                provider=provider,
                name=name,
                elapsed=elapsed,
                outcome=outcome,
                tokens_used=tokens_used,
                error_reason=error_reason,
            )
        )

    def _aggregate_providers(self) -> Dict[str, Dict[str, Any]]:
        providers: Dict[str, Dict[str, Any]] = {}
        for call in self.calls:
            entry = providers.setdefault(
                call.provider,
                {
                    "calls": 0,
                    "cache_hits": 0,
                    "backend_calls": 0,
                    "errors": 0,
                    "tokens": 0,
                    "latency_sum": 0.0,
                    "latency_max": 0.0,
                },
            )
            entry["calls"] += 1
            entry["tokens"] += call.tokens_used
            entry["latency_sum"] += call.elapsed
            entry["latency_max"] = max(entry["latency_max"], call.elapsed)
            if call.outcome == "cache_hit":
                entry["cache_hits"] += 1
            elif call.outcome == "backend":
                entry["backend_calls"] += 1
            else:
                entry["errors"] += 1
        for entry in providers.values():
            calls = entry["calls"] or 1
            entry["latency_avg"] = entry["latency_sum"] / calls
        return providers

    def snapshot(self) -> Dict[str, Any]:
        total_calls = len(self.calls)
        return {
            "summary": {
                "calls": total_calls,
                "cache_hits": sum(1 for call in self.calls if call.outcome == "cache_hit"),
                "backend_calls": sum(1 for call in self.calls if call.outcome == "backend"),
                "errors": sum(1 for call in self.calls if call.outcome == "error"),
                "tokens": sum(call.tokens_used for call in self.calls),
            },
            "providers": self._aggregate_providers(),
        }
