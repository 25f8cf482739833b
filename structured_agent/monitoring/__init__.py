from .telemetry import TelemetryLogger, TelemetryTraceClient

__all__ = ["TelemetryLogger", "TelemetryTraceClient"]
