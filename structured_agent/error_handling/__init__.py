"""
Error taxonomy and diagnostics for agent calls
"""

from .error_handler import ErrorHandler
from .errors import (
    InvalidJsonAfterMaxAttempts,
    NoBackendConfigured,
    ProviderError,
    SchemaValidationError,
    StructuredAgentError,
    ToolNotFound,
)

__all__ = [
    "ErrorHandler",
    "InvalidJsonAfterMaxAttempts",
    "NoBackendConfigured",
    "ProviderError",
    "SchemaValidationError",
    "StructuredAgentError",
    "ToolNotFound",
]
