"""
Error taxonomy for agent calls
"""

from typing import Any, Dict, List, Optional


class StructuredAgentError(RuntimeError):
    """Base class for errors raised by the agent and its collaborators."""


class ToolNotFound(StructuredAgentError):
    """Raised when the model requests a tool name that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Tool with name {name} not found.")
        self.name = name


class NoBackendConfigured(StructuredAgentError):
    """Raised when a provider has neither credentials nor a cache to answer from."""


class SchemaValidationError(StructuredAgentError):
    """Structural violations reported by the JSON schema validator."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors) or "JSON failed schema validation")
        self.errors: List[str] = list(errors)


class InvalidJsonAfterMaxAttempts(StructuredAgentError):
    """Raised when the repair loop exhausts its attempts without valid JSON."""

    def __init__(self, text: str, attempts: int, errors: Optional[List[str]] = None):
        self.text_preview = (text or "")[:100]
        self.attempts = attempts
        self.errors: List[str] = list(errors or [])
        super().__init__(f"Unable to validate JSON after {attempts} attempts: {self.text_preview}")

    @property
    def validation_error(self) -> SchemaValidationError:
        return SchemaValidationError(self.errors)


class ProviderError(StructuredAgentError):
    """Raised when a model backend call fails."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details: Dict[str, Any] = details or {}
