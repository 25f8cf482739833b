"""
Structured Agent: multi-turn LLM orchestration with tools, schema-checked JSON
output and a replayable response cache.
"""

from .agent import Agent
from .error_handling import (
    ErrorHandler,
    InvalidJsonAfterMaxAttempts,
    NoBackendConfigured,
    ProviderError,
    SchemaValidationError,
    StructuredAgentError,
    ToolNotFound,
)
from .json_validator import JsonValidator
from .local_cache import LocalCache, resolve_cache_paths
from .observation import Observation, Observer
from .provider_ir import (
    Message,
    OutputMessage,
    Response,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from .providers import (
    AnthropicProvider,
    AWSAnthropicProvider,
    AzureOpenAIProvider,
    BaseProvider,
    OpenAIProvider,
    create_provider,
    provider_registry,
)
from .tool import Tool, ToolCallContext

__version__ = "0.1.0"

__all__ = [
    "AWSAnthropicProvider",
    "Agent",
    "AnthropicProvider",
    "AzureOpenAIProvider",
    "BaseProvider",
    "ErrorHandler",
    "InvalidJsonAfterMaxAttempts",
    "JsonValidator",
    "LocalCache",
    "Message",
    "NoBackendConfigured",
    "Observation",
    "Observer",
    "OpenAIProvider",
    "OutputMessage",
    "ProviderError",
    "Response",
    "SchemaValidationError",
    "StructuredAgentError",
    "TextBlock",
    "Tool",
    "ToolCallContext",
    "ToolNotFound",
    "ToolResultBlock",
    "ToolUseBlock",
    "create_provider",
    "provider_registry",
    "resolve_cache_paths",
]
