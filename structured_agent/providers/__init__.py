"""
Model backends behind a single provider contract
"""

from .anthropic_provider import AnthropicProvider, AWSAnthropicProvider
from .base import CACHE_FORMAT_VERSION, BaseProvider
from .openai_provider import AzureOpenAIProvider, OpenAIProvider
from .registry import ProviderDescriptor, ProviderRegistry, create_provider, provider_registry

__all__ = [
    "AWSAnthropicProvider",
    "AnthropicProvider",
    "AzureOpenAIProvider",
    "BaseProvider",
    "CACHE_FORMAT_VERSION",
    "OpenAIProvider",
    "ProviderDescriptor",
    "ProviderRegistry",
    "create_provider",
    "provider_registry",
]
