"""Registry mapping provider identifiers to backend classes and credentials."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Type

from ..local_cache import LocalCache
from .anthropic_provider import AnthropicProvider, AWSAnthropicProvider
from .base import BaseProvider
from .openai_provider import AzureOpenAIProvider, OpenAIProvider


@dataclass
class ProviderDescriptor:
    """Describes how to construct a provider from the environment.

    ``env_options`` maps constructor keyword arguments to the environment
    variables that supply them.
    """

    provider_id: str
    provider_cls: Type[BaseProvider]
    env_options: Dict[str, str] = field(default_factory=dict)
    description: str = ""


class ProviderRegistry:
    """Registry that maps provider identifiers to descriptors."""

    def __init__(self) -> None:
        self._descriptors: Dict[str, ProviderDescriptor] = {}

    def register_provider(self, descriptor: ProviderDescriptor) -> None:
        if not issubclass(descriptor.provider_cls, BaseProvider):
            raise TypeError(f"Provider {descriptor.provider_cls!r} must inherit BaseProvider")
        self._descriptors[descriptor.provider_id] = descriptor

    def get_descriptor(self, provider_id: str) -> Optional[ProviderDescriptor]:
        return self._descriptors.get(provider_id)

    def provider_ids(self) -> List[str]:
        return sorted(self._descriptors)

    def create_provider(
        self,
        provider_id: str,
        cache: Optional[LocalCache] = None,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> BaseProvider:
        """Instantiate a provider; explicit ``overrides`` win over the environment."""
        descriptor = self.get_descriptor(provider_id)
        if descriptor is None:
            known = ", ".join(self.provider_ids())
            raise ValueError(f"Unknown provider '{provider_id}' (known: {known})")
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {}
        for option, env_name in descriptor.env_options.items():
            value = env.get(env_name)
            if value:
                kwargs[option] = value
        kwargs.update({key: value for key, value in overrides.items() if value is not None})
        return descriptor.provider_cls(cache=cache, **kwargs)


provider_registry = ProviderRegistry()

provider_registry.register_provider(
    ProviderDescriptor(
        provider_id="openai",
        provider_cls=OpenAIProvider,
        env_options={"api_key": "OPENAI_API_KEY", "base_url": "OPENAI_BASE_URL"},
        description="OpenAI Chat Completions",
    )
)
provider_registry.register_provider(
    ProviderDescriptor(
        provider_id="azure-openai",
        provider_cls=AzureOpenAIProvider,
        env_options={
            "api_key": "AZURE_OPENAI_API_KEY",
            "endpoint": "AZURE_OPENAI_ENDPOINT",
            "api_version": "AZURE_OPENAI_API_VERSION",
            "deployment": "AZURE_OPENAI_DEPLOYMENT",
        },
        description="Azure OpenAI Chat Completions",
    )
)
provider_registry.register_provider(
    ProviderDescriptor(
        provider_id="anthropic",
        provider_cls=AnthropicProvider,
        env_options={"api_key": "ANTHROPIC_API_KEY"},
        description="Anthropic Messages API",
    )
)
provider_registry.register_provider(
    ProviderDescriptor(
        provider_id="aws-anthropic",
        provider_cls=AWSAnthropicProvider,
        env_options={
            "aws_access_key": "AWS_ACCESS_KEY",
            "aws_secret_key": "AWS_SECRET_KEY",
            "aws_region": "AWS_REGION",
        },
        description="Anthropic Messages API on AWS Bedrock",
    )
)


def create_provider(
    provider_id: str,
    cache: Optional[LocalCache] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> BaseProvider:
    return provider_registry.create_provider(provider_id, cache=cache, environ=environ, **overrides)
