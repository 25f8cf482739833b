import pytest

from structured_agent.error_handling import NoBackendConfigured
from structured_agent.local_cache import LocalCache
from structured_agent.providers import (
    AnthropicProvider,
    AWSAnthropicProvider,
    AzureOpenAIProvider,
    OpenAIProvider,
    create_provider,
    provider_registry,
)
from structured_agent.providers.registry import ProviderDescriptor, ProviderRegistry


class _FakeClient:
    def __init__(self, **kwargs):
        self.kwargs = kwargs


@pytest.fixture(autouse=True)
def _fake_sdks(monkeypatch):
    monkeypatch.setattr("structured_agent.providers.openai_provider.OpenAI", _FakeClient)
    monkeypatch.setattr("structured_agent.providers.openai_provider.AzureOpenAI", _FakeClient)
    monkeypatch.setattr("structured_agent.providers.anthropic_provider.Anthropic", _FakeClient)
    monkeypatch.setattr("structured_agent.providers.anthropic_provider.AnthropicBedrock", _FakeClient)


def test_known_provider_ids():
    assert provider_registry.provider_ids() == ["anthropic", "aws-anthropic", "azure-openai", "openai"]


def test_credentials_come_from_environment():
    provider = create_provider("openai", environ={"OPENAI_API_KEY": "sk-env"})
    assert isinstance(provider, OpenAIProvider)
    assert provider.client.kwargs == {"api_key": "sk-env"}

    provider = create_provider("anthropic", environ={"ANTHROPIC_API_KEY": "ak-env"})
    assert isinstance(provider, AnthropicProvider)

    provider = create_provider(
        "azure-openai",
        environ={
            "AZURE_OPENAI_API_KEY": "az",
            "AZURE_OPENAI_ENDPOINT": "https://example.openai.azure.com",
            "AZURE_OPENAI_DEPLOYMENT": "prod",
        },
    )
    assert isinstance(provider, AzureOpenAIProvider)
    assert provider.deployment == "prod"

    provider = create_provider(
        "aws-anthropic",
        environ={"AWS_ACCESS_KEY": "AKIA", "AWS_SECRET_KEY": "s", "AWS_REGION": "us-west-2"},
    )
    assert isinstance(provider, AWSAnthropicProvider)
    assert provider.client.kwargs["aws_region"] == "us-west-2"


def test_overrides_win_over_environment():
    provider = create_provider("openai", environ={"OPENAI_API_KEY": "sk-env"}, api_key="sk-explicit", max_output_tokens=32)
    assert provider.client.kwargs == {"api_key": "sk-explicit"}
    assert provider.max_output_tokens == 32


def test_cache_only_construction(tmp_path):
    cache = LocalCache(str(tmp_path / "cache.json"))
    provider = create_provider("anthropic", cache=cache, environ={})
    assert provider.cache is cache
    assert provider.client is None


def test_missing_credentials_fail_fast():
    with pytest.raises(NoBackendConfigured):
        create_provider("openai", environ={})


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown provider"):
        create_provider("nope", environ={})


def test_registry_rejects_non_provider_classes():
    registry = ProviderRegistry()
    with pytest.raises(TypeError):
        registry.register_provider(ProviderDescriptor(provider_id="bad", provider_cls=dict))
