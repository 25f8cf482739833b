"""YAML configuration (``extends`` + validation) and collaborator builders."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import yaml

from .agent import Agent
from .error_handling.error_handler import ErrorHandler
from .local_cache import LocalCache, resolve_cache_paths
from .providers.base import BaseProvider
from .providers.registry import provider_registry
from .tool import Tool

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ProviderSettings:
    id: str
    model: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CacheSettings:
    enabled: bool = False
    dir: str = "cache"


@dataclass
class AgentSettings:
    instructions: Optional[str] = None
    max_tokens: int = 4000
    max_turns: int = 5
    json_max_attempts: int = 2
    error_snapshot_path: Optional[str] = None


@dataclass
class LoggingSettings:
    level: str = "WARNING"


@dataclass
class RuntimeConfig:
    provider: ProviderSettings
    cache: CacheSettings = field(default_factory=CacheSettings)
    agent: AgentSettings = field(default_factory=AgentSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    source_path: Optional[str] = None


def _load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        doc = yaml.safe_load(f) or {}
    if not isinstance(doc, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return doc


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge two dicts recursively. Lists are replaced, not merged.
    Scalars replace.
    """
    out: Dict[str, Any] = dict(base)
    for k, v in (override or {}).items():
        if isinstance(out.get(k), dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _resolve_extends(doc: Dict[str, Any], config_path: Path) -> Dict[str, Any]:
    extends_val = doc.get("extends")
    if not extends_val:
        return doc

    paths = list(extends_val) if isinstance(extends_val, (list, tuple)) else [extends_val]
    merged: Dict[str, Any] = {}
    for rel in paths:
        base_path = (config_path.parent / str(rel)).resolve()
        base_doc = _resolve_extends(_load_yaml(base_path), base_path)
        merged = _deep_merge(merged, base_doc)
    return _deep_merge(merged, {k: v for k, v in doc.items() if k != "extends"})


def _require_mapping(doc: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = doc.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} section must be a mapping")
    return value


def _positive_int(section: Dict[str, Any], key: str, label: str, *, allow_zero: bool = False) -> None:
    if key not in section:
        return
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label}.{key} must be an integer")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValueError(f"{label}.{key} must be {'non-negative' if allow_zero else 'positive'}")


def _validate(doc: Dict[str, Any]) -> None:
    provider = _require_mapping(doc, "provider")
    if not provider:
        raise ValueError("config missing required section: provider")
    if not provider.get("id"):
        raise ValueError("provider.id is required")
    if provider_registry.get_descriptor(str(provider["id"])) is None:
        raise ValueError(f"provider.id '{provider['id']}' is not a known provider")
    if not provider.get("model"):
        raise ValueError("provider.model is required")
    if not isinstance(provider.get("options") or {}, dict):
        raise ValueError("provider.options must be a mapping")

    _require_mapping(doc, "cache")

    agent = _require_mapping(doc, "agent")
    _positive_int(agent, "max_tokens", "agent")
    _positive_int(agent, "max_turns", "agent")
    _positive_int(agent, "json_max_attempts", "agent", allow_zero=True)

    logging_cfg = _require_mapping(doc, "logging")
    level = str(logging_cfg.get("level", "WARNING")).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")


def load_config(config_path_str: str) -> RuntimeConfig:
    """Load a runtime config, resolving ``extends`` chains before validation."""
    config_path = Path(config_path_str).resolve()
    doc = _resolve_extends(_load_yaml(config_path), config_path)
    _validate(doc)

    provider = doc["provider"]
    cache = doc.get("cache") or {}
    agent = doc.get("agent") or {}
    logging_cfg = doc.get("logging") or {}

    cache_dir = str(cache.get("dir", "cache"))
    if not os.path.isabs(cache_dir):
        cache_dir = str((config_path.parent / cache_dir).resolve())

    return RuntimeConfig(
        provider=ProviderSettings(
            id=str(provider["id"]),
            model=str(provider["model"]),
            options=dict(provider.get("options") or {}),
        ),
        cache=CacheSettings(enabled=bool(cache.get("enabled", False)), dir=cache_dir),
        agent=AgentSettings(
            instructions=agent.get("instructions"),
            max_tokens=int(agent.get("max_tokens", 4000)),
            max_turns=int(agent.get("max_turns", 5)),
            json_max_attempts=int(agent.get("json_max_attempts", 2)),
            error_snapshot_path=agent.get("error_snapshot_path"),
        ),
        logging=LoggingSettings(level=str(logging_cfg.get("level", "WARNING")).upper()),
        source_path=str(config_path),
    )


def apply_logging_config(config: RuntimeConfig) -> None:
    logging.getLogger("structured_agent").setLevel(config.logging.level)


def build_cache(config: RuntimeConfig, environ: Optional[Mapping[str, str]] = None) -> Optional[LocalCache]:
    if not config.cache.enabled:
        return None
    read_path, write_path = resolve_cache_paths(config.cache.dir, environ)
    return LocalCache(read_path=read_path, write_path=write_path)


def build_provider(
    config: RuntimeConfig,
    cache: Optional[LocalCache] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BaseProvider:
    return provider_registry.create_provider(
        config.provider.id,
        cache=cache,
        environ=environ,
        **config.provider.options,
    )


def build_agent(config: RuntimeConfig, tools: Optional[Sequence[Tool]] = None) -> Agent:
    handler = ErrorHandler(snapshot_path=config.agent.error_snapshot_path)
    return Agent(
        instructions=config.agent.instructions,
        tools=list(tools or []),
        error_handler=handler,
        max_tokens=config.agent.max_tokens,
        max_turns=config.agent.max_turns,
        max_attempts=config.agent.json_max_attempts,
    )
