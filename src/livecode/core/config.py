"""Configuration system for livecode using Pydantic."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LANGUAGES = [
    "typescript",
    "typescriptreact",
    "javascript",
    "javascriptreact",
]


class IndexerConfig(BaseModel):
    """Structure indexer configuration."""

    debounce_ms: int = Field(default=250, ge=0)
    max_document_chars: int = Field(default=200_000, gt=0)
    max_retired_ids: int = Field(default=4096, ge=0)
    supported_languages: list[str] = Field(default_factory=lambda: list(DEFAULT_LANGUAGES))

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000.0

    def is_supported(self, language_id: str) -> bool:
        return language_id in self.supported_languages


class InsightsConfig(BaseModel):
    """Query helpers used by command and decoration surfaces."""

    recent_changes_limit: int = Field(default=5, ge=0)


class LiveCodeConfig(BaseModel):
    """Root configuration model."""

    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    insights: InsightsConfig = Field(default_factory=InsightsConfig)


class EnvSettings(BaseSettings):
    """Environment variable overrides."""

    model_config = SettingsConfigDict(
        env_prefix="LIVECODE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debounce_ms: int | None = None
    max_document_chars: int | None = None
    log_level: str = "WARNING"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, override wins on conflicts."""
    result = {**base}
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load a YAML config file, return empty dict if not found."""
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


_ENV_REF_RE = re.compile(r"\$\{(\w+)\}")


def _resolve_env_vars(value: Any) -> Any:
    """Recursively replace ${ENV_VAR} references with actual env values.

    If an env var is not set, the placeholder is preserved as-is.
    """
    if isinstance(value, str):
        return _ENV_REF_RE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def load_config(
    project_dir: Path | None = None,
    global_config_dir: Path | None = None,
) -> LiveCodeConfig:
    """Load configuration with layered precedence.

    Order (later overrides earlier):
    1. Built-in defaults (Pydantic defaults)
    2. ~/.livecode/config.yaml (global user config)
    3. .livecode/config.yaml (project-level config)
    4. Environment variables (LIVECODE_DEBOUNCE_MS, LIVECODE_MAX_DOCUMENT_CHARS)
    """
    global_dir = global_config_dir or Path.home() / ".livecode"
    project_config_dir = (project_dir or Path.cwd()) / ".livecode"

    merged: dict[str, Any] = {}
    for config_path in [
        global_dir / "config.yaml",
        project_config_dir / "config.yaml",
    ]:
        layer = load_yaml_config(config_path)
        merged = _deep_merge(merged, layer)

    config = LiveCodeConfig(**_resolve_env_vars(merged))

    env = EnvSettings()
    indexer_updates: dict[str, Any] = {}
    if env.debounce_ms is not None:
        indexer_updates["debounce_ms"] = env.debounce_ms
    if env.max_document_chars is not None:
        indexer_updates["max_document_chars"] = env.max_document_chars
    if indexer_updates:
        config = config.model_copy(
            update={"indexer": config.indexer.model_copy(update=indexer_updates)}
        )

    return config
