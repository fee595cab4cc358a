"""Configuration system for subtitle-ai.

Layered config loading (lowest to highest priority):
1. config/default.toml (shipped with package)
2. ~/.config/subai/config.toml (user-level)
3. ./subai.toml (project-level)
4. Environment variables (SUBAI_LLM__PREMIUM_MODEL, etc.)
5. CLI flags
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_DEFAULT_CONFIG = _PACKAGE_ROOT / "config" / "default.toml"
_USER_CONFIG = Path.home() / ".config" / "subai" / "config.toml"
_PROJECT_CONFIG = Path("subai.toml")


class LLMConfig(BaseModel):
    fast_model: str = "gpt-4o-mini"
    premium_model: str = "gpt-4o"
    research_model: str = "gpt-4o-mini"
    api_key: str | None = None  # Falls back to provider env vars (OPENAI_API_KEY, ...)
    api_base: str | None = None
    temperature: float = 0.1
    max_tokens: int = 4000
    research_max_tokens: int = 800
    research_reasoning_effort: str = "low"


class TranslationConfig(BaseModel):
    fast_batch_size: int = 30
    premium_batch_size: int = 25
    min_concurrency: int = 3
    fast_max_concurrency: int = 6
    premium_max_concurrency: int = 5
    failure_threshold: int = 5  # Consecutive failed batches before giving up on the provider
    max_retries: int = 3  # Attempts per batch
    retry_base_delay: float = 1.0
    retry_max_delay: float = 5.0
    batch_timeout: float = 60.0
    file_timeout_base: float = 60.0
    file_timeout_per_cue: float = 0.5
    file_timeout_ceiling: float = 780.0
    wave_delay: float = 0.25
    progress_interval: float = 0.5
    mock_phase_delay_scale: float = 1.0

    def file_timeout(self, cue_count: int) -> float:
        """Whole-file timeout, scaled with cue count and capped at the ceiling."""
        return min(
            self.file_timeout_ceiling,
            self.file_timeout_base + self.file_timeout_per_cue * cue_count,
        )


class SubAIConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SUBAI_",
        env_nested_delimiter="__",
    )

    llm: LLMConfig = LLMConfig()
    translation: TranslationConfig = TranslationConfig()
    default_tier: str = "premium"
    source_language: str = "en"
    target_language: str = "cs"


def _load_toml(path: Path) -> dict:
    """Load a TOML file if it exists, return empty dict otherwise."""
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(**cli_overrides: object) -> SubAIConfig:
    """Load configuration from all layers and merge.

    Args:
        **cli_overrides: Direct overrides from CLI flags. Keys can be
            dot-separated (e.g. llm.premium_model="gpt-4o-mini").
    """
    # Layer 1-3: TOML files
    config_data: dict = {}
    for path in (_DEFAULT_CONFIG, _USER_CONFIG, _PROJECT_CONFIG):
        layer = _load_toml(path)
        config_data = _deep_merge(config_data, layer)

    # Flatten 'general' section into top-level
    if "general" in config_data:
        general = config_data.pop("general")
        config_data = _deep_merge(config_data, general)

    # Layer 4: SUBAI_* env vars, nested on "__", over every TOML layer
    config_data = _deep_merge(config_data, EnvSettingsSource(SubAIConfig)())

    # Layer 5: CLI overrides (dot-separated keys)
    for key, value in cli_overrides.items():
        if value is None:
            continue
        parts = key.split(".")
        target = config_data
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value

    return SubAIConfig(**config_data)
