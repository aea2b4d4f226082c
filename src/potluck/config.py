"""Settings for Potluck, read from POTLUCK_* environment variables and .env files."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/potluck.db"),
        description="SQLite database location.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for authenticated endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    merge_service_url: Optional[str] = Field(
        default=None,
        description="Semantic merge endpoint (e.g. http://localhost:8000/combine-ingredients).",
    )
    merge_service_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the semantic merge endpoint.",
    )
    merge_timeout: float = Field(
        default=60.0,
        description="Seconds to wait for a semantic merge response.",
    )
    merge_llm_base_url: Optional[str] = Field(
        default=None,
        description="LLM base URL used by the merge authority (OpenAI-compatible, Ollama or Anthropic).",
    )
    merge_llm_api_key: Optional[str] = Field(
        default=None,
        description="API key for the merge authority LLM.",
    )
    merge_llm_model: str = Field(
        default="claude-sonnet-4-5-20250929",
        description="Model identifier passed to the merge authority LLM.",
    )
    merge_llm_provider: str = Field(
        default="anthropic",
        description="Merge authority LLM provider (anthropic, openai or ollama).",
    )
    merge_llm_temperature: float = Field(
        default=0.0,
        description="Sampling temperature for semantic merge calls.",
    )
    merge_llm_max_tokens: int = Field(
        default=8192,
        description="Maximum tokens to request from the merge authority LLM.",
    )
    default_pantry_items: tuple[str, ...] = Field(
        default=("salt", "pepper", "water"),
        description="Pantry names seeded for new users.",
    )

    model_config = ConfigDict(frozen=True)


def _as_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _as_name_tuple(raw: str) -> tuple[str, ...]:
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


# Environment variable -> (settings field, converter). Values that fail conversion are ignored.
_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "POTLUCK_DATABASE_PATH": ("database_path", Path),
    "POTLUCK_API_TOKEN": ("api_token", str),
    "POTLUCK_LOG_LEVEL": ("log_level", str),
    "POTLUCK_LOG_FORMAT": ("log_format", str),
    "POTLUCK_LOG_REQUESTS": ("log_requests", _as_bool),
    "POTLUCK_MERGE_SERVICE_URL": ("merge_service_url", str),
    "POTLUCK_MERGE_SERVICE_TOKEN": ("merge_service_token", str),
    "POTLUCK_MERGE_TIMEOUT": ("merge_timeout", float),
    "POTLUCK_MERGE_LLM_BASE_URL": ("merge_llm_base_url", str),
    "POTLUCK_MERGE_LLM_API_KEY": ("merge_llm_api_key", str),
    "POTLUCK_MERGE_LLM_MODEL": ("merge_llm_model", str),
    "POTLUCK_MERGE_LLM_PROVIDER": ("merge_llm_provider", str),
    "POTLUCK_MERGE_LLM_TEMPERATURE": ("merge_llm_temperature", float),
    "POTLUCK_MERGE_LLM_MAX_TOKENS": ("merge_llm_max_tokens", int),
    "POTLUCK_DEFAULT_PANTRY_ITEMS": ("default_pantry_items", _as_name_tuple),
}

# Read only when the Potluck-specific variable is unset.
_ENV_FALLBACKS = {"POTLUCK_MERGE_LLM_API_KEY": "ANTHROPIC_API_KEY"}


def _read_env_files() -> dict[str, str]:
    """Merge KEY=VALUE lines from the candidate .env files (later files win)."""

    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        if not candidate.is_file():
            continue
        for line in candidate.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                values[key.strip()] = value.strip().strip("'\"")
    return values


def _load_from_env() -> dict[str, object]:
    """Collect settings overrides from the process environment, then .env files."""

    file_values = _read_env_files()

    def lookup(key: str) -> Optional[str]:
        value = os.environ.get(key) or file_values.get(key)
        if not value and key in _ENV_FALLBACKS:
            return lookup(_ENV_FALLBACKS[key])
        return value

    overrides: dict[str, object] = {}
    for key, (field, convert) in _ENV_FIELDS.items():
        raw = lookup(key)
        if not raw:
            continue
        try:
            overrides[field] = convert(raw)
        except ValueError:
            logger.warning("Ignoring invalid value for %s", key)
    return overrides


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
