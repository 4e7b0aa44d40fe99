"""
Configuration loading: source list from YAML, settings from the environment.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .models import Source


logger = logging.getLogger(__name__)


DEFAULT_SOURCES: List[Dict[str, str]] = [
    {"url": "https://shu.edu.pk/", "type": "homepage"},
    {"url": "https://shu.edu.pk/qec/contact-us/", "type": "contact"},
    {"url": "https://shu.edu.pk/programs/", "type": "programs"},
    {"url": "https://shu.edu.pk/news/", "type": "news"},
]


class IngestConfig(BaseModel):
    """Explicit settings for one pipeline invocation."""
    database_url: str
    sources: List[Source] = Field(default_factory=lambda: [Source(**s) for s in DEFAULT_SOURCES])
    fetch_timeout: float = 30.0
    max_retries: int = 3
    user_agent: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8080
    context_limit: int = 20

    @field_validator("database_url")
    @classmethod
    def _database_url_present(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("database_url must not be empty")
        return value.strip()

    @field_validator("sources")
    @classmethod
    def _unique_sources(cls, value: List[Source]) -> List[Source]:
        if not value:
            raise ValueError("at least one source must be configured")
        urls = [s.url for s in value]
        if len(set(urls)) != len(urls):
            raise ValueError("source URLs must be unique")
        return value

    @field_validator("fetch_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("fetch_timeout must be positive")
        return value


def load_sources(path: str) -> Optional[List[Dict[str, Any]]]:
    """Load the source list from a YAML file; ``None`` when the file is absent."""
    config_path = Path(path)
    if not config_path.exists():
        logger.info("Source config %s not found, using built-in sources", path)
        return None

    with config_path.open() as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict) or "sources" not in data:
        raise ConfigurationError(f"No 'sources' key found in {path}")
    return data["sources"]


def load_config(
    sources_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> IngestConfig:
    """Build an :class:`IngestConfig` from YAML and environment variables.

    Raises :class:`ConfigurationError` when a required setting is missing
    or a value does not validate.
    """
    env = os.environ if env is None else env
    sources_path = sources_path or env.get("SOURCES_CONFIG", "sources.yml")

    database_url = env.get("CONTENT_DB_URL")
    if not database_url:
        raise ConfigurationError("CONTENT_DB_URL is not configured")

    raw: Dict[str, Any] = {"database_url": database_url}

    try:
        sources = load_sources(sources_path)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {sources_path}: {e}") from e
    if sources is not None:
        raw["sources"] = sources

    for key, var in (
        ("fetch_timeout", "FETCH_TIMEOUT"),
        ("max_retries", "FETCH_MAX_RETRIES"),
        ("user_agent", "FETCH_USER_AGENT"),
        ("host", "INGEST_HOST"),
        ("port", "INGEST_PORT"),
        ("context_limit", "CONTEXT_LIMIT"),
    ):
        if env.get(var):
            raw[key] = env[var]

    try:
        return IngestConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
