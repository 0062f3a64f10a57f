"""
Configuration Management for Log Inspector

Loads configuration from ~/.loginspector/config.json, a local .env file
and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

from dotenv import load_dotenv

logger = logging.getLogger("loginspector.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".loginspector"
CONFIG_PATH = CONFIG_DIR / "config.json"


@dataclass
class LLMConfig:
    """Text-generation provider used for evidence summaries"""
    provider: str = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"
    max_tokens: int = 1024
    timeout: float = 30.0

    @property
    def model(self) -> str:
        """Model name for the selected provider"""
        return {
            "anthropic": self.anthropic_model,
            "openai": self.openai_model,
            "google": self.google_model,
        }.get(self.provider, "")

    @property
    def api_key(self) -> str:
        """API key for the selected provider"""
        return {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "google": self.google_api_key,
        }.get(self.provider, "")


@dataclass
class EmbeddingConfig:
    """Vector space settings for keyword-mode enumeration"""
    neutral_dimension: int = 0  # 0 = detect from the store


@dataclass
class RetrievalConfig:
    """Thresholds and limits for evidence retrieval"""
    relevance_threshold: float = 0.3
    request_max_results: int = 50
    search_max_results: int = 15
    semantic_fetch_limit: int = 200
    keyword_scan_limit: int = 2000
    search_scan_limit: int = 1000
    search_min_score: float = 0.1
    description_max_length: int = 100


@dataclass
class InspectorConfig:
    """Main Log Inspector configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        max_tokens=int(llm_data.get("max_tokens", defaults.max_tokens)),
        timeout=float(llm_data.get("timeout", defaults.timeout)),
    )


def _parse_embedding_config(data: dict) -> EmbeddingConfig:
    """Parse embedding section from config dict"""
    embedding_data = data.get("embedding", {})
    defaults = EmbeddingConfig()
    return EmbeddingConfig(
        neutral_dimension=int(embedding_data.get("neutral_dimension", defaults.neutral_dimension)),
    )


def _parse_retrieval_config(data: dict) -> RetrievalConfig:
    """Parse retrieval section from config dict"""
    retrieval_data = data.get("retrieval", {})
    defaults = RetrievalConfig()
    return RetrievalConfig(
        relevance_threshold=float(retrieval_data.get("relevance_threshold", defaults.relevance_threshold)),
        request_max_results=int(retrieval_data.get("request_max_results", defaults.request_max_results)),
        search_max_results=int(retrieval_data.get("search_max_results", defaults.search_max_results)),
        semantic_fetch_limit=int(retrieval_data.get("semantic_fetch_limit", defaults.semantic_fetch_limit)),
        keyword_scan_limit=int(retrieval_data.get("keyword_scan_limit", defaults.keyword_scan_limit)),
        search_scan_limit=int(retrieval_data.get("search_scan_limit", defaults.search_scan_limit)),
        search_min_score=float(retrieval_data.get("search_min_score", defaults.search_min_score)),
        description_max_length=int(
            retrieval_data.get("description_max_length", defaults.description_max_length)
        ),
    )


def _env_number(name: str, cast):
    """Read a numeric env var; malformed values are ignored with a warning."""
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring malformed %s=%r", name, raw)
        return None


def load_config() -> InspectorConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (including a local .env file)
    2. Config file (~/.loginspector/config.json)
    3. Default values
    """
    config = InspectorConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.embedding = _parse_embedding_config(data)
            config.retrieval = _parse_retrieval_config(data)
        except (json.JSONDecodeError, IOError, ValueError, TypeError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)
            config = InspectorConfig()

    load_dotenv()

    # LLM env var overrides (track env-sourced keys so they are never persisted)
    _env_llm_map = {
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "LOGINSPECTOR_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    neutral_dimension = _env_number("LOGINSPECTOR_NEUTRAL_DIMENSION", int)
    if neutral_dimension is not None:
        config.embedding.neutral_dimension = neutral_dimension

    threshold = _env_number("LOGINSPECTOR_RELEVANCE_THRESHOLD", float)
    if threshold is not None:
        config.retrieval.relevance_threshold = threshold
    request_max = _env_number("LOGINSPECTOR_REQUEST_MAX_RESULTS", int)
    if request_max is not None:
        config.retrieval.request_max_results = request_max
    search_max = _env_number("LOGINSPECTOR_SEARCH_MAX_RESULTS", int)
    if search_max is not None:
        config.retrieval.search_max_results = search_max

    return config


def save_config(config: InspectorConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    llm_section = {
        "provider": config.llm.provider,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
        "max_tokens": config.llm.max_tokens,
        "timeout": config.llm.timeout,
    }
    for key in ("anthropic_api_key", "openai_api_key", "google_api_key"):
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "llm": llm_section,
        "embedding": {
            "neutral_dimension": config.embedding.neutral_dimension,
        },
        "retrieval": {
            "relevance_threshold": config.retrieval.relevance_threshold,
            "request_max_results": config.retrieval.request_max_results,
            "search_max_results": config.retrieval.search_max_results,
            "semantic_fetch_limit": config.retrieval.semantic_fetch_limit,
            "keyword_scan_limit": config.retrieval.keyword_scan_limit,
            "search_scan_limit": config.retrieval.search_scan_limit,
            "search_min_score": config.retrieval.search_min_score,
            "description_max_length": config.retrieval.description_max_length,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)
