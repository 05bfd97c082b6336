"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    es_host: str = _get_env("ES_HOST", "http://localhost:9200")
    es_index: str = _get_env("ES_INDEX", "products")
    es_request_timeout: float = float(_get_env("ES_REQUEST_TIMEOUT", "5"))
    mapping_path: str = _get_env("MAPPING_PATH", "product-mapping.json")
    products_path: str = _get_env("PRODUCTS_PATH", "products.json")
    load_on_startup: bool = _get_env("LOAD_ON_STARTUP", "true").lower() in {"1", "true", "yes"}
    retrieval_limit: int = int(_get_env("RETRIEVAL_LIMIT", "150"))
    llm_api_key: str = _get_env("LLM_API_KEY", _get_env("GROQ_API_KEY", ""))
    llm_base_url: str = _get_env("LLM_BASE_URL", "https://api.groq.com/openai/v1")
    llm_model: str = _get_env("LLM_MODEL", "llama-3.1-8b-instant")
    llm_timeout_ms: int = int(_get_env("LLM_TIMEOUT_MS", "800"))
    enhancement_cache_ttl_seconds: int = int(_get_env("ENHANCEMENT_CACHE_TTL_SECONDS", "1800"))
    enhancement_cache_sweep_seconds: int = int(_get_env("ENHANCEMENT_CACHE_SWEEP_SECONDS", "300"))
    enhancement_cache_backend: str = _get_env("ENHANCEMENT_CACHE_BACKEND", "memory")
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
