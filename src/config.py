"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    redis_url: str = "redis://localhost:6379"
    log_level: str = "INFO"

    user_agent: str = "page-analyzer/0.1.0"
    page_timeout_seconds: float = 30.0
    probe_timeout_seconds: float = 5.0
    max_probe_links: int = 10
    probe_concurrency: int = 5
    max_tree_depth: int = 1000

    crawl_workers: int = 4
    crawl_queue_size: int = 100


@lru_cache
def get_settings() -> Settings:
    return Settings()
