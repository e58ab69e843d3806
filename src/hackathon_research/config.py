"""Configuration via environment variables using pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class ResearchConfig(BaseSettings):
    """All research settings, loaded from env vars with HACKATHON_RESEARCH_ prefix."""

    model_config = {"env_prefix": "HACKATHON_RESEARCH_", "extra": "ignore", "env_file": ".env"}

    # --- Exa search ---
    exa_api_key: str = ""
    search_endpoint: str = "https://api.exa.ai/search"
    search_mode: str = "auto"
    search_num_results: int = 5
    search_cache_ttl_hours: int = 24

    # --- Completion provider ---
    llm_provider: str = "anthropic"  # anthropic | openai
    llm_timeout_seconds: int = 60
    llm_max_tokens: int = 4096
    llm_temperature: float = 0.3

    anthropic_api_key: str = ""
    llm_model: str = "claude-sonnet-4-5-20250929"

    # OpenAI-compatible alternate (OpenRouter by default)
    openai_api_key: str = ""
    openai_base_url: str = "https://openrouter.ai/api/v1"
    openai_model: str = "openai/gpt-4-turbo"
    openai_http_referer: str = "https://github.com"
    openai_app_name: str = "Hackathon Research"

    # --- Loop budgets ---
    max_refinements: int = 2
    quality_threshold: int = 60
    max_plan_queries: int = 5
    deep_dive_queries: int = 2
    max_plan_length: int = 12
    memory_capacity: int = 50
    memory_examples: int = 3

    # --- Analysis context bounds ---
    analysis_max_results: int = 5
    analysis_snippet_chars: int = 300
    success_max_results: int = 8
    success_snippet_chars: int = 400

    # --- Discovery ---
    discovery_limit: int = 25
    discovery_num_results: int = 10
    context_num_results: int = 6
    success_story_num_results: int = 3
    max_name_length: int = 100
    primary_source_domain: str = "devpost.com"

    # --- Throttles (seconds) ---
    refine_delay_seconds: float = 2.0
    query_delay_seconds: float = 1.5
    candidate_delay_seconds: float = 1.5
    project_delay_seconds: float = 3.0

    # --- Batch / trigger ---
    batch_limit: int = 10
    trigger_workers: int = 2

    # --- Paths ---
    db_path: Path = Field(default=Path("data/hackathon_research.db"))

    # --- HTTP ---
    http_timeout_seconds: int = 15

    # --- Runtime ---
    offline_mode: bool = False

    @property
    def use_openai_compatible(self) -> bool:
        return self.llm_provider.strip().lower() == "openai"
