from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"
    secret_key: str = "change-me"

    database_url: str = "sqlite:///./booky.db"
    redis_url: str = "redis://localhost:6379/0"

    init_admin_email: str | None = None
    init_admin_password: str | None = None

    access_token_exp_minutes: int = 60 * 24

    agentmail_base_url: str = "https://api.agentmail.to"
    agentmail_api_key: str = ""
    agentmail_from_name: str = "AgentMail"
    agentmail_domain: str = "5-dee.com"
    agentmail_dev_mode: bool = True
    agentmail_timeout_seconds: float = 10.0
    agentmail_max_attempts: int = 3
    agentmail_backoff_base_seconds: float = 0.3

    groq_api_key: str | None = None
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_model: str = "llama-3.3-70b-versatile"
    groq_temperature: float = 0.7
    groq_max_tokens: int = 2000
    groq_timeout_seconds: float = 30.0

    recommendation_cache_backend: Literal["memory", "redis"] = "memory"
    recommendation_cache_ttl_seconds: int = 5 * 60
    recommendation_max_retries: int = 3
    recommendation_retry_delay_seconds: float = 1.0

    payment_link_base_url: str = "https://example.com/pay"


settings = Settings()
