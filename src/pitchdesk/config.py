from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Pitchdesk"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8790
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/pitchdesk.db"
    data_dir: Path = Path("./data")

    storage_users_key: str = "pitchdesk_users"
    storage_session_key: str = "pitchdesk_session"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model_analysis: str = "gpt-5"
    openai_model_fast: str = "gpt-5-mini"
    openai_timeout_sec: int = 90

    local_llm_enabled: bool = False
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 120

    llm_router_default: str = "openai"
    llm_router_analysis_provider: str = "openai"
    llm_router_extract_provider: str = "openai"
    llm_router_writer_provider: str = "openai"
    llm_router_coach_provider: str = "openai"

    proposal_job_excerpt_chars: int = 1500
    draft_debounce_sec: float = 1.0

    cors_origins: str = "http://127.0.0.1:8790"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator(
        "llm_router_default",
        "llm_router_analysis_provider",
        "llm_router_extract_provider",
        "llm_router_writer_provider",
        "llm_router_coach_provider",
    )
    @classmethod
    def validate_provider(cls, value: str) -> str:
        if value not in {"openai", "local"}:
            raise ValueError("router provider must be 'openai' or 'local'")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
