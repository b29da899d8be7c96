from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o"
    llm_temperature: float = 0
    # 1 means a failed call propagates immediately
    llm_max_attempts: int = 1
    mongodb_uri: Optional[str] = None
    mongodb_database: str = "adaptive_learning"
    cors_origins: List[str] = ["http://localhost:3000"]
    environment: str = "development"
    max_upload_bytes: int = 10 * 1024 * 1024
    autosave_interval_seconds: float = 30
    saved_display_seconds: float = 1
    assessment_concept_limit: int = 3
    questions_per_concept: int = 3
    session_idle_timeout_seconds: float = 3600
    session_sweep_interval_seconds: float = 60

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
