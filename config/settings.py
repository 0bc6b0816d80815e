# config/settings.py
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List

class Settings(BaseSettings):
    SUPABASE_URL: str
    SUPABASE_KEY: str
    QUERY_TIMEOUT_SECONDS: float = 10.0
    LOG_LEVEL: str = "INFO"
    JSON_LOGS: bool = False
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]  # Vite dev server

    class Config:
        env_file = ".env"

@lru_cache
def get_settings() -> Settings:
    return Settings()
