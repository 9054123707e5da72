# taskflow/core/settings.py
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing import Annotated, List
from pydantic import field_validator

class Settings(BaseSettings):
    """
    Environment settings for the TaskFlow task engine.
    All values come from the environment or `.env`.
    """
    # Database
    DATABASE_URL: str

    # JWT / Security
    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Business rules
    MAX_TASKS_PER_USER: int = 50
    MAX_TASK_DEPTH: int = 5
    DEFAULT_PAGE_SIZE: int = 20
    MAX_SEARCH_RESULTS: int = 50

    # App meta
    ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000", "http://localhost:5173"]

    # Comma-separated ALLOWED_ORIGINS from .env
    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @field_validator("MAX_TASKS_PER_USER", "MAX_TASK_DEPTH")
    @classmethod
    def positive_limits(cls, v):
        if v < 1:
            raise ValueError("limit must be at least 1")
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

settings = Settings()
