from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    upstream_api_url: str = Field(
        "https://oi-server.onrender.com/chat/completions", validation_alias="UPSTREAM_API_URL"
    )
    upstream_api_key: str = Field(..., validation_alias="UPSTREAM_API_KEY")
    upstream_customer_id: str = Field(..., validation_alias="UPSTREAM_CUSTOMER_ID")
    upstream_model: str = Field("replicate/google/veo-3", validation_alias="UPSTREAM_MODEL")

    generation_timeout_seconds: float = Field(900, validation_alias="GENERATION_TIMEOUT_SECONDS")
    prompt_char_limit: int = Field(1000, validation_alias="PROMPT_CHAR_LIMIT")

    history_file: str = Field("videos/history.json", validation_alias="HISTORY_FILE")
    history_max_items: int = Field(20, validation_alias="HISTORY_MAX_ITEMS")

    output_local_dir: str = Field("videos", validation_alias="OUTPUT_LOCAL_DIR")

    app_host: str = Field("127.0.0.1", validation_alias="APP_HOST")
    app_port: int = Field(8000, validation_alias="APP_PORT")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    @field_validator("upstream_api_url", mode="before")
    @classmethod
    def normalize_url(cls, value: str) -> str:
        value = (value or "").strip()
        return value.rstrip("/")

    @field_validator("output_local_dir", mode="before")
    @classmethod
    def ensure_local_dir(cls, value: str) -> str:
        value = value or "videos"
        Path(value).mkdir(parents=True, exist_ok=True)
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return (value or "INFO").upper()


@lru_cache()
def get_settings() -> Settings:
    try:
        return Settings()
    except Exception as exc:
        raise RuntimeError("Failed to load application settings. Ensure your .env file is configured.") from exc


settings = get_settings()
