from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class ServiceSettings(BaseSettings):
    """
    Environment-driven settings for the sentiment API.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ---- Sentiment inference ----
    # Directory holding a fine-tuned sequence-classification model (config + weights + tokenizer).
    # Empty or missing -> keyword heuristic for the whole process lifetime.
    sentiment_model_path: str = Field(default="models/sentiment_model", alias="SENTIMENT_MODEL_PATH")
    sentiment_max_length: int = Field(default=256, alias="SENTIMENT_MAX_LENGTH")

    # Device: "auto" | "cpu" | "cuda"
    sentiment_device: str = Field(default="auto", alias="SENTIMENT_DEVICE")

    # ---- Persistence ----
    # "sqlite" | "kafka" | "none"
    persistence_backend: str = Field(default="sqlite", alias="PERSISTENCE_BACKEND")
    sentiment_db_path: str = Field(default="sentiments.db", alias="SENTIMENT_DB_PATH")

    # ---- HTTP ----
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8080, alias="API_PORT")
    cors_allowed_origins: list[str] = Field(default_factory=lambda: ["*"], alias="CORS_ALLOWED_ORIGINS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")


def load_settings() -> ServiceSettings:
    return ServiceSettings()
