from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # --- Metadata ---
    APP_NAME: str = "ShoulderEval API"
    APP_VERSION: str = "0.1.0"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None
    JSON_LOGS: bool = False

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["*"]

    # --- Stream sessions ---
    SMOOTH_ALPHA: float = Field(0.2, ge=0.0, le=1.0)
    SCORE_WINDOW: int = Field(30, ge=1)  # ~1 second at 30 fps
    MAX_SESSIONS: int = Field(64, ge=1)
    SESSION_IDLE_SECONDS: float = Field(300.0, gt=0.0)  # evicted after this long without frames


settings = AppSettings()
